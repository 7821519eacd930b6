from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

IMAGE_MIME_TYPES = (
    "image/png",
    "image/jpeg",
    "image/jpg",
)

SVG_MIME_TYPES = ("image/svg+xml",)

SUPPORTED_MIME_TYPES = IMAGE_MIME_TYPES + SVG_MIME_TYPES


class ProcessingState(str, Enum):
    idle = "idle"
    decoding = "decoding"
    rendering = "rendering"
    encoded = "encoded"
    failed = "failed"


@dataclass(frozen=True)
class ProcessingRequest:
    """طلب معالجة واحد: الصورة الأساسية ونوعها ووصف العلامة المائية.

    الحقول تُحفظ كما وصلت؛ التحقق من أنواعها من مسؤولية ``validate_request``.
    """

    buffer: Any
    mime_type: Any
    watermark: Any
