from .common import (
    IMAGE_MIME_TYPES,
    SUPPORTED_MIME_TYPES,
    SVG_MIME_TYPES,
    ProcessingRequest,
    ProcessingState,
)
from .watermark import (
    FontDescription,
    PictureWatermarkDescription,
    TextWatermarkDescription,
    WatermarkDescription,
    parse_watermark_description,
)

__all__ = [
    "IMAGE_MIME_TYPES",
    "SUPPORTED_MIME_TYPES",
    "SVG_MIME_TYPES",
    "ProcessingRequest",
    "ProcessingState",
    "FontDescription",
    "PictureWatermarkDescription",
    "TextWatermarkDescription",
    "WatermarkDescription",
    "parse_watermark_description",
]
