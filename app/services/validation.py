from __future__ import annotations

from typing import Any

from app.core.errors import ImageProcessorError, ImageProcessorErrorFlag as Flag
from app.models.common import SUPPORTED_MIME_TYPES, ProcessingRequest
from app.models.watermark import PictureWatermarkDescription, TextWatermarkDescription


def validate_request(request: Any) -> Flag:
    """
    Check the structural fields of a processing request.

    The mime type, the base buffer and the watermark description are checked
    independently and their flags OR-ed together, so one call reports every
    structural problem. Cosmetic watermark fields are never checked here: they
    were already resolved to defaults when the description was built.
    """
    if not isinstance(request, ProcessingRequest):
        return Flag.INVALID_PARAMS_TYPE

    flags = Flag.NONE
    flags |= _validate_mime_type(request.mime_type, Flag.INVALID_MIME_TYPE_TYPE, Flag.UNSUPPORTED_MIME_TYPE)
    flags |= _validate_buffer(request.buffer, Flag.INVALID_BUFFER_TYPE)
    flags |= _validate_watermark_description(request.watermark)
    return flags


def ensure_valid(request: Any) -> None:
    flags = validate_request(request)
    if flags:
        raise ImageProcessorError(flags)


def _validate_watermark_description(description: Any) -> Flag:
    match description:
        case TextWatermarkDescription(text=str() as text):
            return Flag.WATERMARK_TEXT_EMPTY if not text else Flag.NONE
        case TextWatermarkDescription():
            return Flag.INVALID_WATERMARK_TEXT_TYPE
        case PictureWatermarkDescription():
            return _validate_mime_type(
                description.mime_type,
                Flag.INVALID_WATERMARK_MIME_TYPE_TYPE,
                Flag.UNSUPPORTED_WATERMARK_MIME_TYPE,
            ) | _validate_buffer(description.buffer, Flag.INVALID_WATERMARK_BUFFER_TYPE)
        case _:
            return Flag.INVALID_WATERMARK_DESCRIPTION_TYPE


def _validate_mime_type(mime_type: Any, type_flag: Flag, support_flag: Flag) -> Flag:
    if not isinstance(mime_type, str):
        return type_flag
    if mime_type not in SUPPORTED_MIME_TYPES:
        return support_flag
    return Flag.NONE


def _validate_buffer(buffer: Any, type_flag: Flag) -> Flag:
    if not isinstance(buffer, (bytes, bytearray)):
        return type_flag
    return Flag.NONE
