from __future__ import annotations

from enum import IntFlag


class ImageProcessorErrorFlag(IntFlag):
    """Independent failure bits; several may be set in one signal."""

    NONE = 0
    INVALID_PARAMS_TYPE = 1 << 0
    UNSUPPORTED_MIME_TYPE = 1 << 1
    INVALID_MIME_TYPE_TYPE = 1 << 2
    INVALID_BUFFER_TYPE = 1 << 3
    INVALID_WATERMARK_DESCRIPTION_TYPE = 1 << 4
    INVALID_WATERMARK_TEXT_TYPE = 1 << 5
    WATERMARK_TEXT_EMPTY = 1 << 6
    INVALID_WATERMARK_MIME_TYPE_TYPE = 1 << 7
    UNSUPPORTED_WATERMARK_MIME_TYPE = 1 << 8
    INVALID_WATERMARK_BUFFER_TYPE = 1 << 9
    IMAGE_DECODE_FAILED = 1 << 10
    WATERMARK_IMAGE_DECODE_FAILED = 1 << 11


DECODE_FAILURES = (
    ImageProcessorErrorFlag.IMAGE_DECODE_FAILED | ImageProcessorErrorFlag.WATERMARK_IMAGE_DECODE_FAILED
)


class ImageProcessorError(Exception):
    """Terminal failure of a processing call, carrying the full flag set."""

    def __init__(self, flags: ImageProcessorErrorFlag | int) -> None:
        self.flags = ImageProcessorErrorFlag(flags)
        super().__init__(f"image processing failed: {', '.join(self.names()) or 'NONE'}")

    @property
    def mask(self) -> int:
        return int(self.flags)

    @property
    def is_decode_failure(self) -> bool:
        return bool(self.flags & DECODE_FAILURES)

    def names(self) -> list[str]:
        return [
            flag.name
            for flag in ImageProcessorErrorFlag
            if flag is not ImageProcessorErrorFlag.NONE and flag in self.flags
        ]


class ImageDecodeError(Exception):
    """Raised by the codec when a buffer cannot be decoded."""
