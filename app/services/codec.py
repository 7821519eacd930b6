from __future__ import annotations

import asyncio
import base64
import threading
from io import BytesIO
from typing import Literal

import fitz  # PyMuPDF
from PIL import Image

from app.core.config import get_settings
from app.core.errors import ImageDecodeError
from app.core.logging import configure_logging
from app.models.common import SVG_MIME_TYPES

logger = configure_logging()

JPEG_MIME_TYPES = ("image/jpeg", "image/jpg")

SurfaceKind = Literal["image", "svg"]

_codecs_registered = False
_codecs_lock = threading.Lock()


def ensure_codecs_registered() -> bool:
    """Load Pillow's codec plugins once; returns True only for the call that did it."""
    global _codecs_registered
    if _codecs_registered:
        return False
    with _codecs_lock:
        if _codecs_registered:
            return False
        Image.init()
        _codecs_registered = True
    logger.debug("Image codecs registered: %s", ", ".join(sorted(Image.SAVE)))
    return True


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------
async def decode_image(data: bytes, mime_type: str) -> Image.Image:
    """
    Decode an encoded image into an RGBA surface.

    The blocking decode runs in a worker thread; wrap the call in
    ``asyncio.wait_for`` to put a deadline on it.
    """
    try:
        return await asyncio.to_thread(_decode, bytes(data), mime_type)
    except Exception as exc:
        logger.warning("Failed to decode %s image (%s bytes): %s", mime_type, len(data), exc)
        raise ImageDecodeError(f"cannot decode {mime_type} image") from exc


def _decode(data: bytes, mime_type: str) -> Image.Image:
    if mime_type in SVG_MIME_TYPES:
        return _decode_svg(data)
    return _decode_raster(data)


def _decode_raster(data: bytes) -> Image.Image:
    with Image.open(BytesIO(data)) as image:
        image.load()
        return image.convert("RGBA")


def _decode_svg(data: bytes) -> Image.Image:
    with fitz.open(stream=data, filetype="svg") as document:
        page = document.load_page(0)
        pixmap = page.get_pixmap(alpha=True)
        png_bytes = pixmap.tobytes("png")
    return _decode_raster(png_bytes)


# ----------------------------------------------------------------------
# Encoding
# ----------------------------------------------------------------------
def surface_kind(mime_type: str) -> SurfaceKind:
    return "svg" if mime_type in SVG_MIME_TYPES else "image"


def encode_image(surface: Image.Image, mime_type: str) -> bytes:
    if surface_kind(mime_type) == "svg":
        return _encode_svg(surface)

    buffer = BytesIO()
    if mime_type in JPEG_MIME_TYPES:
        _flatten(surface).save(buffer, format="JPEG", quality=get_settings().jpeg_quality)
    else:
        surface.save(buffer, format="PNG")
    return buffer.getvalue()


def _encode_svg(surface: Image.Image) -> bytes:
    png = BytesIO()
    surface.save(png, format="PNG")
    encoded = base64.b64encode(png.getvalue()).decode("ascii")
    width, height = surface.size
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<image width="{width}" height="{height}" xlink:href="data:image/png;base64,{encoded}"/>'
        f"</svg>"
    ).encode("utf-8")


def _flatten(surface: Image.Image) -> Image.Image:
    """JPEG has no alpha: composite onto opaque white."""
    background = Image.new("RGB", surface.size, (255, 255, 255))
    background.paste(surface, mask=surface.getchannel("A"))
    return background
