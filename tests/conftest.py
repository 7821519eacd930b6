import pytest
from PIL import Image

from app.services.fonts import FontRegistry
from app.services.watermark_service import WatermarkService
from tests.helpers import SVG_DOCUMENT, encode


@pytest.fixture
def make_image_bytes():
    def _make(size=(100, 100), color=(255, 255, 255, 255), fmt="PNG") -> bytes:
        if fmt == "JPEG":
            return encode(Image.new("RGB", size, color[:3]), fmt)
        return encode(Image.new("RGBA", size, color), fmt)

    return _make


@pytest.fixture
def png_bytes(make_image_bytes) -> bytes:
    return make_image_bytes()


@pytest.fixture
def svg_bytes() -> bytes:
    return SVG_DOCUMENT


@pytest.fixture
def font_registry(tmp_path) -> FontRegistry:
    """Registry without font files: every lookup falls back to Pillow's bundled font."""
    return FontRegistry(tmp_path, fallback_paths=[])


@pytest.fixture
def service(font_registry) -> WatermarkService:
    return WatermarkService(font_registry=font_registry)
