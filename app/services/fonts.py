from __future__ import annotations

import threading
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import ImageFont

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.models.watermark import FontDescription
from app.utils.geometry import round_half_up

logger = configure_logging()

FONT_SUFFIXES = {".ttf", ".otf"}

WEIGHT_NAMES = {
    "thin": 100,
    "hairline": 100,
    "extralight": 200,
    "ultralight": 200,
    "light": 300,
    "regular": 400,
    "normal": 400,
    "book": 400,
    "medium": 500,
    "semibold": 600,
    "demibold": 600,
    "bold": 700,
    "extrabold": 800,
    "ultrabold": 800,
    "black": 900,
    "heavy": 900,
}

ITALIC_SUFFIXES = ("italic", "oblique")

DEFAULT_FACE_WEIGHT = 400
# Font size times weight difference per pixel of synthetic emboldening.
SYNTHETIC_WEIGHT_SCALE = 10000

FaceStyles = Dict[Tuple[int, bool], "FontFace"]


@dataclass(frozen=True)
class FontFace:
    family: str
    weight: int
    italic: bool
    path: Path


@dataclass(frozen=True)
class ResolvedFont:
    """A loaded font plus the style it actually has, against the style that was asked for."""

    font: ImageFont.FreeTypeFont
    weight: int
    italic: bool
    requested: FontDescription

    @property
    def synthetic_emboldening(self) -> int:
        """Pixels to grow (positive) or erode (negative) glyphs to reach the requested weight."""
        delta = self.requested.weight - self.weight
        return round_half_up(max(1, self.requested.size) * delta / SYNTHETIC_WEIGHT_SCALE)

    @property
    def synthetic_italic(self) -> bool:
        return self.requested.italic and not self.italic


def family_key(family: str) -> str:
    return "".join(family.split()).lower()


def parse_font_filename(path: Path) -> Optional[Tuple[str, int, bool]]:
    """``Roboto-BlackItalic.ttf`` -> ``("Roboto", 900, True)``; unknown styles give None."""
    family, _, style = path.stem.partition("-")
    style = style.lower()
    italic = False
    for suffix in ITALIC_SUFFIXES:
        if style.endswith(suffix):
            style = style[: -len(suffix)]
            italic = True
            break
    weight = WEIGHT_NAMES.get(style or "regular")
    if not family or weight is None:
        return None
    return family, weight, italic


def nearest_face(styles: FaceStyles, weight: int, italic: bool) -> Optional[FontFace]:
    if not styles:
        return None

    exact = styles.get((weight, italic))
    if exact:
        return exact

    same_style = [face for (_, face_italic), face in styles.items() if face_italic == italic]
    candidates = same_style or list(styles.values())
    return min(candidates, key=lambda face: (abs(face.weight - weight), face.weight))


class FontRegistry:
    """سجل الخطوط المتاحة للرسم، يُهيَّأ مرة واحدة فقط طوال عمر العملية."""

    def __init__(
        self,
        fonts_dir: Optional[Path],
        fallback_paths: Iterable[Path] = (),
        default_family: Optional[str] = None,
    ) -> None:
        self.fonts_dir = Path(fonts_dir) if fonts_dir else None
        self.fallback_paths: List[Path] = [Path(path) for path in fallback_paths]
        self.default_family = default_family
        self._faces: Dict[str, FaceStyles] = {}
        self._fallback_faces: Dict[str, FaceStyles] = {}
        self._registered = False
        self._lock = threading.Lock()

    @property
    def is_registered(self) -> bool:
        return self._registered

    @property
    def faces(self) -> List[FontFace]:
        return [face for styles in self._faces.values() for face in styles.values()]

    def ensure_registered(self) -> None:
        if self._registered:
            return
        with self._lock:
            if self._registered:
                return
            self._register_directory(self.fonts_dir)
            self._register_fallbacks(self.fallback_paths)
            self._registered = True

    def register_font(self, path: Path, family: str, weight: int = 400, italic: bool = False) -> FontFace:
        face = FontFace(family=family, weight=weight, italic=italic, path=Path(path))
        self._faces.setdefault(family_key(family), {})[(weight, italic)] = face
        return face

    def find_face(self, family: str, weight: int, italic: bool) -> Optional[FontFace]:
        face = nearest_face(self._faces.get(family_key(family), {}), weight, italic)
        if face is None and self.default_family:
            face = nearest_face(self._faces.get(family_key(self.default_family), {}), weight, italic)
        return face

    def find_fallback_face(self, weight: int, italic: bool) -> Optional[FontFace]:
        """Nearest style within the first fallback family that has any file installed."""
        styles = next(iter(self._fallback_faces.values()), {})
        return nearest_face(styles, weight, italic)

    def resolve(self, description: FontDescription) -> ResolvedFont:
        self.ensure_registered()
        size = max(1, description.size)

        face = self.find_face(description.family, description.weight, description.italic)
        if face is None:
            face = self.find_fallback_face(description.weight, description.italic)
            if face is not None:
                logger.debug("Font %s not registered, using %s", description.family, face.path.name)

        if face is not None:
            font = ImageFont.truetype(str(face.path), size)
            return ResolvedFont(font, face.weight, face.italic, description)

        logger.debug("Font %s not registered, using Pillow default font", description.family)
        return ResolvedFont(ImageFont.load_default(size=size), DEFAULT_FACE_WEIGHT, False, description)

    def _register_directory(self, directory: Optional[Path]) -> None:
        if directory is None or not directory.is_dir():
            logger.warning("مجلد الخطوط غير موجود: %s", directory)
            return

        for path in sorted(directory.rglob("*")):
            if path.suffix.lower() not in FONT_SUFFIXES:
                continue
            parsed = parse_font_filename(path)
            if parsed is None:
                logger.debug("Skipping font with unrecognised style: %s", path.name)
                continue
            family, weight, italic = parsed
            self.register_font(path, family, weight, italic)

        logger.info("تم تسجيل %s خط من %s", len(self.faces), directory)

    def _register_fallbacks(self, paths: Iterable[Path]) -> None:
        for path in paths:
            if not path.is_file():
                continue
            parsed = parse_font_filename(path)
            if parsed is None:
                logger.debug("Skipping fallback font with unrecognised style: %s", path.name)
                continue
            family, weight, italic = parsed
            face = FontFace(family=family, weight=weight, italic=italic, path=path)
            self._fallback_faces.setdefault(family_key(family), {})[(weight, italic)] = face


@lru_cache()
def get_font_registry() -> FontRegistry:
    settings = get_settings()
    return FontRegistry(settings.fonts_dir, settings.fallback_font_paths, settings.default_font_family)
