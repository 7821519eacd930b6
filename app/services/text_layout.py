from dataclasses import dataclass

from PIL import ImageFont


@dataclass(frozen=True)
class TextMetrics:
    width: float
    ascent: float
    descent: float

    @property
    def height(self) -> float:
        return self.ascent + self.descent


def measure_text(text: str, font: ImageFont.FreeTypeFont) -> TextMetrics:
    """
    Advance width plus ink ascent/descent around the alphabetic baseline.

    Matches what a 2D canvas reports as ``width`` and
    ``actualBoundingBoxAscent``/``actualBoundingBoxDescent``.
    """
    _, top, _, bottom = font.getbbox(text, anchor="ls")
    return TextMetrics(
        width=float(font.getlength(text)),
        ascent=float(max(0, -top)),
        descent=float(max(0, bottom)),
    )
