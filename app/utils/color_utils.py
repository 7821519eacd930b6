import re
from typing import Any, NamedTuple, Optional, Tuple

_HEX_COLOR = re.compile(r"[0-9a-fA-F]{6}")


class RGBAColor(NamedTuple):
    """Colour with 0-255 integer channels and a 0..1 alpha."""

    red: int
    green: int
    blue: int
    alpha: float

    def to_pil(self) -> Tuple[int, int, int, int]:
        return self.red, self.green, self.blue, round(self.alpha * 255)

    def css(self) -> str:
        return f"rgba({self.red}, {self.green}, {self.blue}, {self.alpha})"


def hex_to_rgba(rgb: int, opacity: float) -> RGBAColor:
    red = (rgb >> 16) & 0xFF
    green = (rgb >> 8) & 0xFF
    blue = (rgb >> 0) & 0xFF
    return RGBAColor(red, green, blue, opacity)


def parse_hex_color(value: Any) -> Optional[int]:
    """Parse a six hex digit string such as ``"ff8800"``; anything else gives None."""
    if isinstance(value, str) and _HEX_COLOR.fullmatch(value):
        return int(value, 16)
    return None
