import math
from typing import Tuple


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (ties go towards +infinity)."""
    if isinstance(value, int):
        return value
    return math.floor(value + 0.5)


def normalize_degrees(angle: float) -> float:
    """Bring an angle into the [0, 360) range."""
    normalized = angle % 360
    # -1e-20 % 360 rounds up to exactly 360.0
    return 0.0 if normalized >= 360 else normalized


def degrees_to_radians(angle: float) -> float:
    return math.radians(normalize_degrees(angle))


def rotated_bounding_box(width: float, height: float, angle_degrees: float) -> Tuple[float, float]:
    """
    Axis-aligned box that contains a width x height rectangle rotated about its centre.

    The tiling plane is laid out over this box so that, once rotated, it still
    covers every corner of the canvas.
    """
    radians = degrees_to_radians(angle_degrees)
    sin_angle = abs(math.sin(radians))
    cos_angle = abs(math.cos(radians))

    rotated_width = width * cos_angle + height * sin_angle
    rotated_height = height * cos_angle + width * sin_angle
    return rotated_width, rotated_height
