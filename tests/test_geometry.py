import math

import pytest

from app.utils.color_utils import RGBAColor, hex_to_rgba, parse_hex_color
from app.utils.geometry import normalize_degrees, rotated_bounding_box, round_half_up


@pytest.mark.parametrize("angle", [-725.5, -360, -45, -1e-20, 0, 30, 359.999, 360, 725, 10**30])
def test_normalize_degrees_range(angle):
    normalized = normalize_degrees(angle)
    assert 0 <= normalized < 360
    assert normalize_degrees(angle + 360) == pytest.approx(normalized, abs=1e-6)


def test_normalize_degrees_negative_angles_wrap_forward():
    assert normalize_degrees(-90) == 270
    assert normalize_degrees(-360) == 0
    assert normalize_degrees(405) == 45


def test_rotated_bounding_box_right_angles():
    assert rotated_bounding_box(200, 100, 0) == pytest.approx((200, 100))
    assert rotated_bounding_box(200, 100, 90) == pytest.approx((100, 200))
    assert rotated_bounding_box(200, 100, 180) == pytest.approx((200, 100))
    assert rotated_bounding_box(200, 100, -90) == pytest.approx((100, 200))


def test_rotated_bounding_box_diagonal():
    width, height = rotated_bounding_box(100, 100, 45)
    assert width == pytest.approx(100 * math.sqrt(2))
    assert height == pytest.approx(100 * math.sqrt(2))


def test_round_half_up_matches_javascript():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -2
    assert round_half_up(1.49) == 1
    assert round_half_up(7) == 7


def test_hex_to_rgba_uses_byte_channels():
    color = hex_to_rgba(0x336699, 0.5)
    assert color == RGBAColor(0x33, 0x66, 0x99, 0.5)
    assert color.css() == "rgba(51, 102, 153, 0.5)"
    assert color.to_pil() == (51, 102, 153, 128)


def test_hex_to_rgba_ignores_bits_above_24():
    assert hex_to_rgba(0x1FFFFFF, 1.0)[:3] == (255, 255, 255)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("ff8800", 0xFF8800),
        ("FFFFFF", 0xFFFFFF),
        ("000000", 0),
        ("zzzzzz", None),
        ("12zzzz", None),
        ("fff", None),
        ("#ff8800", None),
        (0xFF8800, None),
        (None, None),
    ],
)
def test_parse_hex_color(value, expected):
    assert parse_hex_color(value) == expected
