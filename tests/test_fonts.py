import threading
from pathlib import Path

import pytest

from app.models import FontDescription
from app.services.fonts import FontRegistry, parse_font_filename
from app.services.text_layout import measure_text


def _touch(directory: Path, *names: str) -> None:
    for name in names:
        (directory / name).write_bytes(b"")


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("Roboto-BlackItalic.ttf", ("Roboto", 900, True)),
        ("Roboto-Regular.ttf", ("Roboto", 400, False)),
        ("Roboto-Italic.ttf", ("Roboto", 400, True)),
        ("Roboto-Thin.otf", ("Roboto", 100, False)),
        ("Roboto.ttf", ("Roboto", 400, False)),
        ("DejaVuSans-BoldOblique.ttf", ("DejaVuSans", 700, True)),
        ("DejaVuSans-Oblique.ttf", ("DejaVuSans", 400, True)),
        ("Roboto-Condensed.ttf", None),
    ],
)
def test_parse_font_filename(filename, expected):
    assert parse_font_filename(Path(filename)) == expected


def test_ensure_registered_is_idempotent(tmp_path):
    _touch(tmp_path, "Roboto-Regular.ttf", "Roboto-Bold.ttf", "notes.txt")
    registry = FontRegistry(tmp_path, fallback_paths=[])

    registry.ensure_registered()
    first = registry.faces
    _touch(tmp_path, "Roboto-Black.ttf")
    registry.ensure_registered()

    assert registry.is_registered
    assert registry.faces == first
    assert sorted(face.weight for face in first) == [400, 700]


def test_concurrent_registration_scans_once(tmp_path):
    registry = FontRegistry(tmp_path, fallback_paths=[])
    scans = []
    registry._register_directory = lambda directory: scans.append(directory)

    threads = [threading.Thread(target=registry.ensure_registered) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert scans == [tmp_path]


def test_missing_fonts_directory_is_tolerated(tmp_path):
    registry = FontRegistry(tmp_path / "missing", fallback_paths=[])
    registry.ensure_registered()
    assert registry.is_registered
    assert registry.faces == []


def test_find_face_prefers_same_style_and_nearest_weight(tmp_path):
    registry = FontRegistry(tmp_path, fallback_paths=[])
    registry.register_font(tmp_path / "Roboto-Light.ttf", "Roboto", 300)
    registry.register_font(tmp_path / "Roboto-Bold.ttf", "Roboto", 700)
    registry.register_font(tmp_path / "Roboto-Italic.ttf", "Roboto", 400, italic=True)

    assert registry.find_face("Roboto", 300, False).weight == 300
    assert registry.find_face("roboto", 400, False).weight == 300
    assert registry.find_face("Roboto", 600, False).weight == 700
    assert registry.find_face("Roboto", 900, True).path.name == "Roboto-Italic.ttf"
    assert registry.find_face("Lobster", 400, False) is None


def test_family_lookup_ignores_spaces_and_case(tmp_path):
    registry = FontRegistry(tmp_path, fallback_paths=[])
    registry.register_font(tmp_path / "OpenSans-Regular.ttf", "OpenSans")

    assert registry.find_face("Open Sans", 400, False) is not None


def test_resolve_falls_back_to_default_font(tmp_path):
    registry = FontRegistry(tmp_path, fallback_paths=[tmp_path / "nope.ttf"])
    font = registry.resolve(FontDescription(family="Roboto", size=20)).font

    metrics = measure_text("HI", font)
    assert metrics.width > 0
    assert metrics.ascent > 0
    assert metrics.height == metrics.ascent + metrics.descent


def test_measure_text_grows_with_font_size(font_registry):
    small = measure_text("Watermark", font_registry.resolve(FontDescription(family="Roboto", size=12)).font)
    large = measure_text("Watermark", font_registry.resolve(FontDescription(family="Roboto", size=48)).font)

    assert large.width > small.width
    assert large.height > small.height


def test_zero_font_size_still_resolves(font_registry):
    font = font_registry.resolve(FontDescription(family="Roboto", size=0)).font
    assert measure_text("x", font).width >= 0


def test_unknown_family_uses_default_family(tmp_path):
    registry = FontRegistry(tmp_path, fallback_paths=[], default_family="Roboto")
    registry.register_font(tmp_path / "Roboto-Bold.ttf", "Roboto", 700)

    assert registry.find_face("Lobster", 700, False).path.name == "Roboto-Bold.ttf"


def test_fallback_faces_follow_weight_and_style(tmp_path):
    names = ["DejaVuSans.ttf", "DejaVuSans-Bold.ttf", "DejaVuSans-Oblique.ttf", "DejaVuSans-BoldOblique.ttf"]
    _touch(tmp_path, *names, "LiberationSans-Bold.ttf")
    fallback_paths = [tmp_path / "missing.ttf", *(tmp_path / name for name in names), tmp_path / "LiberationSans-Bold.ttf"]
    registry = FontRegistry(tmp_path / "fonts", fallback_paths=fallback_paths)
    registry.ensure_registered()

    assert registry.find_fallback_face(100, False).path.name == "DejaVuSans.ttf"
    assert registry.find_fallback_face(900, False).path.name == "DejaVuSans-Bold.ttf"
    assert registry.find_fallback_face(400, True).path.name == "DejaVuSans-Oblique.ttf"
    assert registry.find_fallback_face(700, True).path.name == "DejaVuSans-BoldOblique.ttf"


def test_no_fallback_face_without_files(font_registry):
    font_registry.ensure_registered()
    assert font_registry.find_fallback_face(400, False) is None


def test_missing_styles_are_synthesised_on_the_default_font(font_registry):
    black = font_registry.resolve(FontDescription(family="Roboto", size=30, italic=True, weight=900))
    thin = font_registry.resolve(FontDescription(family="Roboto", size=30, weight=100))
    regular = font_registry.resolve(FontDescription(family="Roboto", size=30))

    assert (black.weight, black.italic) == (400, False)
    assert black.synthetic_emboldening == 2
    assert black.synthetic_italic
    assert thin.synthetic_emboldening == -1
    assert not thin.synthetic_italic
    assert regular.synthetic_emboldening == 0
