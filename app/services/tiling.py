from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from app.models.watermark import MAX_DENSITY_LEVEL, MIN_DENSITY_LEVEL
from app.utils.geometry import round_half_up

MIN_ITEM_SIZE = 1.0


@dataclass(frozen=True)
class TileGrid:
    horizontal_count: int
    vertical_count: int
    leading_offset_x: float
    leading_offset_y: float
    between_spacing_x: float
    between_spacing_y: float
    item_width: float
    item_height: float

    @property
    def tile_count(self) -> int:
        return self.horizontal_count * self.vertical_count

    def position(self, h: int, v: int) -> Tuple[float, float]:
        x = self.leading_offset_x + h * (self.item_width + self.between_spacing_x)
        y = self.leading_offset_y + v * (self.item_height + self.between_spacing_y)
        return x, y

    def positions(self) -> Iterator[Tuple[float, float]]:
        """Tile anchors row by row, left to right."""
        for v in range(self.vertical_count):
            for h in range(self.horizontal_count):
                yield self.position(h, v)


def compute_tile_grid(
    region_width: float,
    region_height: float,
    item_width: float,
    item_height: float,
    density_level: int,
    *,
    baseline: bool = False,
) -> TileGrid:
    """
    Work out how many items fit on each axis of the region and where they go.

    The density level is a 1-5 knob rather than a tile count: level 1 gives a
    sparse covering (20% / 10% of the horizontal / vertical capacity plus a
    small density share) and level 5 the densest one. At least one tile is
    always placed, even when the item is larger than the region.

    With ``baseline=True`` (text tiles) the vertical anchor sits at the bottom
    of the glyph box, so the first row is pushed down by one item height.
    """
    item_width = max(item_width, MIN_ITEM_SIZE)
    item_height = max(item_height, MIN_ITEM_SIZE)
    density_level = min(max(density_level, MIN_DENSITY_LEVEL), MAX_DENSITY_LEVEL)

    density = density_level / MAX_DENSITY_LEVEL
    horizontal_capacity = region_width / item_width
    vertical_capacity = region_height / item_height

    horizontal_count = max(1, round_half_up(horizontal_capacity * 0.2 + horizontal_capacity * 0.6 * density))
    vertical_count = max(1, round_half_up(vertical_capacity * 0.1 + vertical_capacity * 0.3 * density))

    horizontal_remaining = region_width - horizontal_count * item_width
    vertical_remaining = region_height - vertical_count * item_height

    between_spacing_x = horizontal_remaining / horizontal_count
    between_spacing_y = vertical_remaining / vertical_count

    leading_offset_x = between_spacing_x / 2
    leading_offset_y = between_spacing_y / 2
    if baseline:
        leading_offset_y += item_height

    return TileGrid(
        horizontal_count=horizontal_count,
        vertical_count=vertical_count,
        leading_offset_x=leading_offset_x,
        leading_offset_y=leading_offset_y,
        between_spacing_x=between_spacing_x,
        between_spacing_y=between_spacing_y,
        item_width=item_width,
        item_height=item_height,
    )
