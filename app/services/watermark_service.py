from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from PIL import Image, ImageChops, ImageDraw, ImageFilter

from app.core.errors import ImageDecodeError, ImageProcessorError, ImageProcessorErrorFlag as Flag
from app.core.logging import configure_logging
from app.models.common import ProcessingRequest, ProcessingState
from app.models.watermark import PictureWatermarkDescription, TextWatermarkDescription
from app.services.codec import decode_image, encode_image, ensure_codecs_registered
from app.services.fonts import FontRegistry, ResolvedFont, get_font_registry
from app.services.text_layout import TextMetrics, measure_text
from app.services.tiling import compute_tile_grid
from app.services.validation import ensure_valid
from app.utils.color_utils import RGBAColor, hex_to_rgba
from app.utils.geometry import normalize_degrees, rotated_bounding_box, round_half_up

logger = configure_logging()

STROKE_WIDTH = 1
DECORATION_RATIO = 10
# Horizontal lean per pixel of height for faces without an italic variant.
ITALIC_SHEAR = 0.2
TILE_PADDING = 2
# Float noise in |cos|/|sin| must not grow the plane by a whole pixel.
PLANE_SIZE_EPSILON = 1e-6


@dataclass(frozen=True)
class TextTile:
    """Coverage masks for one text tile; ``origin`` is the left end of the baseline inside them."""

    fill: Image.Image
    stroke: Optional[Image.Image]
    decorations: Optional[Image.Image]
    origin: Tuple[int, int]


class WatermarkService:
    """تركيب علامة مائية نصية أو صورية متكررة على صورة أساسية وإرجاعها مُرمَّزة."""

    def __init__(self, font_registry: Optional[FontRegistry] = None) -> None:
        self.font_registry = font_registry or get_font_registry()
        self.font_registry.ensure_registered()
        ensure_codecs_registered()

    async def process_image(self, request: ProcessingRequest) -> bytes:
        """
        Validate, decode, draw and encode one request.

        Raises ``ImageProcessorError`` with the combined flag set on any failure;
        nothing is returned unless the whole image was rendered and encoded.
        """
        state = ProcessingState.idle
        try:
            ensure_valid(request)

            state = self._transition(state, ProcessingState.decoding)
            try:
                image = await decode_image(request.buffer, request.mime_type)
            except ImageDecodeError as exc:
                raise ImageProcessorError(Flag.IMAGE_DECODE_FAILED) from exc

            state = self._transition(state, ProcessingState.rendering)
            watermark_image = await self._decode_watermark_image(request.watermark)
            output = await asyncio.to_thread(
                self._render, image, request.watermark, watermark_image, request.mime_type
            )
        except ImageProcessorError as exc:
            self._transition(state, ProcessingState.failed)
            logger.warning("Watermark processing failed in %s state: %s", state.value, ", ".join(exc.names()))
            raise

        self._transition(state, ProcessingState.encoded)
        logger.info("Watermarked %sx%s %s image (%s bytes)", image.width, image.height, request.mime_type, len(output))
        return output

    async def _decode_watermark_image(self, description: Any) -> Optional[Image.Image]:
        if not isinstance(description, PictureWatermarkDescription):
            return None
        try:
            return await decode_image(description.buffer, description.mime_type)
        except ImageDecodeError as exc:
            raise ImageProcessorError(Flag.WATERMARK_IMAGE_DECODE_FAILED) from exc

    def _render(
        self,
        image: Image.Image,
        description: Any,
        watermark_image: Optional[Image.Image],
        mime_type: str,
    ) -> bytes:
        surface = Image.new("RGBA", image.size, (0, 0, 0, 0))
        surface.alpha_composite(image)

        match description:
            case TextWatermarkDescription():
                self._draw_text_watermark(surface, description)
            case PictureWatermarkDescription():
                self._draw_picture_watermark(surface, watermark_image, description)
            case _:
                raise ImageProcessorError(Flag.INVALID_WATERMARK_DESCRIPTION_TYPE)

        return encode_image(surface, mime_type)

    # ------------------------------------------------------------------
    # Text watermark
    # ------------------------------------------------------------------
    def _draw_text_watermark(self, surface: Image.Image, description: TextWatermarkDescription) -> None:
        # tiles are single lines; the grid is built from one measured text block
        text = " ".join(description.text.splitlines())
        rotated_width, rotated_height = rotated_bounding_box(surface.width, surface.height, description.rotation_angle)

        resolved = self.font_registry.resolve(description.font_description)
        metrics = measure_text(text, resolved.font)
        grid = compute_tile_grid(
            rotated_width,
            rotated_height,
            metrics.width,
            metrics.height,
            description.density_level,
            baseline=True,
        )
        logger.debug(
            "Text tiles %sx%s for %r (%s)",
            grid.horizontal_count,
            grid.vertical_count,
            text,
            description.font_description.css(),
        )

        tile = render_text_tile(text, resolved, metrics, description)
        plane_size = _plane_size(rotated_width, rotated_height)
        positions = list(grid.positions())

        # fill, then stroke, then decoration bars
        color = hex_to_rgba(description.color, description.opacity)
        plane = _colorize(_stamp(plane_size, tile.fill, tile.origin, positions), color)
        if tile.stroke is not None:
            stroke_color = hex_to_rgba(description.stroke_color, description.stroke_opacity)
            plane.alpha_composite(_colorize(_stamp(plane_size, tile.stroke, tile.origin, positions), stroke_color))
        if tile.decorations is not None:
            plane.alpha_composite(_colorize(_stamp(plane_size, tile.decorations, tile.origin, positions), color))

        layer = _project_plane(plane, surface.size, description.rotation_angle)
        if _has_shadow(description):
            surface.alpha_composite(_shadow_layer(layer, description))
        surface.alpha_composite(layer)

    # ------------------------------------------------------------------
    # Picture watermark
    # ------------------------------------------------------------------
    def _draw_picture_watermark(
        self,
        surface: Image.Image,
        watermark_image: Image.Image,
        description: PictureWatermarkDescription,
    ) -> None:
        rotated_width, rotated_height = rotated_bounding_box(surface.width, surface.height, description.rotation_angle)
        grid = compute_tile_grid(
            rotated_width,
            rotated_height,
            watermark_image.width,
            watermark_image.height,
            description.density_level,
        )
        logger.debug("Picture tiles %sx%s", grid.horizontal_count, grid.vertical_count)

        plane = Image.new("RGBA", _plane_size(rotated_width, rotated_height), (0, 0, 0, 0))
        for x, y in grid.positions():
            _composite_clipped(plane, watermark_image, round(x), round(y))

        if description.opacity < 1.0:
            opacity = description.opacity
            plane.putalpha(plane.getchannel("A").point(lambda value: round(value * opacity)))

        surface.alpha_composite(_project_plane(plane, surface.size, description.rotation_angle))

    @staticmethod
    def _transition(current: ProcessingState, target: ProcessingState) -> ProcessingState:
        logger.debug("Watermark processing %s -> %s", current.value, target.value)
        return target


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _plane_size(width: float, height: float) -> Tuple[int, int]:
    return (
        max(1, math.ceil(width - PLANE_SIZE_EPSILON)),
        max(1, math.ceil(height - PLANE_SIZE_EPSILON)),
    )


def _project_plane(plane: Image.Image, canvas_size: Tuple[int, int], angle: float) -> Image.Image:
    """
    Rotate the tiling plane about its centre and centre it on the canvas.

    Same mapping as translate(W/2, H/2), rotate(angle), translate(-w/2, -h/2)
    on a y-down canvas, where a positive angle turns clockwise.
    """
    width, height = canvas_size
    degrees = normalize_degrees(angle)
    rotated = plane.rotate(-degrees, resample=Image.BICUBIC, expand=True) if degrees else plane

    left = round((rotated.width - width) / 2)
    top = round((rotated.height - height) / 2)
    return rotated.crop((left, top, left + width, top + height))


def _colorize(mask: Image.Image, color: RGBAColor) -> Image.Image:
    red, green, blue, alpha = color.to_pil()
    layer = Image.new("RGBA", mask.size, (red, green, blue, 0))
    layer.putalpha(mask.point(lambda value: value * alpha // 255))
    return layer


def render_text_tile(
    text: str,
    resolved: ResolvedFont,
    metrics: TextMetrics,
    description: TextWatermarkDescription,
) -> TextTile:
    """
    Draw one tile of text into coverage masks.

    Weights and italics the loaded face does not have are synthesised: glyphs
    are grown or eroded by ``resolved.synthetic_emboldening`` pixels and
    sheared right about the baseline for a missing italic.
    """
    emboldening = resolved.synthetic_emboldening
    grow = max(0, emboldening)
    shear = ITALIC_SHEAR if resolved.synthetic_italic else 0.0
    line_height = metrics.height / DECORATION_RATIO

    above = math.ceil(max(metrics.ascent, metrics.height))
    below = math.ceil(max(metrics.descent, 2 * line_height))
    pad = STROKE_WIDTH + grow + math.ceil(shear * max(above, below)) + TILE_PADDING
    size = (math.ceil(metrics.width) + 2 * pad, above + below + 2 * pad)
    left, baseline = origin = (pad, pad + above)

    fill = Image.new("L", size, 0)
    ImageDraw.Draw(fill).text(
        origin, text, font=resolved.font, fill=255, anchor="ls", stroke_width=grow, stroke_fill=255
    )
    if emboldening < 0:
        fill = fill.filter(ImageFilter.MinFilter(2 * -emboldening + 1))
    if shear:
        fill = fill.transform(size, Image.AFFINE, (1, shear, -shear * baseline, 0, 1, 0), resample=Image.BICUBIC)

    stroke = None
    if description.stroke_opacity > 0:
        # outline only, outside the glyphs
        stroke = ImageChops.subtract(fill.filter(ImageFilter.MaxFilter(2 * STROKE_WIDTH + 1)), fill)

    decorations = None
    if description.font_underline or description.font_line_through:
        decorations = Image.new("L", size, 0)
        draw = ImageDraw.Draw(decorations)
        right = left + metrics.width
        if description.font_underline:
            top = baseline + line_height
            draw.rectangle((left, top, right, top + line_height), fill=255)
        if description.font_line_through:
            top = baseline - metrics.height / 2
            draw.rectangle((left, top, right, top + line_height), fill=255)

    return TextTile(fill=fill, stroke=stroke, decorations=decorations, origin=origin)


def _stamp(
    plane_size: Tuple[int, int],
    mask: Image.Image,
    origin: Tuple[int, int],
    positions: list,
) -> Image.Image:
    """Paste ``mask`` with its origin on every tile position; tiles may hang off the plane."""
    plane = Image.new("L", plane_size, 0)
    for x, y in positions:
        left = round_half_up(x) - origin[0]
        top = round_half_up(y) - origin[1]
        plane.paste(255, (left, top, left + mask.width, top + mask.height), mask)
    return plane


def _has_shadow(description: TextWatermarkDescription) -> bool:
    if description.shadow_opacity <= 0:
        return False
    return bool(description.shadow_offset_x or description.shadow_offset_y or description.shadow_blur_radius > 0)


def _shadow_layer(layer: Image.Image, description: TextWatermarkDescription) -> Image.Image:
    """Shadow of everything drawn on ``layer``, offset in canvas (unrotated) space."""
    coverage = layer.getchannel("A")
    if description.shadow_blur_radius > 0:
        coverage = coverage.filter(ImageFilter.GaussianBlur(description.shadow_blur_radius / 2))

    red, green, blue, alpha = hex_to_rgba(description.shadow_color, description.shadow_opacity).to_pil()
    shifted = Image.new("L", layer.size, 0)
    shifted.paste(
        coverage.point(lambda value: value * alpha // 255),
        (description.shadow_offset_x, description.shadow_offset_y),
    )

    shadow = Image.new("RGBA", layer.size, (red, green, blue, 0))
    shadow.putalpha(shifted)
    return shadow


def _composite_clipped(target: Image.Image, tile: Image.Image, x: int, y: int) -> None:
    """alpha_composite that accepts tiles hanging off any edge of the target."""
    source_x, source_y = max(0, -x), max(0, -y)
    if source_x >= tile.width or source_y >= tile.height:
        return
    if x >= target.width or y >= target.height:
        return
    target.alpha_composite(tile, dest=(max(0, x), max(0, y)), source=(source_x, source_y))
