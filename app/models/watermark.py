import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.core.config import get_settings
from app.utils.color_utils import parse_hex_color
from app.utils.geometry import round_half_up

MAX_NUMBER = 9999
MIN_DENSITY_LEVEL = 1
MAX_DENSITY_LEVEL = 5
DEFAULT_DENSITY_LEVEL = 3


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _default_for(cls: type[BaseModel], info: ValidationInfo) -> Any:
    return cls.model_fields[info.field_name].get_default(call_default_factory=True)


@dataclass(frozen=True)
class FontDescription:
    family: str
    size: int
    italic: bool = False
    weight: int = 400

    def css(self) -> str:
        style = "italic " if self.italic else ""
        return f'{style}{self.weight} {self.size}px "{self.family}"'


def capitalize_family(family: str) -> str:
    """``"open sans"`` -> ``"Open Sans"``; other characters are left alone."""
    return re.sub(r"\b[a-z]", lambda match: match.group().upper(), family)


class _WatermarkBase(BaseModel):
    """Fields shared by both watermark variants.

    Every cosmetic field is resolved once, while the model is built: a value of
    the wrong type or out of range is replaced by the field default instead of
    failing validation.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    opacity: float = 1.0
    rotation_angle: int = 0
    density_level: int = DEFAULT_DENSITY_LEVEL

    @field_validator("opacity", mode="before")
    @classmethod
    def _resolve_opacity(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and 0.0 <= value <= 1.0:
            return float(value)
        return _default_for(cls, info)

    @field_validator("rotation_angle", mode="before")
    @classmethod
    def _resolve_rotation_angle(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value):
            return round_half_up(value)
        return _default_for(cls, info)

    @field_validator("density_level", mode="before")
    @classmethod
    def _resolve_density_level(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and MIN_DENSITY_LEVEL <= value <= MAX_DENSITY_LEVEL:
            return round_half_up(value)
        return _default_for(cls, info)


class TextWatermarkDescription(_WatermarkBase):
    """علامة مائية نصية مع إعدادات الخط والألوان والظل."""

    kind: Literal["text"] = "text"

    # Checked by the validator, never defaulted.
    text: Any = None

    font_family: str = Field(default_factory=lambda: get_settings().default_font_family)
    font_size: int = 24
    font_italic: bool = False
    font_decorations: str = ""
    font_weight: int = 400
    color: int = 0x000000
    stroke_color: int = 0x000000
    stroke_opacity: float = 0.0
    shadow_offset_x: int = 0
    shadow_offset_y: int = 0
    shadow_blur_radius: int = 0
    shadow_color: int = 0x000000
    shadow_opacity: float = 0.0

    @field_validator("font_family", mode="before")
    @classmethod
    def _resolve_font_family(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and value:
            return value
        return _default_for(cls, info)

    @field_validator("font_size", mode="before")
    @classmethod
    def _resolve_font_size(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and 0 <= value <= MAX_NUMBER:
            return round_half_up(value)
        return _default_for(cls, info)

    @field_validator("font_italic", mode="before")
    @classmethod
    def _resolve_font_italic(cls, value: Any, info: ValidationInfo) -> Any:
        return value if isinstance(value, bool) else _default_for(cls, info)

    @field_validator("font_decorations", mode="before")
    @classmethod
    def _resolve_font_decorations(cls, value: Any, info: ValidationInfo) -> Any:
        return value if isinstance(value, str) else _default_for(cls, info)

    @field_validator("font_weight", mode="before")
    @classmethod
    def _resolve_font_weight(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and value % 100 == 0 and 100 <= value <= 900:
            return int(value)
        return _default_for(cls, info)

    @field_validator("color", "stroke_color", "shadow_color", mode="before")
    @classmethod
    def _resolve_color(cls, value: Any, info: ValidationInfo) -> Any:
        color = parse_hex_color(value)
        return color if color is not None else _default_for(cls, info)

    @field_validator("stroke_opacity", "shadow_opacity", mode="before")
    @classmethod
    def _resolve_secondary_opacity(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and 0.0 <= value <= 1.0:
            return float(value)
        return _default_for(cls, info)

    @field_validator("shadow_offset_x", "shadow_offset_y", "shadow_blur_radius", mode="before")
    @classmethod
    def _resolve_shadow_metric(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_number(value) and abs(value) <= MAX_NUMBER:
            return round_half_up(value)
        return _default_for(cls, info)

    @property
    def font_underline(self) -> bool:
        return "u" in self.font_decorations

    @property
    def font_line_through(self) -> bool:
        return "t" in self.font_decorations

    @property
    def font_description(self) -> FontDescription:
        return FontDescription(
            family=capitalize_family(self.font_family),
            size=self.font_size,
            italic=self.font_italic,
            weight=self.font_weight,
        )


class PictureWatermarkDescription(_WatermarkBase):
    """علامة مائية من صورة ثانوية تُكرَّر على الصورة الأساسية."""

    kind: Literal["picture"] = "picture"

    # Checked by the validator, never defaulted.
    buffer: Any = None
    mime_type: Any = None


WatermarkDescription = Annotated[
    Union[TextWatermarkDescription, PictureWatermarkDescription],
    Field(discriminator="kind"),
]

_description_adapter: TypeAdapter = TypeAdapter(WatermarkDescription)


def parse_watermark_description(payload: Any) -> Optional[Union[TextWatermarkDescription, PictureWatermarkDescription]]:
    """Build a description from a plain mapping such as a decoded JSON object.

    Returns None when the payload is not a mapping or its ``kind`` is missing or unknown.
    """
    if not isinstance(payload, Mapping):
        return None
    try:
        return _description_adapter.validate_python(dict(payload))
    except ValidationError:
        return None
