"""
Request and response models for the Plaque Preview service.

Wire format uses camelCase keys; Python code uses snake_case attributes.
"""

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class WireModel(BaseModel):
    """Base model accepting both alias and attribute names."""
    model_config = ConfigDict(populate_by_name=True)


class PlayerCardData(WireModel):
    """One selected trading card."""
    id: str = ""
    player_name: str = Field(alias="playerName")
    position: str = ""
    year: Optional[Union[int, str]] = None
    brand: str = ""
    series: str = ""
    image_url: Optional[str] = Field(default="", alias="imageUrl")
    rarity: Literal["common", "rare", "legendary"] = "common"
    price: float = 0.0
    shipping: Optional[float] = None

    @field_validator("rarity", mode="before")
    @classmethod
    def _normalize_rarity(cls, value):
        if isinstance(value, str):
            return value.strip().lower() or "common"
        return value

    @property
    def edition_line(self) -> str:
        """'{year} {brand}' with empty parts dropped."""
        parts = [str(self.year) if self.year not in (None, "") else "", self.brand]
        return " ".join(p for p in parts if p)

    @property
    def price_label(self) -> str:
        return f"${self.price:.2f}"


# Percentage knobs are limited to the range the preview maker offers
MIN_ADJUSTMENT_PERCENT = 50
MAX_ADJUSTMENT_PERCENT = 150
MAX_OFFSET_PX = 5000


class LayoutAdjustments(WireModel):
    """Caller-supplied scale, spacing and offset knobs."""
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    card_size_adjustment: float = Field(
        default=100,
        ge=MIN_ADJUSTMENT_PERCENT,
        le=MAX_ADJUSTMENT_PERCENT,
        validation_alias=AliasChoices("cardSizeAdjustment", "card_size_adjustment"),
        serialization_alias="cardSizeAdjustment",
    )
    card_spacing_adjustment: float = Field(
        default=100,
        ge=MIN_ADJUSTMENT_PERCENT,
        le=MAX_ADJUSTMENT_PERCENT,
        validation_alias=AliasChoices("cardSpacingAdjustment", "card_spacing_adjustment"),
        serialization_alias="cardSpacingAdjustment",
    )
    horizontal_offset_px: float = Field(
        default=0,
        ge=-MAX_OFFSET_PX,
        le=MAX_OFFSET_PX,
        validation_alias=AliasChoices("horizontalOffsetPx", "horizontalOffset", "horizontal_offset_px"),
        serialization_alias="horizontalOffsetPx",
    )
    vertical_offset_px: float = Field(
        default=0,
        ge=-MAX_OFFSET_PX,
        le=MAX_OFFSET_PX,
        validation_alias=AliasChoices("verticalOffsetPx", "verticalOffset", "vertical_offset_px"),
        serialization_alias="verticalOffsetPx",
    )

    # A missing or zero percentage means "untouched"
    @field_validator("card_size_adjustment", "card_spacing_adjustment", mode="before")
    @classmethod
    def _neutral_percentage(cls, value):
        return value or 100

    @field_validator("horizontal_offset_px", "vertical_offset_px", mode="before")
    @classmethod
    def _neutral_offset(cls, value):
        return value or 0

    @property
    def is_neutral(self) -> bool:
        return (self.card_size_adjustment == 100 and self.card_spacing_adjustment == 100
                and self.horizontal_offset_px == 0 and self.vertical_offset_px == 0)


class PlaqueConfiguration(WireModel):
    """Everything needed to render one plaque preview."""
    plaque_type: int = Field(alias="plaqueType")
    plaque_style: str = Field(default="blank", alias="plaqueStyle")
    team_name: str = Field(alias="teamName")
    player_cards: List[PlayerCardData] = Field(alias="playerCards")
    layout_adjustments: LayoutAdjustments = Field(default_factory=LayoutAdjustments, alias="layoutAdjustments")
    show_card_backs: bool = Field(default=False, alias="showCardBacks")
    customer_email: Optional[str] = Field(default=None, alias="customerEmail")

    @field_validator("plaque_type", mode="before")
    @classmethod
    def _coerce_plaque_type(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError(f"plaqueType must be a card count, got {value!r}")
            return int(value)
        return value

    @field_validator("team_name")
    @classmethod
    def _require_team_name(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("teamName is required")
        return value

    @field_validator("layout_adjustments", mode="before")
    @classmethod
    def _default_adjustments(cls, value):
        return value if value is not None else {}

    @property
    def is_blank(self) -> bool:
        return self.plaque_style == "blank"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Preview(WireModel):
    """A stored render result. Immutable once created."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    preview_id: str = Field(alias="previewId")
    image_url: str = Field(alias="imageUrl")
    download_url: str = Field(alias="downloadUrl")
    created_at: str = Field(alias="createdAt")
    content_type: str = Field(default="image/png", alias="contentType")
    configuration: Dict[str, Any]

    @property
    def team_name(self) -> str:
        return self.configuration.get("teamName") or "Team"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_configuration(payload: Any) -> PlaqueConfiguration:
    """
    Validate a raw request payload.

    Missing plaqueType/teamName/playerCards or malformed values raise
    ValidationError. Layout support for plaqueType is checked by the
    layout catalog, not here.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = [key for key in ("plaqueType", "teamName", "playerCards") if payload.get(key) in (None, "")]
    if missing:
        raise ValidationError(
            "Missing required configuration fields",
            details={'missing_fields': missing}
        )

    try:
        return PlaqueConfiguration.model_validate(payload)
    except PydanticValidationError as e:
        errors = [
            {'field': ".".join(str(p) for p in err['loc']), 'message': err['msg']}
            for err in e.errors()
        ]
        raise ValidationError("Invalid plaque configuration", details={'errors': errors})
