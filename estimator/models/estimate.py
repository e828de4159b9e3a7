"""Estimate Pydantic models for the BuildCost estimator.

This module defines the estimate request accepted by the core, the
bounded cost ranges it produces, and the assembled estimate result.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from config.errors import InvalidInputError
from config.settings import settings
from models.catalog import BuildingRegulation, ComplexityLevel, HirePeriod, QualityTier, Season


# =============================================================================
# ENUMS
# =============================================================================


class CostCategory(str, Enum):
    """Cost categories reported on an estimate."""

    LABOR = "labor"
    MATERIALS = "materials"
    TOOLS = "tools"
    ADDITIONAL = "additional"


class ConfidenceLevel(str, Enum):
    """Confidence in an estimate, lowered when catalogs return no data."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def to_currency(value: float) -> float:
    """Round a monetary value to the nearest whole unit, halves rounding up."""
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# =============================================================================
# ESTIMATE REQUEST
# =============================================================================


class EstimateRequest(BaseModel):
    """Structured estimate request.

    Accepts both snake_case field names and the camelCase keys used by
    the inbound request payload.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    project_type: str = Field(..., min_length=1, alias="projectType")
    area: Optional[float] = Field(None, ge=0, allow_inf_nan=False, description="Area in square metres")
    location: Optional[str] = Field(None, description="Free-text location or region")
    complexity: ComplexityLevel = Field(
        default_factory=lambda: ComplexityLevel(settings.default_complexity)
    )
    quality_tier: QualityTier = Field(
        default_factory=lambda: QualityTier(settings.default_quality_tier),
        alias="qualityTier",
    )
    season: Optional[Season] = None
    include_tools: bool = Field(default=True, alias="includeTools")
    tool_hire_period: HirePeriod = Field(default=HirePeriod.DAILY, alias="toolHirePeriod")

    @field_validator("project_type")
    @classmethod
    def validate_project_type(cls, v: str) -> str:
        """Project type must contain more than whitespace."""
        if not v.strip():
            raise ValueError("project_type must not be blank")
        return v.strip()

    @property
    def effective_area(self) -> float:
        """Requested area, or the configured default when none was given."""
        return self.area if self.area is not None else settings.default_area_sqm

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "EstimateRequest":
        """Validate an inbound payload.

        Raises:
            InvalidInputError: If any field is missing or malformed.
        """
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            raise InvalidInputError(
                f"Invalid estimate request: {first.get('msg', 'invalid value')}",
                field=field,
                details={"errors": len(e.errors())},
            ) from e


# =============================================================================
# COST RANGE
# =============================================================================


class CostRange(BaseModel):
    """Bounded cost range; invariant 0 <= min <= max."""

    model_config = ConfigDict(frozen=True)

    min: float = Field(..., ge=0)
    max: float = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_order(self) -> "CostRange":
        """Ensure min <= max."""
        if self.min > self.max:
            raise ValueError(f"Cost range must be min <= max, got: min={self.min}, max={self.max}")
        return self

    @classmethod
    def zero(cls) -> "CostRange":
        """Create a zero cost range."""
        return cls(min=0.0, max=0.0)

    @classmethod
    def point(cls, value: float) -> "CostRange":
        """Create a range with min == max."""
        return cls(min=value, max=value)

    @classmethod
    def from_base(cls, base: float, low: float, high: float) -> "CostRange":
        """Create a range by applying low/high band multipliers to a base cost."""
        return cls(min=base * low, max=base * high)

    def __add__(self, other: "CostRange") -> "CostRange":
        return CostRange(min=self.min + other.min, max=self.max + other.max)

    def rounded(self) -> "CostRange":
        """Round both bounds to whole currency units."""
        return CostRange(min=to_currency(self.min), max=to_currency(self.max))

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for JSON serialization."""
        return {"min": self.min, "max": self.max}


# =============================================================================
# RESULT PARTS
# =============================================================================


class LineItem(BaseModel):
    """Priced contribution of a single catalog row."""

    category: CostCategory
    item_id: str
    name: str
    unit_rate: float = Field(..., ge=0, description="Catalog rate before adjustments")
    quantity: float = Field(default=1.0, ge=0, description="Area or count applied")
    multiplier: float = Field(default=1.0, ge=0, description="Composite adjustment applied")
    cost: float = Field(..., ge=0)


class AppliedMultipliers(BaseModel):
    """Adjustment factors used for an estimate."""

    region: Optional[str] = None
    region_multiplier: float = Field(default=1.0, ge=0)
    season: Optional[Season] = None
    season_multiplier: float = Field(default=1.0, ge=0)
    complexity: ComplexityLevel
    quality_tier: QualityTier


class DataQuality(BaseModel):
    """Confidence and source annotations for an estimate."""

    confidence: ConfidenceLevel
    missing_categories: List[CostCategory] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_degraded(self) -> bool:
        return bool(self.missing_categories)


class EstimateResult(BaseModel):
    """Complete estimate for a project.

    All monetary values are rounded to whole currency units.
    """

    project_overview: Dict[str, Any]
    labor: CostRange
    materials: CostRange
    tools: Optional[CostRange] = None
    additional: CostRange
    total: CostRange
    regulation: Optional[BuildingRegulation] = None
    line_items: List[LineItem] = Field(default_factory=list)
    multipliers: AppliedMultipliers
    data_quality: DataQuality

    def to_response(self) -> Dict[str, Any]:
        """Convert to the outbound response shape."""
        return self.model_dump(mode="json")
