"""Catalog Pydantic models for the BuildCost estimator.

This module defines the priced line items supplied by the catalog
data provider (tool hire, labor, materials, building regulations) and the
enums used to select and adjust their prices.

Catalog rows are frozen: once loaded for a cache generation they are
shared between requests and must not be mutated.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class QualityTier(str, Enum):
    """Material quality tier; selects a price column on MaterialCost."""

    BUDGET = "budget"
    MID_RANGE = "mid_range"
    PREMIUM = "premium"


class ComplexityLevel(str, Enum):
    """Job complexity; selects a multiplier field on LaborCost."""

    BASIC = "basic"
    STANDARD = "standard"
    COMPLEX = "complex"


class Season(str, Enum):
    """Hire season, used to adjust tool hire rates."""

    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class HirePeriod(str, Enum):
    """Rate table key for tool hire pricing."""

    DAILY = "daily"
    WEEKLY = "weekly"
    WEEKEND = "weekend"


class RateType(str, Enum):
    """How a labor base rate is charged."""

    PER_SQM = "per_sqm"
    PER_ITEM = "per_item"
    PER_DAY = "per_day"
    PER_HOUR = "per_hour"
    FIXED = "fixed"


class CatalogKind(str, Enum):
    """The four catalogs served by the data provider."""

    TOOL_HIRE = "tool_hire"
    LABOR = "labor"
    MATERIALS = "materials"
    REGULATIONS = "regulations"


# Units that make a material price scale with the project area
AREA_UNIT_MARKERS = ("sqm", "m2", "m²", "square met")

# Used when a tool has no weekly/weekend rate of its own
WEEKLY_RATE_DAYS = 5
WEEKEND_RATE_DAYS = 2


# =============================================================================
# CATALOG ITEMS
# =============================================================================


class CatalogItem(BaseModel):
    """Common fields of every priced catalog row."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Catalog row identifier")
    name: str = Field(..., min_length=1, description="Display name")
    category: str = Field(default="General", description="Catalog category")
    source: str = Field(default="BuildCost catalog", description="Source attribution")


class ToolHireItem(CatalogItem):
    """A tool or plant item available for hire.

    Rates are in GBP. Weekly and weekend rates are optional; when absent
    they are derived from the daily rate.
    """

    daily_rate: float = Field(..., ge=0, description="Daily hire rate (£)")
    weekly_rate: Optional[float] = Field(None, ge=0, description="Weekly hire rate (£)")
    weekend_rate: Optional[float] = Field(None, ge=0, description="Weekend hire rate (£)")
    deposit: Optional[float] = Field(None, ge=0, description="Deposit required (£)")
    delivery_cost: Optional[float] = Field(None, ge=0, description="Base delivery cost (£)")
    supplier: str = Field(default="Industry Average", description="Hire supplier")
    requires_license: bool = Field(default=False, description="Operator licence required")
    seasonal_multipliers: Dict[Season, float] = Field(
        default_factory=dict, description="Per-tool season rate multipliers"
    )

    def rate_for(self, period: HirePeriod = HirePeriod.DAILY) -> float:
        """Read the rate table for a hire period."""
        if period == HirePeriod.WEEKLY:
            return self.weekly_rate if self.weekly_rate is not None else self.daily_rate * WEEKLY_RATE_DAYS
        if period == HirePeriod.WEEKEND:
            return self.weekend_rate if self.weekend_rate is not None else self.daily_rate * WEEKEND_RATE_DAYS
        return self.daily_rate


class LaborCost(CatalogItem):
    """A labor rate for a job type, with per-complexity multipliers.

    `complexity_standard` is also accepted as `complexity_moderate`, the
    column name used by older catalog exports.
    """

    job_type: str = Field(..., description="Job type the rate applies to")
    trade_category: str = Field(default="General Builder", description="Trade")
    rate_type: RateType = Field(..., description="How the base rate is charged")
    base_rate: float = Field(..., ge=0, description="Base rate (£)")
    complexity_basic: float = Field(default=1.0, ge=0)
    complexity_standard: float = Field(
        default=1.3,
        ge=0,
        validation_alias=AliasChoices("complexity_standard", "complexity_moderate"),
    )
    complexity_complex: float = Field(default=1.8, ge=0)
    unit: Optional[str] = Field(None, description="Unit description")
    min_charge: Optional[float] = Field(None, ge=0, description="Minimum charge (£)")

    def complexity_factor(self, level: ComplexityLevel) -> float:
        """Multiplier for the requested complexity level."""
        if level == ComplexityLevel.BASIC:
            return self.complexity_basic
        if level == ComplexityLevel.COMPLEX:
            return self.complexity_complex
        return self.complexity_standard


class MaterialCost(CatalogItem):
    """A material priced per quality tier."""

    description: str = Field(default="", description="Material description")
    unit: str = Field(..., description="Pricing unit (e.g. 'per_sqm', 'per_bag')")
    budget_price: Optional[float] = Field(None, ge=0)
    mid_range_price: Optional[float] = Field(None, ge=0)
    premium_price: Optional[float] = Field(None, ge=0)
    waste_factor: float = Field(default=0.0, ge=0, description="Waste allowance (0.1 = 10%)")
    supplier: str = Field(default="", description="Supplier")

    def price_for(self, tier: QualityTier) -> float:
        """Price column for a quality tier, 0 when that column is unset."""
        price = {
            QualityTier.BUDGET: self.budget_price,
            QualityTier.MID_RANGE: self.mid_range_price,
            QualityTier.PREMIUM: self.premium_price,
        }[tier]
        return price or 0.0

    @property
    def is_area_based(self) -> bool:
        """True when the unit is priced per square metre."""
        unit = self.unit.lower()
        return any(marker in unit for marker in AREA_UNIT_MARKERS)


class BuildingRegulation(BaseModel):
    """Regulatory requirements and typical fees for a project type."""

    model_config = ConfigDict(frozen=True)

    project_type: str = Field(..., min_length=1)
    requires_building_control: bool = Field(default=False)
    requires_planning: bool = Field(default=False)
    typical_cost_min: Optional[float] = Field(None, ge=0)
    typical_cost_max: Optional[float] = Field(None, ge=0)
    processing_time_weeks: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    source: str = Field(default="BuildCost catalog")


class RegionalMultiplier(BaseModel):
    """Labor cost multiplier for a region."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., min_length=1)
    multiplier: float = Field(..., ge=0)
