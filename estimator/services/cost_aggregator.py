"""Cost Aggregator for the BuildCost estimator.

Turns catalog rows and resolved multipliers into bounded cost ranges per
cost category and a total.

Algorithm:
1. Labor: base rate x region, x area for per_sqm rows, x the row's own
   complexity multiplier, floored at the row's minimum charge.
2. Materials: quality tier price x (1 + waste factor), x area for
   area-based units.
3. Tools (when requested): hire rate for the requested period x season
   factor, independent of area.
4. Additional: building control fee when the regulation requires it.
5. Bands: labor [0.8x, 1.2x], materials [0.9x, 1.1x]; tools and
   additional costs are point values.
6. Rounding to whole currency units happens only when the result is built.

An empty catalog list degrades its category to zero and is reported on the
result; it never fails the estimate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from config.errors import InvalidInputError
from models.catalog import BuildingRegulation, LaborCost, MaterialCost, RateType, ToolHireItem
from models.estimate import (
    AppliedMultipliers,
    ConfidenceLevel,
    CostCategory,
    CostRange,
    DataQuality,
    EstimateRequest,
    EstimateResult,
    LineItem,
    to_currency,
)
from services.multiplier_resolver import CompositeMultiplier, MultiplierResolver, compose

logger = structlog.get_logger()


# Cost band policy (fixed, not derived from measured variance)
LABOR_BAND = (0.8, 1.2)
MATERIAL_BAND = (0.9, 1.1)

# Building control fee when a regulation gives no typical cost
DEFAULT_BUILDING_CONTROL_FEE = 200.0


@dataclass
class CategoryTotal:
    """Unrounded running total for one cost category."""

    category: CostCategory
    total: float = 0.0
    line_items: List[LineItem] = field(default_factory=list)

    def add(self, row_id: str, name: str, unit_rate: float, quantity: float, multiplier: float, cost: float) -> None:
        if not math.isfinite(cost):
            raise InvalidInputError(f"Cost of {name} is too large to estimate", field="area")
        self.total += cost
        self.line_items.append(
            LineItem(
                category=self.category,
                item_id=row_id,
                name=name,
                unit_rate=unit_rate,
                quantity=quantity,
                multiplier=multiplier,
                cost=to_currency(cost),
            )
        )


# =============================================================================
# CATEGORY CALCULATIONS
# =============================================================================


def labor_total(rows: Sequence[LaborCost], area: float, multipliers: CompositeMultiplier) -> CategoryTotal:
    """Sum labor rows for the requested area and complexity."""
    result = CategoryTotal(CostCategory.LABOR)
    for row in rows:
        quantity = area if row.rate_type == RateType.PER_SQM else 1.0
        factor = multipliers.labor_factor(row)
        cost = compose(row.base_rate, quantity, factor)
        if row.min_charge is not None:
            cost = max(cost, row.min_charge)
        result.add(row.id, row.job_type, row.base_rate, quantity, factor, cost)
    return result


def material_total(rows: Sequence[MaterialCost], area: float, multipliers: CompositeMultiplier) -> CategoryTotal:
    """Sum material rows at the requested quality tier."""
    result = CategoryTotal(CostCategory.MATERIALS)
    for row in rows:
        price = row.price_for(multipliers.quality_tier)
        quantity = area if row.is_area_based else 1.0
        waste = 1 + row.waste_factor
        result.add(row.id, row.name, price, quantity, waste, compose(price, waste, quantity))
    return result


def tool_total(rows: Sequence[ToolHireItem], request: EstimateRequest, multipliers: CompositeMultiplier) -> CategoryTotal:
    """Sum tool hire rates for the requested hire period."""
    result = CategoryTotal(CostCategory.TOOLS)
    for row in rows:
        rate = row.rate_for(request.tool_hire_period)
        factor = multipliers.tool_factor(row)
        result.add(row.id, row.name, rate, 1.0, factor, compose(rate, factor))
    return result


def regulation_fee(regulation: Optional[BuildingRegulation]) -> float:
    """Building control fee for a regulation, 0 when none applies."""
    if regulation is None or not regulation.requires_building_control:
        return 0.0
    if regulation.typical_cost_min is None:
        return DEFAULT_BUILDING_CONTROL_FEE
    return regulation.typical_cost_min


def _confidence(missing: List[CostCategory], considered: int) -> ConfidenceLevel:
    if not missing:
        return ConfidenceLevel.HIGH
    if len(missing) >= considered:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.MEDIUM


def _sources(*row_groups: Sequence) -> List[str]:
    sources: List[str] = []
    for rows in row_groups:
        for row in rows:
            if row.source not in sources:
                sources.append(row.source)
    return sources


# =============================================================================
# ESTIMATE
# =============================================================================


def estimate(
    request: EstimateRequest,
    tool_rows: Optional[Sequence[ToolHireItem]],
    labor_rows: Optional[Sequence[LaborCost]],
    material_rows: Optional[Sequence[MaterialCost]],
    regulation: Optional[BuildingRegulation] = None,
    resolver: Optional[MultiplierResolver] = None,
) -> EstimateResult:
    """Build an estimate from already-fetched catalog rows.

    Args:
        request: Validated estimate request
        tool_rows: Tool hire rows (ignored unless request.include_tools)
        labor_rows: Labor cost rows
        material_rows: Material cost rows
        regulation: Building regulation for the project type, if any
        resolver: Multiplier resolver (defaults to the UK regional table)

    Returns:
        EstimateResult with rounded cost ranges and data quality annotations.

    Raises:
        InvalidInputError: If the request carries a negative or non-finite area,
            or the costs overflow.
    """
    if request.area is not None:
        if not math.isfinite(request.area):
            raise InvalidInputError("Area must be a finite number", field="area")
        if request.area < 0:
            raise InvalidInputError("Area must not be negative", field="area")

    resolver = resolver or MultiplierResolver()
    multipliers = resolver.resolve(
        region=request.location,
        season=request.season,
        complexity=request.complexity,
        quality_tier=request.quality_tier,
    )
    area = request.effective_area

    tool_rows = list(tool_rows or [])
    labor_rows = list(labor_rows or [])
    material_rows = list(material_rows or [])

    missing: List[CostCategory] = []
    if not labor_rows:
        missing.append(CostCategory.LABOR)
    if not material_rows:
        missing.append(CostCategory.MATERIALS)
    if request.include_tools and not tool_rows:
        missing.append(CostCategory.TOOLS)

    labor = labor_total(labor_rows, area, multipliers)
    materials = material_total(material_rows, area, multipliers)
    tools = tool_total(tool_rows, request, multipliers) if request.include_tools else None
    additional = regulation_fee(regulation)

    labor_range = CostRange.from_base(labor.total, *LABOR_BAND)
    material_range = CostRange.from_base(materials.total, *MATERIAL_BAND)
    tool_range = CostRange.point(tools.total) if tools is not None else None
    additional_range = CostRange.point(additional)

    total_range = labor_range + material_range + additional_range
    if tool_range is not None:
        total_range = total_range + tool_range
    if not math.isfinite(total_range.max):
        raise InvalidInputError("Total cost is too large to estimate", field="area")

    if missing:
        logger.warning(
            "estimate_degraded",
            project_type=request.project_type,
            missing_categories=[category.value for category in missing],
        )

    line_items = labor.line_items + materials.line_items + (tools.line_items if tools is not None else [])

    result = EstimateResult(
        project_overview={
            "type": request.project_type,
            "area": area,
            "location": request.location,
            "complexity": request.complexity.value,
            "quality_tier": request.quality_tier.value,
            "season": request.season.value if request.season else None,
            "include_tools": request.include_tools,
        },
        labor=labor_range.rounded(),
        materials=material_range.rounded(),
        tools=tool_range.rounded() if tool_range is not None else None,
        additional=additional_range.rounded(),
        total=total_range.rounded(),
        regulation=regulation,
        line_items=line_items,
        multipliers=AppliedMultipliers(
            region=multipliers.region,
            region_multiplier=multipliers.region_factor,
            season=multipliers.season,
            season_multiplier=multipliers.season_factor,
            complexity=multipliers.complexity,
            quality_tier=multipliers.quality_tier,
        ),
        data_quality=DataQuality(
            confidence=_confidence(missing, 3 if request.include_tools else 2),
            missing_categories=missing,
            sources=_sources(labor_rows, material_rows, tool_rows if request.include_tools else []),
        ),
    )

    logger.info(
        "estimate_complete",
        project_type=request.project_type,
        area=area,
        region=multipliers.region,
        total_min=result.total.min,
        total_max=result.total.max,
        degraded=bool(missing),
    )
    return result
