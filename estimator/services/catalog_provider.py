"""Catalog data provider and cached catalog service.

The DataProvider protocol is the seam to wherever catalog rows live
(database, API, fixtures). InMemoryCatalogProvider serves the UK seed
catalog and is the default provider. CatalogService puts a CatalogCache in
front of each of the four catalogs, keyed by CatalogQuery.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

import structlog

from models.catalog import (
    BuildingRegulation,
    CatalogKind,
    LaborCost,
    MaterialCost,
    QualityTier,
    Season,
    ToolHireItem,
)
from services.catalog_cache import CatalogCache

logger = structlog.get_logger()


@dataclass(frozen=True)
class CatalogQuery:
    """Filter for one catalog lookup; also the cache key.

    Attributes:
        kind: Which catalog to read
        search_term: Case-insensitive substring to match (normalised to lower case)
        category: Exact category or trade name
        region: Region name, for providers that store regional rates
        quality_tier: Material quality tier, for providers that filter on it
    """

    kind: CatalogKind
    search_term: Optional[str] = None
    category: Optional[str] = None
    region: Optional[str] = None
    quality_tier: Optional[QualityTier] = None

    def __str__(self) -> str:
        parts = [self.kind.value]
        for name in ("search_term", "category", "region"):
            value = getattr(self, name)
            if value:
                parts.append(f"{name}={value}")
        if self.quality_tier:
            parts.append(f"quality_tier={self.quality_tier.value}")
        return ":".join(parts)


def _normalise(term: Optional[str]) -> Optional[str]:
    term = (term or "").strip().lower()
    return term or None


class DataProvider(Protocol):
    """Source of catalog rows.

    Every method returns an empty list (or None for regulations) when
    nothing matches, and raises when the source itself fails.
    """

    async def get_tool_hire(self, query: CatalogQuery) -> List[ToolHireItem]:
        ...

    async def get_labor_costs(self, query: CatalogQuery) -> List[LaborCost]:
        ...

    async def get_material_costs(self, query: CatalogQuery) -> List[MaterialCost]:
        ...

    async def get_building_regulation(self, query: CatalogQuery) -> Optional[BuildingRegulation]:
        ...


# =============================================================================
# UK SEED CATALOG
# =============================================================================

SEED_TOOL_HIRE: List[ToolHireItem] = [
    ToolHireItem(id="cordless-drill-18v", name="Cordless Drill 18V", category="Power Tools",
                 daily_rate=12.50, weekly_rate=45.00, weekend_rate=18.00, deposit=50.00, supplier="HSS Hire"),
    ToolHireItem(id="circular-saw-185", name="Circular Saw 185mm", category="Power Tools",
                 daily_rate=15.00, weekly_rate=55.00, weekend_rate=22.00, deposit=60.00, supplier="HSS Hire"),
    ToolHireItem(id="angle-grinder-115", name="Angle Grinder 115mm", category="Power Tools",
                 daily_rate=8.50, weekly_rate=28.00, weekend_rate=12.00, deposit=40.00, supplier="Speedy Hire"),
    ToolHireItem(id="reciprocating-saw", name="Reciprocating Saw", category="Power Tools",
                 daily_rate=18.00, weekly_rate=65.00, weekend_rate=25.00, deposit=70.00, supplier="Travis Perkins"),
    ToolHireItem(id="tile-cutter-electric", name="Tile Cutter Electric", category="Power Tools",
                 daily_rate=22.00, weekly_rate=80.00, weekend_rate=35.00, deposit=100.00, supplier="HSS Hire"),
    ToolHireItem(id="step-ladder-8ft", name="Step Ladder 8ft", category="Access Equipment",
                 daily_rate=8.00, weekly_rate=25.00, weekend_rate=12.00, deposit=35.00, supplier="Brandon Hire"),
    ToolHireItem(id="extension-ladder-3", name="Extension Ladder 3-Section", category="Access Equipment",
                 daily_rate=12.00, weekly_rate=40.00, weekend_rate=18.00, deposit=50.00,
                 supplier="National Tool Hire"),
    ToolHireItem(id="mobile-tower-scaffold", name="Mobile Tower Scaffold", category="Access Equipment",
                 daily_rate=45.00, weekly_rate=160.00, weekend_rate=70.00, deposit=200.00, delivery_cost=25.00,
                 supplier="HSS Hire"),
    ToolHireItem(id="mini-digger-1-5t", name="Mini Digger 1.5 Tonne", category="Landscaping",
                 daily_rate=160.00, weekly_rate=600.00, weekend_rate=240.00, deposit=500.00, delivery_cost=60.00,
                 supplier="Speedy Hire", requires_license=False,
                 seasonal_multipliers={Season.SPRING: 1.15, Season.SUMMER: 1.2, Season.WINTER: 0.85}),
    ToolHireItem(id="rotovator-petrol", name="Rotovator Petrol", category="Landscaping",
                 daily_rate=35.00, weekly_rate=120.00, weekend_rate=55.00, deposit=100.00, supplier="Travis Perkins"),
    ToolHireItem(id="turf-cutter", name="Turf Cutter", category="Landscaping",
                 daily_rate=42.00, weekly_rate=150.00, weekend_rate=65.00, deposit=120.00, supplier="HSS Hire"),
    ToolHireItem(id="pressure-washer-3000", name="Pressure Washer 3000PSI", category="Cleaning",
                 daily_rate=25.00, weekly_rate=85.00, weekend_rate=40.00, deposit=80.00, supplier="Brandon Hire"),
    ToolHireItem(id="vacuum-wet-dry", name="Industrial Vacuum Wet/Dry", category="Cleaning",
                 daily_rate=18.00, weekly_rate=60.00, weekend_rate=28.00, deposit=60.00,
                 supplier="National Tool Hire"),
]

SEED_LABOR_COSTS: List[LaborCost] = [
    LaborCost(id="elec-socket", name="Install new socket outlet", job_type="Install new socket outlet",
              trade_category="Electrician", rate_type="per_item", base_rate=180.00,
              complexity_basic=1.0, complexity_standard=1.3, complexity_complex=1.8,
              unit="per socket", min_charge=120.00, source="Checkatrade 2024"),
    LaborCost(id="elec-consumer-unit", name="Consumer unit replacement", job_type="Consumer unit replacement",
              trade_category="Electrician", rate_type="fixed", base_rate=650.00,
              complexity_basic=1.0, complexity_standard=1.4, complexity_complex=2.0,
              min_charge=650.00, source="Checkatrade 2024"),
    LaborCost(id="elec-rewire-room", name="Rewire room", job_type="Rewire room",
              trade_category="Electrician", rate_type="per_sqm", base_rate=85.00,
              complexity_basic=1.0, complexity_standard=1.5, complexity_complex=2.2,
              unit="sqm", min_charge=800.00, source="MyBuilder 2024"),
    LaborCost(id="plumb-toilet", name="Install toilet", job_type="Install toilet",
              trade_category="Plumber", rate_type="per_item", base_rate=220.00,
              complexity_basic=1.0, complexity_standard=1.2, complexity_complex=1.6,
              unit="per toilet", min_charge=180.00, source="Checkatrade 2024"),
    LaborCost(id="plumb-bathroom", name="Bathroom renovation", job_type="Bathroom renovation",
              trade_category="Plumber", rate_type="per_sqm", base_rate=380.00,
              complexity_basic=1.0, complexity_standard=1.4, complexity_complex=1.9,
              unit="sqm", min_charge=2200.00, source="Checkatrade 2024"),
    LaborCost(id="tile-wall", name="Tile wall", job_type="Tile wall",
              trade_category="Tiler", rate_type="per_sqm", base_rate=65.00,
              complexity_basic=1.0, complexity_standard=1.3, complexity_complex=1.7,
              unit="sqm", min_charge=300.00, source="Checkatrade 2024"),
    LaborCost(id="tile-floor", name="Tile floor", job_type="Tile floor",
              trade_category="Tiler", rate_type="per_sqm", base_rate=45.00,
              complexity_basic=1.0, complexity_standard=1.2, complexity_complex=1.6,
              unit="sqm", min_charge=280.00, source="Checkatrade 2024"),
    LaborCost(id="paint-interior", name="Paint room interior", job_type="Paint room interior",
              trade_category="Painter", rate_type="per_sqm", base_rate=18.00,
              complexity_basic=1.0, complexity_standard=1.2, complexity_complex=1.5,
              unit="sqm floor area", min_charge=220.00, source="Checkatrade 2024"),
    LaborCost(id="paint-exterior", name="Paint exterior house", job_type="Paint exterior house",
              trade_category="Painter", rate_type="per_sqm", base_rate=25.00,
              complexity_basic=1.0, complexity_standard=1.3, complexity_complex=1.8,
              unit="sqm wall area", min_charge=800.00, source="MyBuilder 2024"),
    LaborCost(id="build-extension", name="Build single storey extension", job_type="Build single storey extension",
              trade_category="General Builder", rate_type="per_sqm", base_rate=1800.00,
              complexity_basic=1.0, complexity_standard=1.2, complexity_complex=1.5,
              unit="sqm floor area", min_charge=15000.00, source="Checkatrade 2024"),
    LaborCost(id="build-kitchen", name="Kitchen renovation", job_type="Kitchen renovation",
              trade_category="General Builder", rate_type="per_sqm", base_rate=1200.00,
              complexity_basic=1.0, complexity_standard=1.3, complexity_complex=1.7,
              unit="sqm floor area", min_charge=8000.00, source="Checkatrade 2024"),
]

SEED_MATERIAL_COSTS: List[MaterialCost] = [
    MaterialCost(id="tiles-ceramic-wall", name="Ceramic wall tiles", category="Tiles",
                 description="Standard ceramic wall tiles, 200x250mm for bathroom and kitchen walls",
                 unit="per_sqm", budget_price=15.00, mid_range_price=35.00, premium_price=85.00,
                 supplier="B&Q / Wickes", waste_factor=0.1),
    MaterialCost(id="tiles-porcelain-floor", name="Porcelain floor tiles", category="Tiles",
                 description="Porcelain floor tiles, 600x600mm", unit="per_sqm",
                 budget_price=25.00, mid_range_price=55.00, premium_price=120.00,
                 supplier="Wickes / Topps Tiles", waste_factor=0.1),
    MaterialCost(id="paint-emulsion", name="Emulsion paint", category="Paint",
                 description="Matt emulsion paint, 5 litre", unit="per_litre",
                 budget_price=6.50, mid_range_price=12.00, premium_price=18.50,
                 supplier="B&Q / Wickes", waste_factor=0.05),
    MaterialCost(id="paint-masonry", name="Exterior masonry paint", category="Paint",
                 description="Weather-resistant masonry paint, 5 litre", unit="per_litre",
                 budget_price=8.00, mid_range_price=15.50, premium_price=24.00,
                 supplier="Wickes / Screwfix", waste_factor=0.08),
    MaterialCost(id="cable-twin-earth-2-5", name="Twin & earth cable 2.5mm", category="Electrical",
                 description="2.5mm twin and earth cable for ring circuits", unit="per_metre",
                 budget_price=1.20, mid_range_price=1.60, premium_price=2.20,
                 supplier="Screwfix / CEF", waste_factor=0.15),
    MaterialCost(id="socket-double", name="Double socket outlet", category="Electrical",
                 description="Standard white double socket with back box", unit="per_item",
                 budget_price=8.50, mid_range_price=15.00, premium_price=28.00,
                 supplier="Screwfix / Wickes", waste_factor=0.02),
    MaterialCost(id="pipe-copper-15", name="Copper pipe 15mm", category="Plumbing",
                 description="15mm copper pipe for water supply", unit="per_metre",
                 budget_price=4.20, mid_range_price=5.80, premium_price=7.50,
                 supplier="Screwfix / Plumbworld", waste_factor=0.12),
    MaterialCost(id="tap-basin-mixer", name="Basin mixer tap", category="Plumbing",
                 description="Chrome basin mixer tap with popup waste", unit="per_item",
                 budget_price=45.00, mid_range_price=120.00, premium_price=280.00,
                 supplier="Wickes / Plumbworld", waste_factor=0.02),
    MaterialCost(id="cement-25kg", name="Cement 25kg bag", category="Building Materials",
                 description="General purpose cement, 25kg bag", unit="per_bag",
                 budget_price=3.80, mid_range_price=4.20, premium_price=5.00,
                 supplier="Wickes / Travis Perkins", waste_factor=0.05),
    MaterialCost(id="sand-bulk-bag", name="Building sand bulk bag", category="Building Materials",
                 description="General purpose building sand, 850kg bulk bag", unit="per_bag",
                 budget_price=85.00, mid_range_price=95.00, premium_price=110.00,
                 supplier="Travis Perkins / Wickes", waste_factor=0.08),
]

SEED_BUILDING_REGULATIONS: List[BuildingRegulation] = [
    BuildingRegulation(project_type="Bathroom renovation", requires_building_control=True,
                       typical_cost_min=300, typical_cost_max=600, processing_time_weeks=6,
                       description="Building control required for new drainage, structural changes, "
                                   "or electrical work in wet areas"),
    BuildingRegulation(project_type="Kitchen renovation", typical_cost_min=0, typical_cost_max=0,
                       processing_time_weeks=0,
                       description="Generally no approvals required unless structural changes "
                                   "or new gas connections"),
    BuildingRegulation(project_type="Extension", requires_building_control=True, requires_planning=True,
                       typical_cost_min=600, typical_cost_max=1500, processing_time_weeks=12,
                       description="Both planning permission and building regulations required "
                                   "for most extensions"),
    BuildingRegulation(project_type="Electrical rewire", requires_building_control=True,
                       typical_cost_min=200, typical_cost_max=400, processing_time_weeks=4,
                       description="Part P building control notification required for electrical work"),
]


# =============================================================================
# IN-MEMORY PROVIDER
# =============================================================================


def _contains(term: Optional[str], *fields: Optional[str]) -> bool:
    if not term:
        return True
    return any(term in (value or "").lower() for value in fields)


class InMemoryCatalogProvider:
    """DataProvider serving fixed catalog rows from memory.

    Search terms match case-insensitively on name and category for tools,
    job type for labor, and name and description for materials. Region and quality tier are accepted but do not filter:
    regional adjustment and tier price selection happen during estimation.
    """

    def __init__(
        self,
        tool_hire: Optional[Iterable[ToolHireItem]] = None,
        labor_costs: Optional[Iterable[LaborCost]] = None,
        material_costs: Optional[Iterable[MaterialCost]] = None,
        regulations: Optional[Iterable[BuildingRegulation]] = None,
    ):
        self.tool_hire = list(SEED_TOOL_HIRE if tool_hire is None else tool_hire)
        self.labor_costs = list(SEED_LABOR_COSTS if labor_costs is None else labor_costs)
        self.material_costs = list(SEED_MATERIAL_COSTS if material_costs is None else material_costs)
        self.regulations = list(SEED_BUILDING_REGULATIONS if regulations is None else regulations)

    async def get_tool_hire(self, query: CatalogQuery) -> List[ToolHireItem]:
        await asyncio.sleep(0)
        return [
            row for row in self.tool_hire
            if _contains(query.search_term, row.name, row.category)
            and (query.category is None or row.category == query.category)
        ]

    async def get_labor_costs(self, query: CatalogQuery) -> List[LaborCost]:
        await asyncio.sleep(0)
        return [
            row for row in self.labor_costs
            if _contains(query.search_term, row.job_type)
            and (query.category is None or row.trade_category == query.category)
        ]

    async def get_material_costs(self, query: CatalogQuery) -> List[MaterialCost]:
        await asyncio.sleep(0)
        return [
            row for row in self.material_costs
            if _contains(query.search_term, row.name, row.description)
            and (query.category is None or row.category == query.category)
        ]

    async def get_building_regulation(self, query: CatalogQuery) -> Optional[BuildingRegulation]:
        await asyncio.sleep(0)
        if not query.search_term:
            return None
        for row in self.regulations:
            if query.search_term in row.project_type.lower():
                return row
        return None


# =============================================================================
# CACHED CATALOG SERVICE
# =============================================================================


class CatalogService:
    """Cached access to the four catalogs of a DataProvider.

    Each catalog has its own CatalogCache so a failing catalog never evicts
    or blocks the others.
    """

    def __init__(
        self,
        provider: Optional[DataProvider] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        maxsize: Optional[int] = None,
    ):
        self.provider = provider or InMemoryCatalogProvider()

        def cache(fetch, kind: CatalogKind) -> CatalogCache:
            return CatalogCache(fetch, ttl_seconds, clock, name=kind.value, maxsize=maxsize)

        self.tool_hire = cache(self.provider.get_tool_hire, CatalogKind.TOOL_HIRE)
        self.labor = cache(self.provider.get_labor_costs, CatalogKind.LABOR)
        self.materials = cache(self.provider.get_material_costs, CatalogKind.MATERIALS)
        self.regulations = cache(self.provider.get_building_regulation, CatalogKind.REGULATIONS)
        logger.info("catalog_service_initialized", provider=type(self.provider).__name__)

    @property
    def caches(self) -> Sequence[CatalogCache]:
        return (self.tool_hire, self.labor, self.materials, self.regulations)

    async def get_tool_hire(self, search_term: Optional[str] = None, category: Optional[str] = None) -> List[ToolHireItem]:
        query = CatalogQuery(CatalogKind.TOOL_HIRE, _normalise(search_term), category)
        return await self.tool_hire.get(query)

    async def get_labor_costs(
        self,
        job_type: Optional[str] = None,
        trade: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[LaborCost]:
        query = CatalogQuery(CatalogKind.LABOR, _normalise(job_type), trade, region)
        return await self.labor.get(query)

    async def get_material_costs(
        self,
        search_term: Optional[str] = None,
        category: Optional[str] = None,
        quality_tier: Optional[QualityTier] = None,
    ) -> List[MaterialCost]:
        query = CatalogQuery(CatalogKind.MATERIALS, _normalise(search_term), category, quality_tier=quality_tier)
        return await self.materials.get(query)

    async def get_building_regulation(self, project_type: str) -> Optional[BuildingRegulation]:
        query = CatalogQuery(CatalogKind.REGULATIONS, _normalise(project_type))
        return await self.regulations.get(query)

    def clear(self) -> None:
        """Drop every cached catalog."""
        for cache in self.caches:
            cache.clear()

    def stats(self) -> dict:
        """Per-catalog cache statistics."""
        return {cache.name: cache.stats() for cache in self.caches}
