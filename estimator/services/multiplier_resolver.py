"""Multiplier Resolver for the BuildCost estimator.

Computes the contextual adjustment factors applied to catalog prices:

- Region: labor rates are scaled by a regional multiplier. Unknown or
  missing regions resolve to 1.0.
- Complexity: each labor row carries its own per-level multiplier; the
  resolver composes it with the region factor.
- Season: only tool hire rates are season-adjusted. A tool's own seasonal
  multiplier takes precedence over the default seasonal table.
- Quality tier: not a multiplier. It selects a material price column and
  is carried on the composite for the aggregator to read.

All factors are non-negative and compose as a plain product.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Union

import structlog

from config.errors import InvalidInputError
from models.catalog import (
    ComplexityLevel,
    LaborCost,
    QualityTier,
    RegionalMultiplier,
    Season,
    ToolHireItem,
)

logger = structlog.get_logger()


# =============================================================================
# REFERENCE DATA
# =============================================================================

# Labor rate multipliers relative to the UK average
REGIONAL_MULTIPLIERS: Dict[str, float] = {
    "London": 1.4,
    "South East": 1.2,
    "South West": 1.1,
    "North West": 0.95,
    "North East": 0.85,
    "Yorkshire": 0.9,
    "West Midlands": 0.95,
    "East Midlands": 0.9,
    "Wales": 0.88,
    "Scotland": 0.92,
    "Northern Ireland": 0.8,
}

# Hire demand by season, used when a tool has no seasonal pricing of its own
SEASONAL_TOOL_MULTIPLIERS: Dict[Season, float] = {
    Season.SPRING: 1.1,
    Season.SUMMER: 1.15,
    Season.AUTUMN: 1.0,
    Season.WINTER: 0.9,
}

EAST_OF_ENGLAND = "East of England"

# Towns and counties mentioned in free-text locations
PLACE_REGIONS: Dict[str, str] = {
    "london": "London",
    "brighton": "South East", "reading": "South East", "oxford": "South East",
    "southampton": "South East", "canterbury": "South East", "kent": "South East",
    "surrey": "South East", "sussex": "South East",
    "bristol": "South West", "exeter": "South West", "plymouth": "South West",
    "bath": "South West", "cornwall": "South West", "devon": "South West",
    "manchester": "North West", "liverpool": "North West", "preston": "North West",
    "bolton": "North West", "lancashire": "North West",
    "newcastle": "North East", "sunderland": "North East", "durham": "North East",
    "middlesbrough": "North East",
    "leeds": "Yorkshire", "sheffield": "Yorkshire", "york": "Yorkshire",
    "bradford": "Yorkshire", "hull": "Yorkshire",
    "birmingham": "West Midlands", "coventry": "West Midlands",
    "wolverhampton": "West Midlands",
    "nottingham": "East Midlands", "leicester": "East Midlands", "derby": "East Midlands",
    "cardiff": "Wales", "swansea": "Wales", "newport": "Wales",
    "edinburgh": "Scotland", "glasgow": "Scotland", "aberdeen": "Scotland",
    "dundee": "Scotland",
    "belfast": "Northern Ireland",
    "ipswich": EAST_OF_ENGLAND, "norwich": EAST_OF_ENGLAND, "colchester": EAST_OF_ENGLAND,
    "cambridge": EAST_OF_ENGLAND, "chelmsford": EAST_OF_ENGLAND,
    "wickham market": EAST_OF_ENGLAND, "woodbridge": EAST_OF_ENGLAND,
    "felixstowe": EAST_OF_ENGLAND, "suffolk": EAST_OF_ENGLAND,
    "essex": EAST_OF_ENGLAND, "norfolk": EAST_OF_ENGLAND,
}

# Postcode area (letters before the first digit) to region
POSTCODE_AREA_REGIONS: Dict[str, str] = {
    **{area: "London" for area in ("e", "ec", "n", "nw", "se", "sw", "w", "wc")},
    **{area: "South East" for area in ("bn", "rg", "ox", "so", "ct", "gu", "me", "tn", "po", "rh", "sl", "hp", "mk")},
    **{area: "South West" for area in ("bs", "ex", "pl", "ba", "tq", "tr", "gl", "ta", "bh", "dt", "sp")},
    **{area: "North West" for area in ("m", "l", "pr", "bl", "wa", "wn", "ol", "sk", "ch", "ca", "la", "bb", "fy", "cw")},
    **{area: "North East" for area in ("ne", "sr", "dh", "ts", "dl")},
    **{area: "Yorkshire" for area in ("ls", "s", "yo", "bd", "hu", "hg", "hx", "wf", "dn", "hd")},
    **{area: "West Midlands" for area in ("b", "cv", "wv", "ws", "dy", "st", "wr", "hr", "tf", "sy")},
    **{area: "East Midlands" for area in ("ng", "le", "de", "nn", "ln")},
    **{area: "Wales" for area in ("cf", "sa", "np", "ll", "ld")},
    **{area: "Scotland" for area in ("eh", "g", "ab", "dd", "ky", "fk", "pa", "iv", "ka")},
    "bt": "Northern Ireland",
    **{area: EAST_OF_ENGLAND for area in ("ip", "co", "nr", "cb", "cm", "ss", "pe", "lu", "al", "sg")},
}

# Full postcode anywhere in the text, or an outward code on its own
POSTCODE_PATTERN = re.compile(r"\b([a-z]{1,2})\d{1,2}[a-z]?\s*\d[a-z]{2}\b")
OUTWARD_CODE_PATTERN = re.compile(r"([a-z]{1,2})\d{1,2}[a-z]?")


# =============================================================================
# COMPOSITE MULTIPLIER
# =============================================================================


def compose(*factors: float) -> float:
    """Compose adjustment factors as a plain product."""
    return math.prod(factors)


@dataclass(frozen=True)
class CompositeMultiplier:
    """Resolved adjustment factors for one estimate.

    Attributes:
        region: Canonical region name, None when the location is unknown
        region_factor: Labor multiplier for the region (1.0 when unknown)
        season: Requested season, if any
        season_factor: Default seasonal tool multiplier (1.0 without a season)
        complexity: Requested complexity level
        quality_tier: Requested material quality tier
    """

    region: Optional[str]
    region_factor: float
    season: Optional[Season]
    season_factor: float
    complexity: ComplexityLevel
    quality_tier: QualityTier

    def labor_factor(self, row: LaborCost) -> float:
        """Region multiplier composed with the row's own complexity multiplier."""
        return compose(self.region_factor, row.complexity_factor(self.complexity))

    def tool_factor(self, row: ToolHireItem) -> float:
        """Seasonal multiplier for a tool; 1.0 when no season was requested."""
        if self.season is None:
            return 1.0
        return row.seasonal_multipliers.get(self.season, self.season_factor)


# =============================================================================
# RESOLVER
# =============================================================================


def _coerce_enum(enum_cls, value, field: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(
            f"Unknown {field} {value!r}; expected one of: {allowed}",
            field=field,
        ) from e


class MultiplierResolver:
    """Resolves region, season, complexity and quality tier into a composite.

    The regional table defaults to the UK seed table; tests and callers may
    inject their own table (e.g. rows loaded from the catalog provider).
    """

    def __init__(
        self,
        regional_multipliers: Optional[Union[Mapping[str, float], Iterable[RegionalMultiplier]]] = None,
        seasonal_multipliers: Optional[Mapping[Season, float]] = None,
    ):
        if regional_multipliers is None:
            regional_multipliers = REGIONAL_MULTIPLIERS
        if not isinstance(regional_multipliers, Mapping):
            regional_multipliers = {row.region: row.multiplier for row in regional_multipliers}

        self._regions: Dict[str, float] = {}
        self._region_names: Dict[str, str] = {}
        for name, factor in regional_multipliers.items():
            if factor < 0:
                raise InvalidInputError(f"Regional multiplier for {name!r} must not be negative", field="region")
            self._regions[name.lower()] = float(factor)
            self._region_names[name.lower()] = name

        self._seasonal = dict(SEASONAL_TOOL_MULTIPLIERS if seasonal_multipliers is None else seasonal_multipliers)
        if any(factor < 0 for factor in self._seasonal.values()):
            raise InvalidInputError("Seasonal multipliers must not be negative", field="season")

    def region_multiplier(self, region: Optional[str]) -> float:
        """Multiplier for a region name; 1.0 for unknown or missing regions."""
        if not region:
            return 1.0
        return self._regions.get(region.strip().lower(), 1.0)

    def resolve_region(self, location: Optional[str]) -> Optional[str]:
        """Map a free-text location onto a region name.

        Tries region names, then town/county names, then the area of a UK
        postcode (a full postcode, or an outward code given on its own).
        Returns None when nothing matches.
        """
        if not location:
            return None
        text = location.strip().lower()

        known = dict(self._region_names)
        known.setdefault(EAST_OF_ENGLAND.lower(), EAST_OF_ENGLAND)
        for key in sorted(known, key=len, reverse=True):
            if re.search(rf"\b{re.escape(key)}\b", text):
                return known[key]

        for place, region in PLACE_REGIONS.items():
            if re.search(rf"\b{re.escape(place)}\b", text):
                return region

        match = POSTCODE_PATTERN.search(text) or OUTWARD_CODE_PATTERN.fullmatch(text)
        if match and match.group(1) in POSTCODE_AREA_REGIONS:
            return POSTCODE_AREA_REGIONS[match.group(1)]

        return None

    def resolve(
        self,
        region: Optional[str] = None,
        season: Optional[Union[Season, str]] = None,
        complexity: Optional[Union[ComplexityLevel, str]] = None,
        quality_tier: Optional[Union[QualityTier, str]] = None,
    ) -> CompositeMultiplier:
        """Resolve adjustment factors for an estimate.

        Args:
            region: Region name or free-text location
            season: Hire season, optional
            complexity: Complexity level (defaults to standard)
            quality_tier: Material quality tier (defaults to mid_range)

        Returns:
            CompositeMultiplier with every factor resolved.

        Raises:
            InvalidInputError: If season, complexity or quality tier is not a known value.
        """
        season = _coerce_enum(Season, season, "season")
        complexity = _coerce_enum(ComplexityLevel, complexity, "complexity") or ComplexityLevel.STANDARD
        quality_tier = _coerce_enum(QualityTier, quality_tier, "quality_tier") or QualityTier.MID_RANGE

        region_name = self.resolve_region(region)
        region_factor = self.region_multiplier(region_name)
        season_factor = self._seasonal.get(season, 1.0) if season is not None else 1.0

        logger.debug(
            "multipliers_resolved",
            location=region,
            region=region_name,
            region_factor=region_factor,
            season=season.value if season else None,
            season_factor=season_factor,
            complexity=complexity.value,
            quality_tier=quality_tier.value,
        )

        return CompositeMultiplier(
            region=region_name,
            region_factor=region_factor,
            season=season,
            season_factor=season_factor,
            complexity=complexity,
            quality_tier=quality_tier,
        )
