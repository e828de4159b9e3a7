"""Estimate Service for the BuildCost estimator.

Request orchestration for structured estimates:

1. Validate the request (dict payloads in snake or camelCase)
2. Resolve the free-text location to a region
3. Fetch the four catalogs concurrently through the catalog caches
4. Hand the rows to the cost aggregator

Bulk and comparison helpers run several estimates concurrently and
capture per-project failures instead of failing the whole batch.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog

from config.errors import EstimatorError, InvalidInputError
from config.settings import settings
from models.catalog import QualityTier
from models.estimate import EstimateRequest, EstimateResult
from services import cost_aggregator
from services.catalog_provider import CatalogService
from services.multiplier_resolver import MultiplierResolver

logger = structlog.get_logger()


RequestLike = Union[EstimateRequest, Dict[str, Any]]


async def _no_rows() -> list:
    return []


def _coerce_request(request: RequestLike) -> EstimateRequest:
    if isinstance(request, EstimateRequest):
        return request
    if not isinstance(request, dict):
        raise InvalidInputError("Estimate request must be an object")
    return EstimateRequest.from_payload(request)


class EstimateService:
    """Builds estimates from cached catalog data.

    Args:
        catalog: Cached catalog access (defaults to the in-memory UK catalog)
        resolver: Multiplier resolver (defaults to the UK regional table)
    """

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        resolver: Optional[MultiplierResolver] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.resolver = resolver or MultiplierResolver()

    async def estimate(self, request: RequestLike) -> EstimateResult:
        """Estimate costs for one project.

        Raises:
            InvalidInputError: If the request is malformed.
            DataUnavailableError: If a catalog fails with nothing cached.
        """
        request = _coerce_request(request)
        region = self.resolver.resolve_region(request.location)

        logger.info(
            "estimate_started",
            project_type=request.project_type,
            location=request.location,
            region=region,
        )

        tool_rows, labor_rows, material_rows, regulation = await asyncio.gather(
            self.catalog.get_tool_hire(request.project_type) if request.include_tools else _no_rows(),
            self.catalog.get_labor_costs(request.project_type, region=region),
            self.catalog.get_material_costs(request.project_type, quality_tier=request.quality_tier),
            self.catalog.get_building_regulation(request.project_type),
        )

        return cost_aggregator.estimate(
            request,
            tool_rows=tool_rows,
            labor_rows=labor_rows,
            material_rows=material_rows,
            regulation=regulation,
            resolver=self.resolver,
        )

    async def _estimate_captured(self, request: RequestLike) -> Dict[str, Any]:
        try:
            result = await self.estimate(request)
        except EstimatorError as e:
            logger.warning("estimate_failed", error_code=e.code, error=e.message)
            return {"success": False, "error": e.to_dict(), "project": _describe(request)}
        return {"success": True, "estimate": result.to_response()}

    async def bulk_estimate(self, projects: Sequence[RequestLike]) -> Dict[str, Any]:
        """Estimate several projects concurrently.

        Only the first `settings.bulk_estimate_limit` projects are estimated.
        A failing project is reported in place and does not affect the others.

        Raises:
            InvalidInputError: If projects is not a list.
        """
        if not isinstance(projects, (list, tuple)):
            raise InvalidInputError("Projects must be a list", field="projects")

        limit = settings.bulk_estimate_limit
        accepted = list(projects[:limit])
        if len(projects) > limit:
            logger.warning("bulk_estimate_truncated", requested=len(projects), limit=limit)

        results = await asyncio.gather(*(self._estimate_captured(project) for project in accepted))

        return {
            "results": list(results),
            "metadata": {
                "project_count": len(projects),
                "estimated_count": len(accepted),
                "successful_estimates": sum(1 for r in results if r["success"]),
            },
        }

    async def compare_quality_tiers(
        self,
        request: RequestLike,
        tiers: Optional[Sequence[Union[QualityTier, str]]] = None,
    ) -> List[Dict[str, Any]]:
        """Estimate one project at each quality tier.

        Args:
            request: Base request; its own quality tier is replaced
            tiers: Tiers to compare (defaults to every tier, cheapest first)

        Returns:
            One entry per tier, in the order given, each with either an
            estimate or an error.
        """
        base = _coerce_request(request)
        tiers = list(tiers) if tiers is not None else list(QualityTier)

        payloads = []
        for tier in tiers:
            payload = base.model_dump()
            payload["quality_tier"] = tier.value if isinstance(tier, QualityTier) else tier
            payloads.append(payload)

        results = await asyncio.gather(*(self._estimate_captured(payload) for payload in payloads))
        return [
            {"quality_tier": payload["quality_tier"], **result}
            for payload, result in zip(payloads, results)
        ]

    async def compare_locations(
        self,
        request: RequestLike,
        locations: Sequence[str],
    ) -> Dict[str, Any]:
        """Estimate one project at several locations.

        Only the first `settings.location_comparison_limit` locations are
        estimated. A failing location is reported in place.

        Args:
            request: Base request; its own location is replaced
            locations: Free-text locations or region names

        Raises:
            InvalidInputError: If locations is not a list.
        """
        if not isinstance(locations, (list, tuple)):
            raise InvalidInputError("Locations must be a list", field="locations")

        base = _coerce_request(request)
        limit = settings.location_comparison_limit
        accepted = list(locations[:limit])
        if len(locations) > limit:
            logger.warning("location_comparison_truncated", requested=len(locations), limit=limit)

        payloads = []
        for location in accepted:
            payload = base.model_dump()
            payload["location"] = location
            payloads.append(payload)

        results = await asyncio.gather(*(self._estimate_captured(payload) for payload in payloads))
        return {
            "results": [
                {"location": location, **result}
                for location, result in zip(accepted, results)
            ],
            "metadata": {
                "location_count": len(locations),
                "compared_count": len(accepted),
            },
        }


def _describe(request: RequestLike) -> Any:
    if isinstance(request, EstimateRequest):
        return request.model_dump(mode="json")
    return request
