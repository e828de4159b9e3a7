"""
Unit Tests for the Estimate Service and Catalog Service.

Test Coverage:
- Payload validation (snake_case and camelCase)
- Concurrent cached catalog fetches
- Cold-cache failures and stale fallbacks
- Bulk estimates with per-project errors
- Quality tier and location comparison
- In-memory seed catalog
"""

import pytest

from config.errors import DataUnavailableError, ErrorCode, InvalidInputError
from models.catalog import CatalogKind, QualityTier
from models.estimate import ConfidenceLevel, EstimateRequest
from services.catalog_provider import CatalogQuery, CatalogService, InMemoryCatalogProvider
from services.estimate_service import EstimateService


# =============================================================================
# Request Validation
# =============================================================================


class TestEstimateRequest:
    """Tests for inbound payload validation."""

    def test_camel_case_payload(self, sample_payload):
        request = EstimateRequest.from_payload(sample_payload)
        assert request.project_type == "bathroom"
        assert request.quality_tier == QualityTier.MID_RANGE
        assert request.include_tools is True

    def test_snake_case_payload(self):
        request = EstimateRequest.from_payload({"project_type": "kitchen", "quality_tier": "premium"})
        assert request.quality_tier == QualityTier.PREMIUM
        assert request.effective_area == 10

    @pytest.mark.parametrize(
        "payload",
        [
            {"projectType": "   "},
            {"projectType": "bathroom", "area": -1},
            {"projectType": "bathroom", "area": float("inf")},
            {"projectType": "bathroom", "area": float("nan")},
            {"projectType": "bathroom", "complexity": "extreme"},
            {"projectType": "bathroom", "qualityTier": "luxury"},
            {"area": 5},
        ],
    )
    def test_invalid_payloads(self, payload):
        with pytest.raises(InvalidInputError) as exc_info:
            EstimateRequest.from_payload(payload)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


# =============================================================================
# Estimate Service
# =============================================================================


class TestEstimate:
    """Tests for single estimates."""

    @pytest.mark.asyncio
    async def test_estimate_from_payload(self, estimate_service, sample_payload):
        result = await estimate_service.estimate(sample_payload)

        # 100 x 5 x 1.3 x 0.95 (North West) = 617.5
        assert result.labor.min == 494
        assert result.labor.max == 741
        assert result.multipliers.region == "North West"
        assert result.tools.min == 160
        assert result.additional.min == 300
        assert result.data_quality.confidence == ConfidenceLevel.HIGH

    @pytest.mark.asyncio
    async def test_catalogs_fetched_once_per_query(self, estimate_service, fake_provider, sample_payload):
        await estimate_service.estimate(sample_payload)
        await estimate_service.estimate(sample_payload)
        assert len(fake_provider.calls) == 4

    @pytest.mark.asyncio
    async def test_tools_not_fetched_when_excluded(self, estimate_service, fake_provider):
        result = await estimate_service.estimate({"projectType": "bathroom", "includeTools": False})
        kinds = {query.kind for query in fake_provider.calls}
        assert CatalogKind.TOOL_HIRE not in kinds
        assert result.tools is None

    @pytest.mark.asyncio
    async def test_labor_query_carries_region(self, estimate_service, fake_provider):
        await estimate_service.estimate({"projectType": "Bathroom", "location": "Cardiff"})
        labor_query = next(q for q in fake_provider.calls if q.kind == CatalogKind.LABOR)
        assert labor_query.search_term == "bathroom"
        assert labor_query.region == "Wales"

    @pytest.mark.asyncio
    async def test_invalid_request_raises(self, estimate_service):
        with pytest.raises(InvalidInputError):
            await estimate_service.estimate({"projectType": "bathroom", "area": -5})

    @pytest.mark.asyncio
    async def test_cold_provider_failure_raises(self, estimate_service, fake_provider):
        fake_provider.fail_with = ConnectionError("database unreachable")
        with pytest.raises(DataUnavailableError):
            await estimate_service.estimate({"projectType": "bathroom"})

    @pytest.mark.asyncio
    async def test_stale_catalog_used_when_provider_fails(self, estimate_service, fake_provider, fake_clock):
        first = await estimate_service.estimate({"projectType": "bathroom"})
        fake_clock.advance(3600)
        fake_provider.fail_with = ConnectionError("database unreachable")

        second = await estimate_service.estimate({"projectType": "bathroom"})

        assert second.total == first.total


class TestBulkEstimate:
    """Tests for bulk estimates."""

    @pytest.mark.asyncio
    async def test_per_project_errors_captured(self, estimate_service):
        result = await estimate_service.bulk_estimate([
            {"projectType": "bathroom", "area": 5},
            {"projectType": "bathroom", "area": -5},
        ])

        assert [r["success"] for r in result["results"]] == [True, False]
        assert result["results"][1]["error"]["code"] == ErrorCode.INVALID_INPUT
        assert result["metadata"]["successful_estimates"] == 1

    @pytest.mark.asyncio
    async def test_limited_to_five(self, estimate_service):
        projects = [{"projectType": "bathroom", "area": area} for area in range(1, 8)]
        result = await estimate_service.bulk_estimate(projects)

        assert len(result["results"]) == 5
        assert result["metadata"]["project_count"] == 7
        assert result["metadata"]["estimated_count"] == 5

    @pytest.mark.asyncio
    async def test_projects_must_be_list(self, estimate_service):
        with pytest.raises(InvalidInputError):
            await estimate_service.bulk_estimate({"projectType": "bathroom"})


class TestCompareQualityTiers:
    """Tests for quality tier comparison."""

    @pytest.mark.asyncio
    async def test_all_tiers_in_order(self, estimate_service):
        results = await estimate_service.compare_quality_tiers({"projectType": "bathroom", "area": 5})

        assert [r["quality_tier"] for r in results] == ["budget", "mid_range", "premium"]
        totals = [r["estimate"]["materials"]["max"] for r in results]
        assert totals == sorted(totals)

    @pytest.mark.asyncio
    async def test_unknown_tier_reported(self, estimate_service):
        results = await estimate_service.compare_quality_tiers({"projectType": "bathroom"}, ["budget", "luxury"])
        assert results[0]["success"] is True
        assert results[1]["success"] is False


class TestCompareLocations:
    """Tests for location comparison."""

    @pytest.mark.asyncio
    async def test_regions_applied_in_order(self, estimate_service):
        result = await estimate_service.compare_locations(
            {"projectType": "bathroom", "area": 5, "includeTools": False},
            ["London", "Manchester", "Atlantis"],
        )

        entries = result["results"]
        assert [e["location"] for e in entries] == ["London", "Manchester", "Atlantis"]
        assert [e["estimate"]["multipliers"]["region"] for e in entries] == ["London", "North West", None]
        # 650 x 1.4, 650 x 0.95 and 650 unadjusted, banded at 0.8
        assert [e["estimate"]["labor"]["min"] for e in entries] == [728, 494, 520]

    @pytest.mark.asyncio
    async def test_limited_to_three(self, estimate_service):
        result = await estimate_service.compare_locations(
            {"projectType": "bathroom"}, ["London", "Leeds", "Cardiff", "Glasgow"]
        )

        assert [e["location"] for e in result["results"]] == ["London", "Leeds", "Cardiff"]
        assert result["metadata"] == {"location_count": 4, "compared_count": 3}

    @pytest.mark.asyncio
    async def test_invalid_location_reported(self, estimate_service):
        result = await estimate_service.compare_locations({"projectType": "bathroom"}, ["London", 42])
        assert [e["success"] for e in result["results"]] == [True, False]
        assert result["results"][1]["error"]["code"] == ErrorCode.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_locations_must_be_list(self, estimate_service):
        with pytest.raises(InvalidInputError):
            await estimate_service.compare_locations({"projectType": "bathroom"}, "London")


# =============================================================================
# Seed Catalog
# =============================================================================


class TestInMemoryCatalog:
    """Tests for the seeded in-memory provider."""

    @pytest.mark.asyncio
    async def test_bathroom_rows(self):
        provider = InMemoryCatalogProvider()
        labor = await provider.get_labor_costs(CatalogQuery(CatalogKind.LABOR, "bathroom"))
        regulation = await provider.get_building_regulation(CatalogQuery(CatalogKind.REGULATIONS, "bathroom"))

        assert [row.job_type for row in labor] == ["Bathroom renovation"]
        assert regulation.typical_cost_min == 300

    @pytest.mark.asyncio
    async def test_category_filter(self):
        provider = InMemoryCatalogProvider()
        tools = await provider.get_tool_hire(CatalogQuery(CatalogKind.TOOL_HIRE, category="Cleaning"))
        assert {row.category for row in tools} == {"Cleaning"}
        assert len(tools) == 2

    @pytest.mark.asyncio
    async def test_no_match_is_empty(self):
        provider = InMemoryCatalogProvider()
        assert await provider.get_material_costs(CatalogQuery(CatalogKind.MATERIALS, "swimming pool")) == []
        assert await provider.get_building_regulation(CatalogQuery(CatalogKind.REGULATIONS, "pond")) is None

    @pytest.mark.asyncio
    async def test_seeded_bathroom_estimate(self):
        service = EstimateService(catalog=CatalogService(ttl_seconds=60))
        result = await service.estimate({"projectType": "bathroom", "area": 5, "includeTools": False})

        # 380 x 5 x 1.4 = 2660 (above the 2200 minimum charge)
        assert result.labor.min == 2128
        assert result.labor.max == 3192
        # ceramic wall tiles: 35 x 1.1 x 5 = 192.5
        assert result.materials.min == 173
        assert result.materials.max == 212
        assert result.additional.min == 300
        assert result.data_quality.confidence == ConfidenceLevel.HIGH

    def test_query_key_and_stats(self, catalog_service):
        first = CatalogQuery(CatalogKind.LABOR, "bathroom")
        assert str(first) == "labor:search_term=bathroom"
        assert catalog_service.stats().keys() == {"tool_hire", "labor", "materials", "regulations"}
