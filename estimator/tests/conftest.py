"""Pytest configuration and shared fixtures for BuildCost tests."""

import os
import sys

import pytest


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`,
# so `estimator/` must be importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


from models.catalog import ComplexityLevel, QualityTier  # noqa: E402
from models.estimate import EstimateRequest  # noqa: E402
from services.catalog_provider import CatalogService  # noqa: E402
from services.estimate_service import EstimateService  # noqa: E402
from services.multiplier_resolver import MultiplierResolver  # noqa: E402
from tests.fixtures.mock_catalog_data import (  # noqa: E402
    BATHROOM_LABOR,
    BATHROOM_REGULATION,
    MINI_DIGGER,
    WALL_TILES,
    FakeCatalogProvider,
    FakeClock,
)


# ============================================================================
# Requests
# ============================================================================

@pytest.fixture
def bathroom_request():
    """5 sqm standard bathroom at mid-range quality, no tools."""
    return EstimateRequest(
        project_type="bathroom",
        area=5,
        complexity=ComplexityLevel.STANDARD,
        quality_tier=QualityTier.MID_RANGE,
        include_tools=False,
    )


@pytest.fixture
def sample_payload():
    """Inbound estimate payload using camelCase keys."""
    return {
        "projectType": "bathroom",
        "area": 5,
        "location": "Manchester",
        "complexity": "standard",
        "qualityTier": "mid_range",
        "includeTools": True,
    }


# ============================================================================
# Collaborators
# ============================================================================

@pytest.fixture
def resolver():
    """Resolver over the UK regional table."""
    return MultiplierResolver()


@pytest.fixture
def fake_clock():
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def fake_provider():
    """Fake provider serving one row per catalog."""
    return FakeCatalogProvider(
        tool_hire=[MINI_DIGGER],
        labor_costs=[BATHROOM_LABOR],
        material_costs=[WALL_TILES],
        regulation=BATHROOM_REGULATION,
    )


@pytest.fixture
def catalog_service(fake_provider, fake_clock):
    """Cached catalog service over the fake provider."""
    return CatalogService(provider=fake_provider, ttl_seconds=60, clock=fake_clock)


@pytest.fixture
def estimate_service(catalog_service, resolver):
    """Estimate service over the fake provider."""
    return EstimateService(catalog=catalog_service, resolver=resolver)
