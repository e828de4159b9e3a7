"""BuildCost estimator configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file for local overrides (cache TTL, defaults, log level)
load_dotenv()


# Cost catalogs are refreshed once a day
DEFAULT_CATALOG_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CATALOG_CACHE_MAXSIZE = 128

VALID_COMPLEXITY_LEVELS = ("basic", "standard", "complex")
VALID_QUALITY_TIERS = ("budget", "mid_range", "premium")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Catalog cache
    catalog_cache_ttl_seconds: float = field(
        default_factory=lambda: float(os.getenv("CATALOG_CACHE_TTL_SECONDS", str(DEFAULT_CATALOG_TTL_SECONDS)))
    )
    catalog_cache_maxsize: int = field(
        default_factory=lambda: int(os.getenv("CATALOG_CACHE_MAXSIZE", str(DEFAULT_CATALOG_CACHE_MAXSIZE)))
    )

    # Estimate defaults
    default_area_sqm: float = field(default_factory=lambda: float(os.getenv("DEFAULT_AREA_SQM", "10")))
    default_complexity: str = field(default_factory=lambda: os.getenv("DEFAULT_COMPLEXITY", "standard"))
    default_quality_tier: str = field(default_factory=lambda: os.getenv("DEFAULT_QUALITY_TIER", "mid_range"))

    # Bulk requests
    bulk_estimate_limit: int = field(default_factory=lambda: int(os.getenv("BULK_ESTIMATE_LIMIT", "5")))
    location_comparison_limit: int = field(default_factory=lambda: int(os.getenv("LOCATION_COMPARISON_LIMIT", "3")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: os.getenv("LOG_JSON", "false").lower() == "true")

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is out of range or not a known value.
        """
        if self.catalog_cache_ttl_seconds <= 0:
            raise ValueError("CATALOG_CACHE_TTL_SECONDS must be positive")
        if self.catalog_cache_maxsize < 1:
            raise ValueError("CATALOG_CACHE_MAXSIZE must be at least 1")
        if self.default_area_sqm < 0:
            raise ValueError("DEFAULT_AREA_SQM must not be negative")
        if self.default_complexity not in VALID_COMPLEXITY_LEVELS:
            raise ValueError(
                f"DEFAULT_COMPLEXITY must be one of {VALID_COMPLEXITY_LEVELS}, got {self.default_complexity!r}"
            )
        if self.default_quality_tier not in VALID_QUALITY_TIERS:
            raise ValueError(
                f"DEFAULT_QUALITY_TIER must be one of {VALID_QUALITY_TIERS}, got {self.default_quality_tier!r}"
            )
        if self.bulk_estimate_limit < 1:
            raise ValueError("BULK_ESTIMATE_LIMIT must be at least 1")
        if self.location_comparison_limit < 1:
            raise ValueError("LOCATION_COMPARISON_LIMIT must be at least 1")


# Singleton settings instance
settings = Settings()
