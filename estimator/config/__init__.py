"""BuildCost estimator configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import (
    EstimatorError,
    InvalidInputError,
    DataUnavailableError,
)

__all__ = [
    "settings",
    "EstimatorError",
    "InvalidInputError",
    "DataUnavailableError",
]
