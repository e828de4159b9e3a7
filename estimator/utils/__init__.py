"""Utility modules for the BuildCost estimator."""

from utils.logging import configure_logging

__all__ = [
    "configure_logging",
]
