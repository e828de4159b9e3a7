"""BuildCost estimator error handling.

Custom exceptions and error codes for the estimation core.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_FIELD = "INVALID_FIELD"
    MISSING_FIELD = "MISSING_FIELD"

    # Data Errors
    DATA_UNAVAILABLE = "DATA_UNAVAILABLE"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class EstimatorError(Exception):
    """Base exception for estimator errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidInputError(EstimatorError):
    """Malformed request input (negative area, unknown enum value, ...)."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.INVALID_INPUT,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class DataUnavailableError(EstimatorError):
    """A catalog source failed and there is no cached value to fall back on."""

    def __init__(self, message: str, source: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.DATA_UNAVAILABLE,
            message=message,
            details={**(details or {}), "source": source}
        )
        self.source = source
