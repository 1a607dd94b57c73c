"""
Custom exceptions for the MoodAgent core.

Risk rejections are not exceptions: they travel as ``RiskCheck`` results
and end up in ``PolicyDecision.reason``.
"""

from typing import Any, Dict, Optional


class MoodAgentError(Exception):
    """Base exception for all MoodAgent errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(MoodAgentError):
    """Raised when a required endpoint or address is missing at startup."""

    pass


class TransientIOError(MoodAgentError):
    """Raised when a collaborator or the durable store fails to respond."""

    pass


class DataError(MoodAgentError):
    """Raised when a collaborator returns a payload that cannot be parsed."""

    pass


def create_transient_error(component: str, operation: str, cause: Exception) -> TransientIOError:
    """Create a transient I/O error with standardized format."""
    return TransientIOError(
        f"{component} {operation} failed",
        {"component": component, "operation": operation, "cause": str(cause)},
    )
