"""
Exception hierarchy for record analytics.

All errors derive from ``AnalyticsError``, itself a ``ValueError``, so callers
that already guard with ``except ValueError`` keep working.

Hierarchy:
    AnalyticsError
    ├── DimensionError
    ├── SingularMatrixError
    ├── InsufficientDataError
    ├── InvalidValueError
    └── NumericDomainError
"""

from typing import Any, Dict, Optional


class AnalyticsError(ValueError):
    """
    Base error with optional debugging context.

    Attributes:
        message: Human-readable error message
        context: Details such as the offending record index or field
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class DimensionError(AnalyticsError):
    """Shape mismatch between vectors, matrices or records."""


class SingularMatrixError(AnalyticsError):
    """Matrix is not invertible within numerical tolerance."""


class InsufficientDataError(AnalyticsError):
    """Too few samples for the requested estimate."""


class InvalidValueError(AnalyticsError):
    """Non-numeric or non-finite value where a number was required."""


class NumericDomainError(AnalyticsError):
    """Computation left its numeric domain (e.g. division by zero spread)."""
