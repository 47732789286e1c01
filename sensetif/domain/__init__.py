"""
Domain Package
==============
Immutable value objects describing datapoints, plus the exception hierarchy.
"""

from .exceptions import (
    DomainError,
    ExpressionError,
    Filtered,
    OutOfRange,
    PublishError,
    ScalingError,
    SensetifError,
    TimestampError,
    UnsupportedScalingLaw,
    UnsupportedSourceType,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ExpressionError",
    "Filtered",
    "OutOfRange",
    "PublishError",
    "ScalingError",
    "SensetifError",
    "TimestampError",
    "UnsupportedScalingLaw",
    "UnsupportedSourceType",
    "ValidationError",
]
