"""
Enums Module
============

This module provides enumeration types for the Sensetif datapoint model.
Enums ensure type safety and consistency across the codebase.
"""

from sensetif.enums.datapoint import (
    AuthenticationType,
    ColumnEnum,
    DocumentFormat,
    MqttProtocol,
    PollInterval,
    ScalingLaw,
    SourceType,
    TimestampType,
    TimeToLive,
)

__all__ = [
    "AuthenticationType",
    "ColumnEnum",
    "DocumentFormat",
    "MqttProtocol",
    "PollInterval",
    "ScalingLaw",
    "SourceType",
    "TimeToLive",
    "TimestampType",
]
