"""
Schemas Module
==============

This module provides Pydantic models for configuration input validation.
Schemas ensure data integrity and provide automatic validation.
"""

from sensetif.schemas.datapoint import (
    DatapointSettings,
    MqttDatasourceSettings,
    ProcessingSettings,
    Ttnv3DatasourceSettings,
    WebDatasourceSettings,
)

__all__ = [
    "DatapointSettings",
    "MqttDatasourceSettings",
    "ProcessingSettings",
    "Ttnv3DatasourceSettings",
    "WebDatasourceSettings",
]
