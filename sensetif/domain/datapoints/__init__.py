"""
Domain Layer for Datapoint Configuration
========================================
Scaling laws, processing descriptors, datasource variants and the datapoint
descriptor that combines them.
"""

from sensetif.domain.datapoints.datapoint import NAME_PATTERN, DatapointDescriptor, DatapointKey, assemble, rebuild
from sensetif.domain.datapoints.datasources import (
    DatasourceVariant,
    MqttDatasource,
    Ttnv3Datasource,
    WebDatasource,
    decode,
)
from sensetif.domain.datapoints.expressions import ExpressionEvaluator
from sensetif.domain.datapoints.processing import ProcessingDescriptor, decode_processing
from sensetif.domain.datapoints.reading import ProcessedReading, RawReading

__all__ = [
    "NAME_PATTERN",
    "DatapointDescriptor",
    "DatapointKey",
    "DatasourceVariant",
    "ExpressionEvaluator",
    "MqttDatasource",
    "ProcessedReading",
    "ProcessingDescriptor",
    "RawReading",
    "Ttnv3Datasource",
    "WebDatasource",
    "assemble",
    "decode",
    "decode_processing",
    "rebuild",
]
