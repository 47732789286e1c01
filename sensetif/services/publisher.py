"""
Datapoint Publisher
===================
Serializes datapoint configuration and processed readings and hands them to
the message transport.

Message keys follow ``2:{org_id}:{operation}`` for configuration messages and
``2:{org_id}:{project}/{subsystem}/{name}`` for readings.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from sensetif.domain.datapoints import DatapointDescriptor, DatapointKey
from sensetif.domain.datapoints.reading import ProcessedReading
from sensetif.services.protocols import MessageTransport

logger = logging.getLogger(__name__)

KEY_VERSION = 2

UPDATE_DATAPOINT = "updateDatapoint"
DELETE_DATAPOINT = "deleteDatapoint"

# Import requests are forwarded to the configuration topic unchanged
IMPORT_OPERATIONS = frozenset({"importLink2WebFvc1", "importEon", "importTtnv3App"})


def message_key(org_id: int, suffix: str) -> str:
    return f"{KEY_VERSION}:{org_id}:{suffix}"


def _encode(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class DatapointPublisher:
    """Publishes configuration changes and readings over a MessageTransport."""

    def __init__(self, transport: MessageTransport, configuration_topic: str, readings_topic: str):
        self.transport = transport
        self.configuration_topic = configuration_topic
        self.readings_topic = readings_topic

    def publish_configuration(self, org_id: int, datapoint: DatapointDescriptor) -> str:
        """Publish the full descriptor of a created or updated datapoint."""
        key = message_key(org_id, UPDATE_DATAPOINT)
        msg_id = self.transport.send(self.configuration_topic, key, datapoint.to_json().encode("utf-8"))
        logger.info("Published configuration of %s for org %s (id=%s)", datapoint.path, org_id, msg_id)
        return msg_id

    def publish_deletion(self, org_id: int, key: DatapointKey) -> str:
        project, subsystem, name = key
        payload = _encode({"project": project, "subsystem": subsystem, "name": name})
        msg_id = self.transport.send(self.configuration_topic, message_key(org_id, DELETE_DATAPOINT), payload)
        logger.info("Published deletion of %s/%s/%s for org %s", project, subsystem, name, org_id)
        return msg_id

    def forward_import(self, org_id: int, operation: str, body: bytes) -> str:
        """Forward an import request body to the configuration topic."""
        if operation not in IMPORT_OPERATIONS:
            raise ValueError(f"Unknown import operation '{operation}'")
        return self.transport.send(self.configuration_topic, message_key(org_id, operation), body)

    def publish_reading(self, org_id: int, reading: ProcessedReading) -> str:
        key = message_key(org_id, "/".join(reading.key))
        return self.transport.send(self.readings_topic, key, _encode(reading.to_dict()))

    def publish_readings(self, org_id: int, readings: Iterable[ProcessedReading]) -> list[str]:
        ids = [self.publish_reading(org_id, reading) for reading in readings]
        logger.debug("Published %d readings for org %s", len(ids), org_id)
        return ids
