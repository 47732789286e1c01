"""
Shared test fixtures for the Sensetif datapoint test suite.

Provides:
- In-memory datapoint store keyed by (org, project, subsystem, name)
- Recording message transport
- Sample storage records and descriptors for each datasource variant

Usage:
    def test_example(datapoint_service, memory_store, mqtt_record):
        memory_store.add(1, mqtt_record)
        assert datapoint_service.load_datapoint(1, "greenhouse", "north", "temp") is not None
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sensetif.domain.datapoints import DatapointDescriptor, MqttDatasource, ProcessingDescriptor, assemble
from sensetif.enums import MqttProtocol, PollInterval, ScalingLaw, SourceType, TimeToLive
from sensetif.services import DatapointPublisher, DatapointService

# ---------------------------------------------------------------------------
# Logging: keep test output clean
# ---------------------------------------------------------------------------
logging.getLogger("sensetif").setLevel(logging.WARNING)
logging.getLogger("infrastructure").setLevel(logging.WARNING)


# ========================== Collaborator Fakes =============================


class MemoryStore:
    """DatapointStore backed by a dict."""

    def __init__(self):
        self.records: dict[tuple, dict[str, Any]] = {}
        self.limits: dict[int, dict[str, Any]] = {}

    def add(self, org_id: int, record: dict[str, Any]) -> None:
        key = (org_id, record["project"], record["subsystem"], record["name"])
        self.records[key] = record

    def get_datapoint(self, org_id, project, subsystem, name):
        return self.records.get((org_id, project, subsystem, name))

    def list_datapoints(self, org_id, project, subsystem):
        return [
            record
            for (org, proj, sub, _name), record in self.records.items()
            if (org, proj, sub) == (org_id, project, subsystem)
        ]

    def get_current_limits(self, org_id):
        return self.limits.get(org_id, {})


class RecordingTransport:
    """MessageTransport that keeps every sent message."""

    def __init__(self):
        self.sent: list[tuple[str, str, bytes]] = []

    def send(self, topic: str, key: str, payload: bytes) -> str:
        self.sent.append((topic, key, payload))
        return str(len(self.sent))


# ========================== Fixtures =======================================


@pytest.fixture()
def memory_store():
    return MemoryStore()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def publisher(transport):
    return DatapointPublisher(transport, "configuration", "readings")


@pytest.fixture()
def datapoint_service(memory_store, publisher):
    return DatapointService(memory_store, publisher, max_workers=4)


@pytest.fixture()
def mqtt_record() -> dict[str, Any]:
    """Storage row of an MQTT datapoint, column values as raw bytes."""
    return {
        "project": "greenhouse",
        "subsystem": "north",
        "name": "temp",
        "pollinterval": b"five_minutes",
        "timetolive": b"c",
        "datasourcetype": b"mqtt",
        "proc": {
            "unit": b"\xc2\xb0C",
            "scaling": b"lin",
            "k": b"2.0",
            "m": b"1.0",
            "min": b"0",
            "max": b"100",
        },
        "datasource": {
            "protocol": b"mqtts",
            "address": b"broker.example",
            "port": b"8883",
            "topic": b"sensors/1",
        },
    }


@pytest.fixture()
def lin_processing() -> ProcessingDescriptor:
    return ProcessingDescriptor(unit="°C", scaling=ScalingLaw.LIN, k=2.0, m=1.0, min=0.0, max=100.0)


@pytest.fixture()
def mqtt_descriptor(lin_processing) -> DatapointDescriptor:
    return make_descriptor(proc=lin_processing)


def make_descriptor(name: str = "temp", proc: ProcessingDescriptor | None = None, **overrides) -> DatapointDescriptor:
    """Assemble a valid MQTT datapoint with sensible defaults."""
    parts = {
        "project": "greenhouse",
        "subsystem": "north",
        "name": name,
        "interval": PollInterval.FIVE_MINUTES,
        "proc": proc or ProcessingDescriptor(k=1.0),
        "time_to_live": TimeToLive.C,
        "source_type": SourceType.MQTT,
        "datasource": MqttDatasource(
            protocol=MqttProtocol.MQTTS, address="broker.example", port=8883, topic="sensors/1"
        ),
    }
    parts.update(overrides)
    return assemble(**parts)


@pytest.fixture()
def descriptor_factory():
    """Factory for valid descriptors: ``descriptor_factory(name="hum", proc=...)``."""
    return make_descriptor
