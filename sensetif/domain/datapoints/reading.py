"""
Datapoint Reading Value Objects
===============================
Immutable value objects for a raw acquired reading and its processed result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from sensetif.domain.datapoints.datapoint import DatapointDescriptor


@dataclass(frozen=True)
class RawReading:
    """
    A value as acquired from the datasource, before processing.

    ``raw_timestamp`` is whatever the timestamp expression extracted; it is
    interpreted according to the datasource's timestamp type.
    """

    datapoint: "DatapointDescriptor"
    value: float
    raw_timestamp: Any = None
    poll_time: datetime | None = None
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessedReading:
    """Calibrated value ready to be published."""

    project: str
    subsystem: str
    name: str
    value: float
    unit: str
    timestamp: datetime

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.project, self.subsystem, self.name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "project": self.project,
            "subsystem": self.subsystem,
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "timestamp": self.timestamp.isoformat(),
        }
