"""
Service protocols (structural typing interfaces).

Protocols let the datapoint service declare the *minimal* surface it depends
on from its external collaborators, the persistent store and the message
transport, without importing a concrete client. Tests pass plain fakes.

Usage
-----
::

    class CassandraStore:
        def get_datapoint(self, org_id, project, subsystem, name): ...
        def list_datapoints(self, org_id, project, subsystem): ...
        def get_current_limits(self, org_id): ...

At runtime any such object satisfies ``DatapointStore`` via structural
subtyping, no explicit inheritance needed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

# A storage row: scalar columns plus the "proc" and "datasource" column records.
DatapointRecord = Mapping[str, Any]


@runtime_checkable
class DatapointStore(Protocol):
    """Read-only view over stored datapoint configuration."""

    def get_datapoint(
        self, org_id: int, project: str, subsystem: str, name: str
    ) -> Optional[DatapointRecord]:
        """Return the raw record of one datapoint, or ``None`` if not found."""
        ...

    def list_datapoints(self, org_id: int, project: str, subsystem: str) -> List[DatapointRecord]:
        """Return the raw records of all datapoints in a subsystem."""
        ...

    def get_current_limits(self, org_id: int) -> Dict[str, Any]:
        """Return the organization's current usage limits."""
        ...


@runtime_checkable
class MessageTransport(Protocol):
    """Delivers serialized messages to downstream consumers."""

    def send(self, topic: str, key: str, payload: bytes) -> str:
        """Send ``payload`` under ``key`` and return the message id.

        Raises:
            PublishError: the message was not accepted
        """
        ...
