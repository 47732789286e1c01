"""
Datapoint Descriptor
====================
Immutable configuration of one datapoint: identity, polling interval,
retention, processing and exactly one datasource variant.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sensetif.domain.datapoints.columns import column_text
from sensetif.domain.datapoints.datasources import DatasourceVariant, datasource_from_dict, decode, variant_for
from sensetif.domain.datapoints.processing import ProcessingDescriptor
from sensetif.domain.exceptions import ValidationError
from sensetif.enums import ColumnEnum, PollInterval, SourceType, TimeToLive

NAME_PATTERN = re.compile(r"[a-z][A-Za-z0-9_.]*")

DatapointKey = tuple[str, str, str]


@dataclass(frozen=True)
class DatapointDescriptor:
    """
    Immutable datapoint configuration.

    Build through ``assemble()`` (or ``from_record`` / ``from_dict``) so that
    every invariant is checked. Configuration changes produce a new
    descriptor, never an edit of an existing one.
    """

    project: str
    subsystem: str
    name: str
    interval: PollInterval
    proc: ProcessingDescriptor
    time_to_live: TimeToLive
    source_type: SourceType
    datasource: DatasourceVariant

    @property
    def key(self) -> DatapointKey:
        """Identity, unique within an organization."""
        return (self.project, self.subsystem, self.name)

    @property
    def path(self) -> str:
        return f"{self.project}/{self.subsystem}/{self.name}"

    def with_processing(self, proc: ProcessingDescriptor) -> "DatapointDescriptor":
        """Return a new descriptor with ``proc`` replaced."""
        return rebuild(self, proc=proc)

    def transform(self, raw: float, **kwargs: Any) -> float:
        """Shortcut for ``self.proc.transform``."""
        return self.proc.transform(raw, **kwargs)

    def _fields(self) -> dict[str, Any]:
        return {
            "project": self.project,
            "subsystem": self.subsystem,
            "name": self.name,
            "interval": self.interval,
            "proc": self.proc,
            "time_to_live": self.time_to_live,
            "source_type": self.source_type,
            "datasource": self.datasource,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the stable JSON field names"""
        return {
            "project": self.project,
            "subsystem": self.subsystem,
            "name": self.name,
            "pollinterval": self.interval.value,
            "proc": self.proc.to_dict(),
            "timeToLive": self.time_to_live.value,
            "datasourcetype": self.source_type.value,
            "datasource": self.datasource.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DatapointDescriptor":
        """Rebuild a descriptor from ``to_dict()`` output."""
        source_type = data.get("datasourcetype")
        kind = _coerce(SourceType, source_type)
        datasource = datasource_from_dict(kind, data.get("datasource") or {}) if kind else None
        return assemble(
            project=data.get("project", ""),
            subsystem=data.get("subsystem", ""),
            name=data.get("name", ""),
            interval=data.get("pollinterval"),
            proc=ProcessingDescriptor.from_dict(data.get("proc") or {}),
            time_to_live=data.get("timeToLive"),
            source_type=source_type,
            datasource=datasource,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DatapointDescriptor":
        """
        Build a descriptor from a storage row.

        The row holds the scalar columns ``project``, ``subsystem``, ``name``,
        ``pollinterval``, ``timetolive`` and ``datasourcetype`` plus two column
        records, ``proc`` and ``datasource``. The column records are decoded
        leniently; the scalar columns are validated by ``assemble``.
        """
        source_text = column_text(record.get("datasourcetype"))
        source_type = SourceType.from_column(source_text) if source_text is not None else None
        datasource = decode(source_type, record.get("datasource")) if source_type else None

        return assemble(
            project=column_text(record.get("project")) or "",
            subsystem=column_text(record.get("subsystem")) or "",
            name=column_text(record.get("name")) or "",
            interval=column_text(record.get("pollinterval")),
            proc=ProcessingDescriptor.from_columns(record.get("proc")),
            time_to_live=column_text(record.get("timetolive")),
            source_type=source_type or source_text,
            datasource=datasource,
        )


def _coerce(enum_cls: type[ColumnEnum], value: Any) -> Optional[ColumnEnum]:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return None


def assemble(
    project: str,
    subsystem: str,
    name: str,
    interval: PollInterval | str | None,
    proc: ProcessingDescriptor,
    time_to_live: TimeToLive | str | None,
    source_type: SourceType | str | None,
    datasource: DatasourceVariant | None,
) -> DatapointDescriptor:
    """
    Validate the parts of a datapoint and combine them into a descriptor.

    Raises:
        ValidationError: listing every violated invariant
    """
    violations: list[str] = []

    if not project or not project.strip():
        violations.append("project must not be empty")
    if not subsystem or not subsystem.strip():
        violations.append("subsystem must not be empty")
    if not name or NAME_PATTERN.fullmatch(name) is None:
        violations.append(f"name {name!r} must match {NAME_PATTERN.pattern}")

    poll_interval = _coerce(PollInterval, interval)
    if poll_interval is None:
        violations.append(f"pollinterval {interval!r} is not a valid poll interval")

    ttl = _coerce(TimeToLive, time_to_live)
    if ttl is None:
        violations.append(f"timeToLive {time_to_live!r} is not a valid retention")

    if not isinstance(proc, ProcessingDescriptor):
        violations.append("proc must be a ProcessingDescriptor")
    elif proc.min > proc.max:
        violations.append(f"proc.min {proc.min!r} must not exceed proc.max {proc.max!r}")

    kind = _coerce(SourceType, source_type)
    if kind is None:
        violations.append(f"datasourcetype {source_type!r} is not supported")
    elif not isinstance(datasource, variant_for(kind)):
        violations.append(
            f"datasource must be a {variant_for(kind).__name__} for datasourcetype {kind.value!r}, "
            f"got {type(datasource).__name__}"
        )

    if violations:
        raise ValidationError(
            violations,
            detail={"project": project, "subsystem": subsystem, "name": name},
        )

    return DatapointDescriptor(
        project=project,
        subsystem=subsystem,
        name=name,
        interval=poll_interval,
        proc=proc,
        time_to_live=ttl,
        source_type=kind,
        datasource=datasource,
    )


def rebuild(descriptor: DatapointDescriptor, **changes: Any) -> DatapointDescriptor:
    """Return a validated copy of ``descriptor`` with ``changes`` applied."""
    return assemble(**{**descriptor._fields(), **changes})
