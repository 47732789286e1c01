"""
Datapoint Service
=================
Turns stored records into datapoint descriptors, runs acquired readings
through each datapoint's processing and hands the results to the publisher.

Readings of one datapoint are processed in arrival order; readings of
different datapoints are fanned out over a thread pool.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pydantic

from sensetif.config import AppConfig
from sensetif.domain.datapoints import DatapointDescriptor, DatapointKey, ExpressionEvaluator
from sensetif.domain.datapoints.reading import ProcessedReading, RawReading
from sensetif.domain.datapoints.timestamps import resolve_timestamp
from sensetif.domain.exceptions import Filtered, SensetifError, ValidationError
from sensetif.enums import TimestampType
from sensetif.schemas.datapoint import DatapointSettings
from sensetif.services.protocols import DatapointStore, MessageTransport
from sensetif.services.publisher import DatapointPublisher
from sensetif.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of processing a batch of raw readings."""

    processed: List[ProcessedReading] = field(default_factory=list)
    filtered: int = 0
    errors: List[Tuple[RawReading, SensetifError]] = field(default_factory=list)

    def merge(self, other: "BatchResult") -> None:
        self.processed.extend(other.processed)
        self.filtered += other.filtered
        self.errors.extend(other.errors)


class DatapointService:
    """Coordinates datapoint configuration lookups and reading processing."""

    def __init__(
        self,
        store: DatapointStore,
        publisher: Optional[DatapointPublisher] = None,
        *,
        max_workers: int = 1,
        evaluator: Optional[ExpressionEvaluator] = None,
    ):
        self.store = store
        self.publisher = publisher
        self.max_workers = max(1, max_workers)
        self.evaluator = evaluator or ExpressionEvaluator()

    @classmethod
    def from_config(
        cls, config: AppConfig, store: DatapointStore, transport: MessageTransport
    ) -> "DatapointService":
        publisher = DatapointPublisher(transport, config.configuration_topic, config.readings_topic)
        return cls(store, publisher, max_workers=config.worker_count)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def load_datapoint(
        self, org_id: int, project: str, subsystem: str, name: str
    ) -> Optional[DatapointDescriptor]:
        """Load one datapoint, or ``None`` if it is not stored.

        Raises:
            ValidationError: the stored record does not form a valid datapoint
        """
        record = self.store.get_datapoint(org_id, project, subsystem, name)
        if record is None:
            logger.debug("Datapoint %s/%s/%s not found for org %s", project, subsystem, name, org_id)
            return None
        return DatapointDescriptor.from_record(record)

    def list_datapoints(self, org_id: int, project: str, subsystem: str) -> List[DatapointDescriptor]:
        """Load every valid datapoint of a subsystem; invalid records are logged and skipped."""
        descriptors = []
        for record in self.store.list_datapoints(org_id, project, subsystem):
            try:
                descriptors.append(DatapointDescriptor.from_record(record))
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid datapoint in %s/%s for org %s: %s", project, subsystem, org_id, e
                )
        return descriptors

    def current_limits(self, org_id: int) -> Dict[str, Any]:
        return self.store.get_current_limits(org_id)

    def update_datapoint(
        self, org_id: int, settings: DatapointSettings | Mapping[str, Any]
    ) -> DatapointDescriptor:
        """
        Validate a datapoint configuration and publish it.

        Args:
            org_id: Organization owning the datapoint
            settings: Validated settings or the raw JSON object

        Returns:
            The new descriptor

        Raises:
            ValidationError: the configuration is invalid
            PublishError: the configuration could not be published
        """
        if not isinstance(settings, DatapointSettings):
            try:
                settings = DatapointSettings.model_validate(settings)
            except pydantic.ValidationError as e:
                violations = [
                    f"{'.'.join(str(part) for part in err['loc']) or 'datapoint'}: {err['msg']}"
                    for err in e.errors()
                ]
                raise ValidationError(violations) from e

        descriptor = settings.to_descriptor()
        if self.publisher is not None:
            self.publisher.publish_configuration(org_id, descriptor)
        logger.info("Updated datapoint %s for org %s", descriptor.path, org_id)
        return descriptor

    def delete_datapoint(self, org_id: int, key: DatapointKey) -> None:
        if self.publisher is None:
            raise RuntimeError("No publisher configured")
        self.publisher.publish_deletion(org_id, key)

    # ------------------------------------------------------------------
    # Readings
    # ------------------------------------------------------------------

    def process_reading(self, reading: RawReading) -> Optional[ProcessedReading]:
        """
        Transform one raw reading.

        Returns ``None`` when the datapoint's condition rejects the reading.
        Other processing errors (OutOfRange, DomainError, ExpressionError,
        TimestampError) propagate.
        """
        datapoint = reading.datapoint
        try:
            value = datapoint.transform(reading.value, context=reading.context, evaluator=self.evaluator)
        except Filtered:
            logger.debug("Reading %r of %s filtered by condition", reading.value, datapoint.path)
            return None

        timestamp_type = getattr(datapoint.datasource, "timestamp_type", TimestampType.POLL_TIME)
        timestamp = resolve_timestamp(timestamp_type, reading.raw_timestamp, reading.poll_time or utc_now())

        return ProcessedReading(
            project=datapoint.project,
            subsystem=datapoint.subsystem,
            name=datapoint.name,
            value=value,
            unit=datapoint.proc.unit,
            timestamp=timestamp,
        )

    def _process_group(self, readings: List[RawReading]) -> BatchResult:
        result = BatchResult()
        for reading in readings:
            try:
                processed = self.process_reading(reading)
            except SensetifError as e:
                logger.warning("Dropping reading of %s: %s", reading.datapoint.path, e)
                result.errors.append((reading, e))
                continue
            if processed is None:
                result.filtered += 1
            else:
                result.processed.append(processed)
        return result

    def process_batch(self, readings: Iterable[RawReading]) -> BatchResult:
        """Process readings, fanning out per datapoint over the worker pool."""
        groups: "OrderedDict[DatapointKey, List[RawReading]]" = OrderedDict()
        for reading in readings:
            groups.setdefault(reading.datapoint.key, []).append(reading)

        result = BatchResult()
        if not groups:
            return result

        if self.max_workers == 1 or len(groups) == 1:
            partials = [self._process_group(group) for group in groups.values()]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(groups))) as executor:
                partials = list(executor.map(self._process_group, groups.values()))

        for partial in partials:
            result.merge(partial)

        logger.debug(
            "Processed batch: %d published, %d filtered, %d errors",
            len(result.processed),
            result.filtered,
            len(result.errors),
        )
        return result

    def handle_readings(
        self, org_id: int, readings: Iterable[RawReading], poll_time: Optional[datetime] = None
    ) -> BatchResult:
        """Process a batch and publish every accepted reading."""
        if self.publisher is None:
            raise RuntimeError("No publisher configured")
        if poll_time is not None:
            readings = [r if r.poll_time is not None else replace(r, poll_time=poll_time) for r in readings]
        result = self.process_batch(readings)
        self.publisher.publish_readings(org_id, result.processed)
        return result
