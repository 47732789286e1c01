"""
Datapoint Descriptor Tests
==========================
Tests for assembling, decoding and serializing datapoint descriptors.
"""

import dataclasses
import json

import pytest

from sensetif.domain.datapoints import (
    DatapointDescriptor,
    MqttDatasource,
    ProcessingDescriptor,
    WebDatasource,
    assemble,
)
from sensetif.domain.exceptions import ValidationError
from sensetif.enums import MqttProtocol, PollInterval, ScalingLaw, SourceType, TimeToLive


def _parts(**overrides):
    parts = {
        "project": "greenhouse",
        "subsystem": "north",
        "name": "temp",
        "interval": PollInterval.ONE_HOUR,
        "proc": ProcessingDescriptor(k=1.0),
        "time_to_live": TimeToLive.A,
        "source_type": SourceType.WEB,
        "datasource": WebDatasource(url="https://example.com/data.json"),
    }
    parts.update(overrides)
    return parts


class TestAssemble:
    """Tests for assemble"""

    def test_valid_parts(self):
        descriptor = assemble(**_parts())
        assert descriptor.key == ("greenhouse", "north", "temp")
        assert descriptor.path == "greenhouse/north/temp"

    def test_accepts_textual_enums(self):
        descriptor = assemble(**_parts(interval="one_day", time_to_live="h", source_type="web"))
        assert descriptor.interval is PollInterval.ONE_DAY
        assert descriptor.time_to_live is TimeToLive.H
        assert descriptor.source_type is SourceType.WEB

    @pytest.mark.parametrize("name", ["temp", "a", "air.temperature", "t_2.Max"])
    def test_valid_names(self, name):
        assert assemble(**_parts(name=name)).name == name

    @pytest.mark.parametrize("name", ["", "Temp", "9temp", "_temp", "temp-1", "temp 1"])
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError):
            assemble(**_parts(name=name))

    def test_collects_every_violation(self):
        with pytest.raises(ValidationError) as exc_info:
            assemble(
                **_parts(
                    project="",
                    subsystem=" ",
                    name="Temp",
                    interval="hourly",
                    time_to_live="z",
                    proc=ProcessingDescriptor(min=5.0, max=1.0),
                )
            )

        violations = exc_info.value.violations
        assert len(violations) == 6
        assert exc_info.value.detail["name"] == "Temp"
        assert exc_info.value.detail["violations"] == violations

    def test_datasource_must_match_source_type(self):
        with pytest.raises(ValidationError, match="WebDatasource"):
            assemble(**_parts(datasource=MqttDatasource()))

    def test_unknown_source_type(self):
        with pytest.raises(ValidationError, match="datasourcetype"):
            assemble(**_parts(source_type="modbus"))

    def test_proc_must_be_a_descriptor(self):
        with pytest.raises(ValidationError, match="proc"):
            assemble(**_parts(proc={"k": 1.0}))


class TestDescriptorBehaviour:
    """Tests for descriptor immutability and helpers"""

    def test_is_frozen(self, mqtt_descriptor):
        with pytest.raises(dataclasses.FrozenInstanceError):
            mqtt_descriptor.name = "other"

    def test_transform_uses_processing(self, mqtt_descriptor):
        assert mqtt_descriptor.transform(10.0) == 21.0

    def test_with_processing_returns_new_descriptor(self, mqtt_descriptor):
        updated = mqtt_descriptor.with_processing(ProcessingDescriptor(unit="%", k=0.5))

        assert updated.proc.unit == "%"
        assert updated.key == mqtt_descriptor.key
        assert mqtt_descriptor.proc.unit == "°C"

    def test_with_processing_is_validated(self, mqtt_descriptor):
        with pytest.raises(ValidationError):
            mqtt_descriptor.with_processing(ProcessingDescriptor(min=2.0, max=1.0))


class TestFromRecord:
    """Tests for building a descriptor from a storage row"""

    def test_mqtt_record(self, mqtt_record):
        descriptor = DatapointDescriptor.from_record(mqtt_record)

        assert descriptor.key == ("greenhouse", "north", "temp")
        assert descriptor.interval is PollInterval.FIVE_MINUTES
        assert descriptor.time_to_live is TimeToLive.C
        assert descriptor.proc.unit == "°C"
        assert descriptor.proc.k == 2.0
        assert descriptor.datasource.protocol is MqttProtocol.MQTTS
        assert descriptor.datasource.port == 8883
        assert descriptor.transform(10.0) == 21.0

    def test_lenient_columns_strict_identity(self, mqtt_record):
        mqtt_record["proc"]["scaling"] = b"bogus"
        mqtt_record["datasource"]["protocol"] = b"bogus"

        descriptor = DatapointDescriptor.from_record(mqtt_record)
        assert descriptor.proc.scaling is ScalingLaw.LIN
        assert descriptor.datasource.protocol is None

    def test_unknown_source_type(self, mqtt_record):
        mqtt_record["datasourcetype"] = b"modbus"
        with pytest.raises(ValidationError, match="datasourcetype"):
            DatapointDescriptor.from_record(mqtt_record)

    def test_invalid_interval(self, mqtt_record):
        mqtt_record["pollinterval"] = b"every_second"
        with pytest.raises(ValidationError, match="pollinterval"):
            DatapointDescriptor.from_record(mqtt_record)


class TestSerialization:
    """Tests for to_dict / to_json / from_dict"""

    def test_json_field_names(self, mqtt_descriptor):
        data = mqtt_descriptor.to_dict()

        assert data["pollinterval"] == "five_minutes"
        assert data["timeToLive"] == "c"
        assert data["datasourcetype"] == "mqtt"
        assert data["proc"]["k"] == 2.0
        assert data["datasource"]["protocol"] == "mqtts"
        assert data["datasource"]["doctype"] == "json"

    def test_from_dict_restores_descriptor(self, mqtt_descriptor):
        assert DatapointDescriptor.from_dict(json.loads(mqtt_descriptor.to_json())) == mqtt_descriptor

    def test_from_dict_invalid_source_type(self, mqtt_descriptor):
        data = {**mqtt_descriptor.to_dict(), "datasourcetype": "modbus"}
        with pytest.raises(ValidationError):
            DatapointDescriptor.from_dict(data)
