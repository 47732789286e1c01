"""
Datapoint Settings Schema Tests
===============================
Tests for validating the user-facing JSON configuration with pydantic.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from sensetif.domain.datapoints import MqttDatasource, Ttnv3Datasource, WebDatasource
from sensetif.domain.exceptions import ValidationError
from sensetif.enums import AuthenticationType, MqttProtocol, ScalingLaw, SourceType, TimeToLive
from sensetif.schemas import DatapointSettings, MqttDatasourceSettings, WebDatasourceSettings

EXAMPLE = DatapointSettings.model_config["json_schema_extra"]["example"]


def _web_settings(**datasource):
    return {
        "project": "weather",
        "subsystem": "roof",
        "name": "wind.speed",
        "pollinterval": "ten_minutes",
        "timeToLive": "a",
        "datasourcetype": "web",
        "datasource": {"url": "https://example.com/wind.json", **datasource},
    }


class TestDatapointSettings:
    """Tests for DatapointSettings"""

    def test_example_converts_to_descriptor(self):
        descriptor = DatapointSettings.model_validate(EXAMPLE).to_descriptor()

        assert descriptor.key == ("greenhouse", "north", "air.temperature")
        assert descriptor.source_type is SourceType.MQTT
        assert descriptor.time_to_live is TimeToLive.C
        assert descriptor.proc.scaling is ScalingLaw.F_TO_C
        assert descriptor.proc.min == -40.0
        assert descriptor.datasource == MqttDatasource(
            protocol=MqttProtocol.MQTTS,
            address="broker.example",
            port=8883,
            topic="sensors/1",
            value_expression="$.temperature",
        )

    def test_processing_defaults(self):
        settings = DatapointSettings.model_validate(_web_settings())
        assert settings.proc.k == 0.0
        assert settings.proc.scaling is ScalingLaw.LIN

    def test_web_datasource(self):
        settings = DatapointSettings.model_validate(
            _web_settings(authenticationType="basic", auth={"u": "joe", "p": "pw"}, valueExpression="$.speed")
        )
        datasource = settings.to_descriptor().datasource

        assert isinstance(datasource, WebDatasource)
        assert datasource.authentication_type is AuthenticationType.BASIC
        assert datasource.auth == "joe=pw"
        assert datasource.value_expression == "$.speed"

    def test_ttnv3_aliases(self):
        data = {
            **_web_settings(),
            "datasourcetype": "ttnv3",
            "datasource": {"zone": "eu1", "pointname": "temperature", "authorizationKey": "NNSXS.KEY"},
        }
        datasource = DatapointSettings.model_validate(data).to_descriptor().datasource

        assert datasource == Ttnv3Datasource(zone="eu1", point="temperature", authorization_key="NNSXS.KEY")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": "Wind"},
            {"project": ""},
            {"pollinterval": "hourly"},
            {"timeToLive": "z"},
            {"datasourcetype": "modbus"},
        ],
    )
    def test_rejects_invalid_settings(self, overrides):
        with pytest.raises(PydanticValidationError):
            DatapointSettings.model_validate({**_web_settings(), **overrides})

    def test_rejects_min_above_max(self):
        settings = DatapointSettings.model_validate({**_web_settings(), "proc": {"min": 10, "max": 0}})
        with pytest.raises(ValidationError):
            settings.to_descriptor()


class TestDatasourceSettings:
    """Tests for the individual datasource models"""

    def test_web_url_must_not_carry_credentials(self):
        with pytest.raises(PydanticValidationError):
            WebDatasourceSettings(url="https://joe:pw@example.com/data.json")

    def test_web_url_may_contain_at_in_path(self):
        assert WebDatasourceSettings(url="https://example.com/users/@me").url.endswith("@me")

    def test_mqtt_port_range(self):
        with pytest.raises(PydanticValidationError):
            MqttDatasourceSettings(port=70000)
        assert MqttDatasourceSettings().port == 1883

    def test_mqtt_document_aliases(self):
        settings = MqttDatasourceSettings.model_validate({"doctype": "xml", "dataexpr": "/v", "tstype": "epochMillis"})
        datasource = settings.to_domain()
        assert datasource.format.value == "xml"
        assert datasource.timestamp_type.value == "epochMillis"
