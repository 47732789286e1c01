"""
Datasource Decoder Tests
========================
Tests for selecting and populating datasource variants from column records.
"""

import pytest

from sensetif.domain.datapoints import MqttDatasource, Ttnv3Datasource, WebDatasource, decode
from sensetif.domain.datapoints.datasources import datasource_from_dict, variant_for
from sensetif.domain.exceptions import UnsupportedSourceType
from sensetif.enums import AuthenticationType, DocumentFormat, MqttProtocol, SourceType, TimestampType

MQTT_COLUMNS = {"protocol": "mqtts", "address": "broker.example", "port": "8883", "topic": "sensors/1"}


class TestMqttDecoding:
    """Tests for the MQTT variant"""

    def test_decodes_known_columns(self):
        datasource = decode(SourceType.MQTT, MQTT_COLUMNS)

        assert datasource == MqttDatasource(
            protocol=MqttProtocol.MQTTS, address="broker.example", port=8883, topic="sensors/1"
        )
        assert datasource.username == ""
        assert datasource.format is DocumentFormat.JSON
        assert datasource.broker_url == "mqtts://broker.example:8883"

    def test_unknown_protocol_is_left_unset(self):
        datasource = decode("mqtt", {**MQTT_COLUMNS, "protocol": "bogus"})

        assert datasource.protocol is None
        assert datasource.address == "broker.example"
        assert datasource.port == 8883
        assert datasource.topic == "sensors/1"

    @pytest.mark.parametrize(
        "port",
        [b"abc", b"70000", b"-1", b"", b"8_883", "\uff18\uff18\uff18\uff13".encode(), b" 8883"],
    )
    def test_bad_port_falls_back_to_default(self, port):
        assert decode(SourceType.MQTT, {"port": port}).port == 1883

    def test_signed_port(self):
        assert decode(SourceType.MQTT, {"port": b"+8883"}).port == 8883

    def test_missing_port_stays_zero(self):
        assert decode(SourceType.MQTT, {"topic": b"t"}).port == 0

    def test_byte_values_and_document_columns(self):
        datasource = decode(
            SourceType.MQTT,
            {
                "username": b"sensor",
                "password": b"s3cret",
                "doctype": b"xmldoc",
                "dataexpr": b"/reading/value",
                "tstype": b"epochMillis",
                "tsexpr": b"/reading/@ts",
            },
        )
        assert datasource.username == "sensor"
        assert datasource.format is DocumentFormat.XML
        assert datasource.timestamp_type is TimestampType.EPOCH_MILLIS
        assert datasource.timestamp_expression == "/reading/@ts"

    def test_invalid_utf8_is_replaced(self):
        assert decode(SourceType.MQTT, {"topic": b"\xff\xfe"}).topic == "��"

    def test_unknown_and_null_columns_are_ignored(self):
        datasource = decode(SourceType.MQTT, {"color": b"blue", "address": None, "topic": b"t"})
        assert datasource == MqttDatasource(topic="t")


class TestWebAndTtnDecoding:
    """Tests for the web and TTN v3 variants"""

    def test_web_variant(self):
        datasource = decode(
            SourceType.WEB,
            {
                "url": b"https://example.com/data.json",
                "authtype": b"bearerToken",
                "auth": b"abc123",
                "doctype": b"jsondoc",
                "dataexpr": b"$.temperature",
                "tstype": b"iso8601_offset",
                "tsexpr": b"$.time",
            },
        )
        assert isinstance(datasource, WebDatasource)
        assert datasource.authentication_type is AuthenticationType.BEARER_TOKEN
        assert datasource.value_expression == "$.temperature"
        assert datasource.timestamp_type is TimestampType.ISO8601_OFFSET

    def test_document_format_uses_storage_spelling(self):
        # "xml" is the JSON name, storage holds "xmldoc"
        assert decode(SourceType.WEB, {"doctype": b"xml"}).format is DocumentFormat.JSON

    def test_ttnv3_variant(self):
        datasource = decode(
            "ttnv3",
            {
                "zone": b"eu1",
                "application": b"farm",
                "device": b"node-7",
                "point": b"temperature",
                "authorizationkey": b"NNSXS.KEY",
            },
        )
        assert datasource == Ttnv3Datasource(
            zone="eu1", application="farm", device="node-7", point="temperature", authorization_key="NNSXS.KEY"
        )


class TestVariantSelection:
    """Tests for the discriminator lookup"""

    @pytest.mark.parametrize(
        "source_type, variant",
        [(SourceType.WEB, WebDatasource), (SourceType.TTNV3, Ttnv3Datasource), ("mqtt", MqttDatasource)],
    )
    def test_variant_for(self, source_type, variant):
        assert variant_for(source_type) is variant

    def test_unsupported_source_type(self):
        with pytest.raises(UnsupportedSourceType):
            decode("modbus", MQTT_COLUMNS)

    def test_from_dict_uses_json_names(self):
        datasource = datasource_from_dict(
            SourceType.MQTT,
            {"protocol": "ws", "address": "a", "port": 80, "doctype": "xml", "dataexpr": "/v", "tstype": "epochSeconds"},
        )
        assert datasource.protocol is MqttProtocol.WS
        assert datasource.format is DocumentFormat.XML
        assert datasource.to_dict()["tstype"] == "epochSeconds"
