"""
Datasource Variants
===================
The mutually exclusive ways a datapoint acquires its raw readings, selected
by ``SourceType``:

- ``web``   -> WebDatasource   (poll a JSON/XML document over HTTP)
- ``ttnv3`` -> Ttnv3Datasource (The Things Network v3 / LoRaWAN)
- ``mqtt``  -> MqttDatasource  (subscribe to an MQTT broker)

``decode()`` picks the variant from the discriminator before any column is
read and then fills it from the record through the variant's column table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional, Union

from sensetif.domain.datapoints.columns import (
    ColumnField,
    decode_columns,
    enum_parser,
    parse_port,
    parse_text,
)
from sensetif.domain.exceptions import UnsupportedSourceType
from sensetif.enums import (
    AuthenticationType,
    DocumentFormat,
    MqttProtocol,
    SourceType,
    TimestampType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebDatasource:
    """
    Web document polled every interval.

    ``auth`` holds ``user=password`` for basic authentication and the bare
    token for bearer authentication. Expressions are JSONPath for JSON
    documents and XPath for XML documents.
    """

    source_type: ClassVar[SourceType] = SourceType.WEB

    url: str = ""
    authentication_type: AuthenticationType = AuthenticationType.NONE
    auth: str = ""
    format: DocumentFormat = DocumentFormat.JSON
    value_expression: str = ""
    timestamp_type: TimestampType = TimestampType.POLL_TIME
    timestamp_expression: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "url": self.url,
            "authenticationType": self.authentication_type.value,
            "auth": self.auth,
            "format": self.format.value,
            "valueExpression": self.value_expression,
            "timestampType": self.timestamp_type.value,
            "timestampExpression": self.timestamp_expression,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WebDatasource":
        return cls(
            url=data.get("url", ""),
            authentication_type=AuthenticationType(data.get("authenticationType", AuthenticationType.NONE.value)),
            auth=data.get("auth", ""),
            format=DocumentFormat(data.get("format", DocumentFormat.JSON.value)),
            value_expression=data.get("valueExpression", ""),
            timestamp_type=TimestampType(data.get("timestampType", TimestampType.POLL_TIME.value)),
            timestamp_expression=data.get("timestampExpression", ""),
        )


@dataclass(frozen=True)
class Ttnv3Datasource:
    """Device uplink from The Things Network v3."""

    source_type: ClassVar[SourceType] = SourceType.TTNV3

    zone: str = ""
    application: str = ""
    device: str = ""
    point: str = ""
    authorization_key: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "zone": self.zone,
            "application": self.application,
            "device": self.device,
            "point": self.point,
            "authorizationkey": self.authorization_key,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Ttnv3Datasource":
        return cls(
            zone=data.get("zone", ""),
            application=data.get("application", ""),
            device=data.get("device", ""),
            point=data.get("point", ""),
            authorization_key=data.get("authorizationkey", ""),
        )


@dataclass(frozen=True)
class MqttDatasource:
    """
    Topic on an MQTT broker.

    ``protocol`` is ``None`` until configured. ``port`` is a uint16.
    """

    source_type: ClassVar[SourceType] = SourceType.MQTT

    protocol: Optional[MqttProtocol] = None
    address: str = ""
    port: int = 0
    topic: str = ""
    username: str = ""
    password: str = ""
    format: DocumentFormat = DocumentFormat.JSON
    value_expression: str = ""
    timestamp_type: TimestampType = TimestampType.POLL_TIME
    timestamp_expression: str = ""

    @property
    def broker_url(self) -> str:
        scheme = self.protocol.value if self.protocol else MqttProtocol.MQTT.value
        return f"{scheme}://{self.address}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "protocol": self.protocol.value if self.protocol else None,
            "address": self.address,
            "port": self.port,
            "topic": self.topic,
            "username": self.username,
            "password": self.password,
            "doctype": self.format.value,
            "dataexpr": self.value_expression,
            "tstype": self.timestamp_type.value,
            "tsexpr": self.timestamp_expression,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MqttDatasource":
        protocol = data.get("protocol")
        return cls(
            protocol=MqttProtocol(protocol) if protocol else None,
            address=data.get("address", ""),
            port=int(data.get("port", 0)),
            topic=data.get("topic", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            format=DocumentFormat(data.get("doctype", DocumentFormat.JSON.value)),
            value_expression=data.get("dataexpr", ""),
            timestamp_type=TimestampType(data.get("tstype", TimestampType.POLL_TIME.value)),
            timestamp_expression=data.get("tsexpr", ""),
        )


DatasourceVariant = Union[WebDatasource, Ttnv3Datasource, MqttDatasource]


# ---- Column tables -----------------------------------------------------------

_DOCTYPE = ColumnField("format", enum_parser(DocumentFormat))
_DATAEXPR = ColumnField("value_expression", parse_text)
_TSTYPE = ColumnField("timestamp_type", enum_parser(TimestampType))
_TSEXPR = ColumnField("timestamp_expression", parse_text)

WEB_COLUMNS: dict[str, ColumnField] = {
    "url": ColumnField("url", parse_text),
    "authtype": ColumnField("authentication_type", enum_parser(AuthenticationType)),
    "auth": ColumnField("auth", parse_text),
    "doctype": _DOCTYPE,
    "dataexpr": _DATAEXPR,
    "tstype": _TSTYPE,
    "tsexpr": _TSEXPR,
}

TTNV3_COLUMNS: dict[str, ColumnField] = {
    "zone": ColumnField("zone", parse_text),
    "application": ColumnField("application", parse_text),
    "device": ColumnField("device", parse_text),
    "point": ColumnField("point", parse_text),
    "authorizationkey": ColumnField("authorization_key", parse_text),
}

MQTT_COLUMNS: dict[str, ColumnField] = {
    "protocol": ColumnField("protocol", enum_parser(MqttProtocol)),
    "address": ColumnField("address", parse_text),
    "port": ColumnField("port", parse_port),
    "topic": ColumnField("topic", parse_text),
    "username": ColumnField("username", parse_text),
    "password": ColumnField("password", parse_text),
    "doctype": _DOCTYPE,
    "dataexpr": _DATAEXPR,
    "tstype": _TSTYPE,
    "tsexpr": _TSEXPR,
}

# SourceType -> (variant class, column table)
VARIANTS: dict[SourceType, tuple[type, Mapping[str, ColumnField]]] = {
    SourceType.WEB: (WebDatasource, WEB_COLUMNS),
    SourceType.TTNV3: (Ttnv3Datasource, TTNV3_COLUMNS),
    SourceType.MQTT: (MqttDatasource, MQTT_COLUMNS),
}


def variant_for(source_type: SourceType | str) -> type:
    """Return the variant class for a discriminator."""
    return _lookup(source_type)[0]


def _lookup(source_type: SourceType | str) -> tuple[type, Mapping[str, ColumnField]]:
    resolved = source_type if isinstance(source_type, SourceType) else SourceType.from_column(str(source_type))
    if resolved is None:
        raise UnsupportedSourceType(
            f"Unsupported datasource type: {source_type!r}", detail={"source_type": str(source_type)}
        )
    return VARIANTS[resolved]


def decode(source_type: SourceType | str, columns: Optional[Mapping[str, Any]]) -> DatasourceVariant:
    """
    Decode a column record into the variant selected by ``source_type``.

    Args:
        source_type: Datasource discriminator
        columns: Column name -> raw bytes

    Returns:
        Exactly one datasource variant

    Raises:
        UnsupportedSourceType: The discriminator names no variant. This is
            checked before any column is read; field decoding itself never raises.
    """
    variant_cls, table = _lookup(source_type)
    variant = decode_columns(variant_cls, table, columns)
    logger.debug("Decoded %s datasource from %d columns", variant_cls.source_type.value, len(columns or {}))
    return variant


def datasource_from_dict(source_type: SourceType | str, data: Mapping[str, Any]) -> DatasourceVariant:
    """Build a variant from its JSON representation."""
    return variant_for(source_type).from_dict(data)
