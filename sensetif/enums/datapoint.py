"""
Datapoint Enumerations
======================

This module contains all enums used by datapoint configuration: scaling
laws, datasource discriminators and the enumerated datasource fields.

Storage records carry these as free text. ``from_column()`` resolves that
text through a lookup table and returns ``None`` for anything unknown, so a
decoder can leave the field unchanged instead of failing or silently picking
the first member.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional


class ColumnEnum(str, Enum):
    """Base for enums that are decoded from storage column text."""

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_column(cls, text: str) -> Optional["ColumnEnum"]:
        """Return the member stored as ``text``, or ``None`` if unknown."""
        return _column_table(cls).get(text)


class ScalingLaw(ColumnEnum):
    """
    Scaling laws applied to a raw reading.
    Each law is followed by the affine stage ``k * result + m``.
    """

    LIN = "lin"
    LN = "ln"
    EXP = "exp"
    RAD = "rad"  # degrees in, radians out
    DEG = "deg"  # radians in, degrees out
    F_TO_C = "fToC"
    C_TO_F = "cToF"
    K_TO_C = "kToC"
    C_TO_K = "cToK"
    K_TO_F = "kToF"
    F_TO_K = "fToK"

    @classmethod
    def _missing_(cls, value: object) -> "ScalingLaw | None":
        """Map legacy spellings used by older configuration clients."""
        if not isinstance(value, str):
            return None
        legacy_map = {
            "log": cls.LN.value,
            "ktoF": cls.K_TO_F.value,
        }
        mapped = legacy_map.get(value)
        if mapped is None:
            return None
        return cls(mapped)


class SourceType(ColumnEnum):
    """Datasource discriminator."""

    WEB = "web"  # Web documents
    TTNV3 = "ttnv3"  # The Things Network v3
    MQTT = "mqtt"  # MQTT client


class AuthenticationType(ColumnEnum):
    """Authentication used when polling a web document"""

    NONE = "none"
    BASIC = "basic"  # auth holds "user=password"
    BEARER_TOKEN = "bearerToken"  # auth holds the token without "Bearer"


class DocumentFormat(ColumnEnum):
    """Format of the acquired document"""

    JSON = "json"  # value/timestamp expressions are JSONPath
    XML = "xml"  # value/timestamp expressions are XPath

    @classmethod
    def _missing_(cls, value: object) -> "DocumentFormat | None":
        if value == "jsondoc":
            return cls.JSON
        if value == "xmldoc":
            return cls.XML
        return None


class TimestampType(ColumnEnum):
    """How the timestamp of an acquired value is determined"""

    POLL_TIME = "polltime"
    EPOCH_MILLIS = "epochMillis"
    EPOCH_SECONDS = "epochSeconds"
    ISO8601_ZONED = "iso8601_zoned"
    ISO8601_OFFSET = "iso8601_offset"


class MqttProtocol(ColumnEnum):
    """Broker URL schemes accepted for MQTT datasources"""

    MQTT = "mqtt"
    MQTTS = "mqtts"
    TCP = "tcp"
    TLS = "tls"
    WS = "ws"
    WSS = "wss"
    WXS = "wxs"
    ALIS = "alis"


class PollInterval(ColumnEnum):
    """How often a datapoint is acquired."""

    ONE_MINUTE = "one_minute"
    FIVE_MINUTES = "five_minutes"
    TEN_MINUTES = "ten_minutes"
    FIFTEEN_MINUTES = "fifteen_minutes"
    TWENTY_MINUTES = "twenty_minutes"
    THIRTY_MINUTES = "thirty_minutes"
    ONE_HOUR = "one_hour"
    TWO_HOURS = "two_hours"
    THREE_HOURS = "three_hours"
    SIX_HOURS = "six_hours"
    TWELVE_HOURS = "twelve_hours"
    ONE_DAY = "one_day"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def seconds(self) -> int:
        return _POLL_SECONDS[self]


class TimeToLive(ColumnEnum):
    """Retention policy of stored readings."""

    A = "a"  # 3 months
    B = "b"  # 6 months
    C = "c"  # 1 year
    D = "d"  # 2 years
    E = "e"  # 3 years
    F = "f"  # 4 years
    G = "g"  # 5 years
    H = "h"  # forever

    @property
    def days(self) -> int | None:
        """Retention in days, ``None`` when readings are kept forever."""
        return _TTL_DAYS[self]


_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR

_POLL_SECONDS: dict[PollInterval, int] = {
    PollInterval.ONE_MINUTE: _MINUTE,
    PollInterval.FIVE_MINUTES: 5 * _MINUTE,
    PollInterval.TEN_MINUTES: 10 * _MINUTE,
    PollInterval.FIFTEEN_MINUTES: 15 * _MINUTE,
    PollInterval.TWENTY_MINUTES: 20 * _MINUTE,
    PollInterval.THIRTY_MINUTES: 30 * _MINUTE,
    PollInterval.ONE_HOUR: _HOUR,
    PollInterval.TWO_HOURS: 2 * _HOUR,
    PollInterval.THREE_HOURS: 3 * _HOUR,
    PollInterval.SIX_HOURS: 6 * _HOUR,
    PollInterval.TWELVE_HOURS: 12 * _HOUR,
    PollInterval.ONE_DAY: _DAY,
    PollInterval.WEEKLY: 7 * _DAY,
    PollInterval.MONTHLY: 30 * _DAY,
}

_TTL_DAYS: dict[TimeToLive, int | None] = {
    TimeToLive.A: 90,
    TimeToLive.B: 180,
    TimeToLive.C: 365,
    TimeToLive.D: 2 * 365,
    TimeToLive.E: 3 * 365,
    TimeToLive.F: 4 * 365,
    TimeToLive.G: 5 * 365,
    TimeToLive.H: None,
}

# Storage text that differs from the enum value. A class listed here is
# decoded from these spellings only.
_COLUMN_TEXT: dict[type, dict[str, ColumnEnum]] = {
    DocumentFormat: {
        "jsondoc": DocumentFormat.JSON,
        "xmldoc": DocumentFormat.XML,
    },
}


@lru_cache(maxsize=None)
def _column_table(enum_cls: type) -> dict[str, ColumnEnum]:
    if enum_cls in _COLUMN_TEXT:
        return dict(_COLUMN_TEXT[enum_cls])
    return {member.value: member for member in enum_cls}
