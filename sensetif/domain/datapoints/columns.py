"""
Column Decoding
===============
Best-effort decoding of column-oriented storage records.

A record is a mapping of column name -> raw bytes. Each target type declares
a field table (column name -> ``ColumnField``). Decoding is a single pass over
the record:

- unknown column names are ignored
- ``None`` values are skipped
- a parser returning ``None`` leaves the attribute at its previous value

Decoding never raises on malformed input; the worst case is a field left at
its default.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping, NamedTuple, Optional, TypeVar

from sensetif.enums import ColumnEnum

logger = logging.getLogger(__name__)

T = TypeVar("T")

ColumnParser = Callable[[str], Optional[Any]]

DEFAULT_MQTT_PORT = 1883

# optional sign, ASCII digits only
_PORT_TEXT = re.compile(r"[+-]?[0-9]+")


class ColumnField(NamedTuple):
    """Maps one storage column onto one attribute."""

    attribute: str
    parser: ColumnParser


def column_text(data: Any) -> Optional[str]:
    """Convert a raw column value to text; ``None`` for a null column."""
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data).decode("utf-8", errors="replace")
    return str(data)


# ---- Parsers -----------------------------------------------------------------


def parse_text(text: str) -> str:
    return text


def parse_float(text: str) -> Optional[float]:
    """Parse a float, ``None`` (retain previous value) when not numeric."""
    try:
        return float(text.strip())
    except ValueError:
        return None


def parse_port(text: str) -> int:
    """Parse a TCP port; falls back to 1883 instead of retaining the previous value."""
    if _PORT_TEXT.fullmatch(text) is None:
        return DEFAULT_MQTT_PORT
    port = int(text, 10)
    if not 0 <= port <= 0xFFFF:
        return DEFAULT_MQTT_PORT
    return port


def enum_parser(enum_cls: type[ColumnEnum]) -> ColumnParser:
    """Parser resolving storage text through the enum's column table."""
    return enum_cls.from_column


# ---- Decoding ----------------------------------------------------------------


def decode_values(table: Mapping[str, ColumnField], columns: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Decode ``columns`` into attribute values according to ``table``."""
    values: dict[str, Any] = {}
    for name, data in (columns or {}).items():
        field = table.get(name)
        if field is None:
            logger.debug("Ignoring unknown column %r", name)
            continue
        text = column_text(data)
        if text is None:
            continue
        parsed = field.parser(text)
        if parsed is None:
            logger.debug("Column %r has unusable value %r; keeping previous value", name, text)
            continue
        values[field.attribute] = parsed
    return values


def decode_columns(target_cls: Callable[..., T], table: Mapping[str, ColumnField], columns: Optional[Mapping[str, Any]]) -> T:
    """Build ``target_cls`` from a column record; absent fields keep their defaults."""
    return target_cls(**decode_values(table, columns))
