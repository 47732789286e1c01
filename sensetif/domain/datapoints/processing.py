"""
Processing Descriptor
=====================
Calibration parameters of a datapoint and the transform turning a raw
reading into an engineering value.

Pipeline: condition -> scaling law -> scalefunc -> bounds check
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from sensetif.domain.datapoints import scaling
from sensetif.domain.datapoints.columns import ColumnField, decode_columns, enum_parser, parse_float, parse_text
from sensetif.domain.datapoints.expressions import ExpressionEvaluator
from sensetif.domain.exceptions import Filtered, OutOfRange
from sensetif.enums import ScalingLaw


class Evaluator(Protocol):
    """Evaluates the opaque condition / scalefunc expressions."""

    def condition(self, source: str, variables: Mapping[str, Any]) -> bool: ...

    def value(self, source: str, variables: Mapping[str, Any]) -> float: ...


_DEFAULT_EVALUATOR = ExpressionEvaluator()


@dataclass(frozen=True)
class ProcessingDescriptor:
    """
    Immutable processing configuration of a datapoint.

    ``min == max`` (both 0 when never configured) disables the bounds check.
    """

    unit: str = ""
    scaling: ScalingLaw = ScalingLaw.LIN
    k: float = 0.0
    m: float = 0.0
    min: float = 0.0
    max: float = 0.0
    condition: str = ""
    scalefunc: str = ""

    @property
    def has_bounds(self) -> bool:
        return self.min != self.max

    def transform(
        self,
        raw: float,
        *,
        context: Optional[Mapping[str, Any]] = None,
        evaluator: Optional[Evaluator] = None,
    ) -> float:
        """
        Convert a raw reading into the calibrated value.

        Args:
            raw: Raw acquired reading
            context: Extra expression variables (e.g. ``prev``)
            evaluator: Expression evaluator, defaults to ``ExpressionEvaluator``

        Returns:
            Calibrated value

        Raises:
            Filtered: The condition rejected the reading
            DomainError / UnsupportedScalingLaw: The scaling law failed
            ExpressionError: condition or scalefunc could not be evaluated
            OutOfRange: The value is outside ``[min, max]``
        """
        evaluator = evaluator or _DEFAULT_EVALUATOR
        raw = float(raw)
        variables = dict(context or {})

        if self.condition.strip():
            if not evaluator.condition(self.condition, {**variables, "x": raw, "raw": raw}):
                raise Filtered(f"Reading {raw!r} rejected by condition {self.condition!r}", detail={"raw": raw})

        value = scaling.apply(self.scaling, raw, self.k, self.m)

        if self.scalefunc.strip():
            value = evaluator.value(self.scalefunc, {**variables, "x": value, "raw": raw})

        return self.check_bounds(value)

    def check_bounds(self, value: float) -> float:
        """Return ``value`` unchanged, or raise OutOfRange. Never clamps."""
        if not self.has_bounds:
            return value
        if value < self.min:
            raise OutOfRange(value, self.min)
        if not value <= self.max:
            raise OutOfRange(value, self.max)
        return value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "unit": self.unit,
            "scaling": self.scaling.value,
            "k": self.k,
            "m": self.m,
            "min": self.min,
            "max": self.max,
            "condition": self.condition,
            "scalefunc": self.scalefunc,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProcessingDescriptor":
        return cls(
            unit=data.get("unit", ""),
            scaling=ScalingLaw(data.get("scaling", ScalingLaw.LIN.value)),
            k=float(data.get("k", 0.0)),
            m=float(data.get("m", 0.0)),
            min=float(data.get("min", 0.0)),
            max=float(data.get("max", 0.0)),
            condition=data.get("condition", ""),
            scalefunc=data.get("scalefunc", ""),
        )

    @classmethod
    def from_columns(cls, columns: Optional[Mapping[str, Any]]) -> "ProcessingDescriptor":
        """Decode from a storage record; never raises on malformed columns."""
        return decode_columns(cls, PROCESSING_COLUMNS, columns)


PROCESSING_COLUMNS: dict[str, ColumnField] = {
    "unit": ColumnField("unit", parse_text),
    "scaling": ColumnField("scaling", enum_parser(ScalingLaw)),
    "k": ColumnField("k", parse_float),
    "m": ColumnField("m", parse_float),
    "min": ColumnField("min", parse_float),
    "max": ColumnField("max", parse_float),
    "condition": ColumnField("condition", parse_text),
    "scalefunc": ColumnField("scalefunc", parse_text),
}


def decode_processing(columns: Optional[Mapping[str, Any]]) -> ProcessingDescriptor:
    """Decode a processing descriptor from a column record."""
    return ProcessingDescriptor.from_columns(columns)
