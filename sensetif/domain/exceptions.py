"""Centralized exception hierarchy for the Sensetif datapoint model.

All domain and service exceptions inherit from :class:`SensetifError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Decode-time field problems are never raised: unknown or malformed column
values leave the field at its previous/default value (see
``sensetif.domain.datapoints.columns``).

Hierarchy
---------
::

    SensetifError (base)
    ├── ValidationError          (descriptor construction, all violations)
    ├── ScalingError             (scaling engine failure)
    │   ├── DomainError          (input outside the law's domain)
    │   └── UnsupportedScalingLaw
    ├── ExpressionError          (condition / scalefunc evaluation)
    ├── OutOfRange               (processed value outside [min, max])
    ├── Filtered                 (reading excluded by its condition)
    ├── UnsupportedSourceType    (no datasource variant for discriminator)
    ├── TimestampError           (raw timestamp not parseable)
    └── PublishError             (transport refused a message)
"""

from __future__ import annotations


class SensetifError(Exception):
    """Base exception for all Sensetif errors.

    Parameters
    ----------
    message:
        Human-readable description.
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Configuration errors ─────────────────────────────────────────────


class ValidationError(SensetifError):
    """Descriptor construction failed.

    Every violated invariant is listed in :attr:`violations`, not just the
    first one, so a caller can report all problems in one round-trip.
    """

    def __init__(self, violations: list[str], *, detail: dict | None = None) -> None:
        self.violations = list(violations)
        message = "Invalid datapoint: " + "; ".join(self.violations)
        merged = {"violations": self.violations}
        merged.update(detail or {})
        super().__init__(message, detail=merged)


class UnsupportedSourceType(SensetifError):
    """The datasource discriminator does not name a known variant."""


# ── Processing errors ────────────────────────────────────────────────


class ScalingError(SensetifError):
    """Raised when a scaling law cannot be applied."""


class DomainError(ScalingError):
    """The raw value lies outside the mathematical domain of the law."""


class UnsupportedScalingLaw(ScalingError):
    """The scaling selector is not one of the known laws."""


class ExpressionError(SensetifError):
    """A condition or scale function expression could not be evaluated."""


class OutOfRange(SensetifError):
    """The processed value falls outside the configured bounds.

    The value is never clamped; the caller decides whether to drop or flag
    the reading.
    """

    def __init__(self, value: float, bound: float) -> None:
        self.value = value
        self.bound = bound
        side = "below minimum" if value < bound else "above maximum"
        super().__init__(
            f"Value {value!r} is {side} {bound!r}",
            detail={"value": value, "bound": bound},
        )


class Filtered(SensetifError):
    """The reading was excluded by the datapoint's condition.

    Not a failure: the reading is dropped and never published.
    """


class TimestampError(SensetifError):
    """A raw timestamp could not be interpreted for its timestamp type."""


# ── Collaborator errors ──────────────────────────────────────────────


class PublishError(SensetifError):
    """The message transport failed to accept a message."""
