"""Scaling laws for datapoint readings.

Every law first converts the raw reading and then applies the affine stage
``k * result + m``. For ``lin`` the conversion is the identity, so the whole
law is ``k * raw + m``; the physical unit conversions (temperature, angle)
follow the same convention.

Usage:
    from sensetif.domain.datapoints.scaling import apply
    from sensetif.enums import ScalingLaw

    value = apply(ScalingLaw.LIN, 10.0, k=2.0, m=1.0)   # 21.0
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np

from sensetif.domain.exceptions import DomainError, UnsupportedScalingLaw
from sensetif.enums import ScalingLaw

_ABSOLUTE_ZERO_C = 273.15


# ---- Conversions (raw -> converted, before the affine stage) -----------------


def _identity(x: float) -> float:
    return x


def _ln(x: float) -> float:
    if math.isnan(x) or x <= 0.0:
        raise DomainError(f"ln is undefined for {x!r}", detail={"raw": x})
    return math.log(x)


def _exp(x: float) -> float:
    try:
        return math.exp(x)
    except OverflowError:
        raise DomainError(f"exp overflows for {x!r}", detail={"raw": x}) from None


def _f_to_c(x: float) -> float:
    return (x - 32.0) * 5.0 / 9.0


def _c_to_f(x: float) -> float:
    return x * 9.0 / 5.0 + 32.0


def _k_to_c(x: float) -> float:
    return x - _ABSOLUTE_ZERO_C


def _c_to_k(x: float) -> float:
    return x + _ABSOLUTE_ZERO_C


def _k_to_f(x: float) -> float:
    return _c_to_f(_k_to_c(x))


def _f_to_k(x: float) -> float:
    return _c_to_k(_f_to_c(x))


_CONVERSIONS: dict[ScalingLaw, Callable[[float], float]] = {
    ScalingLaw.LIN: _identity,
    ScalingLaw.LN: _ln,
    ScalingLaw.EXP: _exp,
    ScalingLaw.RAD: math.radians,
    ScalingLaw.DEG: math.degrees,
    ScalingLaw.F_TO_C: _f_to_c,
    ScalingLaw.C_TO_F: _c_to_f,
    ScalingLaw.K_TO_C: _k_to_c,
    ScalingLaw.C_TO_K: _c_to_k,
    ScalingLaw.K_TO_F: _k_to_f,
    ScalingLaw.F_TO_K: _f_to_k,
}


def _resolve(law: object) -> ScalingLaw:
    """Accept a ScalingLaw member or its textual value."""
    if isinstance(law, ScalingLaw):
        return law
    if isinstance(law, str):
        try:
            return ScalingLaw(law)
        except ValueError:
            pass
    raise UnsupportedScalingLaw(f"Unsupported scaling law: {law!r}", detail={"law": repr(law)})


# ---- Public API --------------------------------------------------------------


def apply(law: ScalingLaw | str, raw: float, k: float, m: float) -> float:
    """Scale a single raw reading.

    Raises:
        DomainError: ``raw`` is outside the domain of ``law`` (``ln`` of a
            non-positive value, ``exp`` overflow).
        UnsupportedScalingLaw: ``law`` is not a known scaling law.
    """
    convert = _CONVERSIONS[_resolve(law)]
    return k * convert(float(raw)) + m


def apply_many(law: ScalingLaw | str, raws, k: float, m: float) -> np.ndarray:
    """Vectorized :func:`apply` over an array of raw readings.

    The whole batch fails if any element is outside the law's domain.
    """
    law = _resolve(law)
    x = np.asarray(raws, dtype=np.float64)

    if law is ScalingLaw.LN:
        bad = ~(x > 0.0)
        if bad.any():
            first = float(x[bad].flat[0])
            raise DomainError(f"ln is undefined for {first!r}", detail={"raw": first})
        converted = np.log(x)
    elif law is ScalingLaw.EXP:
        with np.errstate(over="ignore"):
            converted = np.exp(x)
        overflow = np.isinf(converted) & np.isfinite(x)
        if overflow.any():
            first = float(x[overflow].flat[0])
            raise DomainError(f"exp overflows for {first!r}", detail={"raw": first})
    elif law is ScalingLaw.RAD:
        converted = np.radians(x)
    elif law is ScalingLaw.DEG:
        converted = np.degrees(x)
    else:
        # Remaining laws are affine, so the scalar conversion broadcasts.
        converted = _CONVERSIONS[law](x)

    return k * converted + m
