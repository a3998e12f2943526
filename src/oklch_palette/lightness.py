from __future__ import annotations

import math
from typing import List

from .errors import NumericError, RangeError

L_MIN = 0.05
L_SPAN = 0.90
ALPHA_MIN = 0.05
MIN_COUNT = 2
MAX_COUNT = 20
# keeps both halves of the warp increasing once curve >= 1/3 (k >= 1)
MIN_EXPONENT = 0.05


def _warp(t: float, exponent: float) -> float:
    if t <= 0.0:
        return 0.0
    if t >= 1.0:
        return 1.0
    if t < 0.5:
        return 0.5 * (2.0 * t) ** exponent
    return 1.0 - 0.5 * (2.0 * (1.0 - t)) ** exponent


def generate_lightness_values(count: int, curve: float = 0.3) -> List[float]:
    """
    Generate `count` OKLCh lightness targets in [0.05, 0.95], non-decreasing.

    curve = 0 spaces them evenly. Any other curve warps the unit parameter
    with a symmetric power about t = 0.5 using k = 3·curve and exponent
    1 - k (floored at MIN_EXPONENT). A single value is the midpoint 0.5.

    Precondition: count in [2, 20] and curve in [-1, 1]. The engine does not
    re-check this; callers clamp (see store) or call validate_count /
    validate_curve first.
    """
    if count == 1:
        ts = [0.5]
    else:
        ts = [i / (count - 1) for i in range(count)]

    if curve != 0:
        exponent = max(1.0 - 3.0 * curve, MIN_EXPONENT)
        ts = [_warp(t, exponent) for t in ts]

    out: List[float] = []
    for t in ts:
        L = L_MIN + L_SPAN * t
        if not math.isfinite(L):
            raise NumericError(f"non-finite lightness for curve={curve!r}")
        out.append(L)
    return out


def generate_alpha_values(count: int) -> List[float]:
    """Evenly spaced alpha from 0.05 to 1.0, rounded to two decimals."""
    if count == 1:
        return [1.0]
    span = 1.0 - ALPHA_MIN
    return [round(ALPHA_MIN + span * i / (count - 1), 2) for i in range(count)]


def validate_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise RangeError(f"count must be an integer, got {count!r}")
    if not MIN_COUNT <= count <= MAX_COUNT:
        raise RangeError(f"count must be in [{MIN_COUNT}, {MAX_COUNT}], got {count}")
    return count


def validate_curve(curve: float) -> float:
    try:
        c = float(curve)
    except (TypeError, ValueError):
        raise RangeError(f"curve must be a number, got {curve!r}") from None
    if not math.isfinite(c) or not -1.0 <= c <= 1.0:
        raise RangeError(f"curve must be in [-1, 1], got {curve!r}")
    return c


def clamp_count(count: int) -> int:
    return max(MIN_COUNT, min(MAX_COUNT, int(count)))


def clamp_curve(curve: float) -> float:
    return max(-1.0, min(1.0, float(curve)))


__all__ = [
    "MAX_COUNT",
    "MIN_COUNT",
    "clamp_count",
    "clamp_curve",
    "generate_alpha_values",
    "generate_lightness_values",
    "validate_count",
    "validate_curve",
]
