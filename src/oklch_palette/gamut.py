from __future__ import annotations

import logging

import numpy as np

from .colorspace import Oklch, oklch_to_srgb

log = logging.getLogger(__name__)

GAMUT_EPSILON = 0.001
CHROMA_TOLERANCE = 1e-4


def is_in_gamut(L: float, C: float, h: float) -> bool:
    """True when every encoded sRGB channel lies in [-ε, 1+ε]."""
    rgb = oklch_to_srgb(L, C, h)
    return bool(np.all((rgb >= -GAMUT_EPSILON) & (rgb <= 1.0 + GAMUT_EPSILON)))


def gamut_map_oklch(L: float, C: float, h: float) -> Oklch:
    """
    Reduce chroma until (L, C, h) is sRGB-representable.

    Bisects chroma on [0, C] with L and h held fixed, keeping the in-gamut
    lower bound, so the result is always in gamut and never more saturated
    than the input. Assumes gamut membership is monotone in chroma for a
    fixed (L, h).
    """
    if is_in_gamut(L, C, h):
        return Oklch(L, C, h)
    lo, hi = 0.0, float(C)
    while hi - lo > CHROMA_TOLERANCE:
        mid = 0.5 * (lo + hi)
        if is_in_gamut(L, mid, h):
            lo = mid
        else:
            hi = mid
    log.debug("gamut map L=%.4f h=%.2f: C %.4f -> %.4f", L, h, C, lo)
    return Oklch(L, lo, h)


__all__ = ["CHROMA_TOLERANCE", "GAMUT_EPSILON", "gamut_map_oklch", "is_in_gamut"]
