from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .colorspace import Hex, hex_to_oklch, oklch_to_hex
from .gamut import gamut_map_oklch

ACHROMATIC_CHROMA = 0.04

# upper bound (inclusive) of each hue bucket, in degrees
HUE_NAMES = (
    (15.0, "red"),
    (45.0, "orange"),
    (75.0, "yellow"),
    (150.0, "green"),
    (210.0, "cyan"),
    (260.0, "blue"),
    (310.0, "purple"),
    (345.0, "pink"),
    (360.0, "red"),
)


def color_name(hex_str: str) -> str:
    """Coarse English hue name used for default palette names."""
    L, C, h = hex_to_oklch(hex_str)
    if C < ACHROMATIC_CHROMA:
        if L < 0.2:
            return "black"
        if L > 0.85:
            return "white"
        return "gray"
    for boundary, name in HUE_NAMES:
        if h <= boundary:
            return name
    return "red"


def random_color(rng: Optional[np.random.Generator] = None) -> Hex:
    """A moderately saturated mid-lightness color, already in gamut."""
    rng = rng if rng is not None else np.random.default_rng()
    h = float(rng.uniform(0.0, 360.0))
    C = 0.10 + 0.15 * float(rng.random())
    L = 0.40 + 0.30 * float(rng.random())
    return oklch_to_hex(*gamut_map_oklch(L, C, h))


def unique_name(base: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    if base not in taken:
        return base
    n = 2
    while f"{base} {n}" in taken:
        n += 1
    return f"{base} {n}"


__all__ = ["HUE_NAMES", "color_name", "random_color", "unique_name"]
