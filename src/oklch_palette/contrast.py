"""WCAG 2.1 relative luminance and contrast ratio for hex colors."""

from __future__ import annotations

from typing import Dict, Literal

import numpy as np

from .colorspace import hex_to_rgb, srgb_to_linear

Level = Literal["AAA", "AA", "A", "fail"]

# Rec. 709 luma weights used by WCAG
_LUMA = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)

_LEVELS = ((7.0, "AAA"), (4.5, "AA"), (3.0, "A"))


def relative_luminance(hex_str: str) -> float:
    return float(_LUMA @ srgb_to_linear(np.array(hex_to_rgb(hex_str))))


def contrast_ratio(hex_a: str, hex_b: str) -> float:
    """(lighter + 0.05) / (darker + 0.05); symmetric and always >= 1."""
    la = relative_luminance(hex_a)
    lb = relative_luminance(hex_b)
    return (max(la, lb) + 0.05) / (min(la, lb) + 0.05)


def contrast_level(ratio: float) -> Level:
    for threshold, level in _LEVELS:
        if ratio >= threshold:
            return level  # type: ignore[return-value]
    return "fail"


def contrast_report(hex_str: str, light_bg: str, dark_bg: str) -> Dict[str, Dict[str, object]]:
    """Ratio and level of one swatch against both preview backgrounds."""
    out: Dict[str, Dict[str, object]] = {}
    for key, bg in (("light", light_bg), ("dark", dark_bg)):
        ratio = contrast_ratio(hex_str, bg)
        out[key] = {"ratio": ratio, "level": contrast_level(ratio)}
    return out


__all__ = ["Level", "contrast_level", "contrast_ratio", "contrast_report", "relative_luminance"]
