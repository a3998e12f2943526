from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Sequence, Tuple, Union

from .colorspace import Hex, hex_to_oklch, oklch_to_hex, parse_hex
from .errors import ParseError
from .gamut import gamut_map_oklch
from .lightness import generate_alpha_values, generate_lightness_values

RampKind = Literal["lightness", "alpha"]


@dataclass(frozen=True)
class ColorRecord:
    """One swatch. `hex` is always the canonical clamped sRGB form."""

    L: float
    C: float
    h: float
    hex: Hex
    alpha: float = 1.0

    @classmethod
    def from_hex(cls, hex_str: str, alpha: float = 1.0) -> "ColorRecord":
        # direct hex edit: L/C/h follow the hex, never the other way round
        hex_c = parse_hex(hex_str)
        L, C, h = hex_to_oklch(hex_c)
        return cls(L, C, h, hex_c, float(alpha))

    def to_dict(self) -> Dict[str, Any]:
        return {"L": self.L, "C": self.C, "h": self.h, "hex": self.hex, "alpha": self.alpha}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ColorRecord":
        return cls(
            L=float(data["L"]),
            C=float(data["C"]),
            h=float(data["h"]),
            hex=parse_hex(data["hex"]),
            alpha=float(data.get("alpha", 1.0)),
        )


@dataclass(frozen=True)
class LightnessRamp:
    colors: Tuple[ColorRecord, ...]
    base_index: int
    kind: Literal["lightness"] = field(default="lightness", init=False)


@dataclass(frozen=True)
class AlphaRamp:
    colors: Tuple[ColorRecord, ...]
    base_index: int
    kind: Literal["alpha"] = field(default="alpha", init=False)


Ramp = Union[LightnessRamp, AlphaRamp]


def generate_palette(base_hex: str, count: int, curve: float = 0.3) -> List[ColorRecord]:
    """
    Lightness ramp from a base color.

    Only the base's chroma and hue are used; lightness comes from the curve
    generator. Each step is gamut mapped (chroma only) before conversion to hex.
    """
    _, C, h = hex_to_oklch(base_hex)
    out: List[ColorRecord] = []
    for L in generate_lightness_values(count, curve):
        m = gamut_map_oklch(L, C, h)
        out.append(ColorRecord(m.L, m.C, m.h, oklch_to_hex(*m)))
    return out


def generate_alpha_palette(base_hex: str, count: int) -> List[ColorRecord]:
    base = ColorRecord.from_hex(base_hex)
    return [
        ColorRecord(base.L, base.C, base.h, base.hex, alpha)
        for alpha in generate_alpha_values(count)
    ]


def find_base_color_index(colors: Sequence[ColorRecord], base_hex: str) -> int:
    """Index of the record whose L is closest to the base; first one wins ties."""
    base_L = hex_to_oklch(base_hex).L
    index = 0
    best = float("inf")
    for i, c in enumerate(colors):
        d = abs(c.L - base_L)
        if d < best:
            best = d
            index = i
    return index


def lightness_ramp(base_hex: str, count: int, curve: float = 0.3) -> LightnessRamp:
    colors = generate_palette(base_hex, count, curve)
    return LightnessRamp(tuple(colors), find_base_color_index(colors, base_hex))


def alpha_ramp(base_hex: str, count: int) -> AlphaRamp:
    colors = generate_alpha_palette(base_hex, count)
    # the opaque step is the base color itself
    return AlphaRamp(tuple(colors), len(colors) - 1)


def ramp_to_dict(ramp: Ramp) -> Dict[str, Any]:
    return {
        "kind": ramp.kind,
        "base_index": ramp.base_index,
        "colors": [c.to_dict() for c in ramp.colors],
    }


def ramp_from_dict(data: Mapping[str, Any]) -> Ramp:
    colors = tuple(ColorRecord.from_dict(c) for c in data["colors"])
    base_index = int(data.get("base_index", 0))
    kind = data.get("kind", "lightness")
    if kind == "lightness":
        return LightnessRamp(colors, base_index)
    if kind == "alpha":
        return AlphaRamp(colors, base_index)
    raise ParseError(f"unknown ramp kind {kind!r}")


__all__ = [
    "AlphaRamp",
    "ColorRecord",
    "LightnessRamp",
    "Ramp",
    "RampKind",
    "alpha_ramp",
    "find_base_color_index",
    "generate_alpha_palette",
    "generate_palette",
    "lightness_ramp",
    "ramp_from_dict",
    "ramp_to_dict",
]
