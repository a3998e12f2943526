# colorspace.py – hex ⇄ sRGB ⇄ linear RGB ⇄ XYZ (D65) ⇄ OKLab ⇄ OKLCh
#   - sRGB companding with gamma 2.4 and IEC 61966-2-1 thresholds
#   - sRGB D65 primaries for linear RGB ⇄ XYZ
#   - Ottosson's OKLab matrices (MIT) for XYZ ⇄ LMS ⇄ OKLab

from __future__ import annotations

import math
import string
from typing import NamedTuple

import numpy as np

from .errors import ParseError

Hex = str


class Rgb(NamedTuple):
    r: float
    g: float
    b: float


class Rgb255(NamedTuple):
    r: int
    g: int
    b: int


class Oklab(NamedTuple):
    L: float
    a: float
    b: float


class Oklch(NamedTuple):
    L: float
    C: float
    h: float


# --- constants ---------------------------------------------------------------
SRGB_THRESHOLD = 0.04045  # encoded side
LINEAR_THRESHOLD = 0.0031308  # linear side
SRGB_EXPONENT = 2.4
SRGB_A = 0.055

# --- 1) linear sRGB ⇄ XYZ (D65) ---------------------------------------------
# The inverse is the separately published rounding, not np.linalg.inv of the
# forward matrix; a round trip drifts by ~1e-7 per channel.
_RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
_XYZ_TO_RGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ],
    dtype=np.float64,
)

# --- 2) XYZ ⇄ LMS ⇄ OKLab ----------------------------------------------------
_XYZ_TO_LMS = np.array(
    [
        [0.8189330101, 0.3618667424, -0.1288597137],
        [0.0329845436, 0.9293118715, 0.0361456387],
        [0.0482003018, 0.2643662691, 0.6338517070],
    ],
    dtype=np.float64,
)
_LMS_TO_OKLAB = np.array(
    [
        [0.2104542553, 0.7936177850, -0.0040720468],
        [1.9779984951, -2.4285922050, 0.4505937099],
        [0.0259040371, 0.7827717662, -0.8086757660],
    ],
    dtype=np.float64,
)
_OKLAB_TO_LMS = np.array(
    [
        [1.0, 0.3963377774, 0.2158037573],
        [1.0, -0.1055613458, -0.0638541728],
        [1.0, -0.0894841775, -1.2914855480],
    ],
    dtype=np.float64,
)
_LMS_TO_XYZ = np.array(
    [
        [1.2270138511, -0.5577999807, 0.2812561490],
        [-0.0405801784, 1.1122568696, -0.0716766787],
        [-0.0763812845, -0.4214819784, 1.5861632204],
    ],
    dtype=np.float64,
)


# -----------------------------------------------------------------------------
# Hex helpers
# -----------------------------------------------------------------------------


def parse_hex(s: str) -> Hex:
    """Normalize to '#rrggbb'; accept 3- or 6-digit hex, '#' optional."""
    if not isinstance(s, str):
        raise ParseError(f"hex color must be a string, got {type(s).__name__}")
    raw = s.strip().removeprefix("#")
    if not raw or not all(c in string.hexdigits for c in raw):
        raise ParseError(f"invalid hex color: {s!r}")
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    if len(raw) != 6:
        raise ParseError(f"hex color must have 3 or 6 digits: {s!r}")
    return "#" + raw.lower()


def hex_to_rgb(hex_str: str) -> Rgb:
    """Hex → sRGB channels in [0, 1]."""
    raw = parse_hex(hex_str)[1:]
    r, g, b = (int(raw[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    return Rgb(r, g, b)


def hex_to_rgb255(hex_str: str) -> Rgb255:
    raw = parse_hex(hex_str)[1:]
    return Rgb255(*(int(raw[i : i + 2], 16) for i in (0, 2, 4)))


def _to_u8(v: float) -> int:
    # round half up, clamped; matches what a browser does with Math.round
    return int(math.floor(min(1.0, max(0.0, float(v))) * 255.0 + 0.5))


def rgb_to_hex(r: float, g: float, b: float) -> Hex:
    """sRGB in [0, 1] → '#rrggbb'. Out-of-range channels are clamped."""
    return "#{:02x}{:02x}{:02x}".format(_to_u8(r), _to_u8(g), _to_u8(b))


def rgb255_to_hex(r: int, g: int, b: int) -> Hex:
    u8 = [max(0, min(255, int(round(c)))) for c in (r, g, b)]
    return "#{:02x}{:02x}{:02x}".format(*u8)


# -----------------------------------------------------------------------------
# sRGB ⇄ linear (IEC 61966-2-1)
# -----------------------------------------------------------------------------


def srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    v = np.asarray(rgb, dtype=np.float64)
    m = v > SRGB_THRESHOLD
    out = np.empty_like(v)
    out[m] = ((v[m] + SRGB_A) / (1 + SRGB_A)) ** SRGB_EXPONENT
    out[~m] = v[~m] / 12.92
    return out


def linear_to_srgb(rgb_lin: np.ndarray) -> np.ndarray:
    """Encode linear light. Not clamped: values outside [0, 1] survive so the
    gamut test can see them; negatives stay on the linear segment."""
    v = np.asarray(rgb_lin, dtype=np.float64)
    m = v > LINEAR_THRESHOLD
    out = np.empty_like(v)
    out[m] = (1 + SRGB_A) * np.power(v[m], 1 / SRGB_EXPONENT) - SRGB_A
    out[~m] = v[~m] * 12.92
    return out


# -----------------------------------------------------------------------------
# linear RGB ⇄ XYZ ⇄ OKLab ⇄ OKLCh
# -----------------------------------------------------------------------------


def linear_to_xyz(rgb_lin: np.ndarray) -> np.ndarray:
    return _RGB_TO_XYZ @ np.asarray(rgb_lin, dtype=np.float64)


def xyz_to_linear(xyz: np.ndarray) -> np.ndarray:
    return _XYZ_TO_RGB @ np.asarray(xyz, dtype=np.float64)


def xyz_to_oklab(xyz: np.ndarray) -> Oklab:
    lms = _XYZ_TO_LMS @ np.asarray(xyz, dtype=np.float64)
    L, a, b = _LMS_TO_OKLAB @ np.cbrt(lms)
    return Oklab(float(L), float(a), float(b))


def oklab_to_xyz(L: float, a: float, b: float) -> np.ndarray:
    lms_cbrt = _OKLAB_TO_LMS @ np.array([L, a, b], dtype=np.float64)
    return _LMS_TO_XYZ @ (lms_cbrt**3)


def oklab_to_oklch(L: float, a: float, b: float) -> Oklch:
    C = math.hypot(a, b)
    h = math.degrees(math.atan2(b, a)) % 360.0
    # tiny negative angles wrap to exactly 360.0 in float
    return Oklch(float(L), C, 0.0 if h >= 360.0 else h)


def oklch_to_oklab(L: float, C: float, h: float) -> Oklab:
    h_rad = math.radians(h)
    return Oklab(L, C * math.cos(h_rad), C * math.sin(h_rad))


# -----------------------------------------------------------------------------
# Full chains
# -----------------------------------------------------------------------------


def srgb_to_oklab(rgb: np.ndarray) -> Oklab:
    return xyz_to_oklab(linear_to_xyz(srgb_to_linear(rgb)))


def oklab_to_srgb(L: float, a: float, b: float) -> np.ndarray:
    return linear_to_srgb(xyz_to_linear(oklab_to_xyz(L, a, b)))


def hex_to_oklch(hex_str: str) -> Oklch:
    return oklab_to_oklch(*srgb_to_oklab(np.array(hex_to_rgb(hex_str))))


def oklch_to_srgb(L: float, C: float, h: float) -> np.ndarray:
    """OKLCh → encoded sRGB floats, unclamped."""
    return oklab_to_srgb(*oklch_to_oklab(L, C, h))


def oklch_to_hex(L: float, C: float, h: float) -> Hex:
    return rgb_to_hex(*oklch_to_srgb(L, C, h))


def oklch_to_rgb(L: float, C: float, h: float) -> Rgb255:
    return Rgb255(*(_to_u8(c) for c in oklch_to_srgb(L, C, h)))


__all__ = [
    "Hex",
    "Oklab",
    "Oklch",
    "Rgb",
    "Rgb255",
    "hex_to_oklch",
    "hex_to_rgb",
    "hex_to_rgb255",
    "linear_to_srgb",
    "linear_to_xyz",
    "oklab_to_oklch",
    "oklab_to_srgb",
    "oklab_to_xyz",
    "oklch_to_hex",
    "oklch_to_oklab",
    "oklch_to_rgb",
    "oklch_to_srgb",
    "parse_hex",
    "rgb255_to_hex",
    "rgb_to_hex",
    "srgb_to_linear",
    "srgb_to_oklab",
    "xyz_to_linear",
    "xyz_to_oklab",
]
