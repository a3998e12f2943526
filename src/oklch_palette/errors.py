from __future__ import annotations


class PaletteError(Exception):
    """Base class for every error raised by oklch_palette."""


class ParseError(PaletteError, ValueError):
    """Malformed hex color or import document."""


class RangeError(PaletteError, ValueError):
    """Ramp length or curve outside its documented domain."""


class NumericError(PaletteError, ArithmeticError):
    """A lightness computation produced NaN or infinity."""


__all__ = ["PaletteError", "ParseError", "RangeError", "NumericError"]
