"""OKLCh palette engine: conversions, gamut mapping, lightness ramps, WCAG contrast."""

from .colorspace import hex_to_oklch, oklch_to_hex, oklch_to_rgb, parse_hex
from .contrast import contrast_level, contrast_ratio, relative_luminance
from .errors import NumericError, PaletteError, ParseError, RangeError
from .gamut import gamut_map_oklch, is_in_gamut
from .lightness import generate_alpha_values, generate_lightness_values
from .naming import color_name
from .palette import (
    AlphaRamp,
    ColorRecord,
    LightnessRamp,
    alpha_ramp,
    find_base_color_index,
    generate_alpha_palette,
    generate_palette,
    lightness_ramp,
)

__all__ = [
    "AlphaRamp",
    "ColorRecord",
    "LightnessRamp",
    "NumericError",
    "PaletteError",
    "ParseError",
    "RangeError",
    "alpha_ramp",
    "color_name",
    "contrast_level",
    "contrast_ratio",
    "find_base_color_index",
    "gamut_map_oklch",
    "generate_alpha_palette",
    "generate_alpha_values",
    "generate_lightness_values",
    "generate_palette",
    "hex_to_oklch",
    "is_in_gamut",
    "lightness_ramp",
    "oklch_to_hex",
    "oklch_to_rgb",
    "parse_hex",
    "relative_luminance",
]
