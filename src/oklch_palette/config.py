from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from flask import Flask

ENV_PREFIX = "OKLCH_PALETTE"

DEFAULTS: Dict[str, Any] = {
    "PALETTE_STORE_PATH": None,  # None keeps palettes in memory only
    "DEFAULT_BASE_COLOR": "#6366f1",
    "DEFAULT_COLOR_COUNT": 11,
    "DEFAULT_LIGHTNESS_CURVE": 0.3,
    "LOG_LEVEL": "INFO",
}


def load_config(app: Flask, overrides: Optional[Mapping[str, Any]] = None) -> None:
    """Defaults, then OKLCH_PALETTE_* environment variables, then `overrides`."""
    app.config.from_mapping(DEFAULTS)
    # values are parsed as JSON where possible, so OKLCH_PALETTE_DEFAULT_COLOR_COUNT=9 is an int
    app.config.from_prefixed_env(ENV_PREFIX)
    if overrides:
        app.config.from_mapping(overrides)


__all__ = ["DEFAULTS", "ENV_PREFIX", "load_config"]
