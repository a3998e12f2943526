"""
Palette store.

Holds one immutable StoreState snapshot. Every mutation builds a new
snapshot and, while still holding the store lock, swaps it in, calls
subscribers synchronously and persists it to a JSON file when a path is
configured. Subscribers therefore see snapshots in commit order. A failing
subscriber is logged and skipped. The file is replaced atomically.
The color engine never sees this state.

Count and curve are clamped here before the engine is called; unknown
palette or mode ids are a no-op.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple

import numpy as np

from .colorspace import oklch_to_hex, parse_hex
from .gamut import gamut_map_oklch
from .lightness import clamp_count, clamp_curve
from .naming import color_name, random_color, unique_name
from .palette import (
    AlphaRamp,
    ColorRecord,
    LightnessRamp,
    Ramp,
    RampKind,
    find_base_color_index,
    generate_alpha_palette,
    generate_palette,
)

log = logging.getLogger(__name__)

Theme = Literal["system", "light", "dark"]
Preview = Literal["light", "dark"]
THEMES = ("system", "light", "dark")
PREVIEWS = ("light", "dark")

DEFAULT_LIGHT_BG = "#ffffff"
DEFAULT_DARK_BG = "#1a1a1a"
DEFAULT_COLLECTION_NAME = "Color Palette"
LIGHT_MODE_NAME = "Light"
DARK_MODE_NAME = "Dark"
NEW_MODE_NAME = "New mode"


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def default_step_name(index: int) -> str:
    return str((index + 1) * 100)


def default_step_names(count: int) -> Tuple[str, ...]:
    return tuple(default_step_name(i) for i in range(count))


@dataclass(frozen=True)
class Mode:
    id: str
    name: str
    colors: Tuple[ColorRecord, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "colors": [c.to_dict() for c in self.colors]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Mode":
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data["name"]),
            colors=tuple(ColorRecord.from_dict(c) for c in data["colors"]),
        )


@dataclass(frozen=True)
class Palette:
    id: str
    name: str
    kind: RampKind
    base_color: str
    color_count: int
    lightness_curve: float
    base_color_index: int
    modes: Tuple[Mode, ...]
    active_mode_id: Optional[str] = None
    light_bg: str = DEFAULT_LIGHT_BG
    dark_bg: str = DEFAULT_DARK_BG
    step_names: Tuple[str, ...] = ()

    def step_name(self, index: int) -> str:
        """Display name of step `index`; blank or missing names fall back to (index + 1) * 100."""
        if index < len(self.step_names) and self.step_names[index]:
            return self.step_names[index]
        return default_step_name(index)

    def mode(self, mode_id: Optional[str] = None) -> Optional[Mode]:
        wanted = mode_id or self.active_mode_id
        for m in self.modes:
            if m.id == wanted:
                return m
        return self.modes[0] if self.modes and mode_id is None else None

    def ramp(self, mode_id: Optional[str] = None) -> Ramp:
        m = self.mode(mode_id)
        colors = m.colors if m is not None else ()
        if self.kind == "lightness":
            return LightnessRamp(colors, self.base_color_index)
        if self.kind == "alpha":
            return AlphaRamp(colors, self.base_color_index)
        raise ValueError(f"unknown palette kind {self.kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "base_color": self.base_color,
            "color_count": self.color_count,
            "lightness_curve": self.lightness_curve,
            "base_color_index": self.base_color_index,
            "modes": [m.to_dict() for m in self.modes],
            "active_mode_id": self.active_mode_id,
            "light_bg": self.light_bg,
            "dark_bg": self.dark_bg,
            "step_names": [self.step_name(i) for i in range(self.color_count)],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Palette":
        modes = tuple(Mode.from_dict(m) for m in data["modes"])
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data["name"]),
            kind=data.get("kind", "lightness"),
            base_color=parse_hex(data["base_color"]),
            color_count=int(data["color_count"]),
            lightness_curve=float(data.get("lightness_curve", 0.3)),
            base_color_index=int(data.get("base_color_index", 0)),
            modes=modes,
            active_mode_id=data.get("active_mode_id") or (modes[0].id if modes else None),
            light_bg=parse_hex(data.get("light_bg", DEFAULT_LIGHT_BG)),
            dark_bg=parse_hex(data.get("dark_bg", DEFAULT_DARK_BG)),
            step_names=tuple(str(s) for s in data.get("step_names") or ()),
        )


@dataclass(frozen=True)
class StoreState:
    palettes: Tuple[Palette, ...] = ()
    selected_palette_id: Optional[str] = None
    theme: Theme = "system"
    collection_name: str = DEFAULT_COLLECTION_NAME
    background_preview: Preview = "light"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "palettes": [p.to_dict() for p in self.palettes],
            "selected_palette_id": self.selected_palette_id,
            "theme": self.theme,
            "collection_name": self.collection_name,
            "background_preview": self.background_preview,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoreState":
        defaults = cls()
        return cls(
            palettes=tuple(Palette.from_dict(p) for p in data.get("palettes", ())),
            selected_palette_id=data.get("selected_palette_id"),
            theme=data.get("theme", defaults.theme),
            collection_name=data.get("collection_name", defaults.collection_name),
            background_preview=data.get("background_preview", defaults.background_preview),
        )


Listener = Callable[[StoreState], None]


def _ramp_colors(
    kind: RampKind, base: str, count: int, curve: float
) -> Tuple[List[ColorRecord], List[ColorRecord], int]:
    """(first-mode colors, other-mode colors, base index) for a palette."""
    if kind == "alpha":
        colors = generate_alpha_palette(base, count)
        return colors, colors, len(colors) - 1
    light = generate_palette(base, count, curve)
    dark = generate_palette(base, count, -abs(curve))
    return light, dark, find_base_color_index(light, base)


@dataclass
class PaletteStore:
    storage_path: Optional[Path] = None
    default_count: int = 11
    default_curve: float = 0.3
    _state: StoreState = field(default_factory=StoreState, init=False, repr=False)
    _listeners: List[Listener] = field(default_factory=list, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.storage_path is not None:
            self.storage_path = Path(self.storage_path)

    # ---- snapshot & subscribers ----

    @property
    def state(self) -> StoreState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, fn: Callable[[StoreState], StoreState]) -> StoreState:
        # one reentrant lock covers swap, notify and persist
        with self._lock:
            new = fn(self._state)
            self._state = new
            for listener in list(self._listeners):
                try:
                    listener(new)
                except Exception:
                    log.exception("palette store listener %r failed", listener)
            self.save()
        return new

    def _map_palette(self, palette_id: str, fn: Callable[[Palette], Palette]) -> None:
        def apply(s: StoreState) -> StoreState:
            return replace(
                s, palettes=tuple(fn(p) if p.id == palette_id else p for p in s.palettes)
            )

        self._commit(apply)

    def _map_mode(self, palette_id: str, mode_id: str, fn: Callable[[Mode], Mode]) -> None:
        self._map_palette(
            palette_id,
            lambda p: replace(p, modes=tuple(fn(m) if m.id == mode_id else m for m in p.modes)),
        )

    def _map_color(
        self, palette_id: str, mode_id: str, index: int, fn: Callable[[ColorRecord], ColorRecord]
    ) -> None:
        self._map_mode(
            palette_id,
            mode_id,
            lambda m: replace(
                m, colors=tuple(fn(c) if i == index else c for i, c in enumerate(m.colors))
            ),
        )

    # ---- queries ----

    def get_palette(self, palette_id: str) -> Optional[Palette]:
        return next((p for p in self._state.palettes if p.id == palette_id), None)

    def selected_palette(self) -> Optional[Palette]:
        sel = self._state.selected_palette_id
        return self.get_palette(sel) if sel is not None else None

    # ---- palettes ----

    def _new_palette(
        self, kind: RampKind, base_hex: Optional[str], rng: Optional[np.random.Generator]
    ) -> str:
        hex_c = parse_hex(base_hex) if base_hex else random_color(rng)
        count, curve = self.default_count, self.default_curve
        first, other, base_index = _ramp_colors(kind, hex_c, count, curve)
        if kind == "alpha":
            modes = (Mode(new_id(), LIGHT_MODE_NAME, tuple(first)),)
        else:
            modes = (
                Mode(new_id(), LIGHT_MODE_NAME, tuple(first)),
                Mode(new_id(), DARK_MODE_NAME, tuple(other)),
            )
        pid = new_id()

        def apply(s: StoreState) -> StoreState:
            suffix = " alpha" if kind == "alpha" else ""
            name = unique_name(color_name(hex_c) + suffix, (p.name for p in s.palettes))
            palette = Palette(
                id=pid,
                name=name,
                kind=kind,
                base_color=hex_c,
                color_count=count,
                lightness_curve=curve,
                base_color_index=base_index,
                modes=modes,
                active_mode_id=modes[0].id,
                step_names=default_step_names(count),
            )
            return replace(s, palettes=s.palettes + (palette,), selected_palette_id=pid)

        self._commit(apply)
        log.debug("created %s palette %s from %s", kind, pid, hex_c)
        return pid

    def create_palette(
        self, base_hex: Optional[str] = None, rng: Optional[np.random.Generator] = None
    ) -> str:
        return self._new_palette("lightness", base_hex, rng)

    def create_alpha_palette(
        self, base_hex: Optional[str] = None, rng: Optional[np.random.Generator] = None
    ) -> str:
        return self._new_palette("alpha", base_hex, rng)

    def select_palette(self, palette_id: Optional[str]) -> None:
        self._commit(lambda s: replace(s, selected_palette_id=palette_id))

    def delete_palette(self, palette_id: str) -> None:
        def apply(s: StoreState) -> StoreState:
            palettes = tuple(p for p in s.palettes if p.id != palette_id)
            selected = s.selected_palette_id
            if selected == palette_id:
                selected = palettes[0].id if palettes else None
            return replace(s, palettes=palettes, selected_palette_id=selected)

        self._commit(apply)

    def update_palette_name(self, palette_id: str, name: str) -> None:
        self._map_palette(palette_id, lambda p: replace(p, name=name))

    def _regenerate(self, p: Palette, base: str, count: int, curve: float) -> Palette:
        first, other, base_index = _ramp_colors(p.kind, base, count, curve)
        modes = tuple(
            replace(m, colors=tuple(first if i == 0 else other)) for i, m in enumerate(p.modes)
        )
        return replace(
            p,
            base_color=base,
            color_count=count,
            lightness_curve=curve,
            base_color_index=base_index,
            modes=modes,
            # custom step names survive recoloring, not a new step count
            step_names=p.step_names if count == p.color_count else default_step_names(count),
        )

    def update_palette_base_color(self, palette_id: str, hex_str: str) -> None:
        hex_c = parse_hex(hex_str)
        self._map_palette(
            palette_id, lambda p: self._regenerate(p, hex_c, p.color_count, p.lightness_curve)
        )

    def update_palette_color_count(self, palette_id: str, count: int) -> None:
        n = clamp_count(count)
        self._map_palette(
            palette_id, lambda p: self._regenerate(p, p.base_color, n, p.lightness_curve)
        )

    def update_lightness_curve(self, palette_id: str, curve: float) -> None:
        c = clamp_curve(curve)
        self._map_palette(
            palette_id, lambda p: self._regenerate(p, p.base_color, p.color_count, c)
        )

    def update_light_bg(self, palette_id: str, hex_str: str) -> None:
        hex_c = parse_hex(hex_str)
        self._map_palette(palette_id, lambda p: replace(p, light_bg=hex_c))

    def update_dark_bg(self, palette_id: str, hex_str: str) -> None:
        hex_c = parse_hex(hex_str)
        self._map_palette(palette_id, lambda p: replace(p, dark_bg=hex_c))

    # ---- step names ----

    def update_step_name(self, palette_id: str, index: int, name: str) -> None:
        """Rename one step; a blank name restores the default. Out-of-range index is a no-op."""

        def rename(p: Palette) -> Palette:
            if not 0 <= index < p.color_count:
                return p
            names = [p.step_name(i) for i in range(p.color_count)]
            names[index] = name.strip() or default_step_name(index)
            return replace(p, step_names=tuple(names))

        self._map_palette(palette_id, rename)

    def update_step_names(self, palette_id: str, names: Sequence[str]) -> None:
        given = [str(n).strip() for n in names]

        def rename(p: Palette) -> Palette:
            full = tuple(
                (given[i] if i < len(given) else "") or default_step_name(i)
                for i in range(p.color_count)
            )
            return replace(p, step_names=full)

        self._map_palette(palette_id, rename)

    # ---- modes ----

    def set_active_mode(self, palette_id: str, mode_id: str) -> None:
        self._map_palette(palette_id, lambda p: replace(p, active_mode_id=mode_id))

    def add_mode(self, palette_id: str, name: str = NEW_MODE_NAME) -> Optional[str]:
        mid = new_id()
        p = self.get_palette(palette_id)
        if p is None:
            return None
        first, _, _ = _ramp_colors(p.kind, p.base_color, p.color_count, p.lightness_curve)

        def add(p: Palette) -> Palette:
            mode = Mode(mid, unique_name(name, (m.name for m in p.modes)), tuple(first))
            return replace(p, modes=p.modes + (mode,), active_mode_id=mid)

        self._map_palette(palette_id, add)
        return mid

    def delete_mode(self, palette_id: str, mode_id: str) -> None:
        def drop(p: Palette) -> Palette:
            if len(p.modes) <= 1:
                return p
            modes = tuple(m for m in p.modes if m.id != mode_id)
            active = modes[0].id if p.active_mode_id == mode_id else p.active_mode_id
            return replace(p, modes=modes, active_mode_id=active)

        self._map_palette(palette_id, drop)

    def update_mode_name(self, palette_id: str, mode_id: str, name: str) -> None:
        self._map_mode(palette_id, mode_id, lambda m: replace(m, name=name))

    # ---- single swatches ----

    def update_mode_color(self, palette_id: str, mode_id: str, index: int, hex_str: str) -> None:
        edited = ColorRecord.from_hex(hex_str)
        self._map_color(palette_id, mode_id, index, lambda c: replace(edited, alpha=c.alpha))

    def update_color_alpha(self, palette_id: str, mode_id: str, index: int, alpha: float) -> None:
        a = max(0.0, min(1.0, float(alpha)))
        self._map_color(palette_id, mode_id, index, lambda c: replace(c, alpha=a))

    def update_color_lightness(
        self, palette_id: str, mode_id: str, index: int, lightness: float
    ) -> None:
        L = max(0.0, min(1.0, float(lightness)))

        def relight(c: ColorRecord) -> ColorRecord:
            m = gamut_map_oklch(L, c.C, c.h)
            return replace(c, L=m.L, C=m.C, hex=oklch_to_hex(*m))

        self._map_color(palette_id, mode_id, index, relight)

    # ---- collection settings ----

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"theme must be one of {THEMES}, got {theme!r}")
        self._commit(lambda s: replace(s, theme=theme))

    def set_collection_name(self, name: str) -> None:
        self._commit(lambda s: replace(s, collection_name=name))

    def set_background_preview(self, mode: str) -> None:
        if mode not in PREVIEWS:
            raise ValueError(f"background preview must be one of {PREVIEWS}, got {mode!r}")
        self._commit(lambda s: replace(s, background_preview=mode))

    # ---- bulk ----

    def import_palettes(self, palettes: Iterable[Palette]) -> None:
        incoming = tuple(palettes)

        def apply(s: StoreState) -> StoreState:
            selected = incoming[0].id if incoming else s.selected_palette_id
            return replace(s, palettes=s.palettes + incoming, selected_palette_id=selected)

        self._commit(apply)

    def replace_all_palettes(self, palettes: Iterable[Palette]) -> None:
        incoming = tuple(palettes)
        self._commit(
            lambda s: replace(
                s, palettes=incoming, selected_palette_id=incoming[0].id if incoming else None
            )
        )

    # ---- persistence ----

    def save(self) -> None:
        if self.storage_path is None:
            return
        with self._lock:
            self._write()

    def _write(self) -> None:
        try:
            self.storage_path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.storage_path.with_name(self.storage_path.name + ".tmp")
            tmp.write_text(json.dumps(self._state.to_dict()), encoding="utf-8")
            os.replace(tmp, self.storage_path)
        except OSError:
            log.warning("could not persist palettes to %s", self.storage_path, exc_info=True)
        else:
            log.debug("persisted %d palettes", len(self._state.palettes))

    def load(self) -> bool:
        """Replace the snapshot with the persisted one. False when nothing usable exists."""
        if self.storage_path is None or not self.storage_path.exists():
            return False
        try:
            data = json.loads(self.storage_path.read_text(encoding="utf-8"))
            loaded = StoreState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError):
            log.warning("ignoring unreadable palette file %s", self.storage_path, exc_info=True)
            return False
        self._commit(lambda s: loaded)
        return True


__all__ = [
    "Mode",
    "Palette",
    "PaletteStore",
    "StoreState",
    "default_step_names",
    "new_id",
]
