"""
Figma Variables JSON import/export.

Export writes one collection: every distinct mode name becomes a collection
mode and every swatch becomes a `<palette>/<step>` color variable whose value
per mode is `{r, g, b, a}` rounded to three decimals.

Import is lenient per value: a missing or malformed color degrades to
mid-gray instead of aborting, so partial files still load. Only a document
that is not JSON or lacks `variables`/`modes` is rejected with ParseError.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .colorspace import hex_to_rgb, rgb_to_hex
from .errors import ParseError
from .palette import ColorRecord
from .store import DEFAULT_COLLECTION_NAME, Mode, Palette, default_step_name, new_id

log = logging.getLogger(__name__)

FALLBACK_HEX = "#808080"
IMPORTED_COLLECTION_NAME = "Imported Collection"
DEFAULT_GROUP = "Default"
IMPORT_CURVE = 0.3


@dataclass(frozen=True)
class ImportResult:
    palettes: Tuple[Palette, ...]
    collection_name: str


def mode_id_for(name: str) -> str:
    return re.sub(r"\s+", "-", name.lower())


def _round3(x: float) -> float:
    return round(x * 1000) / 1000


def export_figma_json(
    palettes: Sequence[Palette], collection_name: str = DEFAULT_COLLECTION_NAME
) -> str:
    mode_names: Dict[str, None] = {}  # ordered set
    for p in palettes:
        for m in p.modes:
            mode_names.setdefault(m.name)
    modes = [{"name": name, "modeId": mode_id_for(name)} for name in mode_names]

    variables: List[Dict[str, Any]] = []
    for p in palettes:
        if not p.modes:
            continue
        for index in range(len(p.modes[0].colors)):
            values: Dict[str, Dict[str, float]] = {}
            for mode in modes:
                pm = next((m for m in p.modes if m.name == mode["name"]), None)
                if pm is None or index >= len(pm.colors):
                    continue
                c = pm.colors[index]
                r, g, b = hex_to_rgb(c.hex)
                values[mode["modeId"]] = {
                    "r": _round3(r),
                    "g": _round3(g),
                    "b": _round3(b),
                    "a": _round3(c.alpha),
                }
            variables.append(
                {"name": f"{p.name}/{p.step_name(index)}", "type": "color", "values": values}
            )

    collection = {"name": collection_name, "modes": modes, "variables": variables}
    return json.dumps(collection, indent=2)


def _fallback() -> ColorRecord:
    return ColorRecord.from_hex(FALLBACK_HEX)


def _record_from_value(value: Any) -> ColorRecord:
    if not isinstance(value, Mapping):
        return _fallback()
    try:
        r, g, b = (float(value.get(k) or 0.0) for k in ("r", "g", "b"))
        a = value.get("a")
        alpha = 1.0 if a is None else float(a)
    except (TypeError, ValueError):
        log.debug("malformed color value %r, using fallback", value)
        return _fallback()
    return ColorRecord.from_hex(rgb_to_hex(r, g, b), alpha=max(0.0, min(1.0, alpha)))


def _step_label(variable: Mapping[str, Any]) -> str:
    parts = str(variable.get("name", "")).split("/", 1)
    return parts[1].strip() if len(parts) > 1 else ""


def _step_of(variable: Mapping[str, Any]) -> int:
    tail = str(variable.get("name", "")).split("/")[-1]
    m = re.match(r"\s*(\d+)", tail)
    return int(m.group(1)) if m else 0


def _group_variables(variables: Iterable[Any]) -> Dict[str, List[Mapping[str, Any]]]:
    groups: Dict[str, List[Mapping[str, Any]]] = {}
    for v in variables:
        if not isinstance(v, Mapping):
            continue
        parts = str(v.get("name", "")).split("/")
        group = parts[0] if len(parts) > 1 else DEFAULT_GROUP
        groups.setdefault(group, []).append(v)
    for vs in groups.values():
        vs.sort(key=_step_of)
    return groups


def import_figma_json(text: str) -> ImportResult:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ParseError(f"not a JSON document: {exc}") from exc
    if not isinstance(data, Mapping) or "variables" not in data or "modes" not in data:
        raise ParseError("Invalid Figma JSON format: missing variables or modes")
    if not isinstance(data["variables"], list) or not isinstance(data["modes"], list):
        raise ParseError("Invalid Figma JSON format: variables and modes must be lists")

    doc_modes = [m for m in data["modes"] if isinstance(m, Mapping)]
    palettes: List[Palette] = []
    for name, variables in _group_variables(data["variables"]).items():
        modes: List[Mode] = []
        for dm in doc_modes:
            colors = []
            for v in variables:
                values = v.get("values")
                if not isinstance(values, Mapping):
                    values = {}
                value = values.get(str(dm.get("modeId", "")))
                if value is None and values:
                    value = next(iter(values.values()))
                colors.append(_record_from_value(value))
            modes.append(Mode(new_id(), str(dm.get("name", "")), tuple(colors)))

        first = modes[0].colors if modes else ()
        mid = len(first) // 2
        base = first[mid].hex if first else FALLBACK_HEX
        # one hex with varying alpha is what an exported alpha ramp looks like
        is_alpha = len({c.hex for c in first}) == 1 and len({c.alpha for c in first}) > 1
        if is_alpha:
            mid = len(first) - 1
        palettes.append(
            Palette(
                id=new_id(),
                name=name,
                kind="alpha" if is_alpha else "lightness",
                base_color=base,
                color_count=len(variables),
                lightness_curve=IMPORT_CURVE,
                base_color_index=mid,
                modes=tuple(modes),
                active_mode_id=modes[0].id if modes else None,
                step_names=tuple(
                    _step_label(v) or default_step_name(i) for i, v in enumerate(variables)
                ),
            )
        )

    log.info("imported %d palettes", len(palettes))
    return ImportResult(tuple(palettes), str(data.get("name") or IMPORTED_COLLECTION_NAME))


__all__ = ["FALLBACK_HEX", "ImportResult", "export_figma_json", "import_figma_json"]
