from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from flask import Flask, Response, jsonify, render_template, request

from coloraide import Color as CAColor

from .colorspace import parse_hex
from .config import load_config
from .contrast import contrast_level, contrast_ratio, contrast_report
from .errors import PaletteError, ParseError, RangeError
from .figma import export_figma_json, import_figma_json
from .lightness import validate_count, validate_curve
from .naming import color_name
from .palette import alpha_ramp, lightness_ramp, ramp_to_dict
from .store import Palette, PaletteStore

log = logging.getLogger(__name__)

FIT_HEX = {"method": "raytrace"}  # consistent gamut-fit for hex output
STORE_KEY = "palette_store"


def normalize_color(s: Any) -> str:
    """'#rrggbb' from a hex string or, failing that, any CSS color ColorAide parses."""
    if not isinstance(s, str):
        raise ParseError(f"color must be a string, got {s!r}")
    try:
        return parse_hex(s)
    except ParseError:
        pass
    try:
        col = CAColor(s)
    except ValueError as exc:
        raise ParseError(f"invalid color: {s!r}") from exc
    return parse_hex(col.convert("srgb").to_string(hex=True, alpha=False, fit=FIT_HEX))


def parse_count(val: Any, default: int) -> int:
    if val is None or val == "":
        return validate_count(default)
    try:
        n = int(val)
    except (TypeError, ValueError):
        raise RangeError(f"count must be an integer, got {val!r}") from None
    return validate_count(n)


def parse_curve(val: Any, default: float) -> float:
    return validate_curve(default if val is None or val == "" else val)


def parse_step_names(val: Any) -> List[str]:
    if not isinstance(val, list) or not all(isinstance(s, str) for s in val):
        raise ParseError("step_names must be a list of strings")
    return val


def get_store(app: Flask) -> PaletteStore:
    return app.extensions[STORE_KEY]


def palette_json(p: Palette) -> Dict[str, Any]:
    """Palette dict plus the contrast table of its active mode."""
    data = p.to_dict()
    ramp = p.ramp()
    data["ramp"] = ramp_to_dict(ramp)
    data["contrast"] = [contrast_report(c.hex, p.light_bg, p.dark_bg) for c in ramp.colors]
    data["color_name"] = color_name(p.base_color)
    return data


# ----------------------------- Flask app ----------------------------------


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    app = Flask(__name__, template_folder="templates")
    load_config(app, config)
    logging.basicConfig(
        level=app.config["LOG_LEVEL"], format="%(levelname)s: %(message)s"
    )

    store = PaletteStore(
        storage_path=app.config["PALETTE_STORE_PATH"],
        default_count=int(app.config["DEFAULT_COLOR_COUNT"]),
        default_curve=float(app.config["DEFAULT_LIGHTNESS_CURVE"]),
    )
    if not store.load() or not store.state.palettes:
        store.create_palette(normalize_color(app.config["DEFAULT_BASE_COLOR"]))
    app.extensions[STORE_KEY] = store

    def state_json() -> Dict[str, Any]:
        data = store.state.to_dict()
        data["palettes"] = [palette_json(p) for p in store.state.palettes]
        return data

    def not_found(what: str) -> tuple[Response, int]:
        return jsonify({"error": f"unknown {what}"}), 404

    @app.errorhandler(PaletteError)
    def palette_error(exc: PaletteError):
        return jsonify({"error": str(exc)}), 400

    @app.route("/")
    def index():
        return render_template("index.html")

    # ---- stateless engine endpoints ----

    @app.route("/palette")
    def palette():
        base = normalize_color(request.args.get("base", app.config["DEFAULT_BASE_COLOR"]))
        n = parse_count(request.args.get("n"), app.config["DEFAULT_COLOR_COUNT"])
        curve = parse_curve(request.args.get("curve"), app.config["DEFAULT_LIGHTNESS_CURVE"])
        try:
            ramp = lightness_ramp(base, n, curve)
        except Exception as exc:
            log.exception("Palette generation failed")
            return jsonify({"error": str(exc)}), 500
        return jsonify(ramp_to_dict(ramp))

    @app.route("/alpha")
    def alpha():
        base = normalize_color(request.args.get("base", app.config["DEFAULT_BASE_COLOR"]))
        n = parse_count(request.args.get("n"), app.config["DEFAULT_COLOR_COUNT"])
        return jsonify(ramp_to_dict(alpha_ramp(base, n)))

    @app.route("/contrast")
    def contrast():
        a = normalize_color(request.args.get("a", "000000"))
        b = normalize_color(request.args.get("b", "ffffff"))
        ratio = contrast_ratio(a, b)
        return jsonify({"a": a, "b": b, "ratio": ratio, "level": contrast_level(ratio)})

    # ---- store ----

    @app.get("/api/state")
    def get_state():
        return jsonify(state_json())

    @app.post("/api/palettes")
    def create_palette():
        body = request.get_json(silent=True) or {}
        base = body.get("base_color")
        base = normalize_color(base) if base else None
        if body.get("kind") == "alpha":
            pid = store.create_alpha_palette(base)
        else:
            pid = store.create_palette(base)
        return jsonify(palette_json(store.get_palette(pid))), 201

    @app.patch("/api/palettes/<palette_id>")
    def update_palette(palette_id: str):
        p = store.get_palette(palette_id)
        if p is None:
            return not_found("palette")
        body = request.get_json(silent=True) or {}

        # validate every field before the first mutation
        changes: Dict[str, Any] = {}
        if "name" in body:
            changes["name"] = str(body["name"])
        if "base_color" in body:
            changes["base_color"] = normalize_color(body["base_color"])
        if "color_count" in body:
            changes["color_count"] = parse_count(body["color_count"], p.color_count)
        if "lightness_curve" in body:
            changes["lightness_curve"] = parse_curve(body["lightness_curve"], p.lightness_curve)
        if "light_bg" in body:
            changes["light_bg"] = normalize_color(body["light_bg"])
        if "dark_bg" in body:
            changes["dark_bg"] = normalize_color(body["dark_bg"])
        if "active_mode_id" in body:
            if p.mode(str(body["active_mode_id"])) is None:
                return not_found("mode")
            changes["active_mode_id"] = str(body["active_mode_id"])
        if "step_names" in body:
            changes["step_names"] = parse_step_names(body["step_names"])

        apply = {
            "name": store.update_palette_name,
            "base_color": store.update_palette_base_color,
            "color_count": store.update_palette_color_count,
            "lightness_curve": store.update_lightness_curve,
            "light_bg": store.update_light_bg,
            "dark_bg": store.update_dark_bg,
            "active_mode_id": store.set_active_mode,
            "step_names": store.update_step_names,
        }
        for key, value in changes.items():
            apply[key](palette_id, value)
        return jsonify(palette_json(store.get_palette(palette_id)))

    @app.delete("/api/palettes/<palette_id>")
    def delete_palette(palette_id: str):
        if store.get_palette(palette_id) is None:
            return not_found("palette")
        store.delete_palette(palette_id)
        return jsonify(state_json())

    @app.post("/api/palettes/<palette_id>/select")
    def select_palette(palette_id: str):
        if store.get_palette(palette_id) is None:
            return not_found("palette")
        store.select_palette(palette_id)
        return jsonify(state_json())

    @app.post("/api/palettes/<palette_id>/modes")
    def add_mode(palette_id: str):
        if store.get_palette(palette_id) is None:
            return not_found("palette")
        body = request.get_json(silent=True) or {}
        if body.get("name"):
            store.add_mode(palette_id, str(body["name"]))
        else:
            store.add_mode(palette_id)
        return jsonify(palette_json(store.get_palette(palette_id))), 201

    @app.route("/api/palettes/<palette_id>/modes/<mode_id>", methods=["PATCH", "DELETE"])
    def mode(palette_id: str, mode_id: str):
        p = store.get_palette(palette_id)
        if p is None or p.mode(mode_id) is None:
            return not_found("mode")
        if request.method == "DELETE":
            store.delete_mode(palette_id, mode_id)
        else:
            body = request.get_json(silent=True) or {}
            if "name" in body:
                store.update_mode_name(palette_id, mode_id, str(body["name"]))
        return jsonify(palette_json(store.get_palette(palette_id)))

    @app.put("/api/palettes/<palette_id>/modes/<mode_id>/colors/<int:index>")
    def update_color(palette_id: str, mode_id: str, index: int):
        p = store.get_palette(palette_id)
        m = p.mode(mode_id) if p is not None else None
        if m is None or index >= len(m.colors):
            return not_found("color")
        body = request.get_json(silent=True) or {}
        if "hex" in body:
            store.update_mode_color(palette_id, mode_id, index, normalize_color(body["hex"]))
        try:
            if "L" in body:
                store.update_color_lightness(palette_id, mode_id, index, float(body["L"]))
            if "alpha" in body:
                store.update_color_alpha(palette_id, mode_id, index, float(body["alpha"]))
        except (TypeError, ValueError) as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify(palette_json(store.get_palette(palette_id)))

    @app.patch("/api/settings")
    def update_settings():
        body = request.get_json(silent=True) or {}
        try:
            if "theme" in body:
                store.set_theme(str(body["theme"]))
            if "background_preview" in body:
                store.set_background_preview(str(body["background_preview"]))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        if "collection_name" in body:
            store.set_collection_name(str(body["collection_name"]))
        return jsonify(state_json())

    # ---- Figma JSON ----

    @app.get("/api/export")
    def export():
        s = store.state
        body = export_figma_json(s.palettes, s.collection_name)
        filename = "-".join(s.collection_name.split()).lower() or "palettes"
        return Response(
            body,
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}.json"'},
        )

    @app.post("/api/import")
    def import_():
        result = import_figma_json(request.get_data(as_text=True))
        if request.args.get("replace") in {"1", "true", "yes"}:
            store.replace_all_palettes(result.palettes)
        else:
            store.import_palettes(result.palettes)
        store.set_collection_name(result.collection_name)
        return jsonify({"imported": len(result.palettes), "state": state_json()})

    return app
