import json

import numpy as np
import pytest

from oklch_palette.colorspace import hex_to_oklch, oklch_to_hex
from oklch_palette.errors import ParseError
from oklch_palette.gamut import is_in_gamut
from oklch_palette.palette import (
    AlphaRamp,
    ColorRecord,
    LightnessRamp,
    alpha_ramp,
    find_base_color_index,
    generate_alpha_palette,
    generate_palette,
    lightness_ramp,
    ramp_from_dict,
    ramp_to_dict,
)


def test_indigo_ramp():
    base = hex_to_oklch("#6366f1")
    colors = generate_palette("#6366f1", 11, 0.3)
    assert len(colors) == 11
    assert colors[0].L == pytest.approx(0.05)
    assert colors[-1].L == pytest.approx(0.95)
    assert np.all(np.diff([c.L for c in colors]) > 0)
    for c in colors:
        assert is_in_gamut(c.L, c.C, c.h)
        assert c.h == base.h
        assert c.C <= base.C
        assert c.alpha == 1.0
        assert c.hex == oklch_to_hex(c.L, c.C, c.h)


def test_hex_agrees_with_lightness():
    for c in generate_palette("#10b981", 11, 0.0):
        if c.L > 0.3:
            assert hex_to_oklch(c.hex).L == pytest.approx(c.L, abs=0.01)


def test_gray_ramp_has_no_chroma():
    for c in generate_palette("#808080", 7, 0.3):
        assert c.C == pytest.approx(0.0, abs=1e-3)


def test_malformed_base_raises():
    with pytest.raises(ParseError):
        generate_palette("#zzz", 5)


def test_base_index_of_perceptual_mid_gray():
    # #636363 sits at OKLCh L ~ 0.4997, the middle of an even 11-step ramp
    colors = generate_palette("#636363", 11, 0.0)
    assert find_base_color_index(colors, "#636363") == 5


def test_base_index_first_wins_ties():
    colors = [
        ColorRecord(0.2, 0.0, 0.0, "#000000"),
        ColorRecord(0.7, 0.0, 0.0, "#000000"),
        ColorRecord(0.7, 0.0, 0.0, "#000000"),
    ]
    assert find_base_color_index(colors, "#636363") == 1


def test_lightness_ramp_records_base_index():
    ramp = lightness_ramp("#6366f1", 11, 0.3)
    assert isinstance(ramp, LightnessRamp)
    assert ramp.kind == "lightness"
    assert ramp.base_index == find_base_color_index(list(ramp.colors), "#6366f1")


def test_alpha_palette():
    colors = generate_alpha_palette("#6366F1", 5)
    assert {c.hex for c in colors} == {"#6366f1"}
    alphas = [c.alpha for c in colors]
    assert alphas[0] == 0.05
    assert alphas[-1] == 1.0
    assert np.all(np.diff(alphas) > 0)

    ramp = alpha_ramp("#6366f1", 5)
    assert isinstance(ramp, AlphaRamp)
    assert ramp.kind == "alpha"
    assert ramp.base_index == 4


def test_color_record_from_hex():
    rec = ColorRecord.from_hex("#FFF", alpha=0.5)
    assert rec.hex == "#ffffff"
    assert rec.L == pytest.approx(1.0, abs=1e-3)
    assert rec.alpha == 0.5


def test_color_record_json_round_trip():
    rec = generate_palette("#f59e0b", 9, -0.4)[3]
    assert ColorRecord.from_dict(json.loads(json.dumps(rec.to_dict()))) == rec


def test_ramp_dict_dispatch():
    for ramp in (lightness_ramp("#ef4444", 6, 0.2), alpha_ramp("#ef4444", 6)):
        data = json.loads(json.dumps(ramp_to_dict(ramp)))
        assert data["kind"] == ramp.kind
        assert ramp_from_dict(data) == ramp


def test_unknown_ramp_kind():
    with pytest.raises(ParseError):
        ramp_from_dict({"kind": "hue", "colors": [], "base_index": 0})
