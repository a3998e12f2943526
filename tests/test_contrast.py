import numpy as np
import pytest
from coloraide import Color

from oklch_palette.contrast import (
    contrast_level,
    contrast_ratio,
    contrast_report,
    relative_luminance,
)


def test_luminance_endpoints():
    assert relative_luminance("#000000") == 0.0
    assert relative_luminance("#ffffff") == pytest.approx(1.0)


def test_black_on_white():
    assert contrast_ratio("#000000", "#ffffff") == pytest.approx(21.0)
    assert contrast_level(contrast_ratio("#000000", "#ffffff")) == "AAA"


def test_identity_and_symmetry():
    rng = np.random.default_rng(3)
    hexes = ["#" + "".join(f"{v:02x}" for v in rng.integers(0, 256, 3)) for _ in range(40)]
    for a, b in zip(hexes, hexes[1:]):
        assert contrast_ratio(a, a) == 1.0
        assert contrast_ratio(a, b) == contrast_ratio(b, a)
        assert 1.0 <= contrast_ratio(a, b) <= 21.0 + 1e-9


@pytest.mark.parametrize(
    "ratio,level",
    [(21.0, "AAA"), (7.0, "AAA"), (6.99, "AA"), (4.5, "AA"), (4.49, "A"), (3.0, "A"), (2.99, "fail"), (1.0, "fail")],
)
def test_levels(ratio, level):
    assert contrast_level(ratio) == level


def test_matches_coloraide():
    pairs = [("#6366f1", "#ffffff"), ("#10b981", "#1a1a1a"), ("#777777", "#ffffff"), ("#f59e0b", "#000000")]
    for a, b in pairs:
        assert contrast_ratio(a, b) == pytest.approx(Color(a).contrast(Color(b)), rel=1e-3)


def test_gray_on_white_is_aa_boundary():
    # #767676 is the lightest gray that passes AA on white
    assert contrast_level(contrast_ratio("#767676", "#ffffff")) == "AA"
    assert contrast_level(contrast_ratio("#777777", "#ffffff")) == "A"


def test_report_against_both_backgrounds():
    rep = contrast_report("#000000", "#ffffff", "#1a1a1a")
    assert set(rep) == {"light", "dark"}
    assert rep["light"]["ratio"] == pytest.approx(21.0)
    assert rep["light"]["level"] == "AAA"
    assert rep["dark"]["ratio"] < 2.0
    assert rep["dark"]["level"] == "fail"
