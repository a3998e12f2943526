import json
import threading

import numpy as np
import pytest

from oklch_palette.colorspace import hex_to_oklch
from oklch_palette.gamut import is_in_gamut
from oklch_palette.naming import color_name
from oklch_palette.palette import AlphaRamp, LightnessRamp, generate_palette
from oklch_palette.store import PaletteStore, StoreState


@pytest.fixture
def store():
    return PaletteStore()


def test_create_palette(store):
    pid = store.create_palette("#6366F1")
    p = store.get_palette(pid)
    assert store.state.selected_palette_id == pid
    assert p.name == color_name("#6366f1")
    assert p.base_color == "#6366f1"
    assert p.kind == "lightness"
    assert [m.name for m in p.modes] == ["Light", "Dark"]
    assert p.active_mode_id == p.modes[0].id
    assert list(p.modes[0].colors) == generate_palette("#6366f1", 11, 0.3)
    assert list(p.modes[1].colors) == generate_palette("#6366f1", 11, -0.3)
    assert isinstance(p.ramp(), LightnessRamp)
    assert p.ramp().base_index == p.base_color_index


def test_names_are_unique(store):
    a = store.get_palette(store.create_palette("#6366f1"))
    b = store.get_palette(store.create_palette("#6366f1"))
    assert b.name == a.name + " 2"


def test_random_palette_is_seeded(store):
    a = store.create_palette(rng=np.random.default_rng(1))
    b = store.create_palette(rng=np.random.default_rng(1))
    assert store.get_palette(a).base_color == store.get_palette(b).base_color


def test_snapshots_are_immutable(store):
    store.create_palette("#6366f1")
    before = store.state
    store.create_palette("#10b981")
    assert len(before.palettes) == 1
    assert len(store.state.palettes) == 2
    with pytest.raises(AttributeError):
        before.theme = "dark"


def test_subscribers(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    pid = store.create_palette("#6366f1")
    store.update_palette_name(pid, "brand")
    assert len(seen) == 2
    assert seen[-1] is store.state
    assert seen[-1].palettes[0].name == "brand"
    unsubscribe()
    store.update_palette_name(pid, "other")
    assert len(seen) == 2
    unsubscribe()


def test_delete_selected_palette_selects_first(store):
    a = store.create_palette("#6366f1")
    b = store.create_palette("#10b981")
    c = store.create_palette("#f59e0b")
    store.select_palette(b)
    store.delete_palette(b)
    assert store.state.selected_palette_id == a
    store.select_palette(c)
    store.delete_palette(a)
    assert store.state.selected_palette_id == c
    store.delete_palette(c)
    assert store.state.palettes == ()
    assert store.state.selected_palette_id is None
    assert store.selected_palette() is None


def test_unknown_ids_are_noops(store):
    store.create_palette("#6366f1")
    before = store.state.palettes
    store.update_palette_name("nope", "x")
    store.update_palette_color_count("nope", 5)
    store.delete_mode("nope", "nope")
    assert store.state.palettes == before


def test_count_and_curve_are_clamped(store):
    pid = store.create_palette("#6366f1")
    store.update_palette_color_count(pid, 50)
    p = store.get_palette(pid)
    assert p.color_count == 20
    assert all(len(m.colors) == 20 for m in p.modes)
    store.update_palette_color_count(pid, 0)
    assert store.get_palette(pid).color_count == 2
    store.update_lightness_curve(pid, 5)
    p = store.get_palette(pid)
    assert p.lightness_curve == 1.0
    assert list(p.modes[0].colors) == generate_palette("#6366f1", 2, 1.0)


def test_base_color_regenerates(store):
    pid = store.create_palette("#6366f1")
    store.update_palette_base_color(pid, "#10B981")
    p = store.get_palette(pid)
    assert p.base_color == "#10b981"
    assert list(p.modes[0].colors) == generate_palette("#10b981", 11, 0.3)


def test_modes(store):
    pid = store.create_palette("#6366f1")
    mid = store.add_mode(pid)
    p = store.get_palette(pid)
    assert [m.name for m in p.modes] == ["Light", "Dark", "New mode"]
    assert p.active_mode_id == mid
    assert p.mode(mid).colors == p.modes[0].colors
    store.add_mode(pid)
    assert store.get_palette(pid).modes[-1].name == "New mode 2"

    store.update_mode_name(pid, mid, "High contrast")
    assert store.get_palette(pid).mode(mid).name == "High contrast"

    store.set_active_mode(pid, mid)
    store.delete_mode(pid, mid)
    p = store.get_palette(pid)
    assert p.mode(mid) is None
    assert p.active_mode_id == p.modes[0].id

    for m in list(p.modes):
        store.delete_mode(pid, m.id)
    assert len(store.get_palette(pid).modes) == 1


def test_edit_swatch_hex(store):
    pid = store.create_palette("#6366f1")
    p = store.get_palette(pid)
    light = p.modes[0].id
    store.update_color_alpha(pid, light, 3, 0.4)
    store.update_mode_color(pid, light, 3, "#FF0000")
    c = store.get_palette(pid).modes[0].colors[3]
    assert c.hex == "#ff0000"
    assert c.L == hex_to_oklch("#ff0000").L
    assert c.alpha == 0.4


def test_edit_swatch_alpha_and_lightness(store):
    pid = store.create_palette("#6366f1")
    light = store.get_palette(pid).modes[0].id
    store.update_color_alpha(pid, light, 0, 3.0)
    assert store.get_palette(pid).modes[0].colors[0].alpha == 1.0
    store.update_color_alpha(pid, light, 0, -1)
    assert store.get_palette(pid).modes[0].colors[0].alpha == 0.0

    before = store.get_palette(pid).modes[0].colors[5]
    store.update_color_lightness(pid, light, 5, 0.9)
    after = store.get_palette(pid).modes[0].colors[5]
    assert after.L == 0.9
    assert after.h == before.h
    assert after.C <= before.C
    assert is_in_gamut(after.L, after.C, after.h)


def test_alpha_palette(store):
    pid = store.create_alpha_palette("#6366f1")
    p = store.get_palette(pid)
    assert p.kind == "alpha"
    assert p.name == color_name("#6366f1") + " alpha"
    assert len(p.modes) == 1
    assert p.base_color_index == 10
    assert isinstance(p.ramp(), AlphaRamp)
    store.update_palette_color_count(pid, 4)
    p = store.get_palette(pid)
    assert [c.alpha for c in p.modes[0].colors][-1] == 1.0
    assert p.base_color_index == 3


def test_settings(store):
    store.set_theme("dark")
    store.set_background_preview("dark")
    store.set_collection_name("Brand")
    s = store.state
    assert (s.theme, s.background_preview, s.collection_name) == ("dark", "dark", "Brand")
    with pytest.raises(ValueError):
        store.set_theme("sepia")
    with pytest.raises(ValueError):
        store.set_background_preview("grey")


def test_import_and_replace(store):
    other = PaletteStore()
    a = other.create_palette("#6366f1")
    b = other.create_palette("#10b981")
    store.create_palette("#f59e0b")
    store.import_palettes(other.state.palettes)
    assert len(store.state.palettes) == 3
    assert store.state.selected_palette_id == a
    store.replace_all_palettes(other.state.palettes[1:])
    assert [p.id for p in store.state.palettes] == [b]
    assert store.state.selected_palette_id == b


def test_persistence_round_trip(tmp_path):
    path = tmp_path / "sub" / "palettes.json"
    store = PaletteStore(storage_path=path)
    pid = store.create_palette("#6366f1")
    store.add_mode(pid)
    store.set_theme("light")
    assert path.exists()

    again = PaletteStore(storage_path=path)
    assert again.load() is True
    assert again.state.to_dict() == store.state.to_dict()
    assert again.state == store.state


def test_load_missing_or_corrupt(tmp_path):
    path = tmp_path / "palettes.json"
    store = PaletteStore(storage_path=path)
    assert store.load() is False
    path.write_text("{not json", encoding="utf-8")
    assert store.load() is False
    path.write_text(json.dumps({"palettes": [{"name": "x"}]}), encoding="utf-8")
    assert store.load() is False
    assert store.state == StoreState()


def test_in_memory_store_does_not_write(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    PaletteStore().create_palette("#6366f1")
    assert list(tmp_path.iterdir()) == []


def test_concurrent_commits_notify_in_commit_order():
    store = PaletteStore()
    seen = []
    entered = threading.Event()
    release = threading.Event()

    def slow_listener(state):
        if state.collection_name == "A":
            entered.set()
            release.wait(5)
        seen.append(state.collection_name)

    store.subscribe(slow_listener)
    a = threading.Thread(target=store.set_collection_name, args=("A",))
    a.start()
    assert entered.wait(5)
    b = threading.Thread(target=store.set_collection_name, args=("B",))
    b.start()
    b.join(0.2)
    assert b.is_alive()
    release.set()
    a.join(5)
    b.join(5)
    assert seen == ["A", "B"]
    assert store.state.collection_name == "B"


def test_failing_listener_is_isolated(tmp_path, caplog):
    path = tmp_path / "p.json"
    store = PaletteStore(storage_path=path)
    seen = []

    def boom(state):
        raise RuntimeError("boom")

    store.subscribe(boom)
    store.subscribe(seen.append)
    store.set_collection_name("Brand")
    assert [s.collection_name for s in seen] == ["Brand"]
    assert json.loads(path.read_text(encoding="utf-8"))["collection_name"] == "Brand"
    assert "listener" in caplog.text


def test_listener_may_mutate_store():
    store = PaletteStore()

    def rename_once(state):
        if state.collection_name == "draft":
            store.set_collection_name("final")

    store.subscribe(rename_once)
    store.set_collection_name("draft")
    assert store.state.collection_name == "final"


def test_save_leaves_no_temp_file(tmp_path):
    path = tmp_path / "palettes.json"
    store = PaletteStore(storage_path=path)
    store.create_palette("#6366f1")
    store.set_theme("dark")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["palettes.json"]
    assert json.loads(path.read_text(encoding="utf-8"))["theme"] == "dark"


def test_step_names_default_and_rename(store):
    pid = store.create_palette("#6366f1")
    p = store.get_palette(pid)
    assert p.step_names == tuple(str((i + 1) * 100) for i in range(11))
    assert p.to_dict()["step_names"][0] == "100"

    store.update_step_name(pid, 0, " primary-light ")
    store.update_step_name(pid, 99, "ignored")
    p = store.get_palette(pid)
    assert p.step_name(0) == "primary-light"
    assert p.step_name(1) == "200"

    store.update_step_name(pid, 0, "  ")
    assert store.get_palette(pid).step_name(0) == "100"


def test_step_names_survive_recolor_but_not_recount(store):
    pid = store.create_palette("#6366f1")
    store.update_step_names(pid, ["a", "", "c"])
    p = store.get_palette(pid)
    assert p.step_names[:4] == ("a", "200", "c", "400")
    assert len(p.step_names) == 11

    store.update_palette_base_color(pid, "#10b981")
    store.update_lightness_curve(pid, -0.2)
    assert store.get_palette(pid).step_name(0) == "a"

    store.update_palette_color_count(pid, 5)
    assert store.get_palette(pid).step_names == ("100", "200", "300", "400", "500")


def test_step_names_persist(tmp_path):
    path = tmp_path / "palettes.json"
    store = PaletteStore(storage_path=path)
    pid = store.create_palette("#6366f1")
    store.update_step_name(pid, 4, "brand")
    again = PaletteStore(storage_path=path)
    assert again.load()
    assert again.get_palette(pid).step_name(4) == "brand"
    assert again.state == store.state
