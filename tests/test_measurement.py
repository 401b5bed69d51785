import pytest

from cantrace.bundle import DEFAULT_TABS, TabSet
from cantrace.measurement import DEFAULT_BLOCK_POSITIONS, MeasurementSetup
from cantrace.run import read_mode_flags


@pytest.fixture
def cfg(tmp_path):
    return tmp_path / "data" / "MsetUp.cfg"


def test_missing_file_is_created_with_unchecked_buttons(cfg):
    setup = MeasurementSetup(cfg)
    assert cfg.exists()
    assert (setup.online_checked, setup.offline_checked) == (False, False)
    assert (setup.online_enabled, setup.offline_enabled) == (True, True)


def test_click_online_updates_state_and_persists(cfg):
    setup = MeasurementSetup(cfg)
    setup.click_offline(True)
    setup.click_online(True)
    assert setup.online_checked is True
    assert setup.offline_checked is False
    assert setup.online_enabled is False
    assert setup.offline_enabled is True
    assert read_mode_flags(cfg) == (True, False)
    reloaded = MeasurementSetup(cfg)
    assert reloaded.online_checked is True
    assert reloaded.online_enabled is False


def test_click_offline_persists(cfg):
    setup = MeasurementSetup(cfg)
    setup.click_offline(True)
    assert read_mode_flags(cfg) == (False, True)
    assert setup.offline_enabled is False


def test_unchecking_reenables_button(cfg):
    setup = MeasurementSetup(cfg)
    setup.click_online(False)
    assert setup.online_enabled is True
    assert read_mode_flags(cfg) == (False, False)


def test_saving_keeps_other_groups(cfg):
    cfg.parent.mkdir(parents=True)
    cfg.write_text("[Other]\nkey=value\n", encoding="utf-8")
    setup = MeasurementSetup(cfg)
    setup.click_online(True)
    text = cfg.read_text(encoding="utf-8")
    assert "[Other]" in text
    assert "key=value" in text
    assert "OnlineChecked=true" in text


def test_default_block_positions(cfg):
    setup = MeasurementSetup(cfg)
    positions = setup.block_positions()
    assert positions == DEFAULT_BLOCK_POSITIONS
    assert positions["canStatisticsBlock"] == (400.0, 70.0)


def test_apply_block_positions_rounds_and_notifies(cfg):
    setup = MeasurementSetup(cfg)
    calls = []
    setup.position_listeners.append(lambda: calls.append(1))
    setup.apply_block_positions({"traceBlock": (10.4, 20.6), "unknown": (1.0, 2.0)})
    positions = setup.block_positions()
    assert positions["traceBlock"] == (10.0, 21.0)
    assert "unknown" not in positions
    assert positions["dataBlock"] == DEFAULT_BLOCK_POSITIONS["dataBlock"]
    assert calls == [1]


def test_block_positions_returns_copy(cfg):
    setup = MeasurementSetup(cfg)
    positions = setup.block_positions()
    positions["traceBlock"] = (0.0, 0.0)
    assert setup.block_positions()["traceBlock"] == DEFAULT_BLOCK_POSITIONS["traceBlock"]


def test_folder_switches_to_offline_tab(cfg):
    setup = MeasurementSetup(cfg)
    tabs = TabSet(DEFAULT_TABS)
    assert setup.folder_target_tab(tabs) is True
    assert tabs.current == "Offline Mode"


def test_folder_without_offline_tab(cfg):
    setup = MeasurementSetup(cfg)
    tabs = TabSet(["Trace", "Graphic"])
    assert setup.folder_target_tab(tabs) is False
    assert tabs.current == "Trace"
    assert setup.folder_target_tab(None) is False