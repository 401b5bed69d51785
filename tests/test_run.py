from pathlib import Path

import pytest

from cantrace.modes import CanMessage
from cantrace.run import Mode, ModeNotSelectedError, RunButton, read_mode_flags


def _write_flags(data_dir: Path, online: str, offline: str) -> None:
    (data_dir / "MsetUp.cfg").write_text(
        f"[Buttons]\nOnlineChecked={online}\nOfflineChecked={offline}\n",
        encoding="utf-8",
    )


def test_read_mode_flags_defaults_when_missing(tmp_path):
    assert read_mode_flags(tmp_path / "MsetUp.cfg") == (True, True)


def test_read_mode_flags_reads_values(tmp_path):
    _write_flags(tmp_path, "false", "true")
    assert read_mode_flags(tmp_path / "MsetUp.cfg") == (False, True)


def test_read_mode_flags_missing_key_defaults_true(tmp_path):
    (tmp_path / "MsetUp.cfg").write_text("[Buttons]\nOnlineChecked=false\n", encoding="utf-8")
    assert read_mode_flags(tmp_path / "MsetUp.cfg") == (False, True)


def test_handle_run_online_when_both_default(tmp_path):
    button = RunButton(tmp_path)
    assert button.handle_run() is Mode.ONLINE
    assert len(button.log) == 1
    assert button.log[0].can_id == 0xFFFFFFFF
    assert button.log[0].data == bytes([2])


def test_handle_run_offline(tmp_path):
    _write_flags(tmp_path, "false", "true")
    log = []
    button = RunButton(tmp_path, log)
    assert button.handle_run() is Mode.OFFLINE
    assert log[0].data == bytes([1])
    assert log[0].channel == 1


def test_handle_run_clears_previous_log(tmp_path):
    _write_flags(tmp_path, "true", "false")
    log = [CanMessage(timestamp=5, channel=3, can_id=0x100, dlc=1, data=b"\x07")]
    RunButton(tmp_path, log).handle_run()
    assert len(log) == 1
    assert log[0].can_id == 0xFFFFFFFF


def test_handle_run_without_mode_raises(tmp_path):
    _write_flags(tmp_path, "false", "false")
    button = RunButton(tmp_path)
    with pytest.raises(ModeNotSelectedError):
        button.handle_run()
    assert list(button.log) == []


def test_handle_run_reports_file_existence(tmp_path):
    _write_flags(tmp_path, "true", "true")
    button = RunButton(tmp_path)
    button.handle_run()
    assert "File exists: Yes" in button.messages
    assert "Switching to Online Mode..." in button.messages