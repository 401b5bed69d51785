"""Run action: pick the measurement mode from the setup file and start it."""

from __future__ import annotations

import configparser
import enum
import logging
import os
from pathlib import Path
from typing import List, MutableSequence, Optional, Tuple, Union

from cantrace.modes import (
    CanMessage,
    start_offline_mode,
    start_offline_mode_data,
    start_online_mode,
    start_online_mode_data,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

MSETUP_FILE = "MsetUp.cfg"
BUTTONS_GROUP = "Buttons"


class Mode(enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class ModeNotSelectedError(RuntimeError):
    """Neither online nor offline measurement mode is selected."""

    def __init__(
        self,
        message: str = "Please select Online or Offline mode in Measurement Setup tab first!",
    ) -> None:
        super().__init__(message)


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def read_mode_flags(msetup_path: PathLike) -> Tuple[bool, bool]:
    """Return the (online, offline) flags of the ``[Buttons]`` group; both default to True."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        parser.read(msetup_path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError):
        logger.warning("Could not parse %s", msetup_path)
        return True, True
    if not parser.has_section(BUTTONS_GROUP):
        return True, True
    section = parser[BUTTONS_GROUP]
    online = _to_bool(section["OnlineChecked"]) if "OnlineChecked" in section else True
    offline = _to_bool(section["OfflineChecked"]) if "OfflineChecked" in section else True
    return online, offline


class RunButton:
    """Starts online or offline measurement, collecting frames into a shared log."""

    def __init__(
        self,
        data_dir: PathLike,
        log: Optional[MutableSequence[CanMessage]] = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.log: MutableSequence[CanMessage] = log if log is not None else []
        self.messages: List[str] = []

    def _report(self, message: str) -> None:
        self.messages.append(message)
        logger.info("%s", message)

    def handle_run(self) -> Mode:
        """Clear the log and start the selected mode; online wins if both are set."""
        del self.log[:]
        self._report("=== Starting RunButton Operation ===")
        self._report(f"Data path: {self.data_dir}")

        msetup_path = self.data_dir / MSETUP_FILE
        self._report(f"Reading {MSETUP_FILE}: {msetup_path}")
        self._report("File exists: " + ("Yes" if msetup_path.exists() else "No"))

        online, offline = read_mode_flags(msetup_path)
        if not online and not offline:
            raise ModeNotSelectedError()

        if online:
            self._report("Switching to Online Mode...")
            start_online_mode()
            start_online_mode_data("Online data start...", self.log)
            mode = Mode.ONLINE
        else:
            self._report("Switching to Offline Mode...")
            start_offline_mode()
            start_offline_mode_data("Offline log start...", self.log)
            mode = Mode.OFFLINE

        if self.log:
            last = self.log[-1]
            logger.debug(
                "infoMsg: timestamp=%s, channel=%s, can_id=%x, dlc=%s, data=%r",
                last.timestamp,
                last.channel,
                last.can_id,
                last.dlc,
                last.data,
            )
        return mode