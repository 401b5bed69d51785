"""Measurement setup state: the online/offline switch and the block layout."""

from __future__ import annotations

import configparser
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Tuple, Union

from cantrace.modes import start_offline_mode, start_online_mode

if TYPE_CHECKING:
    from cantrace.bundle import TabSet

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
Point = Tuple[float, float]

BUTTONS_GROUP = "Buttons"
ONLINE_KEY = "OnlineChecked"
OFFLINE_KEY = "OfflineChecked"
OFFLINE_TAB = "Offline Mode"

DEFAULT_BLOCK_POSITIONS: Dict[str, Point] = {
    "canStatisticsBlock": (400.0, 70.0),
    "traceBlock": (400.0, 115.0),
    "dataBlock": (400.0, 160.0),
    "graphicsLoggingBlock": (400.0, 205.0),
}


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def _round_coordinate(value: float) -> float:
    """Round half away from zero, as a widget position is snapped to whole pixels."""
    if value >= 0:
        return float(int(value + 0.5))
    return float(-int(-value + 0.5))


class MeasurementSetup:
    """Online/offline button states persisted in ``config_path`` and the block positions."""

    def __init__(self, config_path: PathLike) -> None:
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            try:
                self.config_path.parent.mkdir(parents=True, exist_ok=True)
                self.config_path.touch()
                logger.debug("Created new config file: %s", self.config_path)
            except OSError:
                logger.warning("Failed to create config file: %s", self.config_path)

        self.positions: Dict[str, Point] = dict(DEFAULT_BLOCK_POSITIONS)
        self.position_listeners: List[Callable[[], None]] = []

        online, offline = self._read_states()
        self.online_checked = online
        self.offline_checked = offline
        self.online_enabled = not online
        self.offline_enabled = not offline

        if online:
            start_online_mode()
        elif offline:
            start_offline_mode()

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None, strict=False)
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        try:
            parser.read(self.config_path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError):
            logger.warning("Could not parse %s", self.config_path)
            parser = configparser.ConfigParser(interpolation=None, strict=False)
            parser.optionxform = str  # type: ignore[assignment,method-assign]
        return parser

    def _read_states(self) -> Tuple[bool, bool]:
        parser = self._parser()
        if not parser.has_section(BUTTONS_GROUP):
            return False, False
        section = parser[BUTTONS_GROUP]
        return (
            _to_bool(section.get(ONLINE_KEY, "false")),
            _to_bool(section.get(OFFLINE_KEY, "false")),
        )

    def click_online(self, checked: bool) -> None:
        """Handle a click on the Online button, which is now ``checked`` or not."""
        self.online_checked = checked
        if checked:
            self.online_enabled = False
            self.offline_enabled = True
            self.offline_checked = False
            start_online_mode()
        else:
            self.online_enabled = True
        self.save_button_states()

    def click_offline(self, checked: bool) -> None:
        """Handle a click on the Offline button, which is now ``checked`` or not."""
        self.offline_checked = checked
        if checked:
            self.offline_enabled = False
            self.online_enabled = True
            self.online_checked = False
            start_offline_mode()
        else:
            self.offline_enabled = True
        self.save_button_states()

    def save_button_states(self) -> None:
        """Write both checked states to the ``[Buttons]`` group, keeping the rest of the file."""
        parser = self._parser()
        if not parser.has_section(BUTTONS_GROUP):
            parser.add_section(BUTTONS_GROUP)
        parser[BUTTONS_GROUP][ONLINE_KEY] = "true" if self.online_checked else "false"
        parser[BUTTONS_GROUP][OFFLINE_KEY] = "true" if self.offline_checked else "false"
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as handle:
            parser.write(handle, space_around_delimiters=False)
        logger.debug(
            "Saved button states: Online = %s, Offline = %s",
            self.online_checked,
            self.offline_checked,
        )

    def block_positions(self) -> Dict[str, Point]:
        return dict(self.positions)

    def apply_block_positions(self, positions: Mapping[str, Point]) -> None:
        """Move the known blocks to whole-pixel positions and notify listeners."""
        for name in DEFAULT_BLOCK_POSITIONS:
            if name in positions:
                x, y = positions[name]
                self.positions[name] = (_round_coordinate(x), _round_coordinate(y))
        for listener in list(self.position_listeners):
            listener()

    def folder_target_tab(self, tabs: Optional["TabSet"]) -> bool:
        """Switch ``tabs`` to the Offline Mode tab; False if there is no such tab."""
        if tabs is None:
            logger.debug("No tab set to switch")
            return False
        return tabs.switch_to(OFFLINE_TAB)