"""Mapping of simulated networks to hardware channels, kept in ``ChMap.cfg``."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Union

from cantrace.channel_config import (
    ChannelInfo,
    Network,
    load_channel_config,
    mode_enabled,
    read_networks,
    save_channel_config,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

SSETUP_FILE = "SsetUp.cfg"
CHMAP_FILE = "ChMap.cfg"
MSETUP_FILE = "MsetUp.cfg"
NO_HARDWARE = "None"

STATUS_READY = "✓"
STATUS_UNASSIGNED = "!"
STATUS_INACTIVE = "-"

_DIGIT = re.compile(r"\d")


def _bus_type(bus_number: str) -> str:
    match = _DIGIT.search(bus_number)
    return bus_number[: match.start()] if match else bus_number


def _is_assigned(hardware: str) -> bool:
    return bool(hardware) and hardware != NO_HARDWARE


class ChannelMapping:
    """Networks read from the simulation setup and their channel assignments."""

    def __init__(self, data_dir: PathLike) -> None:
        self.data_dir = Path(data_dir)
        self.networks: List[Network] = []
        self.infos: Dict[str, ChannelInfo] = {}
        self.enabled = True
        self._listeners: List[Callable[[], None]] = []

    @property
    def ssetup_path(self) -> Path:
        return self.data_dir / SSETUP_FILE

    @property
    def chmap_path(self) -> Path:
        return self.data_dir / CHMAP_FILE

    @property
    def msetup_path(self) -> Path:
        return self.data_dir / MSETUP_FILE

    def load(self) -> None:
        """Reload networks and assignments; raises FileNotFoundError without a setup file."""
        if not self.ssetup_path.exists():
            raise FileNotFoundError(f"Cannot find {SSETUP_FILE} at: {self.ssetup_path}")
        if not self.chmap_path.exists():
            logger.warning("Creating new %s at: %s", CHMAP_FILE, self.chmap_path)
        self.infos = load_channel_config(self.chmap_path)
        self.networks = read_networks(self.ssetup_path)
        for network in self.networks:
            self.infos.setdefault(network.name, ChannelInfo(network=network.name))
        self.enabled = mode_enabled(self.msetup_path)

    def save(self) -> None:
        """Write the assignments and tell every subscriber."""
        save_channel_config(self.chmap_path, self.infos)
        for callback in list(self._listeners):
            callback()

    def networks_by_type(self) -> Dict[str, List[str]]:
        """Network names grouped by bus type, types in sorted order."""
        grouped: Dict[str, List[str]] = {}
        for network in self.networks:
            grouped.setdefault(_bus_type(network.bus), []).append(network.name)
        return dict(sorted(grouped.items()))

    def next_can_number(self) -> int:
        """One more than the highest ``CAN<n>`` application channel in use."""
        highest = 0
        for info in self.infos.values():
            if info.app_channel.startswith("CAN"):
                try:
                    number = int(info.app_channel[3:].strip())
                except ValueError:
                    number = 0
                highest = max(highest, number)
        return highest + 1

    def _info(self, network: str) -> ChannelInfo:
        return self.infos.setdefault(network, ChannelInfo(network=network))

    def set_active(self, network: str, active: bool) -> None:
        self._info(network).active = active
        self.save()

    def set_hardware(self, network: str, hardware: str) -> None:
        self._info(network).hardware = hardware
        self.save()

    def disabled_hardware(self, network: str, available: Iterable[str]) -> List[str]:
        """Channels among ``available`` already taken by another network."""
        info = self.infos.get(network)
        current = info.hardware if info else ""
        mapped = {i.hardware for i in self.infos.values() if _is_assigned(i.hardware)}
        return [
            channel
            for channel in [NO_HARDWARE, *available]
            if channel != NO_HARDWARE and channel != current and channel in mapped
        ]

    def status(self, network: str) -> str:
        """Status mark: assigned and active, active without hardware, or inactive."""
        info = self.infos.get(network)
        if info is None or not info.active:
            return STATUS_INACTIVE
        if _is_assigned(info.hardware):
            return STATUS_READY
        return STATUS_UNASSIGNED

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call ``callback`` after every save; returns a function that unsubscribes."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe