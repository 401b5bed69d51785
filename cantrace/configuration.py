"""Block-position configuration files and their periodic auto-save."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
Point = Tuple[float, float]

ACTIVE_TAB_PREFIX = "active_tab="


def _to_double(text: str) -> Optional[float]:
    text = text.strip()
    if not text or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _format_number(value: float) -> str:
    return format(value, "g")


def load_config(path: PathLike) -> Dict[str, Point]:
    """Read ``key=x,y`` lines; comments, the active tab and malformed lines are skipped."""
    positions: Dict[str, Point] = {}
    with open(path, encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith("#") or line.startswith(ACTIVE_TAB_PREFIX):
                continue
            parts = line.split("=")
            if len(parts) != 2:
                continue
            coords = parts[1].split(",")
            if len(coords) != 2:
                continue
            x, y = _to_double(coords[0]), _to_double(coords[1])
            if x is not None and y is not None:
                positions[parts[0].strip()] = (x, y)
    return dict(sorted(positions.items()))


def save_config(path: PathLike, positions: Mapping[str, Point]) -> None:
    """Write the positions as ``key=x,y`` lines, ordered by key."""
    with open(path, "w", encoding="utf-8") as handle:
        for key in sorted(positions):
            x, y = positions[key]
            handle.write(f"{key}={_format_number(x)},{_format_number(y)}\n")


def load_active_tab(path: PathLike) -> Optional[str]:
    """Return the tab named by the first ``active_tab=`` line, or None."""
    try:
        with open(path, encoding="utf-8") as handle:
            for raw in handle:
                line = raw.strip()
                if line.startswith(ACTIVE_TAB_PREFIX):
                    return line.split("=")[1].strip()
    except OSError:
        return None
    return None


def save_active_tab(path: PathLike, active_tab: str) -> None:
    """Replace any ``active_tab=`` line in an existing file with one for ``active_tab``."""
    with open(path, encoding="utf-8") as handle:
        kept = [
            line
            for line in handle.read().splitlines()
            if not line.startswith(ACTIVE_TAB_PREFIX)
        ]
    with open(path, "w", encoding="utf-8") as handle:
        for line in kept:
            handle.write(f"{line}\n")
        handle.write(f"{ACTIVE_TAB_PREFIX}{active_tab}\n")


class AutoSaveTimer:
    """Saves positions and the active tab to one file at a fixed interval."""

    def __init__(
        self,
        path: PathLike,
        get_positions: Callable[[], Mapping[str, Point]],
        get_active_tab: Callable[[], str],
        interval: float = 1.0,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.path = path
        self.get_positions = get_positions
        self.get_active_tab = get_active_tab
        self.interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> None:
        """Save once; failures are logged, not raised."""
        try:
            save_config(self.path, self.get_positions())
        except OSError:
            logger.warning("Failed to save config positions to %s", self.path)
        try:
            save_active_tab(self.path, self.get_active_tab())
        except OSError:
            logger.warning("Failed to save active tab to %s", self.path)

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> "AutoSaveTimer":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()