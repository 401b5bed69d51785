"""Bundling the per-window config files into one file, and splitting it back."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from cantrace.configuration import save_config

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]
Point = Tuple[float, float]

MAIN_GROUP = "MainWindow"
ACTIVE_TAB_PREFIX = "active_tab="
CFG_SUFFIX = ".cfg"

DEFAULT_TABS = (
    "Measurement Setup",
    "Simulation",
    "Offline Mode",
    "Trace",
    "Graphic",
    "Convert",
    "Hardware",
)


def _format_number(value: float) -> str:
    return format(value, "g")


def _is_group_header(line: str) -> bool:
    return line.startswith("[") and line.endswith("]") and len(line) >= 2


def _cfg_files(data_dir: PathLike) -> List[Path]:
    directory = Path(data_dir)
    if not directory.is_dir():
        return []
    files = [
        entry
        for entry in directory.iterdir()
        if entry.is_file() and entry.name.endswith(CFG_SUFFIX)
    ]
    return sorted(files, key=lambda entry: (entry.name.lower(), entry.name))


def _base_name(path: Path) -> str:
    return path.name.split(".", 1)[0]


class TabSet:
    """Ordered tab names with one of them current."""

    def __init__(self, names: Iterable[str] = DEFAULT_TABS) -> None:
        self.names: List[str] = list(names)
        self.current_index = 0

    @property
    def current(self) -> Optional[str]:
        if 0 <= self.current_index < len(self.names):
            return self.names[self.current_index]
        return None

    def switch_to(self, name: str) -> bool:
        """Make the first tab called ``name`` current; False if there is none."""
        for index, tab in enumerate(self.names):
            if tab == name:
                self.current_index = index
                return True
        logger.warning("Tab name not found: %s", name)
        return False


def ensure_cfg_suffix(file_name: str) -> str:
    """Append ``.cfg`` unless the name already ends with it, in any case."""
    if file_name.lower().endswith(CFG_SUFFIX):
        return file_name
    return file_name + CFG_SUFFIX


def _bundle_file(path: Path) -> str:
    base = _base_name(path)
    parts: List[str] = []
    in_group = False
    with open(path, encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line:
                continue
            if _is_group_header(line):
                if in_group:
                    parts.append("\n")
                parts.append(f"[{base}_{line[1:-1]}]\n")
                in_group = True
                continue
            if in_group:
                parts.append(f"{line}\n")
    if in_group:
        parts.append("\n")
    return "".join(parts)


def bundle_configs(
    output_path: PathLike,
    positions: Mapping[str, Point],
    active_tab: str,
    data_dir: PathLike,
) -> None:
    """Write the main window state and every ``*.cfg`` in ``data_dir`` into one file.

    Each group of a bundled file is renamed ``[<file base name>_<group>]``.
    """
    output = Path(output_path)
    parts = [f"[{MAIN_GROUP}]\n"]
    for key in sorted(positions):
        x, y = positions[key]
        parts.append(f"{key}={_format_number(x)},{_format_number(y)}\n")
    parts.append(f"{ACTIVE_TAB_PREFIX}{active_tab}\n\n")

    resolved_output = output.resolve()
    for cfg_path in _cfg_files(data_dir):
        if cfg_path.resolve() == resolved_output:
            continue
        try:
            parts.append(_bundle_file(cfg_path))
        except OSError:
            logger.warning("Could not read config file %s", cfg_path)

    with open(output, "w", encoding="utf-8") as handle:
        handle.write("".join(parts))


def split_bundle(path: PathLike) -> Dict[str, str]:
    """Split a bundled file into the contents of each config file, keyed by name."""
    contents: Dict[str, str] = {}
    prefix = ""
    content = ""
    in_group = False

    def flush() -> None:
        if in_group and prefix:
            contents[prefix] = contents.get(prefix, "") + content

    with open(path, encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line:
                continue
            if _is_group_header(line):
                flush()
                in_group = True
                full_group = line[1:-1]
                underscore = full_group.find("_")
                if underscore > 0:
                    prefix = full_group[:underscore]
                    content = f"[{full_group[underscore + 1:]}]\n"
                else:
                    prefix = full_group
                    content = f"{line}\n"
            elif in_group:
                content += f"{line}\n"
    flush()
    return dict(sorted(contents.items()))


def write_split_configs(contents: Mapping[str, str], data_dir: PathLike) -> List[Path]:
    """Write each entry to ``<name>.cfg`` in ``data_dir``; return the files written."""
    directory = Path(data_dir)
    directory.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []
    for name in sorted(contents):
        target = directory / f"{name}{CFG_SUFFIX}"
        try:
            with open(target, "w", encoding="utf-8") as handle:
                handle.write(contents[name])
        except OSError:
            logger.warning("Failed to write config to: %s", target)
            continue
        logger.debug("Wrote config to: %s", target)
        written.append(target)
    return written


def apply_bundle(path: PathLike, data_dir: PathLike) -> List[Path]:
    """Split a bundled file and write its parts into ``data_dir``."""
    return write_split_configs(split_bundle(path), data_dir)


def read_main_active_tab(path: PathLike) -> Optional[str]:
    """Return the ``active_tab`` value of the ``[MainWindow]`` group, or None."""
    try:
        with open(path, encoding="utf-8") as handle:
            in_main = False
            for raw in handle:
                line = raw.strip()
                if _is_group_header(line):
                    in_main = line[1:-1] == MAIN_GROUP
                    continue
                if in_main and line.startswith(ACTIVE_TAB_PREFIX):
                    return line.partition("=")[2].strip()
    except OSError:
        return None
    return None


def autosave_main(path: PathLike, positions: Mapping[str, Point], active_tab: str) -> None:
    """Save positions under a ``[MainWindow]`` header followed by the active tab."""
    save_config(path, positions)
    with open(path, encoding="utf-8") as handle:
        old_content = handle.read()
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(f"[{MAIN_GROUP}]\n")
        handle.write(old_content)
        handle.write(f"{ACTIVE_TAB_PREFIX}{active_tab}\n")


def clear_cfg_files(data_dir: PathLike) -> List[Path]:
    """Truncate every ``*.cfg`` file in ``data_dir``; return the files emptied."""
    cleared: List[Path] = []
    for cfg_path in _cfg_files(data_dir):
        try:
            with open(cfg_path, "w", encoding="utf-8"):
                pass
        except OSError:
            logger.warning("Could not clear config file %s", cfg_path)
            continue
        cleared.append(cfg_path)
    return cleared