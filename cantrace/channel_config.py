"""Network list from the simulation setup and the channel mapping config file."""

from __future__ import annotations

import logging
import os
import string
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

NETWORKS_GROUP = "Networks"
GLOBAL_GROUP = "Global"

_BUS_PREFIXES = ("CAN", "LIN", "FLEXRAY", "ETHERNET")
_SKIPPED_PREFIXES = ("🖧", "⚡")
_SKIPPED_WORDS = ("Nodes", "Generators", "blocks", "Databases", "Channels", "(Inactive)")
_SAFE_KEY_CHARS = frozenset(string.ascii_letters + string.digits + "_-.")
_HEX = frozenset(string.hexdigits)


class Network(NamedTuple):
    name: str
    bus: str


@dataclass
class ChannelInfo:
    """Mapping state of one network."""

    network: str
    app_channel: str = ""
    active: bool = False
    hardware: str = ""
    status: str = ""
    last_updated: datetime = field(default_factory=datetime.now)
    custom_settings: Dict[str, str] = field(default_factory=dict)


def _to_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def _utf16_units(text: str) -> List[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def _escape_key(key: str) -> str:
    parts: List[str] = []
    for char in key:
        if char == "/":
            parts.append("\\")
        elif char in _SAFE_KEY_CHARS:
            parts.append(char)
        elif ord(char) <= 0xFF:
            parts.append(f"%{ord(char):02X}")
        else:
            parts.extend(f"%U{unit:04X}" for unit in _utf16_units(char))
    return "".join(parts)


def _is_hex(text: str, length: int) -> bool:
    return len(text) == length and all(char in _HEX for char in text)


def _unescape_key(text: str) -> str:
    units: List[int] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == "\\":
            units.append(ord("/"))
            index += 1
        elif char == "%" and text[index + 1:index + 2] == "U" and _is_hex(text[index + 2:index + 6], 4):
            units.append(int(text[index + 2:index + 6], 16))
            index += 6
        elif char == "%" and _is_hex(text[index + 1:index + 3], 2):
            units.append(int(text[index + 1:index + 3], 16))
            index += 3
        else:
            units.extend(_utf16_units(char))
            index += 1
    raw = b"".join(unit.to_bytes(2, "little") for unit in units)
    return raw.decode("utf-16-le", "surrogatepass")


def _format_value(value: str) -> str:
    needs_quotes = (
        any(char in value for char in ',;="')
        or value != value.strip()
    )
    if not needs_quotes:
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _parse_value(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        inner = text[1:-1]
        result: List[str] = []
        chars = iter(inner)
        for char in chars:
            if char == "\\":
                result.append(next(chars, ""))
            else:
                result.append(char)
        return "".join(result)
    return text


def _read_ini(path: Path) -> Dict[str, Dict[str, str]]:
    sections: Dict[str, Dict[str, str]] = {}
    current = None
    with open(path, encoding="utf-8") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith(";") or line.startswith("#"):
                continue
            if line.startswith("[") and line.endswith("]"):
                current = sections.setdefault(_unescape_key(line[1:-1]), {})
                continue
            if current is None or "=" not in line:
                continue
            key, _, value = line.partition("=")
            current[_unescape_key(key.strip())] = _parse_value(value.strip())
    return sections


def _network_type_prefix(text: str) -> str:
    for prefix in _BUS_PREFIXES:
        if prefix in text:
            return prefix
    return ""


def _is_skipped_network(name: str) -> bool:
    return name.startswith(_SKIPPED_PREFIXES) or any(word in name for word in _SKIPPED_WORDS)


def read_networks(path: PathLike) -> List[Network]:
    """Read active networks from the simulation setup file and number them per bus type.

    Raises FileNotFoundError if the file does not exist.
    """
    with open(path, encoding="utf-8") as handle:
        lines = [raw.strip() for raw in handle]

    prefixes: Dict[int, str] = {}
    for line in lines:
        if not (line.startswith("tree\\child") and "\\text=" in line):
            continue
        parts = line.split("\\")
        if len(parts) < 3:
            continue
        child_part = parts[1]
        if not child_part.startswith("child") or len(parts) > 4:
            continue
        text = line.split("=")[-1].strip()
        if "Network" not in text:
            continue
        prefixes[_to_int(child_part[5:])] = _network_type_prefix(text)

    networks: List[Network] = []
    counters: Dict[str, int] = {}
    for line in lines:
        for index in sorted(prefixes):
            pattern = f"tree\\child{index}\\child"
            if not (line.startswith(pattern) and "\\text=" in line):
                continue
            if len(line.split("\\")) != 4:
                continue
            name = line.split("=")[-1].strip()
            if _is_skipped_network(name):
                continue
            prefix = prefixes[index]
            number = counters.get(prefix, 1)
            counters[prefix] = number + 1
            networks.append(Network(name, f"{prefix}{number}"))
    return networks


def mode_enabled(msetup_path: PathLike) -> bool:
    """Whether channel mapping is editable: not in offline-only mode."""
    online = offline = False
    try:
        with open(msetup_path, encoding="utf-8") as handle:
            for raw in handle:
                line = raw.strip()
                if line.startswith("OnlineChecked="):
                    online = line.split("=")[1].lower() == "true"
                elif line.startswith("OfflineChecked="):
                    offline = line.split("=")[1].lower() == "true"
    except OSError:
        logger.warning("Cannot open config file %s", msetup_path)
        return True
    if online:
        return True
    return not offline


def _parse_datetime(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return datetime.now()


def load_channel_config(path: PathLike) -> Dict[str, ChannelInfo]:
    """Read the per-network mapping; a missing file gives an empty mapping."""
    config_path = Path(path)
    if not config_path.exists():
        return {}
    sections = _read_ini(config_path)
    grouped: Dict[str, Dict[str, str]] = {}
    for key, value in sections.get(NETWORKS_GROUP, {}).items():
        group, sep, name = key.partition("/")
        if not sep:
            continue
        keys = grouped.setdefault(group, {})
        if "/" not in name:
            keys[name] = value

    infos: Dict[str, ChannelInfo] = {}
    for network in sorted(grouped):
        values = grouped[network]
        updated = values.get("LastUpdated")
        infos[network] = ChannelInfo(
            network=network,
            app_channel=values.get("AppChannel", ""),
            active=_to_bool(values.get("Active", "false")),
            hardware=values.get("Hardware", ""),
            status=values.get("Status", ""),
            last_updated=_parse_datetime(updated) if updated else datetime.now(),
            custom_settings={
                key: value for key, value in values.items() if key.startswith("_")
            },
        )
    logger.debug("Configuration loaded from %s", config_path)
    return infos


def save_channel_config(path: PathLike, infos: Mapping[str, ChannelInfo]) -> None:
    """Replace the file with the given mapping; status follows the active flag."""
    now = datetime.now().replace(microsecond=0).isoformat()
    lines = [f"[{GLOBAL_GROUP}]", f"LastSaved={now}", "", f"[{NETWORKS_GROUP}]"]
    for network in sorted(infos):
        info = infos[network]
        values = {
            "AppChannel": info.app_channel,
            "Active": "true" if info.active else "false",
            "Hardware": info.hardware,
            "Status": "Active" if info.active else "Inactive",
            "LastUpdated": now,
        }
        values.update(info.custom_settings)
        for key, value in values.items():
            lines.append(f"{_escape_key(network + '/' + key)}={_format_value(str(value))}")
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + "\n")
    logger.debug("Configuration saved successfully to %s", config_path)