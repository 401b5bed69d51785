"""List of log files used for offline measurement, stored in an INI config."""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

SUPPORTED_EXTENSIONS = (".blf", ".asc")
_SECTION = "Files"


def _suffix(path: str) -> str:
    name = os.path.basename(path)
    return name.rpartition(".")[2] if "." in name else ""


def _last_modified(path: str) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(os.path.getmtime(path))
    except OSError:
        return None


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def is_valid_file_type(path: PathLike) -> bool:
    """True when the file's extension is one the offline mode accepts."""
    return "." + _suffix(os.fspath(path)).lower() in SUPPORTED_EXTENSIONS


class DuplicateFileError(ValueError):
    """The file is already in the list."""


@dataclass
class OfflineFile:
    path: str
    name: str
    type: str
    exists: bool = False
    activated: bool = False
    last_modified: Optional[datetime] = None

    @classmethod
    def from_path(cls, path: str) -> "OfflineFile":
        return cls(
            path=path,
            name=os.path.basename(path),
            type=_suffix(path).upper(),
            exists=os.path.exists(path),
            activated=False,
            last_modified=_last_modified(path),
        )


class OfflineFileList:
    """The offline file list, loaded from and saved to ``config_path``."""

    def __init__(self, config_path: PathLike) -> None:
        self.config_path = Path(config_path)
        self.files: List[OfflineFile] = []
        self.load()

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[OfflineFile]:
        return iter(self.files)

    def __getitem__(self, row: int) -> OfflineFile:
        return self.files[row]

    def add_file(self, path: PathLike) -> OfflineFile:
        """Append a file; raises DuplicateFileError if its path is already listed."""
        path = os.fspath(path)
        if any(entry.path == path for entry in self.files):
            raise DuplicateFileError(f"File already exists in the list: {path}")
        entry = OfflineFile.from_path(path)
        self.files.append(entry)
        return entry

    def add_dropped(self, paths: Iterable[PathLike]) -> bool:
        """Add every supported file; save and return True if any was accepted."""
        added = False
        for path in paths:
            path = os.fspath(path)
            if not is_valid_file_type(path):
                continue
            try:
                self.add_file(path)
            except DuplicateFileError:
                logger.warning("File already exists in the list: %s", path)
            added = True
        if added:
            self.save()
        return added

    def set_activated(self, row: int, activated: bool) -> None:
        if 0 <= row < len(self.files):
            self.files[row].activated = activated
            self.save()

    def refresh(self) -> bool:
        """Update existence and modification times; save and return True on change."""
        changed = False
        for entry in self.files:
            exists = os.path.exists(entry.path)
            if exists != entry.exists:
                entry.exists = exists
                changed = True
            if exists:
                modified = _last_modified(entry.path)
                if modified != entry.last_modified:
                    entry.last_modified = modified
                    changed = True
        if changed:
            self.save()
        return changed

    def remove_rows(self, rows: Iterable[int]) -> None:
        for row in sorted(set(rows), reverse=True):
            del self.files[row]
        self.save()

    def clear(self) -> None:
        self.files.clear()
        self.save()

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        return parser

    def load(self) -> None:
        parser = self._parser()
        parser.read(self.config_path, encoding="utf-8")
        self.files = []
        if not parser.has_section(_SECTION):
            return
        section = parser[_SECTION]
        try:
            size = int(section.get("size", "0"))
        except ValueError:
            size = 0
        for index in range(1, size + 1):
            def value(key: str) -> str:
                return section.get(f"{index}\\{key}", "")

            path = value("path")
            modified_text = value("lastModified")
            try:
                modified = datetime.fromisoformat(modified_text) if modified_text else None
            except ValueError:
                modified = None
            self.files.append(
                OfflineFile(
                    path=path,
                    name=value("name"),
                    type=value("type"),
                    exists=os.path.exists(path),
                    activated=_to_bool(value("activated")),
                    last_modified=modified,
                )
            )

    def save(self) -> None:
        parser = self._parser()
        entries = {}
        for index, entry in enumerate(self.files, start=1):
            entries[f"{index}\\activated"] = "true" if entry.activated else "false"
            entries[f"{index}\\lastModified"] = (
                entry.last_modified.isoformat() if entry.last_modified else ""
            )
            entries[f"{index}\\name"] = entry.name
            entries[f"{index}\\path"] = entry.path
            entries[f"{index}\\type"] = entry.type
        entries["size"] = str(len(self.files))
        parser[_SECTION] = entries
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as handle:
            parser.write(handle, space_around_delimiters=False)