"""System-view tree of the simulation setup and its INI persistence."""

from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Collection, Dict, Iterator, List, Mapping, MutableMapping, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

Settings = MutableMapping[str, str]

_QUOTED_CHARS = ',;="'


@dataclass(eq=False)
class TreeNode:
    """A node of the system view: its text, expansion state and optional database path."""

    text: str
    expanded: bool = False
    db_path: str = ""
    children: List["TreeNode"] = field(default_factory=list)
    parent: Optional["TreeNode"] = field(default=None, repr=False)

    def add_child(self, text: str) -> "TreeNode":
        """Append a new child called ``text`` and return it."""
        child = TreeNode(text=text, parent=self)
        self.children.append(child)
        return child

    def find(self, text: str) -> Optional["TreeNode"]:
        """Return the first direct child called ``text``, or None."""
        return next((child for child in self.children if child.text == text), None)

    def remove_child(self, child: "TreeNode") -> None:
        """Detach ``child``; raises ValueError if it is not a child of this node."""
        for index, candidate in enumerate(self.children):
            if candidate is child:
                del self.children[index]
                child.parent = None
                return
        raise ValueError(f"{child.text!r} is not a child of {self.text!r}")

    def walk(self) -> Iterator["TreeNode"]:
        """Yield this node and every descendant, breadth first."""
        queue = deque([self])
        while queue:
            node = queue.popleft()
            yield node
            queue.extend(node.children)


def unique_name(existing: Collection[str], name: str) -> str:
    """Trim ``name`` and add `` (n)`` with the smallest n that avoids ``existing``."""
    base = name.strip()
    candidate = base
    suffix = 1
    while candidate in existing:
        candidate = f"{base} ({suffix})"
        suffix += 1
    return candidate


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def _to_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        return 0


def save_tree(node: TreeNode, settings: Settings, prefix: str = "tree") -> None:
    """Store ``node`` and its subtree under ``prefix`` as ``/``-separated keys."""
    settings[f"{prefix}/text"] = node.text
    settings[f"{prefix}/expanded"] = "true" if node.expanded else "false"
    if node.db_path:
        settings[f"{prefix}/dbPath"] = node.db_path
    settings[f"{prefix}/childCount"] = str(len(node.children))
    for index, child in enumerate(node.children):
        save_tree(child, settings, f"{prefix}/child{index}")


def load_tree(node: TreeNode, settings: Mapping[str, str], prefix: str = "tree") -> None:
    """Fill ``node`` from keys under ``prefix``; children without a text key are skipped."""
    node.text = settings.get(f"{prefix}/text", node.text)
    node.expanded = _to_bool(settings.get(f"{prefix}/expanded", "false"))
    db_path = settings.get(f"{prefix}/dbPath", "")
    if db_path:
        node.db_path = db_path
    count = _to_int(settings.get(f"{prefix}/childCount", "0"))
    for index in range(count):
        child_prefix = f"{prefix}/child{index}"
        if f"{child_prefix}/text" in settings:
            load_tree(node.add_child(""), settings, child_prefix)


def _format_value(value: str) -> str:
    if not any(char in value for char in _QUOTED_CHARS) and value == value.strip():
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _parse_value(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        result: List[str] = []
        chars = iter(text[1:-1])
        for char in chars:
            result.append(next(chars, "") if char == "\\" else char)
        return "".join(result)
    return text


def read_ini(path: PathLike) -> Dict[str, Dict[str, str]]:
    """Read groups of ``key=value`` lines; ``\\`` in keys becomes ``/``. Missing file: empty."""
    groups: Dict[str, Dict[str, str]] = {}
    try:
        handle = open(path, encoding="utf-8")
    except FileNotFoundError:
        return groups
    current: Optional[Dict[str, str]] = None
    with handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith((";", "#")):
                continue
            if line.startswith("[") and line.endswith("]"):
                current = groups.setdefault(line[1:-1], {})
                continue
            if current is None or "=" not in line:
                continue
            key, _, value = line.partition("=")
            current[key.strip().replace("\\", "/")] = _parse_value(value.strip())
    return groups


def write_ini(path: PathLike, groups: Mapping[str, Mapping[str, str]]) -> None:
    """Replace ``path`` with the groups, keys sorted and ``/`` written as ``\\``."""
    lines: List[str] = []
    for name, values in groups.items():
        if lines:
            lines.append("")
        lines.append(f"[{name}]")
        for key in sorted(values):
            lines.append(f"{key.replace('/', chr(92))}={_format_value(str(values[key]))}")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + ("\n" if lines else ""))