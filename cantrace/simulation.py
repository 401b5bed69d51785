"""Simulation setup: the network tree of the system view, saved to ``SsetUp.cfg``."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List, Union

from cantrace.sim_tree import TreeNode, load_tree, read_ini, save_tree, unique_name, write_ini

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

GROUP = "SimulationSetup"
TREE_PREFIX = "tree"
NETWORK_ACTIVE_KEY = "networkActive"

ROOT_TEXT = "🖧 Network"
DATABASES_TEXT = "🖧 Databases"
GROUP_MARK = "🖧"
INACTIVE_MARK = "(Inactive)"
INACTIVE_SUFFIX = " (Inactive)"

BUS_TYPES = ("CAN", "CAN FD", "LIN", "FLEXRAY", "ETHERNET")

FIXED_CHILDREN = (
    "🖧 Nodes",
    "🖧 Interactive Generators",
    "🖧 Replay blocks",
    DATABASES_TEXT,
    "🖧 Channels",
)


def _to_bool(text: str) -> bool:
    return text.strip().lower() not in ("", "0", "false")


def _is_inactive(node: TreeNode) -> bool:
    return INACTIVE_MARK in node.text


def _activate(node: TreeNode) -> None:
    if _is_inactive(node):
        node.text = node.text.replace(INACTIVE_SUFFIX, "")


def _deactivate(node: TreeNode) -> None:
    if not _is_inactive(node):
        node.text += INACTIVE_SUFFIX


class SimulationSetup:
    """The system-view tree and the network-active flag, persisted in ``config_path``."""

    def __init__(self, config_path: PathLike) -> None:
        self.config_path = Path(config_path)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.root = TreeNode(text=ROOT_TEXT, expanded=True)
        self.network_active = False
        self.load_config()
        self.check_all_databases()

    def save_config(self) -> None:
        """Replace the config file with the current tree and flag."""
        settings: Dict[str, str] = {
            NETWORK_ACTIVE_KEY: "true" if self.network_active else "false"
        }
        save_tree(self.root, settings, TREE_PREFIX)
        write_ini(self.config_path, {GROUP: settings})
        if not self.config_path.exists():
            logger.debug("Failed to save config file!")

    def load_config(self) -> None:
        """Rebuild the tree and flag from the config file; a missing file gives defaults."""
        settings = read_ini(self.config_path).get(GROUP, {})
        self.network_active = _to_bool(settings.get(NETWORK_ACTIVE_KEY, "false"))
        self.root = TreeNode(text=ROOT_TEXT, expanded=True)
        load_tree(self.root, settings, TREE_PREFIX)

    def _is_network_group(self, node: TreeNode) -> bool:
        return node.parent is self.root and "Network" in node.text

    def add_network(self, name: str, bus_type: str = "CAN") -> TreeNode:
        """Add a network under the group of ``bus_type``, creating the group if needed."""
        if bus_type not in BUS_TYPES:
            raise ValueError(f"Unknown bus type: {bus_type!r}")
        if self.root.text != ROOT_TEXT:
            raise ValueError("The tree has no network root")
        new_name = name.strip()
        if not new_name:
            raise ValueError("Name cannot be empty.")

        group_name = f"{GROUP_MARK}{bus_type} Network"
        group = self.root.find(group_name) or self.root.add_child(group_name)
        existing = {child.text for child in group.children}
        network = group.add_child(unique_name(existing, new_name))
        self.show_fixed_children(network)
        self.root.expanded = True
        group.expanded = True
        self.save_config()
        return network

    def add_child(self, group: TreeNode, name: str) -> TreeNode:
        """Add a network under a bus-type group; repeated names get a marked suffix."""
        if not self._is_network_group(group):
            raise ValueError(f"{group.text!r} is not a network group")
        if not name.strip():
            raise ValueError("Name cannot be empty.")
        existing = {child.text for child in group.children}
        final_name = name.strip()
        suffix = 1
        while final_name in existing:
            final_name = f"{GROUP_MARK}{name} ({suffix})"
            suffix += 1
        child = group.add_child(final_name)
        self.show_fixed_children(child)
        group.expanded = True
        self.save_config()
        return child

    def show_fixed_children(self, node: TreeNode) -> None:
        """Give ``node`` each of the fixed folders it does not have yet."""
        existing = {child.text for child in node.children}
        for text in FIXED_CHILDREN:
            if text not in existing:
                node.add_child(text)
        node.expanded = True

    def activate_all(self, group: TreeNode) -> None:
        for child in group.children:
            _activate(child)
        self.save_config()

    def deactivate_all(self, group: TreeNode) -> None:
        for child in group.children:
            _deactivate(child)
        self.save_config()

    def remove_all(self, group: TreeNode) -> None:
        for child in list(group.children):
            group.remove_child(child)
        self.save_config()

    def toggle_active(self, node: TreeNode) -> bool:
        """Flip the inactive mark of a network; return whether it is now active."""
        if _is_inactive(node):
            _activate(node)
        else:
            _deactivate(node)
        self.save_config()
        return not _is_inactive(node)

    def rename(self, node: TreeNode, name: str) -> bool:
        """Rename ``node``; an empty name is ignored and False is returned."""
        if not name:
            return False
        node.text = name
        self.save_config()
        return True

    def remove(self, node: TreeNode) -> None:
        """Remove ``node`` and its subtree; the root cannot be removed."""
        if node.parent is None:
            raise ValueError("The root node cannot be removed")
        node.parent.remove_child(node)
        self.save_config()

    def add_databases(self, databases_node: TreeNode, paths: Iterable[PathLike]) -> List[TreeNode]:
        """Add database files by absolute path, skipping ones already listed."""
        added: List[TreeNode] = []
        for path in paths:
            absolute = os.path.abspath(os.fspath(path))
            file_name = os.path.basename(absolute)
            if any(child.db_path == absolute for child in databases_node.children):
                logger.warning("Database '%s' already exists.", file_name)
                continue
            node = databases_node.add_child(file_name)
            node.db_path = absolute
            self.database_exists(node)
            added.append(node)
            logger.debug("Added database file: %s Path: %s", file_name, absolute)
        databases_node.expanded = True
        self.save_config()
        return added

    def database_exists(self, node: TreeNode) -> bool:
        """Whether the database file behind ``node`` is a regular file that exists."""
        if not node.db_path:
            return False
        exists = os.path.isfile(node.db_path)
        if not exists:
            logger.debug("Database file not found: %s", node.db_path)
        return exists

    def check_all_databases(self) -> List[TreeNode]:
        """Check every database entry in the tree; return those whose file is missing."""
        missing: List[TreeNode] = []
        for node in self.root.walk():
            if node.text != DATABASES_TEXT:
                continue
            for child in node.children:
                if child.db_path and not self.database_exists(child):
                    missing.append(child)
        return missing

    def toggle_network_active(self) -> bool:
        """Flip the network-active flag, save, and return the new value."""
        self.network_active = not self.network_active
        self.save_config()
        return self.network_active