import os

import pytest

from cantrace.channel_config import read_networks
from cantrace.simulation import (
    DATABASES_TEXT,
    FIXED_CHILDREN,
    ROOT_TEXT,
    SimulationSetup,
)


@pytest.fixture
def cfg(tmp_path):
    return tmp_path / "data" / "SsetUp.cfg"


def _shape(node):
    return (node.text, node.expanded, node.db_path, [_shape(c) for c in node.children])


def test_fresh_setup_has_empty_root(cfg):
    setup = SimulationSetup(cfg)
    assert setup.root.text == ROOT_TEXT
    assert setup.root.children == []
    assert setup.network_active is False


def test_add_network_creates_group_and_fixed_children(cfg):
    setup = SimulationSetup(cfg)
    network = setup.add_network("FrontCAN", "CAN")
    group = setup.root.find("🖧CAN Network")
    assert group is not None
    assert network.parent is group
    assert network.text == "FrontCAN"
    assert [c.text for c in network.children] == list(FIXED_CHILDREN)
    assert group.expanded and network.expanded


def test_add_network_duplicate_gets_suffix(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("FrontCAN", "CAN")
    second = setup.add_network("  FrontCAN ", "CAN")
    assert second.text == "FrontCAN (1)"
    assert len(setup.root.children) == 1


def test_add_network_rejects_empty_name_and_unknown_bus(cfg):
    setup = SimulationSetup(cfg)
    with pytest.raises(ValueError):
        setup.add_network("   ", "CAN")
    with pytest.raises(ValueError):
        setup.add_network("X", "MOST")


def test_config_round_trip(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("FrontCAN", "CAN")
    setup.add_network("Body", "LIN")
    setup.toggle_network_active()
    reloaded = SimulationSetup(cfg)
    assert _shape(reloaded.root) == _shape(setup.root)
    assert reloaded.network_active is True


def test_saved_file_is_readable_as_network_list(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("FrontCAN", "CAN")
    setup.add_network("RearCAN", "CAN")
    networks = read_networks(cfg)
    assert [(n.name, n.bus) for n in networks] == [("FrontCAN", "CAN1"), ("RearCAN", "CAN2")]


def test_add_child_repeats_are_marked(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("Node", "CAN")
    group = setup.root.find("🖧CAN Network")
    child = setup.add_child(group, "Node")
    assert child.text == "🖧Node (1)"
    assert [c.text for c in child.children] == list(FIXED_CHILDREN)


def test_add_child_requires_network_group(cfg):
    setup = SimulationSetup(cfg)
    network = setup.add_network("FrontCAN", "CAN")
    with pytest.raises(ValueError):
        setup.add_child(network, "Other")


def test_deactivate_and_activate_all(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("A", "CAN")
    setup.add_network("B", "CAN")
    group = setup.root.find("🖧CAN Network")
    setup.deactivate_all(group)
    assert [c.text for c in group.children] == ["A (Inactive)", "B (Inactive)"]
    setup.deactivate_all(group)
    assert [c.text for c in group.children] == ["A (Inactive)", "B (Inactive)"]
    setup.activate_all(group)
    assert [c.text for c in group.children] == ["A", "B"]


def test_inactive_network_is_left_out_of_network_list(cfg):
    setup = SimulationSetup(cfg)
    network = setup.add_network("A", "CAN")
    assert setup.toggle_active(network) is False
    assert read_networks(cfg) == []
    assert setup.toggle_active(network) is True
    assert network.text == "A"


def test_remove_all_and_remove(cfg):
    setup = SimulationSetup(cfg)
    setup.add_network("A", "CAN")
    setup.add_network("B", "LIN")
    can_group = setup.root.find("🖧CAN Network")
    setup.remove_all(can_group)
    assert can_group.children == []
    setup.remove(can_group)
    assert setup.root.find("🖧CAN Network") is None
    assert [c.text for c in SimulationSetup(cfg).root.children] == ["🖧LIN Network"]


def test_remove_root_raises(cfg):
    setup = SimulationSetup(cfg)
    with pytest.raises(ValueError):
        setup.remove(setup.root)


def test_rename(cfg):
    setup = SimulationSetup(cfg)
    network = setup.add_network("A", "CAN")
    assert setup.rename(network, "") is False
    assert network.text == "A"
    assert setup.rename(network, "Renamed") is True
    reloaded = SimulationSetup(cfg)
    assert reloaded.root.children[0].children[0].text == "Renamed"


def test_show_fixed_children_is_idempotent(cfg):
    setup = SimulationSetup(cfg)
    network = setup.add_network("A", "CAN")
    setup.show_fixed_children(network)
    assert [c.text for c in network.children] == list(FIXED_CHILDREN)


def test_add_databases_and_check(cfg, tmp_path):
    db_file = tmp_path / "body.dbc"
    db_file.write_text("VERSION \"\"\n", encoding="utf-8")
    setup = SimulationSetup(cfg)
    network = setup.add_network("A", "CAN")
    databases = network.find(DATABASES_TEXT)
    added = setup.add_databases(databases, [db_file, db_file])
    assert len(added) == 1
    assert added[0].text == "body.dbc"
    assert added[0].db_path == os.path.abspath(db_file)
    assert setup.database_exists(added[0]) is True
    assert setup.check_all_databases() == []

    db_file.unlink()
    reloaded = SimulationSetup(cfg)
    missing = reloaded.check_all_databases()
    assert [n.db_path for n in missing] == [os.path.abspath(db_file)]
    assert reloaded.database_exists(missing[0]) is False


def test_database_exists_without_path(cfg):
    setup = SimulationSetup(cfg)
    assert setup.database_exists(setup.root) is False


def test_toggle_network_active_flips(cfg):
    setup = SimulationSetup(cfg)
    assert setup.toggle_network_active() is True
    assert setup.toggle_network_active() is False
    assert SimulationSetup(cfg).network_active is False