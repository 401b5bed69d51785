import pytest

from cantrace.channel_config import (
    ChannelInfo,
    load_channel_config,
    mode_enabled,
    read_networks,
    save_channel_config,
)

SSETUP = "\n".join(
    [
        "[SimulationSetup]",
        "networkActive=false",
        "tree\\text=🖧 Network",
        "tree\\childCount=2",
        "tree\\child0\\text=🖧CAN Network",
        "tree\\child0\\childCount=3",
        "tree\\child0\\child0\\text=FrontCAN",
        "tree\\child0\\child0\\child0\\text=🖧 Nodes",
        "tree\\child0\\child1\\text=RearCAN (Inactive)",
        "tree\\child0\\child2\\text=BodyCAN",
        "tree\\child1\\text=🖧LIN Network",
        "tree\\child1\\child0\\text=DoorLIN",
        "",
    ]
)


def test_read_networks_numbers_per_bus(tmp_path):
    path = tmp_path / "SsetUp.cfg"
    path.write_text(SSETUP, encoding="utf-8")
    networks = read_networks(path)
    assert networks == [("FrontCAN", "CAN1"), ("BodyCAN", "CAN2"), ("DoorLIN", "LIN1")]
    assert networks[0].bus == "CAN1"


def test_read_networks_skips_non_network_groups(tmp_path):
    path = tmp_path / "SsetUp.cfg"
    path.write_text(
        "tree\\child0\\text=Other\ntree\\child0\\child0\\text=Lonely\n", encoding="utf-8"
    )
    assert read_networks(path) == []


def test_read_networks_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_networks(tmp_path / "absent.cfg")


@pytest.mark.parametrize(
    "content, expected",
    [
        ("[Buttons]\nOnlineChecked=true\nOfflineChecked=false\n", True),
        ("[Buttons]\nOnlineChecked=false\nOfflineChecked=true\n", False),
        ("[Buttons]\nOnlineChecked=false\nOfflineChecked=false\n", True),
        ("[Buttons]\nOnlineChecked=TRUE\nOfflineChecked=true\n", True),
    ],
)
def test_mode_enabled(tmp_path, content, expected):
    path = tmp_path / "MsetUp.cfg"
    path.write_text(content, encoding="utf-8")
    assert mode_enabled(path) is expected


def test_mode_enabled_missing_file(tmp_path):
    assert mode_enabled(tmp_path / "absent.cfg") is True


def test_load_missing_file_is_empty(tmp_path):
    assert load_channel_config(tmp_path / "ChMap.cfg") == {}


def test_round_trip(tmp_path):
    path = tmp_path / "ChMap.cfg"
    infos = {
        "Front CAN": ChannelInfo(
            network="Front CAN",
            app_channel="CAN1",
            active=True,
            hardware="VN1630 | Serial: 1 | Bus: CAN | Channel: 1",
            custom_settings={"_baud": "500000"},
        ),
        "DoorLIN": ChannelInfo(network="DoorLIN", active=False, hardware="None"),
    }
    save_channel_config(path, infos)
    loaded = load_channel_config(path)
    assert list(loaded) == ["DoorLIN", "Front CAN"]
    front = loaded["Front CAN"]
    assert front.app_channel == "CAN1"
    assert front.active is True
    assert front.hardware == infos["Front CAN"].hardware
    assert front.status == "Active"
    assert front.custom_settings == {"_baud": "500000"}
    assert loaded["DoorLIN"].status == "Inactive"
    assert loaded["DoorLIN"].hardware == "None"


def test_saved_keys_are_escaped(tmp_path):
    path = tmp_path / "ChMap.cfg"
    save_channel_config(path, {"Front CAN": ChannelInfo(network="Front CAN", active=True)})
    text = path.read_text(encoding="utf-8")
    assert "[Networks]" in text
    assert "Front%20CAN\\Active=true" in text


def test_values_with_special_characters_round_trip(tmp_path):
    path = tmp_path / "ChMap.cfg"
    hardware = 'a,b;c="d"'
    save_channel_config(path, {"Net": ChannelInfo(network="Net", hardware=hardware)})
    assert load_channel_config(path)["Net"].hardware == hardware


def test_only_underscore_keys_are_custom(tmp_path):
    path = tmp_path / "ChMap.cfg"
    path.write_text(
        "[Networks]\nNet\\Active=true\nNet\\extra=1\nNet\\_keep=2\n", encoding="utf-8"
    )
    info = load_channel_config(path)["Net"]
    assert info.custom_settings == {"_keep": "2"}
    assert info.active is True
    assert info.network == "Net"