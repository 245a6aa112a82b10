from __future__ import annotations

import json
from types import MappingProxyType

import pytest

from roadcap.network.attributes import (
    ATTR_TURN_EFFICIENCY,
    get_turn_efficiency_map,
    turn_efficiency,
)
from roadcap.network.road_network import Lane, Link, RoadNetwork


def _sample_network() -> RoadNetwork:
    network = RoadNetwork()
    network.add_link(
        Link(id="-40686598#1", capacity=1200, number_of_lanes=2, from_node="n1", to_node="n2")
    )
    network.add_link(Link(id="7653201", capacity=600))
    network.add_lane("-40686598#1", Lane(id="-40686598#1_0", capacity=600, to_links=["7653201"]))
    network.add_lane("-40686598#1", Lane(id="-40686598#1_1", capacity=600))
    return network


def test_turn_efficiency_map_created_on_first_access():
    link = Link(id="A", capacity=1000)
    cap = get_turn_efficiency_map(link)
    cap["B"] = "0.5"
    assert get_turn_efficiency_map(link) is cap
    assert turn_efficiency(link, "B") == pytest.approx(0.5)
    assert turn_efficiency(link, "C") == pytest.approx(1.0)
    assert turn_efficiency(link, "C", default=0.0) == 0.0


def test_read_only_turn_efficiency_map_is_copied():
    shared = MappingProxyType({"B": "0.25"})
    link_a = Link(id="A", capacity=1000)
    link_b = Link(id="B", capacity=1000)
    link_a.attributes[ATTR_TURN_EFFICIENCY] = shared
    link_b.attributes[ATTR_TURN_EFFICIENCY] = shared

    get_turn_efficiency_map(link_a)["C"] = "0.75"

    assert link_a.attributes[ATTR_TURN_EFFICIENCY] == {"B": "0.25", "C": "0.75"}
    assert dict(link_b.attributes[ATTR_TURN_EFFICIENCY]) == {"B": "0.25"}
    assert get_turn_efficiency_map(link_b) is not get_turn_efficiency_map(link_a)


def test_elements_own_their_attributes():
    defaults = {"junction": False, ATTR_TURN_EFFICIENCY: {"X": "1.0"}}
    link_a = Link(id="A", capacity=1000, attributes=defaults)
    link_b = Link(id="B", capacity=1000, attributes=defaults)

    get_turn_efficiency_map(link_a)["Y"] = "0.1"
    link_a.attributes["junction"] = True

    assert link_b.attributes == {"junction": False, ATTR_TURN_EFFICIENCY: {"X": "1.0"}}
    assert defaults[ATTR_TURN_EFFICIENCY] == {"X": "1.0"}


def test_add_lane_requires_link():
    network = RoadNetwork()
    with pytest.raises(KeyError):
        network.add_lane("missing", Lane(id="missing_0", capacity=100))


def test_duplicate_link_rejected():
    network = _sample_network()
    with pytest.raises(ValueError):
        network.add_link(Link(id="7653201", capacity=1))


@pytest.mark.parametrize("filename", ["network.json", "network.json.gz"])
def test_network_save_load_roundtrip(tmp_path, filename):
    network = _sample_network()
    get_turn_efficiency_map(network.links["-40686598#1"])["7653201"] = "0.5"
    path = tmp_path / filename
    network.save(path)

    loaded = RoadNetwork.load(path)
    assert loaded.to_json_dict() == network.to_json_dict()
    lane = loaded.get_lane("-40686598#1", "-40686598#1_0")
    assert lane.to_links == ["7653201"]
    assert loaded.get_lane("7653201", "7653201_0") is None


def test_load_rejects_link_without_capacity(tmp_path):
    path = tmp_path / "network.json"
    path.write_text(json.dumps({"links": [{"id": "A"}]}), encoding="utf-8")
    with pytest.raises(ValueError, match="capacity"):
        RoadNetwork.load(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RoadNetwork.load(tmp_path / "nope.json")
