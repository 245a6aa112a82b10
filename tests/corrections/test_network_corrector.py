from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from roadcap.corrections.network_corrections import NetworkCorrections
from roadcap.corrections.network_corrector import (
    MissingNetworkElementsError,
    apply_network_corrections,
)
from roadcap.network.attributes import ATTR_LANES_CORRECTED, ATTR_TURN_EFFICIENCY, turn_efficiency
from roadcap.network.road_network import Link, RoadNetwork

REPO_CORRECTIONS = Path(__file__).resolve().parents[2] / "config" / "network_corrections.yaml"


def _make_network(*link_ids: str) -> RoadNetwork:
    network = RoadNetwork()
    for link_id in link_ids:
        network.add_link(Link(id=link_id, capacity=1000, number_of_lanes=1))
    return network


def test_corrections_double_lanes_and_override_capacity():
    network = _make_network("A", "B", "C")
    corrections = NetworkCorrections(double_lanes=("A",), capacity_overrides={"B": 4000})

    applied = apply_network_corrections(network, corrections)

    assert applied == 2
    assert network.links["A"].number_of_lanes == 2
    assert network.links["A"].capacity == pytest.approx(2000)
    assert network.links["B"].capacity == pytest.approx(4000)
    assert network.links["B"].number_of_lanes == 1
    assert network.links["C"].capacity == pytest.approx(1000)


def test_override_wins_over_doubling():
    network = _make_network("A")
    corrections = NetworkCorrections(double_lanes=("A",), capacity_overrides={"A": 1200})
    apply_network_corrections(network, corrections)
    assert network.links["A"].number_of_lanes == 2
    assert network.links["A"].capacity == pytest.approx(1200)


def test_duplicate_ids_applied_once():
    network = _make_network("A")
    corrections = NetworkCorrections(double_lanes=("A", "A"))
    assert corrections.double_lanes == ("A",)
    apply_network_corrections(network, corrections)
    assert network.links["A"].number_of_lanes == 2


def test_reapplying_does_not_compound():
    network = _make_network("A")
    corrections = NetworkCorrections(double_lanes=("A",))
    apply_network_corrections(network, corrections)
    assert apply_network_corrections(network, corrections) == 0
    assert network.links["A"].number_of_lanes == 2
    assert network.links["A"].attributes[ATTR_LANES_CORRECTED] is True


def test_turn_efficiencies_follow_corrected_capacity():
    network = _make_network("A", "B", "C")
    network.links["A"].attributes[ATTR_TURN_EFFICIENCY] = {"B": "0.8", "C": "0.25"}
    network.links["B"].attributes[ATTR_TURN_EFFICIENCY] = {"C": "0.6"}
    corrections = NetworkCorrections(double_lanes=("A",), capacity_overrides={"B": 1500})

    apply_network_corrections(network, corrections)

    # Counts behind the ratios are unchanged: ratio * capacity stays constant.
    link_a = network.links["A"]
    assert turn_efficiency(link_a, "B") * link_a.capacity == pytest.approx(800)
    assert turn_efficiency(link_a, "C") * link_a.capacity == pytest.approx(250)
    link_b = network.links["B"]
    assert turn_efficiency(link_b, "C") * link_b.capacity == pytest.approx(600)
    assert ATTR_TURN_EFFICIENCY not in network.links["C"].attributes

    apply_network_corrections(network, corrections)
    assert turn_efficiency(link_a, "B") == pytest.approx(0.4)
    assert turn_efficiency(link_b, "C") == pytest.approx(0.4)


def test_missing_ids_reported_together_before_mutation():
    network = _make_network("A", "B")
    corrections = NetworkCorrections(
        double_lanes=("A", "X"),
        capacity_overrides={"B": 3000, "Y": 1200},
    )

    with pytest.raises(MissingNetworkElementsError) as excinfo:
        apply_network_corrections(network, corrections)

    assert excinfo.value.missing_ids == ("X", "Y")
    assert "X" in str(excinfo.value) and "Y" in str(excinfo.value)
    assert network.links["A"].number_of_lanes == 1
    assert network.links["B"].capacity == pytest.approx(1000)


def test_corrections_yaml_roundtrip(tmp_path):
    yaml_text = textwrap.dedent(
        """
        version: test
        double_lanes:
          - "-40686598#1"
          - "25494723"
        capacity_overrides:
          "314648993#0": 6000
        """
    ).strip()
    path = tmp_path / "corrections.yaml"
    path.write_text(yaml_text, encoding="utf-8")

    corrections = NetworkCorrections.from_yaml(path)
    assert corrections.double_lanes == ("-40686598#1", "25494723")
    assert corrections.capacity_overrides == {"314648993#0": 6000.0}
    assert corrections.link_ids == ["-40686598#1", "25494723", "314648993#0"]

    out = tmp_path / "roundtrip.yaml"
    corrections.to_yaml(out)
    assert NetworkCorrections.from_yaml(out) == corrections


def test_corrections_reject_bad_sections(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("double_lanes: A\n", encoding="utf-8")
    with pytest.raises(TypeError):
        NetworkCorrections.from_yaml(path)
    with pytest.raises(ValueError):
        NetworkCorrections(capacity_overrides={"A": 0})


def test_shipped_corrections_table_loads():
    corrections = NetworkCorrections.from_yaml(REPO_CORRECTIONS)
    assert len(corrections.double_lanes) == 39
    assert corrections.capacity_overrides["314648993#0"] == pytest.approx(6000)
    assert corrections.capacity_overrides["23157292#0"] == pytest.approx(1200)
