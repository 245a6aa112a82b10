"""Turn efficiencies relative to resolved link and lane capacities.

A turn efficiency is the share of a link's (or lane's) capacity taken by one
turning movement. Ratios of one element are not normalized: several movements
through a shared lane can each come close to 1.0.

Both functions must run after the capacities they divide by have been
resolved; they only touch elements listed in ``resolved_*``.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, Mapping

from roadcap.network.attributes import get_turn_efficiency_map
from roadcap.network.domain_types import LaneKey, TurnKey, TurnPair
from roadcap.network.road_network import LanesToLinkAssignment, RoadNetwork

logger = logging.getLogger(__name__)


def calc_turn_capacities(triples: Mapping[TurnKey, float]) -> Dict[TurnPair, float]:
    """Sum counts of every (fromLink, toLink) pair across the lanes of fromLink."""
    turn_capacities: Dict[TurnPair, float] = {}
    for key, count in triples.items():
        pair = key.turn_pair
        turn_capacities[pair] = turn_capacities.get(pair, 0) + count
    return turn_capacities


def set_link_turn_efficiencies(
    network: RoadNetwork,
    triples: Mapping[TurnKey, float],
    resolved_links: AbstractSet[str],
) -> int:
    """Store per-destination ratios on every resolved link. Returns the number of ratios set."""
    written = 0
    for pair, turn_capacity in calc_turn_capacities(triples).items():
        if pair.from_link not in resolved_links:
            continue
        link = network.get_link(pair.from_link)
        if link is None or link.capacity <= 0:
            continue
        get_turn_efficiency_map(link)[pair.to_link] = str(turn_capacity / link.capacity)
        written += 1
    logger.info("Set %d link turn efficiencies on %d links", written, len(resolved_links))
    return written


def set_lane_turn_efficiencies(
    lanes: Mapping[str, LanesToLinkAssignment],
    triples: Mapping[TurnKey, float],
    resolved_lanes: AbstractSet[LaneKey],
) -> int:
    """Store per-destination ratios on every resolved lane. Returns the number of ratios set."""
    written = 0
    for key, count in triples.items():
        if key.lane_key not in resolved_lanes:
            continue
        l2l = lanes.get(key.from_link)
        if l2l is None:
            continue
        lane = l2l.lanes.get(key.from_lane)
        if lane is None or lane.capacity <= 0:
            continue
        get_turn_efficiency_map(lane)[key.to_link] = str(count / lane.capacity)
        written += 1
    logger.info("Set %d lane turn efficiencies on %d lanes", written, len(resolved_lanes))
    return written


__all__ = [
    "calc_turn_capacities",
    "set_lane_turn_efficiencies",
    "set_link_turn_efficiencies",
]
