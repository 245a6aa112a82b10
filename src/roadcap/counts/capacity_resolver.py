"""Resolve link and lane capacities from aggregated turning-movement counts."""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Set

from roadcap.network.attributes import (
    ATTR_CAPACITY_FACTOR,
    ATTR_JUNCTION,
    ATTR_LANES_CORRECTED,
    LANE_CORRECTION_FACTOR,
)
from roadcap.network.domain_types import LaneKey, TurnKey
from roadcap.network.road_network import Lane, LanesToLinkAssignment, RoadNetwork

from .turn_efficiency import set_lane_turn_efficiencies, set_link_turn_efficiencies

logger = logging.getLogger(__name__)

# Capacities below this value per lane (veh/h) are implausible and ignored.
DEFAULT_CAPACITY_THRESHOLD = 375.0


def calc_max_lane_capacities(triples: Mapping[TurnKey, float]) -> Dict[LaneKey, float]:
    """Maximum count per (link, lane), independent of turning direction.

    A lane serves its turning movements in turn rather than all at once, so its
    capacity is bounded by the highest single directional count, not the sum.
    """
    lane_capacities: Dict[LaneKey, float] = {}
    for key, count in triples.items():
        lane_key = key.lane_key
        previous = lane_capacities.get(lane_key)
        if previous is None or count > previous:
            lane_capacities[lane_key] = count
    return lane_capacities


def calc_link_capacity_sums(lane_capacities: Mapping[LaneKey, float]) -> Dict[str, float]:
    link_capacities: Dict[str, float] = {}
    for lane_key, capacity in lane_capacities.items():
        link_capacities[lane_key.link] = link_capacities.get(lane_key.link, 0) + capacity
    return link_capacities


def set_link_capacities(
    network: RoadNetwork,
    triples: Mapping[TurnKey, float],
    capacity_threshold: float = DEFAULT_CAPACITY_THRESHOLD,
) -> int:
    """Aggregate lane capacities into link capacities and set link turn efficiencies.

    Links whose summed lane capacity is below ``capacity_threshold`` times
    their number of lanes keep their capacity. Other links get the sum and the
    ``junction`` attribute. Links whose lanes were already corrected keep the
    correction factor on top of the summed capacity. Lane capacities are not
    modified.

    Returns:
        Number of links from the counts that are not in the network.
    """
    link_capacities = calc_link_capacity_sums(calc_max_lane_capacities(triples))

    resolved: Set[str] = set()
    unmatched = 0
    for link_id, capacity in link_capacities.items():
        link = network.get_link(link_id)
        if link is None:
            unmatched += 1
            continue
        if capacity < capacity_threshold * link.number_of_lanes:
            logger.debug(
                "Ignoring implausible capacity %.1f for link %s with %.1f lanes",
                capacity,
                link_id,
                link.number_of_lanes,
            )
            continue
        if link.attributes.get(ATTR_LANES_CORRECTED):
            capacity = capacity * LANE_CORRECTION_FACTOR
        link.capacity = float(capacity)
        link.attributes[ATTR_JUNCTION] = True
        resolved.add(link_id)

    logger.info(
        "Resolved capacities of %d/%d counted links (%d unmatched)",
        len(resolved),
        len(link_capacities),
        unmatched,
    )
    set_link_turn_efficiencies(network, triples, resolved)
    return unmatched


def set_lane_capacities(
    lanes: Mapping[str, LanesToLinkAssignment],
    triples: Mapping[TurnKey, float],
    capacity_threshold: float = DEFAULT_CAPACITY_THRESHOLD,
) -> int:
    """Apply maximum lane capacities to the lanes and set lane turn efficiencies.

    Returns:
        Number of (link, lane) pairs from the counts that are not in ``lanes``.
    """
    resolved: Set[LaneKey] = set()
    unmatched = 0
    for lane_key, capacity in calc_max_lane_capacities(triples).items():
        l2l = lanes.get(lane_key.link)
        if l2l is None:
            unmatched += 1
            continue
        lane = l2l.lanes.get(lane_key.lane)
        if lane is None:
            unmatched += 1
            continue
        if capacity < capacity_threshold:
            logger.debug("Ignoring implausible capacity %.1f for lane %s", capacity, lane_key)
            continue
        lane.capacity = float(capacity)
        resolved.add(lane_key)

    logger.info("Resolved capacities of %d lanes (%d unmatched)", len(resolved), unmatched)
    set_lane_turn_efficiencies(lanes, triples, resolved)
    return unmatched


def set_lane_capacity_factor(lanes: Mapping[str, LanesToLinkAssignment], factor: float) -> int:
    """Record ``factor`` on every lane. Returns the number of lanes carrying a factor.

    Stored capacities and turn efficiencies stay unscaled; consumers apply the
    factor through :func:`effective_lane_capacity`. A factor of 1 removes it.
    """
    if factor <= 0:
        raise ValueError("Lane capacity factor must be positive")
    factor = float(factor)
    tagged = 0
    for l2l in lanes.values():
        for lane in l2l.lanes.values():
            if factor == 1.0:
                lane.attributes.pop(ATTR_CAPACITY_FACTOR, None)
                continue
            lane.attributes[ATTR_CAPACITY_FACTOR] = factor
            tagged += 1
    if tagged:
        logger.info("Set capacity factor %.3f on %d lanes", factor, tagged)
    return tagged


def effective_lane_capacity(lane: Lane) -> float:
    """Lane capacity with its recorded capacity factor applied."""
    return lane.capacity * float(lane.attributes.get(ATTR_CAPACITY_FACTOR, 1.0))


__all__ = [
    "DEFAULT_CAPACITY_THRESHOLD",
    "calc_link_capacity_sums",
    "calc_max_lane_capacities",
    "effective_lane_capacity",
    "set_lane_capacities",
    "set_lane_capacity_factor",
    "set_link_capacities",
]
