"""Apply manual corrections to links with wrongly imported lanes or capacities."""

from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from roadcap.network.attributes import (
    ATTR_LANES_CORRECTED,
    LANE_CORRECTION_FACTOR,
    rescale_turn_efficiencies,
)
from roadcap.network.road_network import RoadNetwork

from .network_corrections import NetworkCorrections

logger = logging.getLogger(__name__)


class MissingNetworkElementsError(KeyError):
    """Raised when corrections reference links that are not in the network."""

    def __init__(self, missing_ids: Iterable[str]):
        self.missing_ids: Tuple[str, ...] = tuple(sorted(set(missing_ids)))
        super().__init__(
            f"{len(self.missing_ids)} corrected link(s) not in network: {', '.join(self.missing_ids)}"
        )

    def __str__(self) -> str:
        return str(self.args[0])


def find_missing_links(network: RoadNetwork, corrections: NetworkCorrections) -> List[str]:
    return [link_id for link_id in corrections.link_ids if network.get_link(link_id) is None]


def apply_network_corrections(network: RoadNetwork, corrections: NetworkCorrections) -> int:
    """Double lanes and override capacities as listed in ``corrections``.

    Every referenced link is checked before the network is touched; all
    missing ids are reported together in a :class:`MissingNetworkElementsError`.
    Links already carrying the ``lanes_corrected`` attribute are not doubled
    again; capacity resolution re-applies their factor instead. Stored turn
    efficiencies are rescaled so they stay relative to the corrected capacity.

    Returns:
        Number of corrections applied.
    """
    missing = find_missing_links(network, corrections)
    if missing:
        raise MissingNetworkElementsError(missing)

    applied = 0
    for link_id in corrections.double_lanes:
        link = network.links[link_id]
        if link.attributes.get(ATTR_LANES_CORRECTED):
            logger.debug("Lanes of link %s already corrected; skipping", link_id)
            continue
        old_capacity = link.capacity
        link.number_of_lanes = link.number_of_lanes * LANE_CORRECTION_FACTOR
        link.capacity = link.capacity * LANE_CORRECTION_FACTOR
        rescale_turn_efficiencies(link, old_capacity, link.capacity)
        link.attributes[ATTR_LANES_CORRECTED] = True
        applied += 1

    for link_id, capacity in corrections.capacity_overrides.items():
        link = network.links[link_id]
        old_capacity = link.capacity
        link.capacity = capacity
        rescale_turn_efficiencies(link, old_capacity, capacity)
        applied += 1

    logger.info(
        "Applied %d network corrections (%d lane doublings listed, %d capacity overrides)",
        applied,
        len(corrections.double_lanes),
        len(corrections.capacity_overrides),
    )
    return applied


__all__ = ["MissingNetworkElementsError", "apply_network_corrections", "find_missing_links"]
