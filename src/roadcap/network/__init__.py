"""Road network graph exports."""

from .attributes import (
    ATTR_JUNCTION,
    ATTR_TURN_EFFICIENCY,
    get_turn_efficiency_map,
    turn_efficiency,
)
from .domain_types import LaneKey, TurnKey, TurnPair
from .road_network import Lane, LanesToLinkAssignment, Link, RoadNetwork

__all__ = [
    "ATTR_JUNCTION",
    "ATTR_TURN_EFFICIENCY",
    "Lane",
    "LaneKey",
    "LanesToLinkAssignment",
    "Link",
    "RoadNetwork",
    "TurnKey",
    "TurnPair",
    "get_turn_efficiency_map",
    "turn_efficiency",
]
