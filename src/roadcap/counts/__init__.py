"""Count aggregation and capacity resolution."""

from .capacity_resolver import (
    DEFAULT_CAPACITY_THRESHOLD,
    calc_max_lane_capacities,
    effective_lane_capacity,
    set_lane_capacity_factor,
    set_lane_capacities,
    set_link_capacities,
)
from .lane_counts import (
    CapacityRecord,
    MalformedRecordError,
    TurnCounts,
    aggregate_records,
    parse_lane_capacities,
    read_lane_capacities,
)
from .turn_efficiency import set_lane_turn_efficiencies, set_link_turn_efficiencies

__all__ = [
    "CapacityRecord",
    "DEFAULT_CAPACITY_THRESHOLD",
    "MalformedRecordError",
    "TurnCounts",
    "aggregate_records",
    "calc_max_lane_capacities",
    "parse_lane_capacities",
    "read_lane_capacities",
    "effective_lane_capacity",
    "set_lane_capacity_factor",
    "set_lane_capacities",
    "set_lane_turn_efficiencies",
    "set_link_capacities",
    "set_link_turn_efficiencies",
]
