"""Generic attribute bags attached to links and lanes.

Links and lanes each own a plain ``dict`` of attributes. The turn-efficiency
map lives under :data:`ATTR_TURN_EFFICIENCY` and maps the destination link id
(string) to the ratio (string), so the stored values stay serialization
agnostic. Nothing in this module hands out a map that another element could
also be holding.
"""

from __future__ import annotations

from typing import Dict, Mapping, MutableMapping, Optional, Protocol

ATTR_TURN_EFFICIENCY = "turn_efficiency"
ATTR_JUNCTION = "junction"
ATTR_LANES_CORRECTED = "lanes_corrected"
ATTR_CAPACITY_FACTOR = "capacity_factor"

# Lane count and capacity multiplier of links flagged with ATTR_LANES_CORRECTED.
LANE_CORRECTION_FACTOR = 2.0


class Attributable(Protocol):
    attributes: MutableMapping[str, object]


def own_attributes(attributes: Optional[Mapping[str, object]]) -> Dict[str, object]:
    """Return a fresh attribute dict, copying nested mappings as well."""
    owned: Dict[str, object] = {}
    for key, value in (attributes or {}).items():
        if isinstance(value, Mapping):
            value = dict(value)
        owned[str(key)] = value
    return owned


def get_turn_efficiency_map(obj: Attributable) -> Dict[str, str]:
    """Return the mutable turn-efficiency map of ``obj``, creating it on first access.

    A stored mapping that is not a plain ``dict`` (a read-only proxy, a shared
    default) is copied into a new dict that replaces it on ``obj``.
    """
    current = obj.attributes.get(ATTR_TURN_EFFICIENCY)
    if current is None:
        cap: Dict[str, str] = {}
        obj.attributes[ATTR_TURN_EFFICIENCY] = cap
        return cap
    if type(current) is not dict:
        if not isinstance(current, Mapping):
            raise TypeError(
                f"Attribute {ATTR_TURN_EFFICIENCY!r} must be a mapping, got {type(current).__name__}"
            )
        cap = {str(k): str(v) for k, v in current.items()}
        obj.attributes[ATTR_TURN_EFFICIENCY] = cap
        return cap
    return current


def turn_efficiency(obj: Attributable, to_link: str, default: float = 1.0) -> float:
    """Read the stored efficiency for the movement towards ``to_link``."""
    cap = obj.attributes.get(ATTR_TURN_EFFICIENCY)
    if not isinstance(cap, Mapping):
        return default
    value = cap.get(str(to_link))
    if value is None:
        return default
    return float(value)


def rescale_turn_efficiencies(obj: Attributable, old_capacity: float, new_capacity: float) -> None:
    """Keep stored ratios relative to the capacity after it changed from ``old_capacity``."""
    if ATTR_TURN_EFFICIENCY not in obj.attributes:
        return
    if old_capacity <= 0 or new_capacity <= 0 or old_capacity == new_capacity:
        return
    cap = get_turn_efficiency_map(obj)
    scale = old_capacity / new_capacity
    for to_link, value in list(cap.items()):
        cap[to_link] = str(float(value) * scale)


__all__ = [
    "ATTR_CAPACITY_FACTOR",
    "ATTR_JUNCTION",
    "ATTR_LANES_CORRECTED",
    "ATTR_TURN_EFFICIENCY",
    "Attributable",
    "LANE_CORRECTION_FACTOR",
    "get_turn_efficiency_map",
    "rescale_turn_efficiencies",
    "own_attributes",
    "turn_efficiency",
]
