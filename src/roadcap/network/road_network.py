"""Mutable road network graph with per-link lane assignments."""

from __future__ import annotations

import gzip
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .attributes import own_attributes
from .domain_types import LaneId, LinkId

logger = logging.getLogger(__name__)


@dataclass
class Link:
    """Directed road segment."""

    id: LinkId
    capacity: float
    number_of_lanes: float = 1.0
    from_node: Optional[str] = None
    to_node: Optional[str] = None
    freespeed: Optional[float] = None
    length: Optional[float] = None
    attributes: Dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.capacity = float(self.capacity)
        self.number_of_lanes = float(self.number_of_lanes)
        self.attributes = own_attributes(self.attributes)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "from_node": self.from_node,
            "to_node": self.to_node,
            "capacity": self.capacity,
            "number_of_lanes": self.number_of_lanes,
            "freespeed": self.freespeed,
            "length": self.length,
            "attributes": own_attributes(self.attributes),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Link":
        if "id" not in payload or "capacity" not in payload:
            raise ValueError(f"Link entries require 'id' and 'capacity': {dict(payload)!r}")
        return cls(
            id=str(payload["id"]),
            capacity=float(payload["capacity"]),
            number_of_lanes=float(payload.get("number_of_lanes", 1.0)),
            from_node=_optional_str(payload.get("from_node")),
            to_node=_optional_str(payload.get("to_node")),
            freespeed=_optional_float(payload.get("freespeed")),
            length=_optional_float(payload.get("length")),
            attributes=payload.get("attributes") or {},
        )


@dataclass
class Lane:
    """Lane of a link with its own throughput capacity in vehicles per hour."""

    id: LaneId
    capacity: float
    number_of_represented_lanes: float = 1.0
    to_links: List[LinkId] = field(default_factory=list)
    attributes: Dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.capacity = float(self.capacity)
        self.to_links = [str(link_id) for link_id in self.to_links]
        self.attributes = own_attributes(self.attributes)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "capacity": self.capacity,
            "number_of_represented_lanes": self.number_of_represented_lanes,
            "to_links": list(self.to_links),
            "attributes": own_attributes(self.attributes),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "Lane":
        if "id" not in payload or "capacity" not in payload:
            raise ValueError(f"Lane entries require 'id' and 'capacity': {dict(payload)!r}")
        return cls(
            id=str(payload["id"]),
            capacity=float(payload["capacity"]),
            number_of_represented_lanes=float(payload.get("number_of_represented_lanes", 1.0)),
            to_links=list(payload.get("to_links") or []),
            attributes=payload.get("attributes") or {},
        )


@dataclass
class LanesToLinkAssignment:
    """Lanes owned by a single link, keyed by lane id."""

    link_id: LinkId
    lanes: Dict[LaneId, Lane] = field(default_factory=dict)

    def add_lane(self, lane: Lane) -> Lane:
        if lane.id in self.lanes:
            raise ValueError(f"Lane {lane.id} already assigned to link {self.link_id}")
        self.lanes[lane.id] = lane
        return lane


@dataclass
class RoadNetwork:
    """Links plus the lane assignment structure mapping links to their lanes."""

    links: Dict[LinkId, Link] = field(default_factory=dict)
    lanes: Dict[LinkId, LanesToLinkAssignment] = field(default_factory=dict)

    def add_link(self, link: Link) -> Link:
        if link.id in self.links:
            raise ValueError(f"Link {link.id} already present in the network")
        self.links[link.id] = link
        return link

    def get_link(self, link_id: LinkId) -> Optional[Link]:
        return self.links.get(str(link_id))

    def add_lane(self, link_id: LinkId, lane: Lane) -> Lane:
        link_id = str(link_id)
        if link_id not in self.links:
            raise KeyError(f"Cannot assign lane {lane.id}: link {link_id} not in network")
        l2l = self.lanes.get(link_id)
        if l2l is None:
            l2l = LanesToLinkAssignment(link_id=link_id)
            self.lanes[link_id] = l2l
        return l2l.add_lane(lane)

    def get_lane(self, link_id: LinkId, lane_id: LaneId) -> Optional[Lane]:
        l2l = self.lanes.get(str(link_id))
        if l2l is None:
            return None
        return l2l.lanes.get(str(lane_id))

    # ------------------------------------------------------------------- IO
    def to_json_dict(self) -> Dict[str, object]:
        return {
            "links": [link.to_dict() for link in self.links.values()],
            "lanes": {
                link_id: [lane.to_dict() for lane in l2l.lanes.values()]
                for link_id, l2l in self.lanes.items()
                if l2l.lanes
            },
        }

    @classmethod
    def from_json_dict(cls, payload: Mapping[str, object]) -> "RoadNetwork":
        if not isinstance(payload, Mapping):
            raise TypeError("Network JSON must contain a mapping at the top level")
        network = cls()
        for entry in payload.get("links") or []:
            network.add_link(Link.from_dict(entry))
        lanes_section = payload.get("lanes") or {}
        if not isinstance(lanes_section, Mapping):
            raise TypeError("'lanes' must map link ids to lists of lanes")
        for link_id, lane_entries in lanes_section.items():
            for entry in lane_entries:
                network.add_lane(str(link_id), Lane.from_dict(entry))
        return network

    def save(self, path: str | Path) -> None:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        opener = gzip.open if dest.suffix == ".gz" else open
        with opener(dest, "wt", encoding="utf-8") as handle:
            json.dump(self.to_json_dict(), handle, indent=2)
        logger.info("Wrote network with %d links to %s", len(self.links), dest)

    @classmethod
    def load(cls, path: str | Path) -> "RoadNetwork":
        source = Path(path)
        if not source.exists():
            raise FileNotFoundError(f"Network JSON not found at {source}")
        opener = gzip.open if source.suffix == ".gz" else open
        with opener(source, "rt", encoding="utf-8") as handle:
            payload = json.load(handle)
        network = cls.from_json_dict(payload)
        logger.info(
            "Loaded network with %d links and %d lane assignments from %s",
            len(network.links),
            len(network.lanes),
            source,
        )
        return network


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _optional_float(value: object) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


__all__ = ["Lane", "LanesToLinkAssignment", "Link", "RoadNetwork"]
