"""Composite keys shared across the counts and network packages."""

from __future__ import annotations

from dataclasses import dataclass

# Link and lane identifiers are kept as plain strings (e.g. "-40686598#1", "7653201_0").
LinkId = str
LaneId = str


@dataclass(frozen=True)
class TurnKey:
    """Turning movement observed on a single lane of the upstream link."""

    from_link: LinkId
    to_link: LinkId
    from_lane: LaneId

    @property
    def lane_key(self) -> "LaneKey":
        return LaneKey(link=self.from_link, lane=self.from_lane)

    @property
    def turn_pair(self) -> "TurnPair":
        return TurnPair(from_link=self.from_link, to_link=self.to_link)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.from_link}[{self.from_lane}]->{self.to_link}"


@dataclass(frozen=True)
class LaneKey:
    """Lane of a link, independent of turning direction."""

    link: LinkId
    lane: LaneId

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.link}[{self.lane}]"


@dataclass(frozen=True)
class TurnPair:
    """Directed connection between two links, aggregated over lanes."""

    from_link: LinkId
    to_link: LinkId

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.from_link}->{self.to_link}"
