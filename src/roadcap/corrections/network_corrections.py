from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

import yaml

logger = logging.getLogger(__name__)


@dataclass
class NetworkCorrections:
    """Hand-curated fixes for links whose imported lanes or capacities are wrong.

    ``double_lanes`` lists links whose lane count and capacity are doubled.
    ``capacity_overrides`` maps link ids to an absolute capacity (veh/h).
    """

    double_lanes: Tuple[str, ...] = ()
    capacity_overrides: Dict[str, float] = field(default_factory=dict)
    version: str | None = None

    def __post_init__(self) -> None:
        self.double_lanes = _dedupe(self.double_lanes)
        overrides: Dict[str, float] = {}
        for link_id, capacity in dict(self.capacity_overrides).items():
            value = float(capacity)
            if value <= 0:
                raise ValueError(f"Capacity override for {link_id} must be positive, got {value}")
            overrides[str(link_id)] = value
        self.capacity_overrides = overrides

    @property
    def link_ids(self) -> List[str]:
        """Every link referenced by the table, in first-seen order."""
        seen = dict.fromkeys(self.double_lanes)
        seen.update(dict.fromkeys(self.capacity_overrides))
        return list(seen)

    def __len__(self) -> int:
        return len(self.double_lanes) + len(self.capacity_overrides)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "NetworkCorrections":
        if not isinstance(data, Mapping):
            raise TypeError("Network corrections must be a mapping at the top level")
        double_lanes = data.get("double_lanes") or []
        if not isinstance(double_lanes, list):
            raise TypeError("'double_lanes' must be a list of link ids")
        overrides = data.get("capacity_overrides") or {}
        if not isinstance(overrides, Mapping):
            raise TypeError("'capacity_overrides' must map link ids to capacities")
        version = data.get("version")
        return cls(
            double_lanes=tuple(str(link_id) for link_id in double_lanes),
            capacity_overrides={str(k): float(v) for k, v in overrides.items()},
            version=str(version) if version is not None else None,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "NetworkCorrections":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Network corrections YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        corrections = cls.from_mapping(data)
        logger.info("Loaded %d network corrections from %s", len(corrections), config_path)
        return corrections

    def to_yaml(self, path: str | Path) -> None:
        output: Dict[str, object] = {}
        if self.version is not None:
            output["version"] = self.version
        output["double_lanes"] = list(self.double_lanes)
        output["capacity_overrides"] = dict(sorted(self.capacity_overrides.items()))
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(output, handle, sort_keys=False)


def _dedupe(link_ids) -> Tuple[str, ...]:
    unique: Dict[str, None] = {}
    for link_id in link_ids:
        key = str(link_id)
        if key in unique:
            logger.warning("Link %s listed more than once in double_lanes; applying once", key)
            continue
        unique[key] = None
    return tuple(unique)


__all__ = ["NetworkCorrections"]
