from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping

import yaml

from roadcap.counts.capacity_resolver import DEFAULT_CAPACITY_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityConfig:
    """Parameters of a capacity resolution run.

    ``capacity_threshold`` is the minimum plausible capacity per lane in
    vehicles per hour; ``capacity_factor`` scales all lane capacities once
    they are resolved.
    """

    capacity_threshold: float = DEFAULT_CAPACITY_THRESHOLD
    capacity_factor: float = 1.0
    version: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "capacity_threshold", float(self.capacity_threshold))
        object.__setattr__(self, "capacity_factor", float(self.capacity_factor))
        if self.capacity_threshold < 0:
            raise ValueError("capacity_threshold must be non-negative")
        if self.capacity_factor <= 0:
            raise ValueError("capacity_factor must be positive")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CapacityConfig":
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Capacity config YAML not found at {config_path}")
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, Mapping):
            raise TypeError("Capacity config YAML must contain a mapping at the top level")
        unknown = set(data) - {"capacity_threshold", "capacity_factor", "version"}
        if unknown:
            logger.warning("Ignoring unknown capacity config keys: %s", ", ".join(sorted(unknown)))
        version = data.get("version")
        return cls(
            capacity_threshold=data.get("capacity_threshold", DEFAULT_CAPACITY_THRESHOLD),
            capacity_factor=data.get("capacity_factor", 1.0),
            version=str(version) if version is not None else None,
        )

    def to_yaml(self, path: str | Path) -> None:
        output: Dict[str, object] = {}
        if self.version is not None:
            output["version"] = self.version
        output["capacity_threshold"] = self.capacity_threshold
        output["capacity_factor"] = self.capacity_factor
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        with dest.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(output, handle, sort_keys=True)

    def with_overrides(
        self, capacity_threshold: float | None = None, capacity_factor: float | None = None
    ) -> "CapacityConfig":
        return CapacityConfig(
            capacity_threshold=(
                self.capacity_threshold if capacity_threshold is None else capacity_threshold
            ),
            capacity_factor=self.capacity_factor if capacity_factor is None else capacity_factor,
            version=self.version,
        )


__all__ = ["CapacityConfig"]
