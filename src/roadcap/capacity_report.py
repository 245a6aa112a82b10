"""Tabular summary of the resolved capacity model."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from roadcap.network.attributes import ATTR_JUNCTION, ATTR_TURN_EFFICIENCY
from roadcap.network.road_network import RoadNetwork

REPORT_COLUMNS = ["link_id", "number_of_lanes", "capacity", "junction", "num_turns"]


def build_capacity_report(network: RoadNetwork) -> pd.DataFrame:
    """One row per link with its capacity and whether it was resolved from counts."""
    rows = []
    for link in network.links.values():
        turns = link.attributes.get(ATTR_TURN_EFFICIENCY) or {}
        rows.append(
            {
                "link_id": link.id,
                "number_of_lanes": link.number_of_lanes,
                "capacity": link.capacity,
                "junction": bool(link.attributes.get(ATTR_JUNCTION, False)),
                "num_turns": len(turns),
            }
        )
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_capacity_report(path: str | Path, dataframe: pd.DataFrame) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    dataframe.to_csv(output_path, index=False)


__all__ = ["build_capacity_report", "write_capacity_report"]
