"""Reader for turning-movement count CSVs.

The input has one row per counting interval and turning movement::

    fromEdgeId,toEdgeId,fromLaneId,intervalVehicleSum
    40686598#0,25494723,40686598#0_1,312

Rows sharing ``(fromEdgeId, toEdgeId, fromLaneId)`` are summed. A single bad
row aborts the whole read so a corrupt file is never partially applied.
"""

from __future__ import annotations

import csv
import gzip
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

from roadcap.network.domain_types import LaneId, LinkId, TurnKey

logger = logging.getLogger(__name__)

FROM_LINK_COLUMN = "fromEdgeId"
TO_LINK_COLUMN = "toEdgeId"
FROM_LANE_COLUMN = "fromLaneId"
COUNT_COLUMN = "intervalVehicleSum"
REQUIRED_COLUMNS = (FROM_LINK_COLUMN, TO_LINK_COLUMN, FROM_LANE_COLUMN, COUNT_COLUMN)

_COUNT_PATTERN = re.compile(r"[+-]?\d+")

# Aggregated counts keyed by (fromLink, toLink, fromLane).
TurnCounts = Dict[TurnKey, int]


class MalformedRecordError(ValueError):
    """Raised when a count record cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


@dataclass(frozen=True)
class CapacityRecord:
    """Vehicle count of one interval for one turning movement on one lane."""

    from_link: LinkId
    to_link: LinkId
    from_lane: LaneId
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise MalformedRecordError(f"count must be an integer, got {self.count!r}")
        if self.count < 0:
            raise MalformedRecordError(f"count must be non-negative, got {self.count}")

    @property
    def key(self) -> TurnKey:
        return TurnKey(from_link=self.from_link, to_link=self.to_link, from_lane=self.from_lane)


def aggregate_records(records: Iterable[CapacityRecord]) -> TurnCounts:
    """Sum record counts under identical turn keys."""
    result: TurnCounts = {}
    for record in records:
        key = record.key
        result[key] = result.get(key, 0) + record.count
    return result


def parse_lane_capacities(lines: Iterable[str], source: str = "<records>") -> TurnCounts:
    """Parse CSV text lines (header first) and aggregate them."""
    reader = csv.DictReader(lines)
    if reader.fieldnames is None:
        raise MalformedRecordError(f"{source} is missing the header row", line_number=1)
    header = [name.strip() for name in reader.fieldnames]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise MalformedRecordError(
            f"{source} is missing required column(s): {', '.join(missing)}", line_number=1
        )
    reader.fieldnames = header
    return aggregate_records(_iter_records(reader))


def read_lane_capacities(path: str | Path) -> TurnCounts:
    """Read a (optionally gzipped) count CSV and return the aggregated turn counts."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Lane capacity CSV not found at {csv_path}")
    opener = gzip.open if csv_path.suffix == ".gz" else open
    with opener(csv_path, "rt", encoding="utf-8", newline="") as handle:
        result = parse_lane_capacities(handle, source=str(csv_path))
    logger.info("Read lane capacities from %s, containing %d turn keys", csv_path, len(result))
    return result


def _iter_records(reader: csv.DictReader) -> Iterable[CapacityRecord]:
    for row in reader:
        line = reader.line_num
        from_link = _required_field(row, FROM_LINK_COLUMN, line)
        to_link = _required_field(row, TO_LINK_COLUMN, line)
        from_lane = _required_field(row, FROM_LANE_COLUMN, line)
        count = _parse_count(_required_field(row, COUNT_COLUMN, line), line)
        yield CapacityRecord(from_link=from_link, to_link=to_link, from_lane=from_lane, count=count)


def _required_field(row: Dict[str, Optional[str]], column: str, line: int) -> str:
    value = row.get(column)
    if value is None or not value.strip():
        raise MalformedRecordError(f"missing value for {column!r}", line_number=line)
    return value.strip()


def _parse_count(token: str, line: int) -> int:
    if not _COUNT_PATTERN.fullmatch(token):
        raise MalformedRecordError(
            f"{COUNT_COLUMN} must be an integer, got {token!r}", line_number=line
        )
    count = int(token)
    if count < 0:
        raise MalformedRecordError(
            f"{COUNT_COLUMN} must be non-negative, got {count}", line_number=line
        )
    return count


__all__ = [
    "CapacityRecord",
    "MalformedRecordError",
    "TurnCounts",
    "aggregate_records",
    "parse_lane_capacities",
    "read_lane_capacities",
]
