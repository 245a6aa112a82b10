"""CLI that annotates a road network with capacities derived from lane counts."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from roadcap.capacity_config import CapacityConfig
from roadcap.capacity_report import build_capacity_report, write_capacity_report
from roadcap.corrections.network_corrections import NetworkCorrections
from roadcap.corrections.network_corrector import (
    MissingNetworkElementsError,
    apply_network_corrections,
    find_missing_links,
)
from roadcap.counts.capacity_resolver import (
    set_lane_capacity_factor,
    set_lane_capacities,
    set_link_capacities,
)
from roadcap.counts.lane_counts import MalformedRecordError, TurnCounts, read_lane_capacities
from roadcap.network.road_network import RoadNetwork

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "scenarios/input/network.json.gz"
DEFAULT_OUTPUT = "scenarios/input/network-capacities.json.gz"


@dataclass(frozen=True)
class ResolutionSummary:
    unmatched_links: int = 0
    unmatched_lanes: int = 0
    lanes_with_factor: int = 0
    corrections_applied: int = 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--network", default=DEFAULT_NETWORK, help="Input network JSON (.json or .json.gz).")
    parser.add_argument(
        "--capacities",
        default=None,
        help="CSV with columns fromEdgeId,toEdgeId,fromLaneId,intervalVehicleSum.",
    )
    parser.add_argument(
        "--corrections",
        default=None,
        help="YAML table of manual link corrections (double_lanes, capacity_overrides).",
    )
    parser.add_argument("--config", default=None, help="Optional capacity config YAML.")
    parser.add_argument(
        "--capacity-threshold",
        type=float,
        default=None,
        help="Minimum plausible capacity per lane in veh/h (overrides the config).",
    )
    parser.add_argument(
        "--capacity-factor",
        type=float,
        default=None,
        help="Capacity factor recorded on every lane (overrides the config).",
    )
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Destination network JSON.")
    parser.add_argument("--report-csv", default=None, help="Optional per-link capacity summary CSV.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity for the CLI logger.",
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def resolve_network(
    network: RoadNetwork,
    triples: Optional[TurnCounts],
    config: CapacityConfig,
    corrections: Optional[NetworkCorrections] = None,
    on_stage: Optional[Callable[[str], None]] = None,
) -> ResolutionSummary:
    """Run capacity resolution, lane capacity factors and corrections on ``network`` in place.

    Corrections are validated before anything is modified.
    """
    notify = on_stage or (lambda _stage: None)
    if corrections is not None:
        missing = find_missing_links(network, corrections)
        if missing:
            raise MissingNetworkElementsError(missing)

    unmatched_links = unmatched_lanes = 0
    if triples is not None:
        unmatched_links = set_link_capacities(network, triples, config.capacity_threshold)
        notify("link capacities")
        unmatched_lanes = set_lane_capacities(network.lanes, triples, config.capacity_threshold)
        notify("lane capacities")
        logger.info("Unmatched links: %d, lanes: %d", unmatched_links, unmatched_lanes)
        if unmatched_links or unmatched_lanes:
            logger.warning(
                "%d links and %d lanes from the counts are not in the network",
                unmatched_links,
                unmatched_lanes,
            )

    lanes_with_factor = set_lane_capacity_factor(network.lanes, config.capacity_factor)
    notify("lane capacity factor")

    applied = 0
    if corrections is not None:
        applied = apply_network_corrections(network, corrections)
    notify("corrections")

    return ResolutionSummary(
        unmatched_links=unmatched_links,
        unmatched_lanes=unmatched_lanes,
        lanes_with_factor=lanes_with_factor,
        corrections_applied=applied,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = CapacityConfig.from_yaml(args.config) if args.config else CapacityConfig()
        config = config.with_overrides(
            capacity_threshold=args.capacity_threshold,
            capacity_factor=args.capacity_factor,
        )
    except (TypeError, ValueError) as exc:
        raise SystemExit(f"Invalid capacity config: {exc}") from exc

    try:
        network = RoadNetwork.load(args.network)
    except (KeyError, TypeError, ValueError) as exc:
        raise SystemExit(f"Invalid network {args.network}: {exc}") from exc

    corrections = None
    if args.corrections:
        try:
            corrections = NetworkCorrections.from_yaml(args.corrections)
        except (TypeError, ValueError) as exc:
            raise SystemExit(f"Invalid corrections table {args.corrections}: {exc}") from exc

    triples = None
    if args.capacities:
        try:
            triples = read_lane_capacities(args.capacities)
        except MalformedRecordError as exc:
            raise SystemExit(f"Malformed capacity file {args.capacities}: {exc}") from exc

    console = Console(stderr=True)
    progress = Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=not console.is_terminal,
    )
    with progress:
        stages = 4 if triples is not None else 2
        task_id = progress.add_task("Resolving network capacities", total=stages)

        def on_stage(stage: str) -> None:
            progress.update(task_id, advance=1, description=f"Resolved {stage}")

        try:
            summary = resolve_network(network, triples, config, corrections, on_stage=on_stage)
        except MissingNetworkElementsError as exc:
            raise SystemExit(str(exc)) from exc

    network.save(args.output)
    if args.report_csv:
        report = build_capacity_report(network)
        write_capacity_report(args.report_csv, report)
        logger.info("Wrote capacity report with %d links to %s", len(report), args.report_csv)
    logger.info("Resolution summary: %s", summary)


if __name__ == "__main__":
    main()
