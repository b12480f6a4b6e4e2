"""Command line entry point for a simulation run."""

import argparse
import os
import sys

import prometheus_client
import pydantic
import structlog

from . import config, report, simulation
from .collector import create_registry
from .queues import Policy

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node-placement-sim",
        description="Simulate batch-job placement onto a fixed pool of worker "
        "nodes and write a per-node utilization report.",
    )
    parser.add_argument(
        "--config",
        help=f"JSON configuration file (default: ${config.CONFIG_ENV_VAR})",
    )
    parser.add_argument("--jobs", help="JSON job file, sample jobs when omitted")
    parser.add_argument("--nodes", type=int, help="number of worker nodes")
    parser.add_argument("--report", help="CSV report destination")
    parser.add_argument(
        "--drain-order",
        nargs="+",
        choices=[policy.value for policy in Policy],
        help="policy queues to drain, in order",
    )
    parser.add_argument(
        "--metrics-file",
        help="also write Prometheus metrics in textfile format",
    )
    parser.add_argument("--log-level", help="logging level")
    return parser


def resolve_config(args: argparse.Namespace) -> config.SimulatorConfig:
    """Merge the config file (if any) with command line overrides."""
    config_path = args.config or os.environ.get(config.CONFIG_ENV_VAR)
    base = config.load_config(config_path) if config_path else config.SimulatorConfig()

    overrides = {
        "jobs_file": args.jobs,
        "node_count": args.nodes,
        "report_path": args.report,
        "drain_order": args.drain_order,
        "log_level": args.log_level,
    }
    data = base.model_dump()
    data.update({key: value for key, value in overrides.items() if value is not None})
    return config.SimulatorConfig(**data)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        sim_config = resolve_config(args)
    except (FileNotFoundError, pydantic.ValidationError) as e:
        parser.error(str(e))

    config.configure_logging(sim_config.log_level)

    try:
        scheduler = simulation.run_simulation(sim_config)
    except (FileNotFoundError, ValueError) as e:
        parser.error(str(e))

    rows = report.collect_utilization(scheduler.nodes)
    report.write_csv(rows, sim_config.report_path)

    if args.metrics_file:
        prometheus_client.write_to_textfile(
            args.metrics_file,
            create_registry(scheduler),
        )
        logger.info("Metrics written", path=args.metrics_file)

    return 0


if __name__ == "__main__":
    sys.exit(main())
