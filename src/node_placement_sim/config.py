"""Configuration and logging setup for the simulator."""

import json
import logging
import pathlib

import pydantic
import structlog

from .nodes import DEFAULT_CORES_PER_NODE, DEFAULT_MEMORY_PER_NODE
from .queues import DEFAULT_DRAIN_ORDER, Policy

CONFIG_ENV_VAR = "PLACEMENT_SIM_CONFIG_PATH"
DEFAULT_NODE_COUNT = 128
DEFAULT_REPORT_PATH = "utilization_report.csv"


class SimulatorConfig(pydantic.BaseModel):
    """Configuration for a simulation run."""

    node_count: int = pydantic.Field(
        DEFAULT_NODE_COUNT,
        description="Size of the fixed worker pool",
        gt=0,
    )
    cores_per_node: int = pydantic.Field(
        DEFAULT_CORES_PER_NODE,
        description="Cores per worker node",
        gt=0,
    )
    memory_per_node: int = pydantic.Field(
        DEFAULT_MEMORY_PER_NODE,
        description="Memory per worker node in GB",
        gt=0,
    )
    drain_order: list[Policy] = pydantic.Field(
        default_factory=lambda: list(DEFAULT_DRAIN_ORDER),
        description="Order in which the policy queues are drained",
    )
    jobs_file: str | None = pydantic.Field(
        None,
        description="JSON job file, the sample workload is used when unset",
    )
    report_path: str = pydantic.Field(
        DEFAULT_REPORT_PATH,
        description="Destination of the CSV utilization report",
    )
    metrics_path: str = pydantic.Field(
        "/metrics",
        description="URL path for metrics endpoint",
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> SimulatorConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return SimulatorConfig(**data)
