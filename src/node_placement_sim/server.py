"""HTTP server exposing the results of a simulation run."""

import os

import prometheus_client
import prometheus_client.core
import starlette.applications
import starlette.requests
import starlette.responses
import starlette.routing
import structlog

from . import config, report, simulation
from .collector import create_registry
from .scheduler import Scheduler

logger = structlog.get_logger(__name__)


def create_starlette_app(
    metrics_path: str,
    registry: prometheus_client.core.CollectorRegistry,
    scheduler: Scheduler,
) -> starlette.applications.Starlette:
    """Create a Starlette application serving metrics and the CSV report.

    Args:
        metrics_path: URL path for metrics endpoint (e.g., "/metrics").
        registry: Prometheus collector registry.
        scheduler: Scheduler whose node state backs the report endpoint.

    Returns:
        Configured Starlette application.
    """

    def metrics_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        """Serve metrics in Prometheus exposition format."""
        metrics_output = prometheus_client.generate_latest(registry)
        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        return starlette.responses.PlainTextResponse(
            content=metrics_output,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    def report_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        """Serve the utilization report as CSV."""
        content = report.render_csv(report.collect_utilization(scheduler.nodes))
        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        return starlette.responses.PlainTextResponse(
            content=content,
            media_type="text/csv",
        )

    routes = [
        starlette.routing.Route(metrics_path, metrics_endpoint, methods=["GET"]),
        starlette.routing.Route("/report", report_endpoint, methods=["GET"]),
    ]

    return starlette.applications.Starlette(routes=routes)


def create_simulator(
    sim_config: config.SimulatorConfig,
) -> starlette.applications.Starlette:
    """Run the simulation and build the ASGI app serving its results.

    The utilization report is written to ``report_path`` once, right after
    the run. ``/report`` renders the same rows from live node state.
    """
    scheduler = simulation.run_simulation(sim_config)
    report.write_csv(
        report.collect_utilization(scheduler.nodes),
        sim_config.report_path,
    )
    registry = create_registry(scheduler)
    return create_starlette_app(
        metrics_path=sim_config.metrics_path,
        registry=registry,
        scheduler=scheduler,
    )


def create_app(config_path: str | None = None) -> starlette.applications.Starlette:
    """Create the ASGI app using a config path or environment default.

    The simulation runs and its report is written before the app is returned.
    """
    resolved_path = config_path or os.environ.get(config.CONFIG_ENV_VAR)
    sim_config = (
        config.load_config(resolved_path) if resolved_path else config.SimulatorConfig()
    )
    config.configure_logging(sim_config.log_level)
    return create_simulator(sim_config)
