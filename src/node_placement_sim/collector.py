"""Prometheus export of a scheduler's node pool and pending jobs.

Each scrape reads the scheduler directly, so exported values track placement
and release as they happen. ``create_registry`` wires the node and pending
job pipelines from ``collectors`` onto a private registry.
"""

import time
from collections.abc import Callable, Iterator
from typing import Generic, TypeAlias, TypeVar

import structlog
from prometheus_client.core import (
    CollectorRegistry,
    CounterMetricFamily,
    GaugeMetricFamily,
)
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .collectors import jobs, nodes
from .scheduler import Scheduler

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Reads scheduler state into records
Snapshot: TypeAlias = Callable[[], list[T]]
# Turns records into metric families
Renderer: TypeAlias = Callable[[list[T]], Iterator[Metric]]


class SimulationCollector(Collector, Generic[T]):
    """Exports one slice of scheduler state on every scrape.

    ``fetcher`` snapshots the state (node utilization or pending jobs) and
    ``generator`` renders the snapshot. Every scrape also reports how long the
    snapshot took and how many snapshots have failed so far. A failing
    snapshot is logged and counted but never breaks the scrape.
    """

    def __init__(
        self,
        fetcher: Snapshot[T],
        generator: Renderer[T],
        metric_prefix: str,
        source_description: str,
    ):
        """Initialize the collector.

        Args:
            fetcher: Zero-argument callable returning a snapshot, usually a
                lambda closing over the scheduler.
            generator: Callable rendering a snapshot as metric families.
            metric_prefix: Inserted into the metadata metric names, as in
                ``placement_<prefix>_scrape_duration``.
            source_description: Names the snapshot source in help texts.
        """
        self._fetcher = fetcher
        self._generator = generator
        self._metric_prefix = metric_prefix
        self._source_desc = source_description
        self._error_count = 0

    def fetch_metrics(self) -> tuple[list[T], float]:
        """Snapshot the state and time how long it took."""
        start = time.time()
        data = self._fetcher()
        return data, time.time() - start

    def collect(self) -> Iterator[Metric]:
        """Yield scrape metadata, then the rendered snapshot if one was taken."""
        data: list[T] | None = None
        try:
            data, duration_value = self.fetch_metrics()
        except Exception:
            logger.exception(
                "Failed to snapshot scheduler state",
                metric_prefix=self._metric_prefix,
            )
            self._error_count += 1
            duration_value = -1.0

        scrape_duration = GaugeMetricFamily(
            f"placement_{self._metric_prefix}_scrape_duration",
            f"seconds spent reading the {self._source_desc}, -1 on failure",
        )
        scrape_duration.add_metric([], duration_value)
        yield scrape_duration

        error_counter = CounterMetricFamily(
            f"placement_{self._metric_prefix}_scrape_error",
            f"failed reads of the {self._source_desc}",
        )
        error_counter.add_metric([], self._error_count)
        yield error_counter

        if data is not None:
            yield from self._generator(data)


def create_registry(scheduler: Scheduler) -> CollectorRegistry:
    """Build a private registry exporting a scheduler's nodes and pending jobs.

    Node metrics use the ``node`` prefix for their scrape metadata and
    pending job metrics use ``job``.

    Args:
        scheduler: Scheduler whose nodes and pending jobs are exported.

    Returns:
        Configured Prometheus registry.
    """
    registry = CollectorRegistry()

    # Fetchers read the live scheduler, nothing is cached between scrapes
    nodes_collector = SimulationCollector(
        fetcher=lambda: nodes.fetch(scheduler),
        generator=nodes.generate_metrics,
        metric_prefix="node",
        source_description=f"{len(scheduler.nodes)} node pool",
    )
    registry.register(nodes_collector)
    logger.debug("Registered collector", collector="nodes", metric_prefix="node")

    jobs_collector = SimulationCollector(
        fetcher=lambda: jobs.fetch(scheduler),
        generator=jobs.generate_metrics,
        metric_prefix="job",
        source_description="pending job list",
    )
    registry.register(jobs_collector)
    logger.debug("Registered collector", collector="jobs", metric_prefix="job")

    return registry
