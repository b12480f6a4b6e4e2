"""Node utilization collector.

Reads the allocation state of every worker node and generates Prometheus
metrics for per-node CPU and memory utilization plus pool-wide totals.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..nodes import WorkerNode
from ..scheduler import Scheduler


@dataclass
class NodeMetric:
    """Allocation state of a single worker node.

    Memory values are in GB, utilization values are percentages.
    """

    node_id: int
    cores: int = 0
    alloc_cores: int = 0
    memory: int = 0
    alloc_memory: int = 0
    cpu_utilization: float = 0.0
    memory_utilization: float = 0.0
    jobs: int = 0


def _transform_node(node: WorkerNode) -> NodeMetric:
    """Transform a worker node into a NodeMetric.

    Args:
        node: Worker node from the scheduler's pool.

    Returns:
        NodeMetric with allocated resources derived from availability.
    """
    return NodeMetric(
        node_id=node.id,
        cores=node.total_cores,
        alloc_cores=node.total_cores - node.available_cores,
        memory=node.total_memory,
        alloc_memory=node.total_memory - node.available_memory,
        cpu_utilization=node.cpu_utilization(),
        memory_utilization=node.memory_utilization(),
        jobs=len(node.job_ids),
    )


@dataclass
class PoolSummaryMetric:
    """Aggregated resource metrics across all nodes."""

    cores: int = 0
    alloc_cores: int = 0
    memory: int = 0
    alloc_memory: int = 0
    busy_nodes: int = 0
    jobs: int = 0


def _aggregate_pool_metrics(nodes: list[NodeMetric]) -> PoolSummaryMetric:
    """Aggregate resource metrics across all nodes.

    Args:
        nodes: List of node metrics.

    Returns:
        Aggregated pool metrics.
    """
    summary = PoolSummaryMetric()

    for node in nodes:
        summary.cores += node.cores
        summary.alloc_cores += node.alloc_cores
        summary.memory += node.memory
        summary.alloc_memory += node.alloc_memory
        summary.jobs += node.jobs
        if node.jobs > 0:
            summary.busy_nodes += 1

    return summary


def fetch(scheduler: Scheduler) -> list[NodeMetric]:
    """Fetch node metrics from the scheduler's node pool.

    Args:
        scheduler: Scheduler whose nodes are read.

    Returns:
        List of node metrics in node id order.
    """
    return [
        _transform_node(node)
        for node in sorted(scheduler.nodes, key=lambda node: node.id)
    ]


def generate_metrics(nodes: list[NodeMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from node data.

    Creates per-node utilization gauges labelled by node id and pool-wide
    totals for cores, memory and busy nodes.

    Args:
        nodes: List of node metrics.

    Yields:
        Prometheus Metric objects.
    """
    cpu_utilization = GaugeMetricFamily(
        "placement_node_cpu_utilization_percent",
        "Percentage of node cores allocated",
        labels=["node_id"],
    )
    memory_utilization = GaugeMetricFamily(
        "placement_node_memory_utilization_percent",
        "Percentage of node memory allocated",
        labels=["node_id"],
    )
    for node in nodes:
        cpu_utilization.add_metric([str(node.node_id)], node.cpu_utilization)
        memory_utilization.add_metric([str(node.node_id)], node.memory_utilization)
    yield cpu_utilization
    yield memory_utilization

    summary = _aggregate_pool_metrics(nodes)

    total_cpus = GaugeMetricFamily("placement_cpus_total", "Total cores")
    total_cpus.add_metric([], summary.cores)
    yield total_cpus

    allocated_cpus = GaugeMetricFamily(
        "placement_cpus_allocated",
        "Total allocated cores",
    )
    allocated_cpus.add_metric([], summary.alloc_cores)
    yield allocated_cpus

    idle_cpus = GaugeMetricFamily("placement_cpus_idle", "Total idle cores")
    idle_cpus.add_metric([], summary.cores - summary.alloc_cores)
    yield idle_cpus

    total_memory = GaugeMetricFamily(
        "placement_memory_total_gb",
        "Total memory in GB",
    )
    total_memory.add_metric([], summary.memory)
    yield total_memory

    allocated_memory = GaugeMetricFamily(
        "placement_memory_allocated_gb",
        "Total allocated memory in GB",
    )
    allocated_memory.add_metric([], summary.alloc_memory)
    yield allocated_memory

    busy_nodes = GaugeMetricFamily(
        "placement_nodes_busy",
        "Nodes with at least one allocated job",
    )
    busy_nodes.add_metric([], summary.busy_nodes)
    yield busy_nodes

    allocated_jobs = GaugeMetricFamily(
        "placement_jobs_allocated",
        "Jobs currently allocated on nodes",
    )
    allocated_jobs.add_metric([], summary.jobs)
    yield allocated_jobs
