"""One simulation run: build the pool, submit jobs, drain the queues."""

from collections.abc import Iterable

import structlog

from . import workload
from .config import SimulatorConfig
from .scheduler import Scheduler

logger = structlog.get_logger(__name__)


def run_simulation(
    config: SimulatorConfig,
    submissions: Iterable[workload.JobSubmission] | None = None,
) -> Scheduler:
    """Run a full simulation and return the scheduler in its final state.

    Jobs come from ``submissions`` when given, otherwise from
    ``config.jobs_file``, otherwise from the sample workload. The policy
    queues are drained in ``config.drain_order``.

    Args:
        config: Simulation configuration.
        submissions: Optional jobs to submit instead of the configured ones.

    Returns:
        The scheduler after all drains.
    """
    scheduler = Scheduler.with_uniform_nodes(
        config.node_count,
        cores_per_node=config.cores_per_node,
        memory_per_node=config.memory_per_node,
    )
    logger.info(
        "Created node pool",
        nodes=config.node_count,
        cores_per_node=config.cores_per_node,
        memory_per_node=config.memory_per_node,
    )

    if submissions is None:
        if config.jobs_file:
            submissions = workload.load_jobs(config.jobs_file)
        else:
            submissions = workload.sample_jobs()
    workload.submit(scheduler, submissions)

    summaries = scheduler.schedule_all(config.drain_order)

    logger.info(
        "Simulation finished",
        placed=sum(len(summary.placed) for summary in summaries),
        pending=len(scheduler.pending),
        unschedulable=len(scheduler.unschedulable),
    )
    return scheduler
