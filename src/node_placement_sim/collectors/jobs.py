"""Pending job collector.

Reads the scheduler's pending jobs and generates Prometheus metrics that
separate jobs waiting on exhausted capacity from jobs no node could ever hold.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from ..models import Job
from ..scheduler import Scheduler

REASON_CAPACITY = "capacity"
REASON_UNSCHEDULABLE = "unschedulable"


@dataclass
class PendingJobMetric:
    """A pending job and why it is pending."""

    job_id: int
    cores: int = 0
    memory: int = 0
    exec_time: int = 0
    reason: str = REASON_CAPACITY


def _transform_job(job: Job, unschedulable: bool) -> PendingJobMetric:
    return PendingJobMetric(
        job_id=job.id,
        cores=job.cores_required,
        memory=job.memory_required,
        exec_time=job.exec_time,
        reason=REASON_UNSCHEDULABLE if unschedulable else REASON_CAPACITY,
    )


def fetch(scheduler: Scheduler) -> list[PendingJobMetric]:
    """Fetch pending job metrics from the scheduler.

    Args:
        scheduler: Scheduler whose pending list is read.

    Returns:
        List of pending job metrics in the order the jobs failed placement.
    """
    unschedulable_ids = {job.id for job in scheduler.unschedulable}
    return [
        _transform_job(job, job.id in unschedulable_ids)
        for job in scheduler.pending
    ]


def generate_metrics(jobs: list[PendingJobMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from pending job data.

    Creates a pending job count per reason and a placement_pending_job_info
    gauge with the resource demand of each pending job.

    Args:
        jobs: List of pending job metrics.

    Yields:
        Prometheus Metric objects.
    """
    counts = {REASON_CAPACITY: 0, REASON_UNSCHEDULABLE: 0}
    for job in jobs:
        counts[job.reason] += 1

    pending_jobs = GaugeMetricFamily(
        "placement_pending_jobs",
        "Jobs that could not be placed, by reason",
        labels=["reason"],
    )
    for reason, count in counts.items():
        pending_jobs.add_metric([reason], count)
    yield pending_jobs

    job_info = GaugeMetricFamily(
        "placement_pending_job_info",
        "Information about pending jobs",
        labels=["job_id", "cores", "memory_gb", "exec_time_hours", "reason"],
    )
    for job in jobs:
        job_info.add_metric(
            [
                str(job.job_id),
                str(job.cores),
                str(job.memory),
                str(job.exec_time),
                job.reason,
            ],
            1,
        )
    yield job_info
