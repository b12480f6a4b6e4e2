"""Job producer feeding the scheduler's policy queues.

Loads job submissions from JSON files or provides the built-in sample
workload, and enqueues them into a scheduler.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..models import Job
from ..queues import Policy
from ..scheduler import Scheduler
from .types import RawJobSpec, RawWorkload

logger = structlog.get_logger(__name__)


@dataclass
class JobSubmission:
    """A job together with the policy queue it is submitted to."""

    job: Job
    policy: Policy


def _transform_job(raw: RawJobSpec) -> JobSubmission:
    """Transform a validated job file entry into a submission."""
    return JobSubmission(
        job=Job(
            id=raw.id,
            arrival_time=raw.arrival_time,
            cores_required=raw.cores_required,
            memory_required=raw.memory_required,
            exec_time=raw.exec_time,
        ),
        policy=raw.policy,
    )


def load_jobs(path: str | Path) -> list[JobSubmission]:
    """Load job submissions from a JSON job file.

    Args:
        path: Path to a file shaped like ``{"jobs": [...]}``.

    Returns:
        Submissions in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If an entry is malformed.
        ValueError: If two jobs share an id.
    """
    job_path = Path(path)
    if not job_path.exists():
        msg = f"Job file not found: {path}"
        raise FileNotFoundError(msg)

    with job_path.open("r") as f:
        data = json.load(f)

    workload = RawWorkload.model_validate(data)

    seen: set[int] = set()
    for raw in workload.jobs:
        if raw.id in seen:
            msg = f"Duplicate job id in {path}: {raw.id}"
            raise ValueError(msg)
        seen.add(raw.id)

    submissions = [_transform_job(raw) for raw in workload.jobs]
    logger.info("Loaded job file", path=str(job_path), jobs=len(submissions))
    return submissions


def sample_jobs() -> list[JobSubmission]:
    """The reference five-job workload and its queue assignment."""
    return [
        JobSubmission(Job(1, 1, 10, 32, 5), Policy.FCFS),
        JobSubmission(Job(2, 2, 5, 16, 3), Policy.WEIGHTED_SMALLEST),
        JobSubmission(Job(3, 3, 20, 48, 2), Policy.SHORTEST_DURATION),
        JobSubmission(Job(4, 4, 8, 20, 6), Policy.FCFS),
        JobSubmission(Job(5, 5, 12, 40, 1), Policy.WEIGHTED_SMALLEST),
    ]


def submit(scheduler: Scheduler, submissions: Iterable[JobSubmission]) -> int:
    """Enqueue every submission into its policy queue.

    Returns:
        Number of jobs submitted.
    """
    count = 0
    for submission in submissions:
        scheduler.enqueue(submission.job, submission.policy)
        count += 1
    logger.debug("Submitted jobs", jobs=count)
    return count
