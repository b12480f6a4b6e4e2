"""Job record shared by the queues, the scheduler and the workload producer."""

from dataclasses import dataclass


@dataclass
class Job:
    """A batch job's resource demand and identity.

    Resource fields are fixed for the lifetime of the job. Only ``completed``
    and ``node_id`` change, and only when the scheduler places the job.
    Memory is in GB, execution time in hours. ``arrival_time`` is kept for
    reporting and is never used to order jobs.
    """

    id: int
    arrival_time: int
    cores_required: int
    memory_required: int
    exec_time: int
    completed: bool = False
    node_id: int | None = None

    def __post_init__(self):
        if self.arrival_time < 0:
            msg = f"Job {self.id}: arrival_time must not be negative"
            raise ValueError(msg)
        for name in ("cores_required", "memory_required", "exec_time"):
            if getattr(self, name) <= 0:
                msg = f"Job {self.id}: {name} must be positive"
                raise ValueError(msg)

    @property
    def weight(self) -> int:
        """Aggregate size used by the weighted smallest-first policy."""
        return self.exec_time * self.cores_required * self.memory_required
