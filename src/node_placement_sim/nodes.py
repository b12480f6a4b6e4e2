"""Worker nodes with bounded CPU and memory capacity.

A node owns its available-resource counters. Allocation checks both
dimensions jointly so a job is never partially placed, and freeing is only
allowed for jobs the node actually holds, which keeps the counters within
``[0, total]``.
"""

from dataclasses import dataclass, field

import structlog

from .models import Job

logger = structlog.get_logger(__name__)

DEFAULT_CORES_PER_NODE = 24
DEFAULT_MEMORY_PER_NODE = 64  # GB


class NotAllocatedError(Exception):
    """Raised when releasing a job that is not allocated on the node."""


@dataclass
class WorkerNode:
    """A single worker node in the fixed pool.

    ``available_cores`` and ``available_memory`` start at the totals and are
    only changed by :meth:`allocate` and :meth:`free`.
    """

    id: int
    total_cores: int = DEFAULT_CORES_PER_NODE
    total_memory: int = DEFAULT_MEMORY_PER_NODE
    available_cores: int = field(init=False)
    available_memory: int = field(init=False)
    # (job id, cores, memory) reserved by each allocation
    _reservations: list[tuple[int, int, int]] = field(
        init=False,
        default_factory=list,
        repr=False,
    )

    def __post_init__(self):
        if self.total_cores <= 0 or self.total_memory <= 0:
            msg = f"Node {self.id}: capacity must be positive"
            raise ValueError(msg)
        self.available_cores = self.total_cores
        self.available_memory = self.total_memory

    @property
    def job_ids(self) -> list[int]:
        """Ids of the jobs currently allocated on this node."""
        return [job_id for job_id, _, _ in self._reservations]

    def fits(self, job: Job) -> bool:
        """Whether the job fits in the currently available resources."""
        return (
            self.available_cores >= job.cores_required
            and self.available_memory >= job.memory_required
        )

    def can_ever_fit(self, job: Job) -> bool:
        """Whether the job fits in this node's total capacity."""
        return (
            self.total_cores >= job.cores_required
            and self.total_memory >= job.memory_required
        )

    def allocate(self, job: Job) -> bool:
        """Reserve the job's cores and memory if both are available.

        Args:
            job: Job to place.

        Returns:
            True if the resources were reserved, False if either dimension
            is short. Nothing changes on False.
        """
        if not self.fits(job):
            return False
        self.available_cores -= job.cores_required
        self.available_memory -= job.memory_required
        self._reservations.append(
            (job.id, job.cores_required, job.memory_required),
        )
        return True

    def free(self, job: Job) -> None:
        """Return the resources reserved for the job to the node.

        Only the amounts recorded at allocation time are returned, so the
        counters never exceed the totals.

        Raises:
            NotAllocatedError: If no allocation on this node matches the
                job's id and demand.
        """
        reservation = (job.id, job.cores_required, job.memory_required)
        if reservation not in self._reservations:
            msg = f"Job {job.id} is not allocated on node {self.id} with this demand"
            raise NotAllocatedError(msg)
        self._reservations.remove(reservation)
        _, cores, memory = reservation
        self.available_cores += cores
        self.available_memory += memory
        logger.debug("Freed job resources", job_id=job.id, node_id=self.id)

    def cpu_utilization(self) -> float:
        """Percentage of cores in use."""
        return 100.0 * (1.0 - self.available_cores / self.total_cores)

    def memory_utilization(self) -> float:
        """Percentage of memory in use."""
        return 100.0 * (1.0 - self.available_memory / self.total_memory)


def build_nodes(
    count: int,
    cores_per_node: int = DEFAULT_CORES_PER_NODE,
    memory_per_node: int = DEFAULT_MEMORY_PER_NODE,
) -> list[WorkerNode]:
    """Create ``count`` identical nodes with ids ``0..count-1``."""
    if count <= 0:
        msg = "node count must be positive"
        raise ValueError(msg)
    return [
        WorkerNode(id=i, total_cores=cores_per_node, total_memory=memory_per_node)
        for i in range(count)
    ]
