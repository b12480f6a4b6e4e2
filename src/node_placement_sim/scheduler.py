"""Scheduler draining policy queues onto a shared pool of worker nodes.

Placement is first-fit: nodes are scanned in ascending id order and the
first node with enough free cores and memory wins. The node pool is shared by
every policy, so allocations made while draining one queue reduce the
capacity seen by the queues drained after it.
"""

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from .models import Job
from .nodes import (
    DEFAULT_CORES_PER_NODE,
    DEFAULT_MEMORY_PER_NODE,
    NotAllocatedError,
    WorkerNode,
    build_nodes,
)
from .queues import DEFAULT_DRAIN_ORDER, Policy, PolicyQueue

logger = structlog.get_logger(__name__)


@dataclass
class DrainSummary:
    """Outcome of draining one policy queue."""

    policy: Policy
    placed: list[Job] = field(default_factory=list)
    pending: list[Job] = field(default_factory=list)


class Scheduler:
    """Owns the node pool, one queue per policy and the pending jobs.

    Jobs that fit on no node during a drain are appended to the pending list
    and stay there until explicitly handed back with :meth:`resubmit`.
    """

    def __init__(self, nodes: Sequence[WorkerNode]):
        """Initialize the scheduler.

        Args:
            nodes: Worker nodes in scan order. The list is fixed for the
                lifetime of the scheduler.

        Raises:
            ValueError: If no nodes are given or two nodes share an id.
        """
        if not nodes:
            msg = "scheduler needs at least one node"
            raise ValueError(msg)
        self._nodes = list(nodes)
        self._nodes_by_id = {node.id: node for node in self._nodes}
        if len(self._nodes_by_id) != len(self._nodes):
            msg = "node ids must be unique"
            raise ValueError(msg)
        self._queues = {policy: PolicyQueue(policy) for policy in Policy}
        self._pending: list[Job] = []

    @classmethod
    def with_uniform_nodes(
        cls,
        node_count: int,
        cores_per_node: int = DEFAULT_CORES_PER_NODE,
        memory_per_node: int = DEFAULT_MEMORY_PER_NODE,
    ) -> "Scheduler":
        """Create a scheduler over ``node_count`` identical nodes."""
        return cls(build_nodes(node_count, cores_per_node, memory_per_node))

    @property
    def nodes(self) -> list[WorkerNode]:
        """The shared node pool, in scan order."""
        return self._nodes

    @property
    def pending(self) -> list[Job]:
        """Jobs that could not be placed, in the order they failed."""
        return list(self._pending)

    @property
    def unschedulable(self) -> list[Job]:
        """Pending jobs that exceed the total capacity of every node."""
        return [job for job in self._pending if not self._can_ever_fit(job)]

    def queue(self, policy: Policy) -> PolicyQueue:
        return self._queues[Policy(policy)]

    def enqueue(self, job: Job, policy: Policy) -> None:
        """Add a copy of the job to the given policy's queue."""
        self.queue(policy).push(dataclasses.replace(job))

    def _can_ever_fit(self, job: Job) -> bool:
        return any(node.can_ever_fit(job) for node in self._nodes)

    def allocate_job(self, job: Job) -> WorkerNode | None:
        """Place the job on the first node with enough free resources.

        Args:
            job: Job to place. On success its ``completed`` flag is set and
                ``node_id`` records the chosen node.

        Returns:
            The node the job was placed on, or None if no node fits.
        """
        for node in self._nodes:
            if node.allocate(job):
                job.completed = True
                job.node_id = node.id
                logger.info(
                    f"Job {job.id} allocated to Node {node.id}",
                    job_id=job.id,
                    node_id=node.id,
                )
                return node

        logger.info(
            f"Job {job.id} could not be allocated, re-queueing.",
            job_id=job.id,
            unschedulable=not self._can_ever_fit(job),
        )
        return None

    def schedule(self, policy: Policy) -> DrainSummary:
        """Drain one policy queue, placing or deferring every job in it."""
        policy = Policy(policy)
        queue = self._queues[policy]
        summary = DrainSummary(policy=policy)
        logger.info(f"Scheduling using {policy.label} policy:", policy=policy.value)

        while not queue.is_empty():
            job = queue.pop_next()
            if self.allocate_job(job) is not None:
                summary.placed.append(job)
            else:
                self._pending.append(job)
                summary.pending.append(job)

        logger.debug(
            "Drain finished",
            policy=policy.value,
            placed=len(summary.placed),
            pending=len(summary.pending),
        )
        return summary

    def schedule_all(
        self,
        order: Iterable[Policy] = DEFAULT_DRAIN_ORDER,
    ) -> list[DrainSummary]:
        """Drain the policy queues one after another in the given order."""
        return [self.schedule(policy) for policy in order]

    def resubmit(self, job: Job, policy: Policy) -> None:
        """Move a pending job back into a policy queue.

        Raises:
            ValueError: If no pending job has the given job's id.
        """
        for index, pending_job in enumerate(self._pending):
            if pending_job.id == job.id:
                del self._pending[index]
                self.enqueue(pending_job, policy)
                logger.info(
                    "Resubmitted pending job",
                    job_id=job.id,
                    policy=Policy(policy).value,
                )
                return
        msg = f"Job {job.id} is not pending"
        raise ValueError(msg)

    def release(self, job: Job) -> WorkerNode:
        """Free a placed job's resources on the node it was placed on.

        Returns:
            The node the resources were returned to.

        Raises:
            NotAllocatedError: If the job is not currently placed on a node
                of this pool.
        """
        node = self._nodes_by_id.get(job.node_id)
        if node is None:
            msg = f"Job {job.id} is not placed on any node of this pool"
            raise NotAllocatedError(msg)
        node.free(job)
        job.node_id = None
        return node
