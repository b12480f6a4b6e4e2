"""Policy queues ordering jobs for the scheduler's drain loop.

A single heap-backed container serves all three policies; the policy only
selects the ordering key. Jobs with equal keys leave the queue in the order
they were pushed.
"""

import enum
import heapq
import itertools
from collections.abc import Callable

from .models import Job


class Policy(str, enum.Enum):
    """Job ordering policy."""

    FCFS = "fcfs"
    WEIGHTED_SMALLEST = "weighted_smallest"
    SHORTEST_DURATION = "shortest_duration"

    @property
    def label(self) -> str:
        """Human-readable name used in drain section headers."""
        return _LABELS[self]


_LABELS = {
    Policy.FCFS: "FCFS",
    Policy.WEIGHTED_SMALLEST: "Smallest Job First",
    Policy.SHORTEST_DURATION: "Shortest Duration First",
}

# FCFS uses a constant key so the insertion sequence alone decides the order
_ORDER_KEYS: dict[Policy, Callable[[Job], int]] = {
    Policy.FCFS: lambda job: 0,
    Policy.WEIGHTED_SMALLEST: lambda job: job.weight,
    Policy.SHORTEST_DURATION: lambda job: job.exec_time,
}

DEFAULT_DRAIN_ORDER = (
    Policy.FCFS,
    Policy.WEIGHTED_SMALLEST,
    Policy.SHORTEST_DURATION,
)


class PolicyQueue:
    """Priority queue of jobs ordered by a policy's key, smallest first."""

    def __init__(self, policy: Policy):
        self.policy = Policy(policy)
        self._key = _ORDER_KEYS[self.policy]
        self._heap: list[tuple[int, int, Job]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, job: Job) -> None:
        heapq.heappush(self._heap, (self._key(job), next(self._counter), job))

    def peek(self) -> Job:
        """Return the next job without removing it.

        Raises:
            IndexError: If the queue is empty.
        """
        if not self._heap:
            msg = f"peek from empty {self.policy.value} queue"
            raise IndexError(msg)
        return self._heap[0][2]

    def pop_next(self) -> Job:
        """Remove and return the next job under this queue's policy.

        Raises:
            IndexError: If the queue is empty.
        """
        if not self._heap:
            msg = f"pop from empty {self.policy.value} queue"
            raise IndexError(msg)
        return heapq.heappop(self._heap)[2]

    def is_empty(self) -> bool:
        return not self._heap
