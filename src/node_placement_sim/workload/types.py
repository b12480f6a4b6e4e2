"""Raw job file types.

Pydantic models describing the JSON job files accepted by the workload
producer. They validate the input before it is turned into :class:`Job`
records.
"""

from pydantic import BaseModel, Field

from ..queues import Policy


class RawJobSpec(BaseModel):
    """A single job entry from a job file.

    Memory is in GB, execution time in hours. ``policy`` selects the queue
    the job is submitted to.
    """

    # Core identification
    id: int

    # Informational only, never used for ordering
    arrival_time: int = Field(0, ge=0)

    # Resource demand
    cores_required: int = Field(gt=0)
    memory_required: int = Field(gt=0)
    exec_time: int = Field(gt=0)

    # Target queue
    policy: Policy = Policy.FCFS


class RawWorkload(BaseModel):
    """Top-level structure of a job file."""

    jobs: list[RawJobSpec] = Field(default_factory=list)
