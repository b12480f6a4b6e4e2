"""Workload producer package.

Supplies jobs to the scheduler, either from validated JSON job files or from
the built-in sample workload.

Exports:
    JobSubmission: A job paired with its target policy queue.
    load_jobs: Load submissions from a JSON job file.
    sample_jobs: The reference five-job workload.
    submit: Enqueue submissions into a scheduler.
    types: Module containing Pydantic models for job files.
"""

from . import types
from .producer import JobSubmission, load_jobs, sample_jobs, submit

__all__ = [
    "JobSubmission",
    "load_jobs",
    "sample_jobs",
    "submit",
    "types",
]
