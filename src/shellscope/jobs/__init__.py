"""Background jobs: forked sessions on threads, bounded by job slots."""

from shellscope.jobs.background import BackgroundJob, JobStatus, background, get_bg_result
from shellscope.jobs.future import OneShot
from shellscope.jobs.slots import JobSlots

__all__ = [
    "BackgroundJob",
    "JobSlots",
    "JobStatus",
    "OneShot",
    "background",
    "get_bg_result",
]
