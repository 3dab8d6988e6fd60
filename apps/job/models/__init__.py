from .job import Job
from .job_event import JobEvent

__all__ = ["Job", "JobEvent"]
