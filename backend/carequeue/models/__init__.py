"""SQLAlchemy models."""

from carequeue.models.clinician import Clinician
from carequeue.models.task import Task, TaskNote

__all__ = [
    "Clinician",
    "Task",
    "TaskNote",
]
