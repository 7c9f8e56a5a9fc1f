"""Pydantic schemas."""

from carequeue.schemas.queue import (
    ClinicianQueueSummary,
    ClinicianQueuesOverview,
    QueueFilters,
    QueueSummary,
    QuickFilter,
    RecentlyCompletedTask,
    RetentionWindow,
    UrgentTask,
)
from carequeue.schemas.task import (
    AcknowledgeRequest,
    AcknowledgeResponse,
    NoteCreate,
    ReassignRequest,
    StatusChangeRequest,
    TaskCreate,
    TaskListResponse,
    TaskNoteResponse,
    TaskResponse,
)

__all__ = [
    "AcknowledgeRequest",
    "AcknowledgeResponse",
    "ClinicianQueueSummary",
    "ClinicianQueuesOverview",
    "NoteCreate",
    "QueueFilters",
    "QueueSummary",
    "QuickFilter",
    "ReassignRequest",
    "RecentlyCompletedTask",
    "RetentionWindow",
    "StatusChangeRequest",
    "TaskCreate",
    "TaskListResponse",
    "TaskNoteResponse",
    "TaskResponse",
    "UrgentTask",
]
