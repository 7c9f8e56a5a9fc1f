"""Pydantic schemas for queue views: filters, summaries and overviews."""

from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from carequeue.models.task import (
    TaskOwnerType,
    TaskPriority,
    TaskStatus,
    TaskType,
)


class QuickFilter(str, Enum):
    """Named time buckets for queue listings."""

    ALL = "all"
    OVERDUE = "overdue"
    TODAY = "today"
    WEEK = "week"


class RetentionWindow(str, Enum):
    """Trailing windows during which closed tasks stay visible."""

    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"

    def to_timedelta(self) -> timedelta:
        return _RETENTION_DELTAS[self]


_RETENTION_DELTAS = {
    RetentionWindow.LAST_24_HOURS: timedelta(hours=24),
    RetentionWindow.LAST_7_DAYS: timedelta(days=7),
    RetentionWindow.LAST_30_DAYS: timedelta(days=30),
}


class QueueFilters(BaseModel):
    """Filter selections for a queue view.

    ``None`` on any exact-match field means "all". Without a retention
    window, completed and cancelled tasks are left out entirely.
    """

    quick_filter: QuickFilter = QuickFilter.ALL
    type: TaskType | None = None
    status: TaskStatus | None = None
    owner_type: TaskOwnerType | None = None
    clinician_id: UUID | None = None
    participant_id: UUID | None = Field(
        default=None,
        description="Tasks assigned to or created by this user",
    )
    patient_id: str | None = None
    retention_window: timedelta | None = None
    stalled_only: bool = False


# === Dashboard schemas ===


class QueueSummary(BaseModel):
    """Active task counts by status for the admin dashboard."""

    open: int = 0
    in_progress: int = 0
    waiting_on_clinician: int = 0
    waiting_on_patient: int = 0
    blocked: int = 0
    total: int = 0
    recently_completed: int = Field(
        default=0,
        description="Completed in the last 24 hours and not yet acknowledged",
    )


class ClinicianQueueSummary(BaseModel):
    """Workload figures for one clinician."""

    clinician_id: UUID
    clinician_name: str
    open_count: int
    overdue_count: int
    completed_last_7_days: int


class UrgentTask(BaseModel):
    """Active task that is overdue or high priority."""

    id: UUID
    clinician_id: UUID
    clinician_name: str
    patient_name: str | None
    type: TaskType
    status: TaskStatus
    priority: TaskPriority
    due_at: datetime
    is_overdue: bool


class RecentlyCompletedTask(BaseModel):
    """Task completed within the last 24 hours."""

    id: UUID
    clinician_id: UUID
    clinician_name: str
    patient_name: str | None
    type: TaskType
    completed_at: datetime


class ClinicianQueuesOverview(BaseModel):
    """Cross-clinician view of queue health."""

    clinicians: list[ClinicianQueueSummary]
    urgent_tasks: list[UrgentTask]
    recently_completed: list[RecentlyCompletedTask]
