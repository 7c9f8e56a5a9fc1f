"""Pydantic schemas for the Task API.

These schemas define request/response formats for the task queue,
including status changes, reassignment and the note ledger.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from carequeue.models.task import (
    TaskCategory,
    TaskOwnerType,
    TaskPriority,
    TaskSource,
    TaskStatus,
    TaskType,
)


# === API Request Schemas ===


class TaskCreate(BaseModel):
    """Schema for creating a new task.

    Required business fields (description, assignee, due date) are optional
    here so the service can report every missing one in a single error.
    """

    type: TaskType
    source: TaskSource = TaskSource.CLINICIAN
    owner_type: TaskOwnerType = TaskOwnerType.CLINICIAN
    category: TaskCategory = TaskCategory.CLINICAL_EXECUTION
    priority: TaskPriority = TaskPriority.NORMAL
    description: str | None = None
    assigned_clinician_id: UUID | None = None
    created_by: UUID | None = None
    due_at: datetime | None = None
    patient_id: str | None = Field(default=None, max_length=64)
    patient_name: str | None = Field(default=None, max_length=200)
    patient_email: str | None = Field(default=None, max_length=320)
    patient_phone: str | None = Field(default=None, max_length=40)
    guardian_phone: str | None = Field(default=None, max_length=40)
    episode_id: str | None = Field(default=None, max_length=64)
    patient_message_id: str | None = Field(default=None, max_length=64)
    letter_subtype: str | None = Field(default=None, max_length=80)
    stall_threshold_days: int | None = Field(default=None, ge=1)


class StatusChangeRequest(BaseModel):
    """Schema for moving a task to a new status."""

    status: TaskStatus
    reason: str | None = Field(default=None, description="Required when cancelling")


class ReassignRequest(BaseModel):
    """Schema for handing a task to another clinician."""

    new_clinician_id: UUID


class NoteCreate(BaseModel):
    """Schema for appending a note to a task."""

    author_id: UUID
    note: str


class AcknowledgeRequest(BaseModel):
    """Completed tasks an administrator has reviewed."""

    task_ids: list[UUID] = Field(min_length=1)


# === API Response Schemas ===


class TaskResponse(BaseModel):
    """Schema for task in API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: TaskType
    source: TaskSource
    owner_type: TaskOwnerType
    category: TaskCategory
    priority: TaskPriority
    status: TaskStatus
    assigned_clinician_id: UUID
    created_by: UUID | None
    description: str
    patient_id: str | None
    patient_name: str | None
    patient_email: str | None
    patient_phone: str | None
    guardian_phone: str | None
    episode_id: str | None
    patient_message_id: str | None
    letter_subtype: str | None
    cancelled_reason: str | None
    due_at: datetime
    created_at: datetime
    updated_at: datetime
    status_changed_at: datetime
    completed_at: datetime | None
    admin_acknowledged_at: datetime | None
    stall_threshold_days: int | None
    version: int


class TaskListResponse(BaseModel):
    """Paginated, ordered queue of tasks."""

    items: list[TaskResponse]
    total: int
    skip: int
    limit: int


class TaskNoteResponse(BaseModel):
    """Schema for a ledger entry in API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: UUID
    author_id: UUID
    note: str
    created_at: datetime


class AcknowledgeResponse(BaseModel):
    """Number of completions newly acknowledged."""

    acknowledged: int
