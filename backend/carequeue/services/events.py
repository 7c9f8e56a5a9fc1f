"""Task domain events.

Events are published after a mutation has been persisted. A messaging
collaborator subscribes through an ``EventPublisher`` to notify new owners;
this package never talks to email or SMS providers itself.
"""

import logging
from datetime import datetime
from typing import Literal, Protocol
from uuid import UUID

from pydantic import BaseModel

from carequeue.models.task import TaskOwnerType, TaskStatus

logger = logging.getLogger(__name__)


class TaskCreated(BaseModel):
    event_type: Literal["task.created"] = "task.created"
    task_id: UUID
    owner_type: TaskOwnerType
    assigned_clinician_id: UUID
    occurred_at: datetime


class TaskStatusChanged(BaseModel):
    event_type: Literal["task.status_changed"] = "task.status_changed"
    task_id: UUID
    from_status: TaskStatus
    to_status: TaskStatus
    occurred_at: datetime


class TaskReassigned(BaseModel):
    event_type: Literal["task.reassigned"] = "task.reassigned"
    task_id: UUID
    from_clinician_id: UUID
    to_clinician_id: UUID
    occurred_at: datetime


TaskEvent = TaskCreated | TaskStatusChanged | TaskReassigned


class EventPublisher(Protocol):
    async def publish(self, event: TaskEvent) -> None: ...


class LoggingEventPublisher:
    """Default publisher: writes each event to the log."""

    async def publish(self, event: TaskEvent) -> None:
        logger.info("Task event %s: %s", event.event_type, event.model_dump_json())


class RecordingEventPublisher:
    """Keeps published events in memory, in order."""

    def __init__(self) -> None:
        self.events: list[TaskEvent] = []

    async def publish(self, event: TaskEvent) -> None:
        self.events.append(event)
