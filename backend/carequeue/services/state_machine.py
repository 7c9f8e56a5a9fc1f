"""Task status state machine.

Any active status may move to any other active status or straight to a
terminal one. COMPLETED and CANCELLED are final.
"""

import logging
import uuid
from datetime import datetime

from carequeue.errors import (
    InvalidTransitionError,
    MissingCancelReasonError,
    TaskNotFoundError,
)
from carequeue.models.task import Task, TaskStatus
from carequeue.repositories.task import TaskStore
from carequeue.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


def allowed_targets(current: TaskStatus) -> frozenset[TaskStatus]:
    """Statuses reachable from ``current``."""
    if current.is_terminal:
        return frozenset()
    return frozenset(status for status in TaskStatus if status != current)


def apply_transition(
    task: Task,
    target: TaskStatus,
    now: datetime,
    reason: str | None = None,
) -> Task:
    """Validate and apply a status change to ``task`` in place.

    The stamped instant never precedes the previous ``status_changed_at``,
    so a lagging clock cannot break timestamp ordering.

    Raises:
        InvalidTransitionError: Task is closed, or already has ``target``.
        MissingCancelReasonError: Cancelling without a non-blank reason.
    """
    current = task.status
    if current.is_terminal:
        raise InvalidTransitionError(current.value, target.value, "task is closed")
    if target not in allowed_targets(current):
        raise InvalidTransitionError(current.value, target.value, "task already has this status")

    cleaned_reason = reason.strip() if reason else ""
    if target == TaskStatus.CANCELLED and not cleaned_reason:
        raise MissingCancelReasonError()

    stamped = max(now, task.status_changed_at)
    task.status = target
    task.status_changed_at = stamped
    task.updated_at = stamped
    if target == TaskStatus.COMPLETED:
        task.completed_at = stamped
    elif target == TaskStatus.CANCELLED:
        task.cancelled_reason = cleaned_reason
    return task


class TaskStateMachine:
    """Loads a task, applies a transition and persists it."""

    def __init__(self, store: TaskStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    async def transition(
        self,
        task_id: uuid.UUID,
        target: TaskStatus,
        reason: str | None = None,
    ) -> tuple[Task, TaskStatus]:
        """Move a task to ``target``.

        Returns:
            The updated task and the status it had before.

        Raises:
            TaskNotFoundError: Unknown task.
            InvalidTransitionError: Disallowed transition.
            MissingCancelReasonError: Cancelling without a reason.
            StaleWriteError: Task changed concurrently.
        """
        task = await self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        previous = task.status
        apply_transition(task, target, self.clock(), reason)
        await self.store.save(task)
        logger.info("Task %s moved %s -> %s", task_id, previous.value, target.value)
        return task, previous
