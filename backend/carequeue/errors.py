"""Task queue error taxonomy.

Every error is a per-operation outcome returned to the immediate caller.
Only ``StaleWriteError`` is safe to retry, and only after a fresh read.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    """One caller-correctable problem with an input field."""

    field: str
    reason: str


class TaskQueueError(Exception):
    """Base class for task queue errors."""


class TaskValidationError(TaskQueueError):
    """Malformed or missing input. Carries every violation found, not just the first."""

    def __init__(self, violations: list[FieldViolation]):
        self.violations = list(violations)
        summary = "; ".join(f"{v.field}: {v.reason}" for v in self.violations)
        super().__init__(f"Invalid task input: {summary}")


class MissingCancelReasonError(TaskValidationError):
    """Cancellation attempted without a reason."""

    def __init__(self):
        super().__init__([FieldViolation("reason", "a reason is required to cancel a task")])


class EmptyNoteError(TaskValidationError):
    """Note text is blank after trimming."""

    def __init__(self):
        super().__init__([FieldViolation("note", "note text must not be empty")])


class TaskNotFoundError(TaskQueueError, LookupError):
    """Referenced task does not exist."""

    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class InvalidTransitionError(TaskQueueError):
    """Requested status change violates the state machine."""

    def __init__(self, current: str, target: str, detail: str | None = None):
        self.current = current
        self.target = target
        message = f"Cannot transition from '{current}' to '{target}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TerminalTaskImmutableError(TaskQueueError):
    """Mutation attempted on a completed or cancelled task."""

    def __init__(self, task_id: uuid.UUID, status: str):
        self.task_id = task_id
        self.status = status
        super().__init__(f"Task {task_id} is {status} and can no longer be changed")


class StaleWriteError(TaskQueueError):
    """The task changed since it was read. Re-read and reapply."""

    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} was modified concurrently; reload and retry")
