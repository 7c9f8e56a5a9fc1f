"""Task ownership changes.

Reassignment is orthogonal to status: it never touches ``status`` or
``status_changed_at``.
"""

import logging
import uuid

from carequeue.errors import (
    FieldViolation,
    TaskNotFoundError,
    TaskValidationError,
    TerminalTaskImmutableError,
)
from carequeue.models.task import Task
from carequeue.repositories.task import TaskStore
from carequeue.services.clinicians import ClinicianDirectory
from carequeue.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class AssignmentManager:
    def __init__(
        self,
        store: TaskStore,
        clock: Clock = utcnow,
        directory: ClinicianDirectory | None = None,
    ):
        self.store = store
        self.clock = clock
        self.directory = directory

    async def reassign(self, task_id: uuid.UUID, new_clinician_id: uuid.UUID) -> tuple[Task, uuid.UUID | None]:
        """Hand a task to another clinician.

        The task is checked before the new clinician: an unknown or closed
        task wins over an unknown clinician, and handing a task to its
        current owner succeeds without consulting the directory.

        Returns:
            The task and the previous clinician id, or ``None`` when the
            clinician was already the owner (nothing is written).

        Raises:
            TaskNotFoundError: Unknown task.
            TerminalTaskImmutableError: Task is completed or cancelled.
            TaskValidationError: New clinician is not in the directory.
            StaleWriteError: Task changed concurrently.
        """
        task = await self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if task.status.is_terminal:
            raise TerminalTaskImmutableError(task_id, task.status.value)

        previous = task.assigned_clinician_id
        if previous == new_clinician_id:
            return task, None

        if self.directory is not None and await self.directory.lookup_clinician(new_clinician_id) is None:
            raise TaskValidationError(
                [FieldViolation("new_clinician_id", f"unknown clinician {new_clinician_id}")]
            )

        task.assigned_clinician_id = new_clinician_id
        task.updated_at = max(self.clock(), task.updated_at)
        await self.store.save(task)
        logger.info("Task %s reassigned %s -> %s", task_id, previous, new_clinician_id)
        return task, previous
