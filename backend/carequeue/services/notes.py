"""Append-only note ledger for tasks.

Notes document history rather than active work, so they are accepted on
tasks in any status, closed ones included.
"""

import logging
import uuid
from collections.abc import Sequence

from carequeue.errors import EmptyNoteError, TaskNotFoundError
from carequeue.models.task import TaskNote
from carequeue.repositories.task import TaskStore
from carequeue.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class NotesLedger:
    def __init__(self, store: TaskStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    async def add_note(self, task_id: uuid.UUID, author_id: uuid.UUID, text: str) -> Sequence[TaskNote]:
        """Append a note and return the task's full history, oldest first.

        Raises:
            TaskNotFoundError: Unknown task.
            EmptyNoteError: Text is blank after trimming.
        """
        if await self.store.get(task_id) is None:
            raise TaskNotFoundError(task_id)
        cleaned = (text or "").strip()
        if not cleaned:
            raise EmptyNoteError()

        await self.store.add_note(
            TaskNote(task_id=task_id, author_id=author_id, note=cleaned, created_at=self.clock())
        )
        logger.info("Note added to task %s by %s", task_id, author_id)
        return await self.store.list_notes(task_id)

    async def history(self, task_id: uuid.UUID) -> Sequence[TaskNote]:
        """Raises TaskNotFoundError for an unknown task."""
        if await self.store.get(task_id) is None:
            raise TaskNotFoundError(task_id)
        return await self.store.list_notes(task_id)
