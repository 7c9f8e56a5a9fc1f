"""Task repository.

Persistence for tasks and their note ledger. No business rules live here:
the repository only reads and writes rows and enforces the optimistic
version check on updates.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from carequeue.errors import StaleWriteError
from carequeue.models.task import Task, TaskNote

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """Storage boundary the task queue services depend on."""

    async def add(self, task: Task) -> Task: ...
    async def get(self, task_id: uuid.UUID) -> Task | None: ...
    async def save(self, task: Task) -> Task: ...
    async def list_tasks(self) -> Sequence[Task]: ...
    async def add_note(self, note: TaskNote) -> TaskNote: ...
    async def list_notes(self, task_id: uuid.UUID) -> Sequence[TaskNote]: ...


class TaskRepository:
    """SQLAlchemy implementation of ``TaskStore``.

    Every write commits its own unit of work, so a mutation is visible to
    other sessions as soon as the call returns. Updates are guarded by the
    ``version`` column; a concurrent change surfaces as ``StaleWriteError``.
    """

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def add(self, task: Task) -> Task:
        """Insert a new task."""
        self.db.add(task)
        await self.db.commit()
        return task

    async def get(self, task_id: uuid.UUID) -> Task | None:
        """Get task by ID, always re-reading the row."""
        return await self.db.get(Task, task_id, populate_existing=True)

    async def save(self, task: Task) -> Task:
        """Persist changes to an already loaded task.

        On a version conflict the session is rolled back, which expires every
        instance it holds. Keep ids rather than instances across the call and
        reload through ``get`` before retrying.

        Raises:
            StaleWriteError: If the row's version changed since it was read.
        """
        # Rollback expires the instance; read the key first
        task_id = task.id
        try:
            await self.db.flush()
            await self.db.commit()
        except StaleDataError as exc:
            await self.db.rollback()
            logger.warning("Stale write rejected for task %s", task_id)
            raise StaleWriteError(task_id) from exc
        return task

    async def list_tasks(self) -> Sequence[Task]:
        """Snapshot of every task in creation order."""
        result = await self.db.execute(
            select(Task)
            .order_by(Task.created_at, Task.id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().all()

    async def add_note(self, note: TaskNote) -> TaskNote:
        """Append a note to the ledger."""
        self.db.add(note)
        await self.db.commit()
        return note

    async def list_notes(self, task_id: uuid.UUID) -> Sequence[TaskNote]:
        """Notes for a task, oldest first."""
        result = await self.db.execute(
            select(TaskNote)
            .where(TaskNote.task_id == task_id)
            .order_by(TaskNote.created_at, TaskNote.id)
        )
        return result.scalars().all()
