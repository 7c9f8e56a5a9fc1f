"""Task queue service.

Composition root for the communication task queue. Callers (clinician and
admin views, the HTTP routes) go through this service for every read and
mutation; it wires the state machine, assignment manager and note ledger to
a single store, clock, clinician directory and event publisher.
"""

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from carequeue.config import settings
from carequeue.errors import FieldViolation, TaskNotFoundError, TaskValidationError
from carequeue.models.task import TASK_TYPE_CATALOG, Task, TaskNote, TaskStatus, TaskType
from carequeue.repositories.task import TaskStore
from carequeue.schemas.queue import ClinicianQueuesOverview, QueueFilters, QueueSummary
from carequeue.schemas.task import TaskCreate
from carequeue.services.assignment import AssignmentManager
from carequeue.services.clinicians import ClinicianDirectory
from carequeue.services.events import (
    EventPublisher,
    LoggingEventPublisher,
    TaskCreated,
    TaskReassigned,
    TaskStatusChanged,
)
from carequeue.services.notes import NotesLedger
from carequeue.services.queue_filters import apply_filters
from carequeue.services.queue_overview import clinician_overview, summarize
from carequeue.services.state_machine import TaskStateMachine
from carequeue.utils.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)


class TaskQueueService:
    """Orchestrates task lifecycle operations over a ``TaskStore``."""

    def __init__(
        self,
        store: TaskStore,
        directory: ClinicianDirectory | None = None,
        publisher: EventPublisher | None = None,
        clock: Clock = utcnow,
        stall_threshold_days: int = settings.stall_threshold_days,
    ):
        """Initialize the service.

        Args:
            store: Task persistence.
            directory: Clinician lookup; when omitted, assignees are not
                checked against a directory.
            publisher: Receives domain events after successful writes.
            clock: Source of "now" for every mutation and default reads.
            stall_threshold_days: Default stall threshold for queue filters.
        """
        self.store = store
        self.directory = directory
        self.publisher = publisher or LoggingEventPublisher()
        self.clock = clock
        self.stall_threshold_days = stall_threshold_days

        self.state_machine = TaskStateMachine(store, clock)
        self.assignments = AssignmentManager(store, clock, directory)
        self.ledger = NotesLedger(store, clock)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def _validate_clinician(self, field: str, clinician_id: uuid.UUID) -> FieldViolation | None:
        if self.directory is None:
            return None
        if await self.directory.lookup_clinician(clinician_id) is None:
            return FieldViolation(field, f"unknown clinician {clinician_id}")
        return None

    async def create_task(self, data: TaskCreate) -> Task:
        """Validate input and create an OPEN task.

        Raises:
            TaskValidationError: Listing every violation found.
        """
        violations: list[FieldViolation] = []

        description = (data.description or "").strip()
        if not description:
            violations.append(FieldViolation("description", "description is required"))

        if data.assigned_clinician_id is None:
            violations.append(FieldViolation("assigned_clinician_id", "an assigned clinician is required"))
        else:
            unknown = await self._validate_clinician("assigned_clinician_id", data.assigned_clinician_id)
            if unknown:
                violations.append(unknown)

        if data.due_at is None:
            violations.append(FieldViolation("due_at", "a due date is required"))

        if data.type not in TASK_TYPE_CATALOG[data.owner_type]:
            violations.append(
                FieldViolation("type", f"{data.type.value} is not a valid {data.owner_type.value} task type")
            )

        if violations:
            raise TaskValidationError(violations)

        due_at = as_utc(data.due_at)

        now = self.clock()
        task = Task(
            id=uuid.uuid4(),
            type=data.type,
            source=data.source,
            owner_type=data.owner_type,
            category=data.category,
            priority=data.priority,
            status=TaskStatus.OPEN,
            assigned_clinician_id=data.assigned_clinician_id,
            created_by=data.created_by,
            patient_id=data.patient_id,
            patient_name=data.patient_name,
            patient_email=data.patient_email,
            patient_phone=data.patient_phone,
            guardian_phone=data.guardian_phone,
            episode_id=data.episode_id,
            patient_message_id=data.patient_message_id,
            description=description,
            letter_subtype=data.letter_subtype if data.type == TaskType.LETTER else None,
            due_at=due_at,
            created_at=now,
            updated_at=now,
            status_changed_at=now,
            stall_threshold_days=data.stall_threshold_days,
        )
        await self.store.add(task)
        logger.info("Created %s task %s for clinician %s", task.type.value, task.id, task.assigned_clinician_id)

        await self.publisher.publish(
            TaskCreated(
                task_id=task.id,
                owner_type=task.owner_type,
                assigned_clinician_id=task.assigned_clinician_id,
                occurred_at=now,
            )
        )
        return task

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_task(self, task_id: uuid.UUID) -> Task:
        task = await self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_queue(self, filters: QueueFilters | None = None, now: datetime | None = None) -> list[Task]:
        """Ordered queue view. Read-only snapshot; no locking.

        A naive ``now`` is taken as UTC, matching how ``due_at`` is stored.
        """
        tasks = await self.store.list_tasks()
        return apply_filters(
            tasks,
            filters or QueueFilters(),
            as_utc(now or self.clock()),
            stall_threshold_days=self.stall_threshold_days,
        )

    async def get_notes(self, task_id: uuid.UUID) -> Sequence[TaskNote]:
        return await self.ledger.history(task_id)

    async def summarize(self, now: datetime | None = None) -> QueueSummary:
        return summarize(await self.store.list_tasks(), as_utc(now or self.clock()))

    async def clinician_overview(
        self,
        now: datetime | None = None,
        urgent_limit: int = settings.urgent_task_limit,
        completed_limit: int = settings.recent_completion_limit,
    ) -> ClinicianQueuesOverview:
        clinicians = await self.directory.list_clinicians() if self.directory else []
        return clinician_overview(
            await self.store.list_tasks(),
            clinicians,
            as_utc(now or self.clock()),
            urgent_limit=urgent_limit,
            completed_limit=completed_limit,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def change_status(self, task_id: uuid.UUID, target: TaskStatus, reason: str | None = None) -> Task:
        """Raises TaskNotFoundError, InvalidTransitionError, MissingCancelReasonError, StaleWriteError."""
        task, previous = await self.state_machine.transition(task_id, target, reason)
        await self.publisher.publish(
            TaskStatusChanged(
                task_id=task.id,
                from_status=previous,
                to_status=task.status,
                occurred_at=task.status_changed_at,
            )
        )
        return task

    async def reassign(self, task_id: uuid.UUID, new_clinician_id: uuid.UUID) -> Task:
        """Raises TaskNotFoundError, TerminalTaskImmutableError, TaskValidationError, StaleWriteError."""
        task, previous = await self.assignments.reassign(task_id, new_clinician_id)
        if previous is not None:
            await self.publisher.publish(
                TaskReassigned(
                    task_id=task.id,
                    from_clinician_id=previous,
                    to_clinician_id=new_clinician_id,
                    occurred_at=task.updated_at,
                )
            )
        return task

    async def add_note(self, task_id: uuid.UUID, author_id: uuid.UUID, text: str) -> Sequence[TaskNote]:
        """Raises TaskNotFoundError, EmptyNoteError."""
        return await self.ledger.add_note(task_id, author_id, text)

    async def acknowledge_completed(self, task_ids: Sequence[uuid.UUID]) -> int:
        """Mark completions as seen by an administrator.

        Ids that are unknown, not completed, or already acknowledged are
        skipped. Each task is committed on its own, so a ``StaleWriteError``
        leaves earlier tasks acknowledged; calling again with the same ids
        finishes the rest.

        Returns:
            Number of tasks newly acknowledged.

        Raises:
            StaleWriteError: A task changed between its read and its write.
        """
        acknowledged = 0
        for task_id in dict.fromkeys(task_ids):
            task = await self.store.get(task_id)
            if task is None or task.status != TaskStatus.COMPLETED or task.admin_acknowledged_at is not None:
                continue
            now = self.clock()
            task.admin_acknowledged_at = now
            task.updated_at = max(now, task.updated_at)
            await self.store.save(task)
            acknowledged += 1

        if acknowledged:
            logger.info("Acknowledged %d completed task(s)", acknowledged)
        return acknowledged
