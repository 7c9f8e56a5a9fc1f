"""Task API routes.

Queue listing with filters, task creation, status changes, reassignment and
the note ledger. Service errors are translated to HTTP responses in one place.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from carequeue.config import settings
from carequeue.database import get_db
from carequeue.errors import (
    InvalidTransitionError,
    StaleWriteError,
    TaskNotFoundError,
    TaskValidationError,
    TerminalTaskImmutableError,
)
from carequeue.models.task import TaskOwnerType, TaskStatus, TaskType
from carequeue.repositories.task import TaskRepository
from carequeue.schemas.queue import (
    ClinicianQueuesOverview,
    QueueFilters,
    QueueSummary,
    QuickFilter,
    RetentionWindow,
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
from carequeue.services.clinicians import SqlClinicianDirectory
from carequeue.services.task_queue import TaskQueueService

router = APIRouter(prefix="/tasks", tags=["tasks"])


# Pagination defaults
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


async def get_task_queue_service(db: AsyncSession = Depends(get_db)) -> TaskQueueService:
    """Build a request-scoped service over the request's session."""
    return TaskQueueService(TaskRepository(db), directory=SqlClinicianDirectory(db))


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map task queue errors onto HTTP status codes."""
    try:
        yield
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found") from exc
    except TaskValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"field": v.field, "reason": v.reason} for v in exc.violations],
        ) from exc
    except (InvalidTransitionError, TerminalTaskImmutableError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StaleWriteError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "This task changed, please retry", "retry": True},
        ) from exc


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    service: TaskQueueService = Depends(get_task_queue_service),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    quick_filter: QuickFilter = QuickFilter.ALL,
    type: TaskType | None = None,
    status: TaskStatus | None = None,
    owner_type: TaskOwnerType | None = None,
    clinician_id: uuid.UUID | None = None,
    participant_id: uuid.UUID | None = None,
    patient_id: str | None = None,
    retention_window: RetentionWindow | None = None,
    include_closed: bool = True,
    stalled_only: bool = False,
) -> TaskListResponse:
    """List the ordered task queue with optional filtering and pagination.

    Args:
        skip: Number of records to skip (pagination offset).
        limit: Maximum number of records to return.
        quick_filter: all, overdue, today or week.
        type: Filter by task type.
        status: Filter by task status.
        owner_type: Filter by work queue (ADMIN or CLINICIAN).
        clinician_id: Filter by assigned clinician.
        participant_id: Tasks assigned to or created by this user.
        patient_id: Filter by patient reference.
        retention_window: How long closed tasks stay visible (default from settings).
        include_closed: Set false to hide completed and cancelled tasks.
        stalled_only: Only tasks stuck in their current status.

    Returns:
        Paginated, ordered list of tasks.
    """
    window = retention_window or RetentionWindow(settings.default_retention_window)
    filters = QueueFilters(
        quick_filter=quick_filter,
        type=type,
        status=status,
        owner_type=owner_type,
        clinician_id=clinician_id,
        participant_id=participant_id,
        patient_id=patient_id,
        retention_window=window.to_timedelta() if include_closed else None,
        stalled_only=stalled_only,
    )
    tasks = await service.list_queue(filters)

    return TaskListResponse(
        items=[TaskResponse.model_validate(task) for task in tasks[skip : skip + limit]],
        total=len(tasks),
        skip=skip,
        limit=limit,
    )


@router.get("/summary", response_model=QueueSummary)
async def get_queue_summary(
    service: TaskQueueService = Depends(get_task_queue_service),
) -> QueueSummary:
    """Active task counts by status plus unacknowledged recent completions."""
    return await service.summarize()


@router.get("/overview", response_model=ClinicianQueuesOverview)
async def get_clinician_overview(
    service: TaskQueueService = Depends(get_task_queue_service),
) -> ClinicianQueuesOverview:
    """Per-clinician workload, urgent tasks and recent completions."""
    return await service.clinician_overview()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> TaskResponse:
    """Create a new task.

    Raises:
        HTTPException: 422 listing every invalid field.
    """
    with translate_errors():
        task = await service.create_task(task_data)
    return TaskResponse.model_validate(task)


@router.post("/acknowledgements", response_model=AcknowledgeResponse)
async def acknowledge_completed_tasks(
    request: AcknowledgeRequest,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> AcknowledgeResponse:
    """Mark completed tasks as reviewed by an administrator.

    Raises:
        HTTPException: 409 if a task changed concurrently. Tasks acknowledged
            before the conflict stay acknowledged; resending the same ids is safe.
    """
    with translate_errors():
        acknowledged = await service.acknowledge_completed(request.task_ids)
    return AcknowledgeResponse(acknowledged=acknowledged)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> TaskResponse:
    """Get a single task by ID.

    Raises:
        HTTPException: 404 if task not found.
    """
    with translate_errors():
        task = await service.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/status", response_model=TaskResponse)
async def change_task_status(
    task_id: uuid.UUID,
    request: StatusChangeRequest,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> TaskResponse:
    """Move a task to a new status.

    Raises:
        HTTPException: 404 unknown task, 409 invalid transition or concurrent
            change, 422 cancellation without a reason.
    """
    with translate_errors():
        task = await service.change_status(task_id, request.status, request.reason)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/assignment", response_model=TaskResponse)
async def reassign_task(
    task_id: uuid.UUID,
    request: ReassignRequest,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> TaskResponse:
    """Hand a task to another clinician.

    Raises:
        HTTPException: 404 unknown task, 409 closed task or concurrent
            change, 422 unknown clinician.
    """
    with translate_errors():
        task = await service.reassign(task_id, request.new_clinician_id)
    return TaskResponse.model_validate(task)


@router.get("/{task_id}/notes", response_model=list[TaskNoteResponse])
async def list_task_notes(
    task_id: uuid.UUID,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> list[TaskNoteResponse]:
    """Note history for a task, oldest first."""
    with translate_errors():
        notes = await service.get_notes(task_id)
    return [TaskNoteResponse.model_validate(note) for note in notes]


@router.post("/{task_id}/notes", response_model=list[TaskNoteResponse], status_code=status.HTTP_201_CREATED)
async def add_task_note(
    task_id: uuid.UUID,
    request: NoteCreate,
    service: TaskQueueService = Depends(get_task_queue_service),
) -> list[TaskNoteResponse]:
    """Append a note and return the full history.

    Raises:
        HTTPException: 404 unknown task, 422 empty note.
    """
    with translate_errors():
        notes = await service.add_note(task_id, request.author_id, request.note)
    return [TaskNoteResponse.model_validate(note) for note in notes]
