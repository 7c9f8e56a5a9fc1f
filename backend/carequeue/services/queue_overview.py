"""Dashboard aggregates over the task queue.

- ``summarize``: active counts per status plus unacknowledged completions
- ``clinician_overview``: per-clinician workload, urgent work, recent completions
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from carequeue.models.clinician import Clinician
from carequeue.models.task import Task, TaskPriority, TaskStatus
from carequeue.schemas.queue import (
    ClinicianQueueSummary,
    ClinicianQueuesOverview,
    QueueSummary,
    RecentlyCompletedTask,
    UrgentTask,
)
from carequeue.services.clinicians import UNKNOWN_CLINICIAN_NAME
from carequeue.services.overdue import is_overdue

RECENT_COMPLETION_WINDOW = timedelta(hours=24)
COMPLETION_STATS_WINDOW = timedelta(days=7)

_SUMMARY_FIELDS = {
    TaskStatus.OPEN: "open",
    TaskStatus.IN_PROGRESS: "in_progress",
    TaskStatus.WAITING_ON_CLINICIAN: "waiting_on_clinician",
    TaskStatus.WAITING_ON_PATIENT: "waiting_on_patient",
    TaskStatus.BLOCKED: "blocked",
}


def _completed_since(task: Task, cutoff: datetime) -> bool:
    return (
        task.status == TaskStatus.COMPLETED
        and task.completed_at is not None
        and task.completed_at >= cutoff
    )


def summarize(tasks: Iterable[Task], now: datetime) -> QueueSummary:
    counts = dict.fromkeys(_SUMMARY_FIELDS.values(), 0)
    recently_completed = 0
    cutoff = now - RECENT_COMPLETION_WINDOW

    for task in tasks:
        if task.status.is_active:
            counts[_SUMMARY_FIELDS[task.status]] += 1
        elif _completed_since(task, cutoff) and task.admin_acknowledged_at is None:
            recently_completed += 1

    return QueueSummary(
        **counts,
        total=sum(counts.values()),
        recently_completed=recently_completed,
    )


def _urgent_order(task: Task, now: datetime) -> tuple[int, float]:
    return (0 if is_overdue(task, now) else 1), task.due_at.timestamp()


def clinician_overview(
    tasks: Sequence[Task],
    clinicians: Sequence[Clinician],
    now: datetime,
    urgent_limit: int = 10,
    completed_limit: int = 10,
) -> ClinicianQueuesOverview:
    """Build the cross-clinician overview.

    Clinicians with no active work and no completions in the last seven days
    are omitted. Urgent tasks are active tasks that are overdue or HIGH
    priority, overdue first then by due date.
    """
    names = {clinician.id: clinician.name for clinician in clinicians}
    stats_cutoff = now - COMPLETION_STATS_WINDOW
    recent_cutoff = now - RECENT_COMPLETION_WINDOW

    summaries: list[ClinicianQueueSummary] = []
    for clinician in clinicians:
        owned = [task for task in tasks if task.assigned_clinician_id == clinician.id]
        active = [task for task in owned if task.status.is_active]
        completed = [task for task in owned if _completed_since(task, stats_cutoff)]
        if not active and not completed:
            continue
        summaries.append(
            ClinicianQueueSummary(
                clinician_id=clinician.id,
                clinician_name=clinician.name,
                open_count=len(active),
                overdue_count=sum(1 for task in active if is_overdue(task, now)),
                completed_last_7_days=len(completed),
            )
        )

    urgent = sorted(
        (
            task
            for task in tasks
            if task.status.is_active and (is_overdue(task, now) or task.priority == TaskPriority.HIGH)
        ),
        key=lambda task: _urgent_order(task, now),
    )[:urgent_limit]

    recent = sorted(
        (task for task in tasks if _completed_since(task, recent_cutoff)),
        key=lambda task: task.completed_at,
        reverse=True,
    )[:completed_limit]

    return ClinicianQueuesOverview(
        clinicians=summaries,
        urgent_tasks=[
            UrgentTask(
                id=task.id,
                clinician_id=task.assigned_clinician_id,
                clinician_name=names.get(task.assigned_clinician_id, UNKNOWN_CLINICIAN_NAME),
                patient_name=task.patient_name,
                type=task.type,
                status=task.status,
                priority=task.priority,
                due_at=task.due_at,
                is_overdue=is_overdue(task, now),
            )
            for task in urgent
        ],
        recently_completed=[
            RecentlyCompletedTask(
                id=task.id,
                clinician_id=task.assigned_clinician_id,
                clinician_name=names.get(task.assigned_clinician_id, UNKNOWN_CLINICIAN_NAME),
                patient_name=task.patient_name,
                type=task.type,
                completed_at=task.completed_at,
            )
            for task in recent
        ],
    )
