"""Queue filtering and ordering.

Turns a task collection plus filter selections into the exact ordered list a
caller should see. Everything is derived from task fields and ``now``; there
is no hidden view state.

Ordering:
1. BLOCKED tasks first
2. then overdue active tasks
3. then the remaining active tasks
   (ascending due date inside each of the three buckets)
4. closed tasks last, most recently closed first
"""

from collections.abc import Callable, Iterable
from datetime import datetime

from carequeue.models.task import Task, TaskStatus
from carequeue.schemas.queue import QueueFilters, QuickFilter
from carequeue.services.overdue import (
    exit_timestamp,
    is_due_this_week,
    is_due_today,
    is_overdue,
    is_stalled,
)
from carequeue.utils.clock import as_utc

_BLOCKED_BUCKET = 0
_OVERDUE_BUCKET = 1
_ACTIVE_BUCKET = 2
_CLOSED_BUCKET = 3

QUICK_FILTERS: dict[QuickFilter, Callable[[Task, datetime], bool]] = {
    QuickFilter.ALL: lambda task, now: True,
    QuickFilter.OVERDUE: is_overdue,
    QuickFilter.TODAY: lambda task, now: task.status.is_active and is_due_today(task, now),
    QuickFilter.WEEK: lambda task, now: task.status.is_active and is_due_this_week(task, now),
}


def within_retention(task: Task, filters: QueueFilters, now: datetime) -> bool:
    """Closed tasks stay visible only while their exit falls inside the window."""
    if task.status.is_active:
        return True
    if filters.retention_window is None:
        return False
    exited_at = exit_timestamp(task)
    return exited_at is not None and exited_at >= now - filters.retention_window


def matches(task: Task, filters: QueueFilters, now: datetime, stall_threshold_days: int) -> bool:
    """Check a single task against every filter (logical AND)."""
    if filters.type is not None and task.type != filters.type:
        return False
    if filters.status is not None and task.status != filters.status:
        return False
    if filters.owner_type is not None and task.owner_type != filters.owner_type:
        return False
    if filters.clinician_id is not None and task.assigned_clinician_id != filters.clinician_id:
        return False
    if filters.participant_id is not None and filters.participant_id not in (
        task.assigned_clinician_id,
        task.created_by,
    ):
        return False
    if filters.patient_id is not None and task.patient_id != filters.patient_id:
        return False
    if filters.stalled_only and not is_stalled(task, now, stall_threshold_days):
        return False
    if not QUICK_FILTERS[filters.quick_filter](task, now):
        return False
    return within_retention(task, filters, now)


def sort_key(task: Task, now: datetime) -> tuple[int, float]:
    """Multi-key ordering; closed tasks sort by negated exit time (newest first)."""
    if task.status.is_terminal:
        exited_at = exit_timestamp(task) or task.status_changed_at
        return _CLOSED_BUCKET, -exited_at.timestamp()
    if task.status == TaskStatus.BLOCKED:
        bucket = _BLOCKED_BUCKET
    elif is_overdue(task, now):
        bucket = _OVERDUE_BUCKET
    else:
        bucket = _ACTIVE_BUCKET
    return bucket, task.due_at.timestamp()


def order_tasks(tasks: Iterable[Task], now: datetime) -> list[Task]:
    """Stable sort: tasks with equal keys keep their input order."""
    return sorted(tasks, key=lambda task: sort_key(task, now))


def apply_filters(
    tasks: Iterable[Task],
    filters: QueueFilters,
    now: datetime,
    stall_threshold_days: int = 3,
) -> list[Task]:
    """Filter then order a task collection for display.

    A naive ``now`` is taken as UTC.
    """
    now = as_utc(now)
    selected = [task for task in tasks if matches(task, filters, now, stall_threshold_days)]
    return order_tasks(selected, now)
