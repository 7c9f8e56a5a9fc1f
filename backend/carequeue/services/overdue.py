"""Due-date classification for tasks.

Pure functions of (task, now). Callers supply an already-localized ``now``;
``due_at`` is converted into that timezone before calendar comparisons.
"""

from datetime import datetime, timedelta

from carequeue.models.task import Task, TaskStatus

DUE_THIS_WEEK_SPAN = timedelta(days=7)


def _in_timezone_of(value: datetime, now: datetime) -> datetime:
    """Express ``value`` in ``now``'s timezone (naive values pass through)."""
    if value.tzinfo is None or now.tzinfo is None:
        return value
    return value.astimezone(now.tzinfo)


def is_overdue(task: Task, now: datetime) -> bool:
    """Active task whose deadline has passed. Closed tasks are never overdue."""
    return task.status.is_active and task.due_at < now


def is_due_today(task: Task, now: datetime) -> bool:
    """Deadline falls on the same calendar date as ``now``."""
    return _in_timezone_of(task.due_at, now).date() == now.date()


def is_due_this_week(task: Task, now: datetime) -> bool:
    """Deadline between ``now`` and seven days later, both ends inclusive."""
    return now <= task.due_at <= now + DUE_THIS_WEEK_SPAN


def exit_timestamp(task: Task) -> datetime | None:
    """When a closed task left the queue; ``None`` for active tasks."""
    if task.status == TaskStatus.COMPLETED:
        return task.completed_at
    if task.status == TaskStatus.CANCELLED:
        return task.status_changed_at
    return None


def time_in_status(task: Task, now: datetime) -> timedelta:
    return now - task.status_changed_at


def is_stalled(task: Task, now: datetime, threshold_days: int) -> bool:
    """Active task that has sat in its current status for the stall threshold.

    A per-task ``stall_threshold_days`` overrides ``threshold_days``.
    """
    if not task.status.is_active:
        return False
    days = task.stall_threshold_days or threshold_days
    return time_in_status(task, now) >= timedelta(days=days)
