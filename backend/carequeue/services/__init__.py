"""Task queue services."""

from carequeue.services.task_queue import TaskQueueService

__all__ = ["TaskQueueService"]
