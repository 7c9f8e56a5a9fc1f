"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for the task queue services.
"""

from carequeue.repositories.task import TaskRepository, TaskStore

__all__ = ["TaskRepository", "TaskStore"]
