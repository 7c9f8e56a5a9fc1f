"""Tests for task reassignment."""

import uuid
from datetime import timedelta

import pytest

from carequeue.errors import TaskNotFoundError, TaskValidationError, TerminalTaskImmutableError
from carequeue.models.task import TaskStatus
from carequeue.repositories.task import TaskRepository
from carequeue.services.assignment import AssignmentManager
from carequeue.services.events import TaskReassigned
from tests.conftest import ALICE_ID, BOB_ID, NOW


class TestAssignmentManager:
    @pytest.mark.asyncio
    async def test_reassign_changes_owner_only(self, db_session, task_factory, clock):
        repo = TaskRepository(db_session)
        task = await repo.add(task_factory(status=TaskStatus.WAITING_ON_CLINICIAN))
        status_changed_at = task.status_changed_at
        manager = AssignmentManager(repo, clock)

        updated, previous = await manager.reassign(task.id, BOB_ID)

        assert previous == ALICE_ID
        assert updated.assigned_clinician_id == BOB_ID
        assert updated.status == TaskStatus.WAITING_ON_CLINICIAN
        assert updated.status_changed_at == status_changed_at
        assert updated.updated_at == NOW

    @pytest.mark.asyncio
    async def test_same_clinician_is_a_no_op(self, db_session, task_factory, clock):
        repo = TaskRepository(db_session)
        task = await repo.add(task_factory())
        updated_at = task.updated_at
        manager = AssignmentManager(repo, clock)

        clock.advance(hours=2)
        updated, previous = await manager.reassign(task.id, ALICE_ID)

        assert previous is None
        assert updated.updated_at == updated_at
        assert updated.version == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", [TaskStatus.COMPLETED, TaskStatus.CANCELLED])
    async def test_closed_task_cannot_be_reassigned(self, db_session, task_factory, clock, terminal):
        repo = TaskRepository(db_session)
        closed_at = NOW - timedelta(hours=1)
        task = await repo.add(
            task_factory(
                status=terminal,
                status_changed_at=closed_at,
                completed_at=closed_at if terminal == TaskStatus.COMPLETED else None,
                cancelled_reason="duplicate" if terminal == TaskStatus.CANCELLED else None,
            )
        )
        manager = AssignmentManager(repo, clock)

        with pytest.raises(TerminalTaskImmutableError):
            await manager.reassign(task.id, BOB_ID)

        reloaded = await repo.get(task.id)
        assert reloaded.assigned_clinician_id == ALICE_ID

    @pytest.mark.asyncio
    async def test_unknown_task(self, db_session, clock):
        manager = AssignmentManager(TaskRepository(db_session), clock)
        with pytest.raises(TaskNotFoundError):
            await manager.reassign(uuid.uuid4(), BOB_ID)


class TestServiceReassign:
    @pytest.mark.asyncio
    async def test_publishes_reassigned_event(self, service, publisher, task_create):
        task = await service.create_task(task_create())

        await service.reassign(task.id, BOB_ID)

        event = publisher.events[-1]
        assert isinstance(event, TaskReassigned)
        assert event.from_clinician_id == ALICE_ID
        assert event.to_clinician_id == BOB_ID

    @pytest.mark.asyncio
    async def test_no_op_publishes_nothing(self, service, publisher, task_create):
        task = await service.create_task(task_create())
        publisher.events.clear()

        result = await service.reassign(task.id, ALICE_ID)

        assert result.assigned_clinician_id == ALICE_ID
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_unknown_clinician_rejected(self, service, task_create):
        task = await service.create_task(task_create())

        with pytest.raises(TaskValidationError) as exc_info:
            await service.reassign(task.id, uuid.uuid4())

        assert [v.field for v in exc_info.value.violations] == ["new_clinician_id"]
        assert (await service.get_task(task.id)).assigned_clinician_id == ALICE_ID

    @pytest.mark.asyncio
    async def test_unknown_task_reported_before_unknown_clinician(self, service):
        with pytest.raises(TaskNotFoundError):
            await service.reassign(uuid.uuid4(), uuid.uuid4())

    @pytest.mark.asyncio
    async def test_closed_task_reported_before_unknown_clinician(self, service, db_session, task_factory):
        closed_at = NOW - timedelta(hours=1)
        task = await TaskRepository(db_session).add(
            task_factory(status=TaskStatus.COMPLETED, completed_at=closed_at, status_changed_at=closed_at)
        )

        with pytest.raises(TerminalTaskImmutableError):
            await service.reassign(task.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_same_owner_outside_directory_is_a_no_op(self, service, publisher, db_session, task_factory):
        """An owner who has left the directory can still be re-confirmed."""
        former_staff = uuid.uuid4()
        task = await TaskRepository(db_session).add(task_factory(assigned_clinician_id=former_staff))

        result = await service.reassign(task.id, former_staff)

        assert result.assigned_clinician_id == former_staff
        assert result.version == 1
        assert publisher.events == []
