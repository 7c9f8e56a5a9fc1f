"""Tests for the task note ledger."""

import uuid

import pytest

from carequeue.errors import EmptyNoteError, TaskNotFoundError
from carequeue.models.task import TaskStatus
from tests.conftest import ALICE_ID, BOB_ID, NOW


class TestAddNote:
    @pytest.mark.asyncio
    async def test_notes_returned_in_creation_order(self, service, task_create, clock):
        task = await service.create_task(task_create())

        await service.add_note(task.id, ALICE_ID, "Left voicemail")
        clock.advance(minutes=30)
        history = await service.add_note(task.id, BOB_ID, "Patient called back")

        assert [note.note for note in history] == ["Left voicemail", "Patient called back"]
        assert [note.author_id for note in history] == [ALICE_ID, BOB_ID]
        assert history[0].created_at == NOW
        assert all(note.task_id == task.id for note in history)

    @pytest.mark.asyncio
    async def test_same_instant_keeps_insert_order(self, service, task_create):
        task = await service.create_task(task_create())

        for text in ("first", "second", "third"):
            await service.add_note(task.id, ALICE_ID, text)

        history = await service.get_notes(task.id)
        assert [note.note for note in history] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_text_is_trimmed(self, service, task_create):
        task = await service.create_task(task_create())

        history = await service.add_note(task.id, ALICE_ID, "  faxed records \n")

        assert history[0].note == "faxed records"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_note_rejected(self, service, task_create, text):
        task = await service.create_task(task_create())

        with pytest.raises(EmptyNoteError):
            await service.add_note(task.id, ALICE_ID, text)

        assert list(await service.get_notes(task.id)) == []

    @pytest.mark.asyncio
    async def test_unknown_task(self, service):
        with pytest.raises(TaskNotFoundError):
            await service.add_note(uuid.uuid4(), ALICE_ID, "hello")

    @pytest.mark.asyncio
    async def test_closed_task_accepts_notes(self, service, task_create):
        task = await service.create_task(task_create())
        await service.change_status(task.id, TaskStatus.COMPLETED)

        history = await service.add_note(task.id, ALICE_ID, "Confirmed with patient after close")

        assert len(history) == 1


class TestGetNotes:
    @pytest.mark.asyncio
    async def test_empty_history(self, service, task_create):
        task = await service.create_task(task_create())
        assert list(await service.get_notes(task.id)) == []

    @pytest.mark.asyncio
    async def test_notes_are_scoped_to_task(self, service, task_create):
        first = await service.create_task(task_create())
        second = await service.create_task(task_create())
        await service.add_note(first.id, ALICE_ID, "about the first task")

        assert list(await service.get_notes(second.id)) == []

    @pytest.mark.asyncio
    async def test_unknown_task(self, service):
        with pytest.raises(TaskNotFoundError):
            await service.get_notes(uuid.uuid4())
