"""Clinician directory lookups.

The directory belongs to the staff-profile collaborator. The task queue only
reads it: to validate assignees and to label overview rows.
"""

import uuid
from collections.abc import Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carequeue.models.clinician import Clinician

UNKNOWN_CLINICIAN_NAME = "Unknown"


class ClinicianDirectory(Protocol):
    async def lookup_clinician(self, clinician_id: uuid.UUID) -> Clinician | None: ...
    async def list_clinicians(self) -> Sequence[Clinician]: ...


class SqlClinicianDirectory:
    """Directory backed by the ``clinicians`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup_clinician(self, clinician_id: uuid.UUID) -> Clinician | None:
        return await self.db.get(Clinician, clinician_id)

    async def list_clinicians(self) -> Sequence[Clinician]:
        result = await self.db.execute(select(Clinician).order_by(Clinician.name))
        return result.scalars().all()
