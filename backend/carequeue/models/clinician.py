"""Clinician directory table.

Owned by the staff-profile collaborator; the task queue only reads it to
validate assignments and label queue overviews.
"""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carequeue.database import Base


class Clinician(Base):
    """Person who can own and complete tasks."""

    __tablename__ = "clinicians"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    def __repr__(self) -> str:
        return f"<Clinician(id={self.id}, name={self.name})>"
