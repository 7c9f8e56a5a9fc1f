"""Task model for communication action items.

Tasks represent a unit of required human follow-up - calling a patient back,
replying to a portal message, resending intake forms, etc. Each task belongs
to either the clinical or the administrative work queue and carries an
append-only ledger of notes.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from carequeue.database import Base, UTCDateTime


class TaskType(str, enum.Enum):
    """Kinds of action items.

    The first six belong to the clinician catalog, the rest to the
    administrative catalog (see ``TASK_TYPE_CATALOG``).
    """

    CALL_BACK = "CALL_BACK"
    EMAIL_REPLY = "EMAIL_REPLY"
    IMAGING_REPORT = "IMAGING_REPORT"
    PATIENT_MESSAGE = "PATIENT_MESSAGE"
    LETTER = "LETTER"
    OTHER_ACTION = "OTHER_ACTION"
    # Administrative catalog
    PATIENT_CALLBACK = "PATIENT_CALLBACK"
    PATIENT_EMAIL_RESPONSE = "PATIENT_EMAIL_RESPONSE"
    PORTAL_MESSAGE_RESPONSE = "PORTAL_MESSAGE_RESPONSE"
    RESEND_INTAKE_FORMS = "RESEND_INTAKE_FORMS"
    FOLLOWUP_INCOMPLETE_FORMS = "FOLLOWUP_INCOMPLETE_FORMS"
    SEND_RECEIPT = "SEND_RECEIPT"
    ORDER_IMAGING = "ORDER_IMAGING"
    SCHEDULE_APPOINTMENT = "SCHEDULE_APPOINTMENT"
    CONFIRM_APPOINTMENT = "CONFIRM_APPOINTMENT"
    REQUEST_OUTSIDE_RECORDS = "REQUEST_OUTSIDE_RECORDS"
    SEND_RECORDS_TO_PATIENT = "SEND_RECORDS_TO_PATIENT"
    UPDATE_PATIENT_CONTACT = "UPDATE_PATIENT_CONTACT"
    DOCUMENT_PATIENT_REQUEST = "DOCUMENT_PATIENT_REQUEST"


class TaskSource(str, enum.Enum):
    """Who originated the task."""

    ADMIN = "ADMIN"
    CLINICIAN = "CLINICIAN"
    PATIENT_PORTAL = "PATIENT_PORTAL"


class TaskOwnerType(str, enum.Enum):
    """Which work queue the task belongs to."""

    ADMIN = "ADMIN"
    CLINICIAN = "CLINICIAN"


class TaskCategory(str, enum.Enum):
    """Cross-cutting classification used for reporting."""

    CLINICAL_EXECUTION = "CLINICAL_EXECUTION"
    ADMIN_EXECUTION = "ADMIN_EXECUTION"
    COORDINATION = "COORDINATION"


class TaskPriority(str, enum.Enum):
    """Display emphasis."""

    NORMAL = "NORMAL"
    HIGH = "HIGH"


class TaskStatus(str, enum.Enum):
    """Task lifecycle states."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_ON_CLINICIAN = "WAITING_ON_CLINICIAN"
    WAITING_ON_PATIENT = "WAITING_ON_PATIENT"
    BLOCKED = "BLOCKED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self not in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})
ACTIVE_STATUSES = frozenset(set(TaskStatus) - TERMINAL_STATUSES)

TASK_TYPE_CATALOG: dict[TaskOwnerType, frozenset[TaskType]] = {
    TaskOwnerType.CLINICIAN: frozenset(
        {
            TaskType.CALL_BACK,
            TaskType.EMAIL_REPLY,
            TaskType.IMAGING_REPORT,
            TaskType.PATIENT_MESSAGE,
            TaskType.LETTER,
            TaskType.OTHER_ACTION,
        }
    ),
    TaskOwnerType.ADMIN: frozenset(
        {
            TaskType.PATIENT_CALLBACK,
            TaskType.PATIENT_EMAIL_RESPONSE,
            TaskType.PORTAL_MESSAGE_RESPONSE,
            TaskType.RESEND_INTAKE_FORMS,
            TaskType.FOLLOWUP_INCOMPLETE_FORMS,
            TaskType.SEND_RECEIPT,
            TaskType.ORDER_IMAGING,
            TaskType.SCHEDULE_APPOINTMENT,
            TaskType.CONFIRM_APPOINTMENT,
            TaskType.REQUEST_OUTSIDE_RECORDS,
            TaskType.SEND_RECORDS_TO_PATIENT,
            TaskType.UPDATE_PATIENT_CONTACT,
            TaskType.DOCUMENT_PATIENT_REQUEST,
        }
    ),
}


class Task(Base):
    """Communication task requiring human follow-up.

    ``version`` is the optimistic-concurrency counter: every UPDATE is issued
    with ``WHERE version = <version read>`` and bumps it.
    """

    __tablename__ = "communication_tasks"

    # === Identity ===
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # === Classification ===
    type: Mapped[TaskType] = mapped_column(
        Enum(TaskType, name="task_type", native_enum=False, length=40),
        nullable=False,
        index=True,
    )
    source: Mapped[TaskSource] = mapped_column(
        Enum(TaskSource, name="task_source", native_enum=False, length=20),
        nullable=False,
    )
    owner_type: Mapped[TaskOwnerType] = mapped_column(
        Enum(TaskOwnerType, name="task_owner_type", native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    category: Mapped[TaskCategory] = mapped_column(
        Enum(TaskCategory, name="task_category", native_enum=False, length=30),
        nullable=False,
        default=TaskCategory.CLINICAL_EXECUTION,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", native_enum=False, length=10),
        nullable=False,
        default=TaskPriority.NORMAL,
    )

    # === Status ===
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", native_enum=False, length=30),
        nullable=False,
        default=TaskStatus.OPEN,
        index=True,
    )

    # === Ownership ===
    assigned_clinician_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)

    # === Subject (opaque references, never dereferenced here) ===
    patient_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    patient_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    patient_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    patient_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    guardian_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    episode_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    patient_message_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # === Content ===
    description: Mapped[str] = mapped_column(Text, nullable=False)
    letter_subtype: Mapped[str | None] = mapped_column(String(80), nullable=True)
    cancelled_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # === Timing ===
    due_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    status_changed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    admin_acknowledged_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    stall_threshold_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_task_owner_status", "owner_type", "status"),
        Index("idx_task_clinician_status", "assigned_clinician_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, type={self.type}, status={self.status})>"


class TaskNote(Base):
    """Append-only annotation on a task.

    The integer primary key doubles as the tie-breaker for notes written
    in the same instant.
    """

    __tablename__ = "communication_task_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("communication_tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<TaskNote(id={self.id}, task_id={self.task_id})>"
