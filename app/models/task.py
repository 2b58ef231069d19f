"""
Task model for units of work assigned by administrators to users.

A task is created by an administrator, assigned to a single user, and moves
through the status workflow while the assignee attaches photos and
collaborators comment on it.

Architecture:
    User (creator) → Task ← User (assignee)
    Task → TaskPhoto, TaskComment (owned children, deleted with the task)

Status workflow:
    todo → inProgress → completed, inProgress → todo, and any state through an
    explicit update. Uploading the first photo moves a ``todo`` task to
    ``inProgress``.
"""

from sqlalchemy import Column, Date, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship, validates

from app.models.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    fk_target,
    schema_table_args,
)
from app.models.enums import TaskGroup, TaskPriority, TaskStatus, enum_values


class Task(Base, UUIDMixin, TimestampMixin):
    """
    Unit of work with status, priority, deadline and group.
    """

    __tablename__ = "tasks"
    __table_args__ = schema_table_args(
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_assigned_to_id", "assigned_to_id"),
        Index("ix_tasks_created_by_id", "created_by_id"),
    )

    title = Column(String(200), nullable=False, comment="Short task title")

    short_description = Column(
        String(500), nullable=False, comment="One-line summary shown on task cards"
    )

    long_description = Column(
        Text, nullable=True, comment="Optional detailed description"
    )

    status = Column(
        String(20),
        nullable=False,
        default=TaskStatus.TODO.value,
        comment="Workflow status: todo/inProgress/completed",
    )

    priority = Column(
        String(10),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
        comment="Priority: low/medium/high",
    )

    deadline = Column(Date, nullable=False, comment="Due date")

    group = Column(
        String(20),
        nullable=False,
        comment="Work area: Frontend/Backend/Database",
    )

    assigned_to_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="CASCADE"),
        nullable=False,
        comment="User responsible for the task",
    )

    created_by_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Administrator who created the task",
    )

    last_updated_by_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="SET NULL"),
        nullable=True,
        comment="User who last modified the task",
    )

    assignee = relationship(
        "User", foreign_keys=[assigned_to_id], lazy="selectin", doc="Assigned user"
    )

    creator = relationship(
        "User", foreign_keys=[created_by_id], lazy="selectin", doc="Creating user"
    )

    last_updated_by = relationship(
        "User",
        foreign_keys=[last_updated_by_id],
        lazy="selectin",
        doc="User who last modified the task",
    )

    photos = relationship(
        "TaskPhoto",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TaskPhoto.created_at",
        doc="Photos attached by the assignee or an administrator",
    )

    comments = relationship(
        "TaskComment",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TaskComment.created_at",
        doc="Discussion on this task",
    )

    @validates("status")
    def validate_status(self, key, value):
        return _validate_enum(TaskStatus, key, value)

    @validates("priority")
    def validate_priority(self, key, value):
        return _validate_enum(TaskPriority, key, value)

    @validates("group")
    def validate_group(self, key, value):
        return _validate_enum(TaskGroup, key, value)

    def __repr__(self):
        return (
            f"<Task(id={self.id}, title='{self.title}', "
            f"status='{self.status}', assigned_to_id={self.assigned_to_id})>"
        )


def _validate_enum(enum_cls, key, value):
    if isinstance(value, enum_cls):
        return value.value
    if value not in enum_values(enum_cls):
        raise ValueError(
            f"Invalid {key}: {value}. Must be one of: {enum_values(enum_cls)}"
        )
    return value
