"""
Comment left on a task by any user allowed to view it.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base, UUIDMixin, fk_target, schema_table_args


class TaskComment(Base, UUIDMixin):
    __tablename__ = "task_comments"
    __table_args__ = schema_table_args(
        Index("ix_task_comments_task_id", "task_id"),
    )

    task_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("tasks.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Parent task",
    )

    text = Column(Text, nullable=False, comment="Comment body")

    author_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="SET NULL"),
        nullable=True,
        comment="Comment author (cleared when the author is deleted)",
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Creation timestamp",
    )

    task = relationship("Task", back_populates="comments")

    author = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<TaskComment(id={self.id}, task_id={self.task_id})>"
