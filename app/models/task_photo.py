"""
Photo attached to a task. Only the URL of the stored image is kept here; the
image itself lives in the upload directory.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base, UUIDMixin, fk_target, schema_table_args


class TaskPhoto(Base, UUIDMixin):
    __tablename__ = "task_photos"
    __table_args__ = schema_table_args(
        Index("ix_task_photos_task_id", "task_id"),
    )

    task_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("tasks.id"), ondelete="CASCADE"),
        nullable=False,
        comment="Parent task",
    )

    image_url = Column(
        String(500),
        nullable=False,
        comment="Public URL of the stored image, e.g. /uploads/<file>",
    )

    caption = Column(String(500), nullable=False, default="", comment="Caption")

    uploaded_by_id = Column(
        Uuid(as_uuid=True),
        ForeignKey(fk_target("users.id"), ondelete="SET NULL"),
        nullable=True,
        comment="User who uploaded the photo",
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Upload timestamp",
    )

    task = relationship("Task", back_populates="photos")

    uploaded_by = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<TaskPhoto(id={self.id}, task_id={self.task_id}, url='{self.image_url}')>"
