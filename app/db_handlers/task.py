from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models import Task, TaskComment, TaskPhoto, User
from app.utils.logger import setup_logger

logger = setup_logger("task_db_handler")


class TaskDBHandler(BaseDBHandler[Task]):
    def __init__(self):
        super().__init__(Task)

    @check_local_db
    async def get_visible_tasks(
        self,
        user: User,
        *,
        db: AsyncSession = None,
        **filters: Any,
    ) -> list[Task]:
        """
        Tasks the user may see, newest first.

        Administrators see every task; other users only those they are
        assignee or creator of. ``filters`` are exact column matches.
        """
        stmt = select(Task).filter_by(**filters)
        if not user.is_admin:
            stmt = stmt.where(
                or_(Task.assigned_to_id == user.id, Task.created_by_id == user.id)
            )
        stmt = stmt.order_by(Task.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def add_comment(
        self,
        task: Task,
        text: str,
        author_id: uuid.UUID,
        *,
        db: AsyncSession = None,
    ) -> TaskComment:
        comment = TaskComment(text=text, author_id=author_id)
        task.comments.append(comment)
        try:
            db.add(task)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error adding comment to task {task.id}: {e}")
            raise
        return comment

    @check_local_db
    async def remove_comment(
        self, task: Task, comment: TaskComment, *, db: AsyncSession = None
    ) -> None:
        task.comments.remove(comment)
        try:
            db.add(task)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                f"Error removing comment {comment.id} from task {task.id}: {e}"
            )
            raise

    @check_local_db
    async def add_photo(
        self,
        task: Task,
        photo_data: dict[str, Any],
        task_changes: dict[str, Any] | None = None,
        *,
        db: AsyncSession = None,
    ) -> TaskPhoto:
        """Attach a photo record and apply any accompanying task changes."""
        photo = TaskPhoto(**photo_data)
        task.photos.append(photo)
        for field, value in (task_changes or {}).items():
            setattr(task, field, value)
        try:
            db.add(task)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error adding photo to task {task.id}: {e}")
            raise
        return photo

    @check_local_db
    async def remove_photo(
        self, task: Task, photo: TaskPhoto, *, db: AsyncSession = None
    ) -> None:
        task.photos.remove(photo)
        try:
            db.add(task)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error removing photo {photo.id} from task {task.id}: {e}")
            raise
