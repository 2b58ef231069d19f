from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models import Task, TaskComment, TaskPhoto, User, UserDevice
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers.user")


class UserDBHandler(BaseDBHandler[User]):
    def __init__(self):
        super().__init__(User)

    @check_local_db
    async def get_user_by_email(
        self, email: str, *, db: AsyncSession = None
    ) -> User | None:
        """Get a user by (case-insensitive) email."""
        try:
            stmt = select(User).filter(User.email == email.strip().lower())
            result = await db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving user by email '{email}': {e}")
            raise

    @check_local_db
    async def list_users(self, *, db: AsyncSession = None) -> list[User]:
        """Every user, oldest account first."""
        stmt = select(User).order_by(User.created_at, User.email)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def get_assigned_task_ids(
        self, user_ids: list[uuid.UUID], *, db: AsyncSession = None
    ) -> dict[uuid.UUID, list[uuid.UUID]]:
        """Map each user id to the ids of the tasks assigned to that user."""
        task_ids: dict[uuid.UUID, list[uuid.UUID]] = {uid: [] for uid in user_ids}
        if not user_ids:
            return task_ids
        stmt = (
            select(Task.assigned_to_id, Task.id)
            .where(Task.assigned_to_id.in_(user_ids))
            .order_by(Task.created_at)
        )
        result = await db.execute(stmt)
        for assigned_to_id, task_id in result.all():
            task_ids[assigned_to_id].append(task_id)
        return task_ids

    @check_local_db
    async def record_login(
        self,
        user: User,
        device_name: str,
        ip_address: str,
        *,
        db: AsyncSession = None,
    ) -> User:
        """Stamp ``last_login`` and upsert the device the login came from."""
        now = datetime.now(UTC)
        device = next(
            (
                d
                for d in user.devices
                if d.device_name == device_name and d.ip_address == ip_address
            ),
            None,
        )
        for other in user.devices:
            other.is_active = other is device
        if device is None:
            device = UserDevice(
                device_name=device_name, ip_address=ip_address, is_active=True
            )
            user.devices.append(device)
        device.last_login = now
        user.last_login = now

        try:
            db.add(user)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error recording login for user {user.id}: {e}")
            raise
        return await self.get(user.id, db=db)

    @check_local_db
    async def get_tasks_involving(
        self, user_id: uuid.UUID, *, db: AsyncSession = None
    ) -> list[Task]:
        """Tasks the user is assignee or creator of."""
        stmt = select(Task).where(
            or_(Task.assigned_to_id == user_id, Task.created_by_id == user_id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def delete_user_cascade(
        self, user: User, tasks: list[Task], *, db: AsyncSession = None
    ) -> None:
        """
        Delete a user together with the tasks they are assignee or creator of.

        References the user left elsewhere (comments, photos, last editor on
        other tasks) are cleared rather than deleted.
        """
        try:
            for task in tasks:
                await db.delete(task)
            await db.execute(
                update(TaskComment)
                .where(TaskComment.author_id == user.id)
                .values(author_id=None)
            )
            await db.execute(
                update(TaskPhoto)
                .where(TaskPhoto.uploaded_by_id == user.id)
                .values(uploaded_by_id=None)
            )
            await db.execute(
                update(Task)
                .where(Task.last_updated_by_id == user.id)
                .values(last_updated_by_id=None)
            )
            await db.delete(user)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error deleting user {user.id}: {e}", exc_info=True)
            raise
