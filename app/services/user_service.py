"""
User Service - account serialization and administrative user management.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers import UserDBHandler
from app.models import User
from app.schemas import DeviceInfo, UserInfo
from app.services import photo_storage
from app.utils.logger import setup_logger

logger = setup_logger("user_service")


async def users_to_info(users: list[User], db: AsyncSession) -> list[UserInfo]:
    """Serialize users together with the ids of the tasks assigned to them."""
    task_ids = await UserDBHandler().get_assigned_task_ids(
        [user.id for user in users], db=db
    )
    return [
        UserInfo(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            last_login=user.last_login,
            devices=[DeviceInfo.model_validate(device) for device in user.devices],
            tasks=task_ids.get(user.id, []),
        )
        for user in users
    ]


async def user_to_info(user: User, db: AsyncSession) -> UserInfo:
    return (await users_to_info([user], db))[0]


async def delete_user(user: User, db: AsyncSession) -> None:
    """
    Delete a user and every task they are assignee or creator of.

    Photo files of the removed tasks are deleted best-effort, as for a single
    task deletion.
    """
    handler = UserDBHandler()
    tasks = await handler.get_tasks_involving(user.id, db=db)
    image_urls = [photo.image_url for task in tasks for photo in task.photos]
    if image_urls:
        await photo_storage.delete_photo_files_best_effort(image_urls)

    await handler.delete_user_cascade(user, tasks, db=db)
    logger.info(f"Deleted user {user.id} together with {len(tasks)} tasks")
