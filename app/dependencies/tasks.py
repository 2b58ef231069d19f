import uuid

from fastapi import Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.task import TaskDBHandler
from app.dependencies.auth import get_current_user
from app.models import Task, User
from app.services.authorization import TaskAction, enforce


def parse_object_id(value: str, label: str = "ID") -> uuid.UUID:
    """Parse a path identifier, answering 400 for anything but a UUID."""
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {label} format") from e


def valid_task_id(
    task_id: str = Path(..., description="The ID of the task"),
) -> uuid.UUID:
    return parse_object_id(task_id)


def valid_photo_id(
    photo_id: str = Path(..., description="The ID of the photo"),
) -> uuid.UUID:
    return parse_object_id(photo_id, "photo ID")


def valid_comment_id(
    comment_id: str = Path(..., description="The ID of the comment"),
) -> uuid.UUID:
    return parse_object_id(comment_id, "comment ID")


async def get_existing_task(
    task_id: uuid.UUID = Depends(valid_task_id),
    db: AsyncSession = Depends(get_app_db),
) -> Task:
    """Load a task or answer 404."""
    task = await TaskDBHandler().get(task_id, db=db)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


async def get_task_with_authorization(
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_existing_task),
) -> Task:
    """
    Dependency to get a task the current user may view.

    Raises HTTPException 404 if the task is not found.
    Raises HTTPException 403 if it exists but is not visible to the user.
    """
    enforce(current_user, TaskAction.VIEW, task)
    return task
