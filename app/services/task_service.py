"""
Task Service - business rules for tasks and their comments and photos.

Routes resolve the caller and the target task, then delegate here. Every
operation evaluates the authorization policy before touching the store, and
every mutation returns the task re-read from the database so responses
reflect what was committed.
"""

import uuid
from typing import Any

from fastapi import HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers import TaskDBHandler, UserDBHandler
from app.models import Task, TaskComment, TaskPhoto, User
from app.models.enums import TaskStatus
from app.schemas import (
    CommentResponse,
    PhotoResponse,
    PhotoUploadResult,
    TaskCreate,
    TaskDocument,
    TaskResponse,
    TaskUpdate,
    validation_error_message,
)
from app.services import photo_storage
from app.services.authorization import TaskAction, enforce
from app.utils.logger import setup_logger

logger = setup_logger("task_service")

# Fields an assignee who is not the creator may change
ASSIGNEE_EDITABLE_FIELDS = {"status"}

# Pydantic field name → Task column
_TASK_COLUMNS = {"assigned_to": "assigned_to_id"}


def _display_name(user: User | None, fallback: str) -> str:
    return user.name if user is not None else fallback


def photo_to_response(photo: TaskPhoto) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        task_id=photo.task_id,
        image_url=photo.image_url,
        caption=photo.caption or "",
        created_by=photo.uploaded_by_id,
        created_by_name=photo.uploaded_by.name if photo.uploaded_by else None,
        created_at=photo.created_at,
    )


def comment_to_response(comment: TaskComment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        task_id=comment.task_id,
        text=comment.text,
        created_by=comment.author_id,
        created_by_name=_display_name(comment.author, "Unknown"),
        created_at=comment.created_at,
    )


def task_to_response(task: Task) -> TaskResponse:
    """Serialize a task with display names for its assignee, creator and comment authors."""
    return TaskResponse(
        id=task.id,
        title=task.title,
        short_description=task.short_description,
        long_description=task.long_description,
        status=task.status,
        priority=task.priority,
        deadline=task.deadline,
        group=task.group,
        assigned_to=task.assigned_to_id,
        assigned_to_name=_display_name(task.assignee, "Unassigned"),
        created_by=task.created_by_id,
        created_by_name=_display_name(task.creator, "Unknown"),
        last_updated_by=task.last_updated_by_id,
        last_updated_by_name=(
            task.last_updated_by.name if task.last_updated_by else None
        ),
        created_at=task.created_at,
        updated_at=task.updated_at,
        photos=[photo_to_response(p) for p in task.photos],
        comments=[comment_to_response(c) for c in task.comments],
    )


async def _reload(task_id: uuid.UUID, db: AsyncSession) -> Task:
    task = await TaskDBHandler().get(task_id, db=db)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


async def _require_assignee(assignee_id: uuid.UUID, db: AsyncSession) -> User:
    assignee = await UserDBHandler().get(assignee_id, db=db)
    if assignee is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Assigned user {assignee_id} does not exist",
        )
    return assignee


async def create_task(data: TaskCreate, current_user: User, db: AsyncSession) -> Task:
    """Create a task; it appears in the assignee's task list from then on."""
    await _require_assignee(data.assigned_to, db)

    task_dict = {
        "title": data.title,
        "short_description": data.short_description,
        "long_description": data.long_description,
        "priority": data.priority.value,
        "deadline": data.deadline,
        "status": data.status.value,
        "group": data.group.value,
        "assigned_to_id": data.assigned_to,
        "created_by_id": current_user.id,
        "last_updated_by_id": current_user.id,
    }
    task = await TaskDBHandler().create(task_dict, db=db)
    logger.info(
        f"Created task {task.id} assigned to {data.assigned_to} by {current_user.id}"
    )
    return await _reload(task.id, db)


async def list_tasks(
    current_user: User, db: AsyncSession, **filters: Any
) -> list[Task]:
    """Tasks visible to the caller, optionally filtered by status/priority/group."""
    query = {k: getattr(v, "value", v) for k, v in filters.items() if v is not None}
    tasks = await TaskDBHandler().get_visible_tasks(current_user, db=db, **query)
    logger.info(f"Found {len(tasks)} tasks for user {current_user.id}")
    return tasks


async def update_task(
    task: Task, patch: TaskUpdate, current_user: User, db: AsyncSession
) -> Task:
    """
    Apply a partial update.

    Admins and the creator may change any mutable field; an assignee may only
    change the status. The merged task is re-validated before it is written.
    """
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        enforce(current_user, TaskAction.VIEW, task)
        return task

    if set(changes) <= ASSIGNEE_EDITABLE_FIELDS:
        enforce(current_user, TaskAction.UPDATE_STATUS, task)
    else:
        enforce(current_user, TaskAction.UPDATE, task)

    merged = {
        "title": task.title,
        "short_description": task.short_description,
        "long_description": task.long_description,
        "priority": task.priority,
        "deadline": task.deadline,
        "status": task.status,
        "assigned_to": task.assigned_to_id,
        "group": task.group,
        **changes,
    }
    try:
        document = TaskDocument.model_validate(merged)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=validation_error_message(e.errors()),
        ) from e

    if "assigned_to" in changes and document.assigned_to != task.assigned_to_id:
        await _require_assignee(document.assigned_to, db)

    update_data = {}
    for field in changes:
        value = getattr(document, field)
        update_data[_TASK_COLUMNS.get(field, field)] = getattr(value, "value", value)
    update_data["last_updated_by_id"] = current_user.id

    await TaskDBHandler().update(task, update_data, db=db)
    logger.info(
        f"Updated task {task.id} fields {sorted(changes)} by user {current_user.id}"
    )
    return await _reload(task.id, db)


async def delete_task(task: Task, current_user: User, db: AsyncSession) -> None:
    """
    Delete a task, its comments and photos.

    Photo files are removed first on a best-effort basis; a file that cannot be
    removed is logged and does not stop the deletion.
    """
    enforce(current_user, TaskAction.DELETE, task)

    image_urls = [photo.image_url for photo in task.photos]
    if image_urls:
        deleted = await photo_storage.delete_photo_files_best_effort(image_urls)
        logger.info(f"Removed {deleted}/{len(image_urls)} photo files of task {task.id}")

    await TaskDBHandler().remove(task.id, db=db)
    logger.info(f"Deleted task {task.id} by user {current_user.id}")


async def add_comment(
    task: Task, text: str, current_user: User, db: AsyncSession
) -> Task:
    enforce(current_user, TaskAction.COMMENT, task)
    comment = await TaskDBHandler().add_comment(task, text, current_user.id, db=db)
    logger.info(f"User {current_user.id} commented {comment.id} on task {task.id}")
    return await _reload(task.id, db)


async def delete_comment(
    task: Task, comment_id: uuid.UUID, current_user: User, db: AsyncSession
) -> Task:
    comment = next((c for c in task.comments if c.id == comment_id), None)
    if comment is None:
        enforce(current_user, TaskAction.VIEW, task)
        raise HTTPException(status_code=404, detail="Comment not found")

    enforce(current_user, TaskAction.DELETE_COMMENT, task, comment)
    await TaskDBHandler().remove_comment(task, comment, db=db)
    logger.info(f"User {current_user.id} deleted comment {comment_id} on task {task.id}")
    return await _reload(task.id, db)


async def upload_photo(
    task: Task,
    photo: UploadFile | None,
    caption: str | None,
    current_user: User,
    db: AsyncSession,
) -> PhotoUploadResult:
    """
    Store an image for the task and record it.

    The first photo on a ``todo`` task moves it to ``inProgress``.
    """
    enforce(current_user, TaskAction.UPLOAD_PHOTO, task)

    if photo is None or not photo.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a file"
        )

    image_url = await photo_storage.save_photo(photo)

    task_changes: dict[str, Any] = {"last_updated_by_id": current_user.id}
    if task.status == TaskStatus.TODO.value:
        task_changes["status"] = TaskStatus.IN_PROGRESS.value

    try:
        record = await TaskDBHandler().add_photo(
            task,
            {
                "image_url": image_url,
                "caption": caption or "",
                "uploaded_by_id": current_user.id,
            },
            task_changes,
            db=db,
        )
    except Exception:
        # Do not leave an orphaned file behind a failed insert
        await photo_storage.delete_photo_files_best_effort([image_url])
        raise

    logger.info(
        f"User {current_user.id} uploaded photo {record.id} to task {task.id} "
        f"(status now {task.status})"
    )
    reloaded = await _reload(task.id, db)
    stored = next(p for p in reloaded.photos if p.id == record.id)
    return PhotoUploadResult(
        task=task_to_response(reloaded), photo=photo_to_response(stored)
    )


async def delete_photo(
    task: Task, photo_id: uuid.UUID, current_user: User, db: AsyncSession
) -> Task:
    """
    Remove a photo. The file is deleted first and any filesystem error aborts
    the request with the record left in place.
    """
    enforce(current_user, TaskAction.DELETE_PHOTO, task)

    photo = next((p for p in task.photos if p.id == photo_id), None)
    if photo is None:
        raise HTTPException(status_code=404, detail="Photo not found")

    try:
        await photo_storage.delete_photo_file(photo.image_url)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to delete photo file {photo.image_url}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete photo file: {e}",
        ) from e

    await TaskDBHandler().remove_photo(task, photo, db=db)
    logger.info(f"User {current_user.id} deleted photo {photo_id} from task {task.id}")
    return await _reload(task.id, db)
