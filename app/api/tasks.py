"""
Task API Routes - REST endpoints for tasks, comments and photos.

Administrators create tasks and assign them; assignees move them through the
workflow, attach photos and discuss them in comments. Authorization rules live
in ``app.services.authorization`` and are applied by the task service.
"""

import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.dependencies.auth import get_current_user, require_roles
from app.dependencies.tasks import (
    get_existing_task,
    get_task_with_authorization,
    valid_comment_id,
    valid_photo_id,
)
from app.models import Task, User
from app.models.enums import TaskGroup, TaskPriority, TaskStatus, UserRole
from app.schemas import (
    ApiResponse,
    CommentCreate,
    PhotoUploadResult,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from app.services import task_service
from app.services.task_service import task_to_response
from app.utils.logger import setup_logger

logger = setup_logger("api")

router = APIRouter(prefix="/api")


@router.get("/")
async def read_root():
    """API health check endpoint."""
    return {"success": True, "message": "Task Tracker API is running!"}


@router.get("/tasks", response_model=ApiResponse[list[TaskResponse]])
async def get_tasks(
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    group: TaskGroup | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
):
    """
    List tasks visible to the caller.

    Administrators see every task; other users see the tasks they are
    assigned to or created.
    """
    try:
        tasks = await task_service.list_tasks(
            current_user, db, status=status, priority=priority, group=group
        )
    except Exception as e:
        logger.error(f"Failed to fetch tasks. Error: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to fetch tasks: {str(e)}"
        ) from e

    data = [task_to_response(task) for task in tasks]
    return ApiResponse(data=data, count=len(data))


@router.post(
    "/tasks",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    task_data: TaskCreate,
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_app_db),
):
    """Create a task and assign it. Administrators only."""
    task = await task_service.create_task(task_data, current_user, db)
    return ApiResponse(data=task_to_response(task))


@router.get("/tasks/{task_id}", response_model=ApiResponse[TaskResponse])
async def get_task(task: Task = Depends(get_task_with_authorization)):
    """
    Retrieve a single task.

    Answers 404 when it does not exist and 403 when it exists but the caller
    is neither an administrator, its assignee nor its creator.
    """
    return ApiResponse(data=task_to_response(task))


@router.put("/tasks/{task_id}", response_model=ApiResponse[TaskResponse])
async def update_task(
    patch: TaskUpdate,
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_existing_task),
    db: AsyncSession = Depends(get_app_db),
):
    """Partially update a task. Immutable fields are rejected."""
    task = await task_service.update_task(task, patch, current_user, db)
    return ApiResponse(data=task_to_response(task))


@router.delete("/tasks/{task_id}", response_model=ApiResponse[dict])
async def delete_task(
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_existing_task),
    db: AsyncSession = Depends(get_app_db),
):
    """Delete a task together with its comments and photo files."""
    await task_service.delete_task(task, current_user, db)
    return ApiResponse(data={}, message="Task deleted successfully")


@router.post("/tasks/{task_id}/comments", response_model=ApiResponse[TaskResponse])
async def add_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_existing_task),
    db: AsyncSession = Depends(get_app_db),
):
    """Comment on a task the caller can view."""
    task = await task_service.add_comment(task, comment_data.text, current_user, db)
    return ApiResponse(data=task_to_response(task))


@router.delete(
    "/tasks/{task_id}/comments/{comment_id}",
    response_model=ApiResponse[TaskResponse],
)
async def delete_comment(
    current_user: User = Depends(get_current_user),
    comment_id: uuid.UUID = Depends(valid_comment_id),
    task: Task = Depends(get_existing_task),
    db: AsyncSession = Depends(get_app_db),
):
    """Delete a comment. Allowed for its author and administrators."""
    task = await task_service.delete_comment(task, comment_id, current_user, db)
    return ApiResponse(data=task_to_response(task))


@router.post("/tasks/{task_id}/photos", response_model=ApiResponse[PhotoUploadResult])
async def upload_photo(
    current_user: User = Depends(get_current_user),
    task: Task = Depends(get_existing_task),
    photo: UploadFile | None = File(None),
    caption: str | None = Form(None),
    db: AsyncSession = Depends(get_app_db),
):
    """
    Attach a photo (multipart field ``photo``). Allowed for the assignee and
    administrators. The first photo on a ``todo`` task starts it.
    """
    result = await task_service.upload_photo(task, photo, caption, current_user, db)
    return ApiResponse(data=result, message="Photo uploaded successfully")


@router.delete(
    "/tasks/{task_id}/photos/{photo_id}", response_model=ApiResponse[TaskResponse]
)
async def delete_photo(
    current_user: User = Depends(get_current_user),
    photo_id: uuid.UUID = Depends(valid_photo_id),
    task: Task = Depends(get_existing_task),
    db: AsyncSession = Depends(get_app_db),
):
    """Delete a photo and its file. Allowed for the assignee and administrators."""
    task = await task_service.delete_photo(task, photo_id, current_user, db)
    return ApiResponse(data=task_to_response(task), message="Photo deleted")
