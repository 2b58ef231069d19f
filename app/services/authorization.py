"""
Authorization policy for task operations.

Every task endpoint evaluates the same function, ``is_allowed(user, action,
task, comment)``, instead of branching on roles inline. Administrators may do
everything; other users' rights depend on how they relate to the task:

    view, comment            assignee or creator
    update, delete           creator
    update_status            creator or assignee
    upload/delete photo      assignee
    delete_comment           comment author (and must be able to view the task)
"""

from enum import Enum

from fastapi import HTTPException, status

from app.models import Task, TaskComment, User
from app.utils.logger import setup_logger

logger = setup_logger("authorization")


class TaskAction(str, Enum):
    VIEW = "view"
    UPDATE = "update"
    UPDATE_STATUS = "update_status"
    DELETE = "delete"
    COMMENT = "comment"
    DELETE_COMMENT = "delete_comment"
    UPLOAD_PHOTO = "upload_photo"
    DELETE_PHOTO = "delete_photo"


def _is_assignee(user: User, task: Task) -> bool:
    return task.assigned_to_id == user.id


def _is_creator(user: User, task: Task) -> bool:
    return task.created_by_id == user.id


def is_allowed(
    user: User,
    action: TaskAction,
    task: Task,
    comment: TaskComment | None = None,
) -> bool:
    """Decide whether ``user`` may perform ``action`` on ``task``."""
    if user.is_admin:
        return True

    if action in (TaskAction.VIEW, TaskAction.COMMENT):
        return _is_assignee(user, task) or _is_creator(user, task)
    if action in (TaskAction.UPDATE, TaskAction.DELETE):
        return _is_creator(user, task)
    if action == TaskAction.UPDATE_STATUS:
        return _is_creator(user, task) or _is_assignee(user, task)
    if action in (TaskAction.UPLOAD_PHOTO, TaskAction.DELETE_PHOTO):
        return _is_assignee(user, task)
    if action == TaskAction.DELETE_COMMENT:
        if comment is None:
            return False
        return comment.author_id == user.id and is_allowed(
            user, TaskAction.VIEW, task
        )
    return False


def enforce(
    user: User,
    action: TaskAction,
    task: Task,
    comment: TaskComment | None = None,
) -> None:
    """Raise 403 unless ``user`` may perform ``action`` on ``task``."""
    if not is_allowed(user, action, task, comment):
        logger.info(
            f"Denied {action.value} on task {task.id} for user {user.id} (role={user.role})"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to perform this action on the task",
        )
