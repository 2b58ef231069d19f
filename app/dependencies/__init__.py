from app.dependencies.auth import get_current_user, require_roles
from app.dependencies.tasks import (
    get_existing_task,
    get_task_with_authorization,
    valid_comment_id,
    valid_photo_id,
    valid_task_id,
)

__all__ = [
    "get_current_user",
    "require_roles",
    "get_existing_task",
    "get_task_with_authorization",
    "valid_task_id",
    "valid_photo_id",
    "valid_comment_id",
]
