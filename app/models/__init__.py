"""
Database models for the task tracker.

Architecture: User → Task → (TaskPhoto, TaskComment), User → UserDevice.
"""

from app.models.task import Task
from app.models.task_comment import TaskComment
from app.models.task_photo import TaskPhoto
from app.models.user import User, UserDevice

__all__ = [
    "User",
    "UserDevice",
    "Task",
    "TaskPhoto",
    "TaskComment",
]
