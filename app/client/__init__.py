"""Python client for the task tracker API and a local mirror of the caller's tasks."""

from app.client.api_client import ApiError, TaskTrackerClient
from app.client.task_mirror import TaskMirror

__all__ = ["ApiError", "TaskMirror", "TaskTrackerClient"]
