"""
Client-side mirror of the tasks visible to one user.

``TaskMirror`` owns a cache of task documents (as returned by the API, camelCase
keys) and keeps it in step with the server: every mutation goes over the
network first and only the server's answer is written into the cache. The
cache is never patched when a call fails. Read helpers for dashboards
(counts, recent activity, deadlines) work on the cache alone.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any, Literal

from app.client.api_client import TaskTrackerClient
from app.models.enums import TaskGroup, TaskPriority, TaskStatus, enum_values
from app.utils.logger import setup_logger

logger = setup_logger("client.mirror")

TaskDict = dict[str, Any]


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.min.replace(tzinfo=UTC)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Servers on SQLite hand back naive UTC timestamps
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _deadline(task: TaskDict) -> date:
    return date.fromisoformat(task["deadline"][:10])


def _count_by(tasks: list[TaskDict], key: str, values: list[str]) -> dict[str, int]:
    counts = dict.fromkeys(values, 0)
    for task in tasks:
        if task.get(key) in counts:
            counts[task[key]] += 1
    return counts


class TaskMirror:
    """
    Repository of the caller's tasks backed by a ``TaskTrackerClient``.

    Call ``refresh()`` after logging in to load the list; afterwards the
    mutation methods keep the cache current. There is no conflict handling:
    the last response received wins, and changes made by other clients only
    show up on the next ``refresh()``.
    """

    def __init__(self, client: TaskTrackerClient, current_user: dict[str, Any] | None = None):
        self.client = client
        self.current_user = current_user
        self._tasks: dict[str, TaskDict] = {}

    @property
    def tasks(self) -> list[TaskDict]:
        return list(self._tasks.values())

    def refresh(self) -> list[TaskDict]:
        """Replace the cache with the server's current task list."""
        if self.current_user is None:
            self.current_user = self.client.get_profile()
        tasks = self.client.get_tasks()
        self._tasks = {task["id"]: task for task in tasks}
        logger.info(f"Loaded {len(tasks)} tasks for user {self.current_user['id']}")
        return self.tasks

    def _stamp(self, task: TaskDict) -> TaskDict:
        task["lastUpdated"] = datetime.now(UTC).isoformat()
        if self.current_user is not None:
            task["lastUpdatedBy"] = self.current_user["id"]
        self._tasks[task["id"]] = task
        return task

    # ===== Mutations =====

    def add_task(self, task_data: dict[str, Any]) -> TaskDict:
        task = self.client.create_task(task_data)
        return self._stamp(task)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> TaskDict:
        task = self.client.update_task(task_id, changes)
        return self._stamp(task)

    def update_task_status(self, task_id: str, status: TaskStatus | str) -> TaskDict:
        value = status.value if isinstance(status, TaskStatus) else status
        return self.update_task(task_id, {"status": value})

    def delete_task(self, task_id: str) -> None:
        self.client.delete_task(task_id)
        self._tasks.pop(task_id, None)

    def add_comment(self, task_id: str, text: str) -> TaskDict:
        task = self.client.add_comment(task_id, text)
        return self._stamp(task)

    def delete_comment(self, task_id: str, comment_id: str) -> TaskDict:
        task = self.client.delete_comment(task_id, comment_id)
        return self._stamp(task)

    def upload_photo(
        self,
        task_id: str,
        filename: str,
        content: bytes,
        content_type: str = "image/jpeg",
        caption: str | None = None,
    ) -> dict[str, Any]:
        """Upload a photo and return the stored photo record."""
        result = self.client.upload_photo(
            task_id, filename, content, content_type=content_type, caption=caption
        )
        self._stamp(result["task"])
        return result["photo"]

    def delete_photo(self, task_id: str, photo_id: str) -> TaskDict:
        task = self.client.delete_photo(task_id, photo_id)
        return self._stamp(task)

    # ===== Queries =====

    def get_task(self, task_id: str) -> TaskDict | None:
        return self._tasks.get(task_id)

    def get_user_tasks(self, user_id: str) -> list[TaskDict]:
        return [task for task in self._tasks.values() if task["assignedTo"] == user_id]

    def get_task_photos(self, task_id: str) -> list[dict[str, Any]]:
        task = self._tasks.get(task_id)
        return list(task.get("photos", [])) if task else []

    def get_task_comments(self, task_id: str) -> list[dict[str, Any]]:
        task = self._tasks.get(task_id)
        return list(task.get("comments", [])) if task else []

    def tasks_by_status(self) -> dict[str, int]:
        return _count_by(self.tasks, "status", enum_values(TaskStatus))

    def tasks_by_priority(self) -> dict[str, int]:
        return _count_by(self.tasks, "priority", enum_values(TaskPriority))

    def tasks_by_group(self) -> dict[str, int]:
        return _count_by(self.tasks, "group", enum_values(TaskGroup))

    def recent_tasks(
        self, limit: int = 5, sort_by: Literal["updated", "created"] = "updated"
    ) -> list[TaskDict]:
        """Most recently touched tasks first, by local update stamp or creation time."""
        if sort_by == "created":
            def key(task):
                return _parse_timestamp(task.get("createdAt"))
        else:
            def key(task):
                return _parse_timestamp(
                    task.get("lastUpdated") or task.get("updatedAt") or task.get("createdAt")
                )

        return sorted(self._tasks.values(), key=key, reverse=True)[:limit]

    def overdue_tasks(self, today: date | None = None) -> list[TaskDict]:
        today = today or date.today()
        return [task for task in self._tasks.values() if _deadline(task) < today]

    def upcoming_deadlines(
        self, days: int | None = 7, today: date | None = None
    ) -> list[TaskDict]:
        """
        Tasks due from tomorrow through ``today + days``, soonest first.

        ``days=None`` drops the upper bound. This is a window, unlike the web
        dashboard, which lists every task due on or after ``today + days``
        (7 by default).
        """
        today = today or date.today()
        start = today + timedelta(days=1)
        end = today + timedelta(days=days) if days is not None else None
        upcoming = [
            task
            for task in self._tasks.values()
            if _deadline(task) >= start and (end is None or _deadline(task) <= end)
        ]
        return sorted(upcoming, key=_deadline)
