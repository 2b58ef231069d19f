"""
Unit tests for task service rules that run before the database is touched.
"""

import uuid
from datetime import date
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from app.schemas import TaskDocument, TaskUpdate, validation_error_message
from app.services.task_service import update_task

ADMIN = SimpleNamespace(id=uuid.uuid4(), role="admin", is_admin=True)


def _stored_task(**overrides):
    fields = {
        "id": uuid.uuid4(),
        "title": "Ship release",
        "short_description": "Tag and publish",
        "long_description": None,
        "priority": "high",
        "deadline": date(2030, 2, 1),
        "status": "todo",
        "assigned_to_id": uuid.uuid4(),
        "created_by_id": ADMIN.id,
        "group": "Backend",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_validation_error_message_is_single_line():
    with pytest.raises(ValidationError) as exc_info:
        TaskDocument.model_validate({"title": "", "priority": "urgent"})

    message = validation_error_message(exc_info.value.errors())

    assert "\n" not in message
    assert message.startswith("title: ")
    assert "priority: " in message
    assert "; " in message


@pytest.mark.asyncio
async def test_update_with_invalid_stored_task_reports_joined_errors():
    # A row written before a constraint tightened fails the merged re-validation
    task = _stored_task(title="")

    with pytest.raises(HTTPException) as exc_info:
        await update_task(task, TaskUpdate(status="completed"), ADMIN, db=None)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail.startswith("title: ")
    assert "\n" not in exc_info.value.detail
