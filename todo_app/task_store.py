"""
Owner-scoped persistence for tasks.

Every read and write goes through :meth:`TaskStore._owned`, a ``select``
pre-filtered to the calling user.  A task that exists but belongs to
someone else is therefore indistinguishable from one that does not exist.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Select, select

from . import db
from .errors import NotFoundError
from .models import Task
from .query import TaskQuery
from .validation import (
    TASK_UPDATE_FIELDS,
    check_update_fields,
    validate_completed,
    validate_description,
)

logger = logging.getLogger(__name__)

TASK_NOT_FOUND_MESSAGE = "Task not found"


class TaskStore:
    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @staticmethod
    def _owned(owner_id: str) -> Select:
        # Tenant isolation: only rows belonging to the authenticated user.
        return select(Task).where(Task.owner == owner_id)

    def find_tasks_by_owner(self, owner_id: str, query: TaskQuery | None = None) -> list[Task]:
        """List the owner's tasks, filtered, sorted and paginated by *query*."""
        stmt = (query or TaskQuery()).apply(self._owned(owner_id))
        return list(self.session.scalars(stmt).all())

    def get(self, owner_id: str, task_id: str) -> Task:
        task = self.session.scalar(self._owned(owner_id).where(Task.id == task_id))
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        return task

    def create(self, owner_id: str, data: dict[str, Any]) -> Task:
        """
        Create a task for *owner_id*.

        Only ``description`` and ``completed`` are read from *data*; any
        ``owner``, ``id`` or timestamp in the payload is ignored.
        """
        task = Task(
            owner=owner_id,
            description=validate_description(data.get("description")),
            completed=validate_completed(data.get("completed", False)),
        )
        self.session.add(task)
        self.session.commit()
        logger.info("Created task %s for user %s", task.id, owner_id)
        return task

    def update(self, owner_id: str, task_id: str, changes: dict[str, Any]) -> Task:
        check_update_fields(changes, TASK_UPDATE_FIELDS)

        values: dict[str, Any] = {}
        if "description" in changes:
            values["description"] = validate_description(changes["description"])
        if "completed" in changes:
            values["completed"] = validate_completed(changes["completed"])

        task = self.get(owner_id, task_id)
        for field, value in values.items():
            setattr(task, field, value)
        self.session.commit()
        return task

    def delete(self, owner_id: str, task_id: str) -> dict[str, Any]:
        """Delete the task and return its last serialised state."""
        task = self.get(owner_id, task_id)
        payload = task.to_dict()
        self.session.delete(task)
        self.session.commit()
        return payload
