"""
REST API endpoints for tasks.

Every endpoint requires a bearer token and is scoped to the authenticated
user; another user's task answers exactly like a missing one.

Endpoints:
    GET    /tasks          - List tasks (completed, sortBy, limit, skip)
    POST   /tasks          - Create a task
    GET    /tasks/<id>     - Retrieve a single task
    PATCH  /tasks/<id>     - Update description and/or completed
    DELETE /tasks/<id>     - Delete a task
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, g, jsonify, request

from ..auth import require_auth
from ..query import parse_task_query
from ..task_store import TaskStore
from ..validation import require_json_object

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks", __name__)


@tasks_bp.route("/tasks", methods=["GET"])
@require_auth
def list_tasks() -> tuple[Response, int]:
    """
    List the authenticated user's tasks.

    Query parameters:
        completed: ``true`` or ``false`` to filter on completion.
        sortBy: ``<field>_<asc|desc>`` with field one of description,
            completed, createdAt, updatedAt.
        limit, skip: Non-negative integers for pagination.
    """
    query = parse_task_query(request.args)
    logger.info("GET /tasks - Fetching tasks for user %s", g.user.id)
    tasks = TaskStore().find_tasks_by_owner(g.user.id, query)
    return jsonify([task.to_dict() for task in tasks]), 200


@tasks_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    data = require_json_object(request.get_json(silent=True))
    task = TaskStore().create(g.user.id, data)
    return jsonify(task.to_dict()), 201


@tasks_bp.route("/tasks/<task_id>", methods=["GET"])
@require_auth
def get_task(task_id: str) -> tuple[Response, int]:
    task = TaskStore().get(g.user.id, task_id)
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/tasks/<task_id>", methods=["PATCH"])
@require_auth
def update_task(task_id: str) -> tuple[Response, int]:
    data = require_json_object(request.get_json(silent=True))
    task = TaskStore().update(g.user.id, task_id, data)
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/tasks/<task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: str) -> tuple[Response, int]:
    return jsonify(TaskStore().delete(g.user.id, task_id)), 200
