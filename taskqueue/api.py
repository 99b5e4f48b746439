"""HTTP handlers for the task API."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from flask import Blueprint, Response, jsonify, request

from .models import Task
from .service import ServiceError, TaskService

MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 100
LOCATION_PREFIX = "/api/v1/task/"


@dataclass(frozen=True)
class CreateTaskRequest:
    """Validated body of a create-task request."""

    name: str

    @classmethod
    def from_json(cls, payload: bytes | str) -> CreateTaskRequest:
        """Parse and validate a JSON body; raise ValueError when it is invalid."""
        try:
            data = json.loads(payload)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("request body must be a JSON object")

        name = data.get("name")
        if "name" not in data:
            name = next(
                (value for key, value in data.items() if key.lower() == "name"), None
            )
        if name is None:
            name = ""
        if not isinstance(name, str):
            raise ValueError("field 'name' must be a string")
        if not name:
            raise ValueError("field 'name' is required")
        if len(name) < MIN_NAME_LENGTH:
            raise ValueError(f"field 'name' must be at least {MIN_NAME_LENGTH} characters")
        if len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"field 'name' must be at most {MAX_NAME_LENGTH} characters")
        return cls(name=name)


def _format_time(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    text = moment.isoformat()
    if moment.utcoffset() == timedelta(0):
        text = text.removesuffix("+00:00") + "Z"
    return text


def _nanoseconds(duration: timedelta) -> int:
    return (duration // timedelta(microseconds=1)) * 1000


def task_to_response(task: Task) -> dict[str, Any]:
    """JSON-ready view of a task; processing time is in nanoseconds."""
    return {
        "id": str(task.id),
        "name": task.name,
        "status": task.status.value if task.status is not None else None,
        "created_at": _format_time(task.created_at),
        "processing_time": _nanoseconds(task.processing_time),
    }


def health_check() -> dict[str, Any]:
    """Report that the service is up, with the current UTC time."""
    return {
        "status": "healthy",
        "timestamp": _format_time(datetime.now(timezone.utc)),
    }


def _error(status: int, code: str, message: str = "") -> tuple[Response, int]:
    body = {"error": code}
    if message:
        body["message"] = message
    return jsonify(body), status


def _parse_id(text: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(text)
    except ValueError:
        return None


def create_blueprint(service: TaskService) -> Blueprint:
    """Routes for tasks and the health check, relative to the API base path."""
    bp = Blueprint("tasks", __name__)

    @bp.get("/tasks")
    def list_tasks():
        try:
            tasks = service.list_tasks()
        except ServiceError:
            return _error(500, "internal_error", "Failed to retrieve tasks")
        return jsonify({"tasks": [task_to_response(task) for task in tasks]}), 200

    @bp.post("/task/create")
    def create_task():
        try:
            req = CreateTaskRequest.from_json(request.get_data())
        except ValueError as exc:
            return _error(400, "validation_error", str(exc))
        try:
            task = service.create_task(req.name)
        except ServiceError:
            return _error(500, "internal_error", "Failed to create task")
        response = jsonify(task_to_response(task))
        response.status_code = 202
        response.headers["Location"] = LOCATION_PREFIX + str(task.id)
        return response

    @bp.get("/task/<task_id>")
    def get_task(task_id: str):
        if not task_id:
            return _error(400, "validation_error", "Missing task id")
        parsed = _parse_id(task_id)
        if parsed is None:
            return _error(400, "invalid_id", "Invalid task ID format")
        try:
            task = service.get_task(parsed)
        except ServiceError:
            return _error(404, "task_not_found", "Task not found")
        return jsonify(task_to_response(task)), 200

    @bp.delete("/task/<task_id>")
    def delete_task(task_id: str):
        parsed = _parse_id(task_id)
        if parsed is None:
            return _error(400, "invalid_id", "Invalid task ID format")
        try:
            service.delete_task(parsed)
        except ServiceError:
            return _error(404, "task_not_found", "Task not found")
        return Response(status=204)

    bp.add_url_rule("/health", "health", health_check, methods=["GET"])
    return bp