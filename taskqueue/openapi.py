"""Swagger 2.0 description of the task HTTP API."""

from __future__ import annotations

from typing import Any

from .models import TaskStatus

DEFAULT_HOST = "localhost:8080"
DEFAULT_BASE_PATH = "/api/v1"

_ERROR_REF = {"$ref": "#/definitions/ErrorResponse"}
_TASK_REF = {"$ref": "#/definitions/TaskResponse"}


def _error(description: str) -> dict[str, Any]:
    return {"description": description, "schema": dict(_ERROR_REF)}


def _id_parameter() -> dict[str, Any]:
    return {
        "type": "string",
        "description": "Task ID (UUID)",
        "name": "id",
        "in": "path",
        "required": True,
    }


def _operation(summary: str, description: str, **extra: Any) -> dict[str, Any]:
    operation: dict[str, Any] = {
        "description": description,
        "consumes": ["application/json"],
        "produces": ["application/json"],
        "tags": ["tasks"],
        "summary": summary,
    }
    operation.update(extra)
    return operation


def _paths() -> dict[str, Any]:
    return {
        "/task/create": {
            "post": _operation(
                "Create a new task",
                "Creates a new task with the specified name",
                parameters=[
                    {
                        "description": "Task info",
                        "name": "request",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/CreateTaskRequest"},
                    }
                ],
                responses={
                    "202": {
                        "description": "Task accepted for processing",
                        "schema": dict(_TASK_REF),
                        "headers": {
                            "Location": {
                                "type": "string",
                                "description": "Location of the created task",
                            }
                        },
                    },
                    "400": _error("Invalid input"),
                    "500": _error("Internal error"),
                },
            )
        },
        "/task/{id}": {
            "get": _operation(
                "Get task info",
                "Returns information about a task by its ID",
                parameters=[_id_parameter()],
                responses={
                    "200": {"description": "Task found", "schema": dict(_TASK_REF)},
                    "400": _error("Invalid ID format"),
                    "404": _error("Task not found"),
                },
            ),
            "delete": _operation(
                "Delete a task",
                "Deletes a task by its ID",
                parameters=[_id_parameter()],
                responses={
                    "204": {"description": "Task deleted"},
                    "400": _error("Invalid ID format"),
                    "404": _error("Task not found"),
                },
            ),
        },
        "/tasks": {
            "get": _operation(
                "List all tasks",
                "Returns a list of all tasks",
                responses={
                    "200": {
                        "description": "List of tasks",
                        "schema": {"$ref": "#/definitions/TaskListResponse"},
                    },
                    "500": _error("Internal error"),
                },
            )
        },
    }


def _definitions() -> dict[str, Any]:
    return {
        "CreateTaskRequest": {
            "description": "Request payload for creating a task.",
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "maxLength": 100, "minLength": 1}
            },
        },
        "ErrorResponse": {
            "description": "Error response with error code and message.",
            "type": "object",
            "properties": {
                "error": {"type": "string"},
                "message": {"type": "string"},
            },
        },
        "TaskListResponse": {
            "description": "List of tasks.",
            "type": "object",
            "properties": {
                "tasks": {"type": "array", "items": dict(_TASK_REF)},
            },
        },
        "TaskResponse": {
            "description": "Task information including status and processing time.",
            "type": "object",
            "properties": {
                "created_at": {"type": "string"},
                "id": {"type": "string"},
                "name": {"type": "string"},
                "processing_time": {"type": "integer"},
                "status": {"$ref": "#/definitions/TaskStatus"},
            },
        },
        "TaskStatus": {
            "type": "string",
            "enum": [status.value for status in TaskStatus],
        },
    }


def swagger_document(
    host: str = DEFAULT_HOST, base_path: str = DEFAULT_BASE_PATH
) -> dict[str, Any]:
    """Return a fresh Swagger 2.0 document for the API."""
    return {
        "schemes": [],
        "swagger": "2.0",
        "info": {
            "description": "API for task management",
            "title": "Task API",
            "contact": {},
            "version": "1.0",
        },
        "host": host,
        "basePath": base_path,
        "paths": _paths(),
        "definitions": _definitions(),
    }