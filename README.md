# taskqueue

A small HTTP service for long-running background tasks. Each task you
create is worked on in a background thread for a few minutes (a random
3 to 5 minutes), after which it is marked `DONE`. A task that is
cancelled, or that runs past its 6-minute limit, is marked `FAILED`.
While a task runs you can query its status and how long it has been
running, list all tasks, or delete a task. Deleting a task that is still
running cancels it.

## Installation

```
pip install .
```

## Running the server

```
taskqueue
```

Options:

- `--host HOST`: address to bind (default: all interfaces)
- `--port PORT`: port to listen on (default: `8080`)

Each request is handled in its own thread and logged. Stop the server
with Ctrl+C or SIGTERM: it stops accepting requests, closes its socket
and exits. Tasks that are still running are not finished first.

## HTTP API

All routes live under `/api/v1`.

| Method | Path                | Result                                                    |
|--------|---------------------|-----------------------------------------------------------|
| POST   | `/task/create`      | `202` with the new task and a `Location` header           |
| GET    | `/task/<id>`        | `200` with the task, `400` for a bad id, `404` if unknown |
| DELETE | `/task/<id>`        | `204`, `400` for a bad id, `404` if unknown               |
| GET    | `/tasks`            | `200` with `{"tasks": [...]}`                             |
| GET    | `/health`           | `200` with `{"status": "healthy", "timestamp": ...}`      |
| GET    | `/swagger/doc.json` | The Swagger 2.0 description of the API                    |

To create a task, send a JSON object such as `{"name": "report"}`. The
name is required, must be a string, and must be 1 to 100 characters
long. A body that is not valid JSON, is not an object, or has a bad name
is answered with `400` and the error code `validation_error`.

A task looks like this:

```json
{
  "id": "6f1c2b0e-8d3a-4a4e-9c57-2f4e1b9d0a11",
  "name": "report",
  "status": "PROCESSING",
  "created_at": "2024-01-01T12:00:00.123456Z",
  "processing_time": 2000000000
}
```

`status` is one of `PROCESSING`, `DONE` or `FAILED`. `processing_time`
is given in nanoseconds. Error responses carry an `error` code
(`validation_error`, `invalid_id`, `task_not_found` or `internal_error`)
and a `message`.

Responses to requests that carry an `Origin` header allow any origin,
and CORS preflight requests are answered directly with `204`.

## Using it from Python

```python
from taskqueue.app import Container

container = Container()
service = container.task_service()
task = service.create_task("report")
print(service.get_task(task.id).status)
service.shutdown(timeout=30)
```

`Container` builds each component on first use and returns the same
instance afterwards: `task_repository()`, `task_service()`,
`flask_app()` (the WSGI application, usable with any WSGI server or
Flask's test client) and `server(host, port)`. Keyword arguments given
to `Container` are passed to `TaskService`: `tick` (seconds between
progress updates), `task_timeout` (seconds before a task is failed) and
`work_duration` (a callable returning how many seconds a task works).

`TaskService` raises `ServiceError` when a task cannot be found or an
operation fails. `wait_for_task(task_id, timeout)` blocks until a
running task finishes and raises `TimeoutError` if it does not finish in
time; `shutdown(timeout)` cancels running tasks and raises
`ServiceError` if their workers have not stopped within the timeout.

`taskqueue.openapi.swagger_document(host, base_path)` returns the
Swagger 2.0 description as a dictionary.

## What it does not do

- Tasks are kept in memory only; they are lost when the process exits.
- The work a task does is simulated: it only waits and records its
  progress.
- Only the Swagger JSON document is served; there is no interactive
  Swagger UI page.