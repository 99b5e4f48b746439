import json
import threading
import time
import urllib.request
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest

from taskqueue.app import Container, main

BASE = "/api/v1"


@pytest.fixture
def container():
    c = Container(tick=0.01, work_duration=lambda: 60.0)
    yield c
    c.task_service().shutdown(timeout=5)


@pytest.fixture
def client(container):
    return container.flask_app().test_client()


def _create(client, name):
    resp = client.post(f"{BASE}/task/create", json={"name": name})
    assert resp.status_code == 202
    return resp.get_json()["id"]


def test_container_wires_shared_instances(container):
    repository = container.task_repository()
    assert repository.task_count() == 0

    container.task_service().create_task("Wired Task")
    assert container.task_repository().task_count() == 1

    client = container.flask_app().test_client()
    _create(client, "Wired Through App")
    assert repository.task_count() == 2

    listed = container.flask_app().test_client().get(f"{BASE}/tasks").get_json()
    assert sorted(task["name"] for task in listed["tasks"]) == [
        "Wired Task",
        "Wired Through App",
    ]


def test_create_task(client):
    resp = client.post(f"{BASE}/task/create", json={"name": "Test Task"})
    assert resp.status_code == 202
    location = resp.headers["Location"]
    assert "/api/v1/task/" in location
    body = resp.get_json()
    assert body["name"] == "Test Task"
    assert body["status"] == "PROCESSING"
    assert body["created_at"]
    assert body["processing_time"] >= 0
    assert str(uuid.UUID(body["id"])) == body["id"]
    assert location.endswith(body["id"])


def test_get_task(client):
    task_id = _create(client, "Get Task Test")
    resp = client.get(f"{BASE}/task/{task_id}")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["id"] == task_id
    assert body["name"] == "Get Task Test"
    assert body["status"] in {"PROCESSING", "DONE", "FAILED"}


def test_list_tasks(client):
    names = ["List Task 1", "List Task 2", "List Task 3"]
    created = [_create(client, name) for name in names]
    resp = client.get(f"{BASE}/tasks")
    assert resp.status_code == 200
    tasks = resp.get_json()["tasks"]
    assert len(tasks) >= len(names)
    found = {task["id"] for task in tasks}
    assert set(created) <= found


def test_delete_task(client):
    task_id = _create(client, "Delete Task Test")
    resp = client.delete(f"{BASE}/task/{task_id}")
    assert resp.status_code == 204
    assert client.get(f"{BASE}/task/{task_id}").status_code == 404


@pytest.mark.parametrize(
    "body",
    [
        json.dumps({"name": ""}),
        json.dumps({"name": "a" * 101}),
        '{"name": }',
        json.dumps({}),
    ],
    ids=["empty name", "too long name", "invalid json", "missing name"],
)
def test_create_task_invalid_input(client, body):
    resp = client.post(
        f"{BASE}/task/create", data=body, content_type="application/json"
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"]


def test_get_task_not_found(client):
    resp = client.get(f"{BASE}/task/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.get_json()["error"]


@pytest.mark.parametrize("bad_id", ["invalid-uuid", "123", "not-a-uuid-at-all"])
def test_get_task_invalid_id(client, bad_id):
    resp = client.get(f"{BASE}/task/{bad_id}")
    assert resp.status_code == 400
    assert resp.get_json()["error"]


def test_delete_task_not_found(client):
    resp = client.delete(f"{BASE}/task/{uuid.uuid4()}")
    assert resp.status_code == 404


def test_task_lifecycle(client):
    task_id = _create(client, "Lifecycle Test Task")
    first = client.get(f"{BASE}/task/{task_id}").get_json()
    assert first["status"] == "PROCESSING"
    assert first["processing_time"] >= 0

    time.sleep(0.05)
    updated = client.get(f"{BASE}/task/{task_id}").get_json()
    assert updated["processing_time"] >= 1

    listed = client.get(f"{BASE}/tasks").get_json()["tasks"]
    assert task_id in {task["id"] for task in listed}

    assert client.delete(f"{BASE}/task/{task_id}").status_code == 204
    assert client.get(f"{BASE}/task/{task_id}").status_code == 404


def test_concurrent_task_creation(container):
    app = container.flask_app()

    def create(index):
        resp = app.test_client().post(
            f"{BASE}/task/create", json={"name": f"Concurrent Task {index}"}
        )
        return resp.status_code, resp.get_json()["id"]

    with ThreadPoolExecutor(max_workers=10) as pool:
        results = list(pool.map(create, range(10)))

    assert [status for status, _ in results] == [202] * 10
    ids = [task_id for _, task_id in results]
    assert len(set(ids)) == 10


def test_task_processing_time_non_decreasing(client):
    task_id = _create(client, "Processing Time Test")
    times = []
    for _ in range(3):
        times.append(client.get(f"{BASE}/task/{task_id}").get_json()["processing_time"])
        time.sleep(0.02)
    assert times == sorted(times)


def test_task_reaches_done():
    c = Container(tick=0.01, work_duration=lambda: 0.0)
    try:
        client = c.flask_app().test_client()
        task_id = _create(client, "Quick")
        deadline = time.monotonic() + 5
        status = None
        while time.monotonic() < deadline:
            status = client.get(f"{BASE}/task/{task_id}").get_json()["status"]
            if status == "DONE":
                break
            time.sleep(0.01)
        assert status == "DONE"
    finally:
        c.task_service().shutdown(timeout=5)


def test_health_check(client):
    resp = client.get(f"{BASE}/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["timestamp"].endswith("Z")


def test_swagger_document_served(client):
    resp = client.get(f"{BASE}/swagger/doc.json")
    assert resp.status_code == 200
    doc = resp.get_json()
    assert doc["swagger"] == "2.0"
    assert doc["basePath"] == "/api/v1"
    assert "/task/create" in doc["paths"]


def test_cors_allows_any_origin(client):
    resp = client.get(f"{BASE}/health", headers={"Origin": "http://example.com"})
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_cors_preflight(client):
    resp = client.options(
        f"{BASE}/task/create",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert resp.status_code == 204
    assert "POST" in resp.headers["Access-Control-Allow-Methods"]
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


def test_real_server_serves_requests(container):
    server = container.server("127.0.0.1", 0)
    assert container.server("127.0.0.1", 0) is server
    worker = threading.Thread(target=server.serve_forever, daemon=True)
    worker.start()
    try:
        port = server.server_address[1]
        with urllib.request.urlopen(
            f"http://127.0.0.1:{port}{BASE}/health", timeout=5
        ) as resp:
            assert resp.status == 200
            body = json.loads(resp.read())
        assert body["status"] == "healthy"
    finally:
        server.shutdown()
        server.server_close()
        worker.join(timeout=5)


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "not-a-number"])
    assert info.value.code == 2