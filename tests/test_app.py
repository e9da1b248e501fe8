"""
应用装配：生命周期 / 健康检查 / 指标
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from todo_service.db.engine import Database, get_database
from todo_service.main import create_app
from todo_service.todo.store import TodoStore, get_todo_store

pytestmark = pytest.mark.anyio


async def test_health_ok(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


async def test_health_degraded_when_database_down(app, unreachable_settings):
    broken = Database(unreachable_settings)
    app.dependency_overrides[get_database] = lambda: broken
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/health")
    finally:
        app.dependency_overrides.clear()
        await broken.dispose()

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "degraded"
    assert body["database"].startswith("error:")


async def test_startup_fails_fast_without_database(unreachable_settings):
    application = create_app(unreachable_settings)
    with pytest.raises(OperationalError):
        async with application.router.lifespan_context(application):
            pass


async def test_lifespan_attaches_database(settings):
    application = create_app(settings)
    async with application.router.lifespan_context(application):
        assert isinstance(application.state.database, Database)


async def test_response_headers_carry_trace_and_duration(client):
    response = await client.get("/todos")
    assert response.headers["X-Trace-ID"]
    assert int(response.headers["X-Duration-Ms"]) >= 0


async def test_metrics_endpoint_exposes_request_counter(client):
    await client.get("/todos")
    response = await client.get("/metrics/")
    assert response.status_code == 200
    assert 'todo_request_total{method="GET",endpoint="/todos",status_code="200"}' in response.text


async def test_item_metrics_use_route_template(client):
    await client.get("/todo/999")
    response = await client.get("/metrics/")
    assert 'endpoint="/todo/{todo_id}"' in response.text



class _FailingSession:
    """每次访问都抛同一个异常的 session 替身"""

    def __init__(self, exc: Exception):
        self.exc = exc

    async def execute(self, *args, **kwargs):
        raise self.exc

    async def get(self, *args, **kwargs):
        raise self.exc


def _override_store(app, exc):
    app.dependency_overrides[get_todo_store] = lambda: TodoStore(_FailingSession(exc))


async def test_storage_fault_renders_503(app):
    _override_store(app, OperationalError("SELECT", {}, ConnectionRefusedError("refused")))
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/todos", headers={"X-Trace-ID": "t-503"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 503
    body = response.json()
    assert body["code"] == "STORAGE_UNAVAILABLE"
    assert body["details"]["operation"] == "find_many"
    assert body["trace_id"] == "t-503"


async def test_unexpected_error_renders_500_with_trace_headers(app):
    _override_store(app, RuntimeError("boom"))
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/todo/1", headers={"X-Trace-ID": "t-500"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "detail": "An unexpected error occurred",
        "code": "INTERNAL_ERROR",
        "trace_id": "t-500",
    }
    assert response.headers["X-Trace-ID"] == "t-500"
    assert "X-Duration-Ms" in response.headers
