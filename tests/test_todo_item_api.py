"""
单条端点 /todo/{todo_id}
"""

import pytest

pytestmark = pytest.mark.anyio


async def test_get_existing_todo(client):
    await client.post("/todos", json={"title": "A", "content": "B"})
    todo_id = (await client.get("/todos")).json()["todos"][0]["id"]

    response = await client.get(f"/todo/{todo_id}")
    assert response.status_code == 200
    assert response.json() == {"todo": {"id": todo_id, "title": "A", "content": "B", "done": False}}


async def test_get_missing_todo_fails_instead_of_null(client):
    response = await client.get("/todo/999")
    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_FOUND"
    assert body["details"] == {"id": 999}
    assert "todo" not in body


@pytest.mark.parametrize("bad_id", ["abc", "1e3", "0", "99999999999"])
async def test_get_invalid_id(client, bad_id):
    response = await client.get(f"/todo/{bad_id}")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_IDENTIFIER"


async def test_item_endpoint_is_read_only(client):
    response = await client.request("DELETE", "/todo/1")
    assert response.status_code == 405
    assert response.json()["code"] == "UNSUPPORTED_OPERATION"
    assert response.headers["allow"] == "GET"


async def test_error_body_carries_trace_id(client):
    response = await client.get("/todo/999", headers={"X-Trace-ID": "trace-abc"})
    assert response.headers["X-Trace-ID"] == "trace-abc"
    assert response.json()["trace_id"] == "trace-abc"
