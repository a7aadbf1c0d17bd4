"""Chat API tests — status codes and error mapping.

Learn: `client` has auth overridden (always user 1, "alice");
`unauthenticated_client` runs the real bearer-token check, which is
what the 401 tests need.
"""

import pytest

from chatdash.auth.jwt import create_access_token, create_refresh_token
from chatdash.store.base import StoreUnavailableError
from chatdash.store.memory import MemoryMessageStore


class DownStore(MemoryMessageStore):
    async def list_all(self):
        raise StoreUnavailableError("down")

    async def append(self, author_id, content):
        raise StoreUnavailableError("down")

    async def clear_all(self):
        raise StoreUnavailableError("down")

    async def delete_by_author(self, author_id):
        raise StoreUnavailableError("down")


@pytest.mark.asyncio
async def test_list_empty(client):
    r = await client.get("/api/v1/chat")
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_post_and_list(client):
    r = await client.post("/api/v1/chat", json={"content": "hello"})
    assert r.status_code == 201
    msg = r.json()
    assert msg["id"] == 1
    assert msg["author_id"] == 1
    assert msg["content"] == "hello"
    assert "created_at" in msg

    await client.post("/api/v1/chat", json={"content": "world"})
    r = await client.get("/api/v1/chat")
    assert [m["content"] for m in r.json()] == ["hello", "world"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{}, {"content": ""}, {"content": "   "}, {"content": 42}, {"text": "hi"}],
)
async def test_post_invalid_body_is_400(client, store, body):
    r = await client.post("/api/v1/chat", json=body)
    assert r.status_code == 400
    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_malformed_body_lists_errors(client):
    r = await client.post("/api/v1/chat", json={})
    data = r.json()
    assert data["detail"] == "Invalid request data"
    assert data["errors"][0]["loc"][-1] == "content"


@pytest.mark.asyncio
async def test_list_is_public(unauthenticated_client):
    r = await unauthenticated_client.get("/api/v1/chat")
    assert r.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [("POST", "/api/v1/chat"), ("DELETE", "/api/v1/chat"), ("DELETE", "/api/v1/chat/user")],
)
async def test_mutations_require_auth(unauthenticated_client, store, method, path):
    await store.append(2, "existing")
    r = await unauthenticated_client.request(method, path, json={"content": "x"})
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert len(await store.list_all()) == 1


@pytest.mark.asyncio
async def test_auth_checked_before_body(unauthenticated_client):
    r = await unauthenticated_client.post("/api/v1/chat", json={"content": ""})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_bad_token_is_401(unauthenticated_client):
    headers = {"Authorization": "Bearer not-a-jwt"}
    r = await unauthenticated_client.post(
        "/api/v1/chat", json={"content": "hi"}, headers=headers
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_cannot_post(unauthenticated_client):
    token = create_refresh_token(7, "bob")
    r = await unauthenticated_client.post(
        "/api/v1/chat",
        json={"content": "hi"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_post_with_real_token(unauthenticated_client):
    token = create_access_token(7, "bob")
    r = await unauthenticated_client.post(
        "/api/v1/chat",
        json={"content": "hi"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 201
    assert r.json()["author_id"] == 7


@pytest.mark.asyncio
async def test_clear_chat(client, store):
    await store.append(1, "a")
    await store.append(2, "b")

    r = await client.delete("/api/v1/chat")
    assert r.status_code == 200
    assert r.json() == {"message": "Chat cleared"}

    r = await client.get("/api/v1/chat")
    assert r.json() == []


@pytest.mark.asyncio
async def test_delete_own_messages(client, store):
    await store.append(1, "mine")
    await store.append(2, "theirs")

    r = await client.delete("/api/v1/chat/user")
    assert r.status_code == 200
    assert r.json() == {"message": "User messages deleted"}

    r = await client.get("/api/v1/chat")
    assert [m["content"] for m in r.json()] == ["theirs"]


@pytest.mark.asyncio
async def test_store_down_is_500(client, gateway):
    gateway.store = DownStore()

    assert (await client.get("/api/v1/chat")).status_code == 500
    assert (await client.post("/api/v1/chat", json={"content": "x"})).status_code == 500
    assert (await client.delete("/api/v1/chat")).status_code == 500
    assert (await client.delete("/api/v1/chat/user")).status_code == 500
