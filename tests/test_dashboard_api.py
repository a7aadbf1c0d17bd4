"""Dashboard API tests — shortcut links and app settings."""

import pytest
from sqlalchemy import func, select

from chatdash.db.models import AppSetting, DynamicUrl
from chatdash.services.dashboard_service import (
    DEFAULT_SETTINGS,
    DEFAULT_URLS,
    seed_defaults,
)

SHORTCUT = {"name": "Grafana", "url": "https://grafana.example.com", "icon": "fas fa-chart-line"}


@pytest.mark.asyncio
async def test_create_and_list_urls(client):
    r = await client.post("/api/v1/dynamic-urls", json=SHORTCUT)
    assert r.status_code == 201
    created = r.json()
    assert created["id"] == 1
    assert created["name"] == "Grafana"

    r = await client.get("/api/v1/dynamic-urls")
    assert r.status_code == 200
    assert [u["name"] for u in r.json()] == ["Grafana"]


@pytest.mark.asyncio
async def test_update_url(client):
    r = await client.post("/api/v1/dynamic-urls", json=SHORTCUT)
    url_id = r.json()["id"]

    r = await client.put(f"/api/v1/dynamic-urls/{url_id}", json={
        **SHORTCUT,
        "name": "Grafana (prod)",
    })
    assert r.status_code == 200
    assert r.json()["name"] == "Grafana (prod)"


@pytest.mark.asyncio
async def test_update_missing_url_is_404(client):
    r = await client.put("/api/v1/dynamic-urls/999", json=SHORTCUT)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_url_must_be_http(client):
    r = await client.post("/api/v1/dynamic-urls", json={**SHORTCUT, "url": "javascript:alert(1)"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_urls_require_auth(unauthenticated_client):
    assert (await unauthenticated_client.get("/api/v1/dynamic-urls")).status_code == 401
    r = await unauthenticated_client.post("/api/v1/dynamic-urls", json=SHORTCUT)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_settings_upsert_and_read(client):
    r = await client.get("/api/v1/settings/github_url")
    assert r.status_code == 404

    r = await client.put("/api/v1/settings/github_url", json={"value": "https://github.com/alice"})
    assert r.status_code == 200
    assert r.json()["value"] == "https://github.com/alice"

    r = await client.put("/api/v1/settings/github_url", json={"value": "https://github.com/bob"})
    assert r.status_code == 200

    r = await client.get("/api/v1/settings/github_url")
    assert r.json()["value"] == "https://github.com/bob"

    r = await client.get("/api/v1/settings")
    assert [s["key"] for s in r.json()] == ["github_url"]


@pytest.mark.asyncio
async def test_settings_are_publicly_readable(unauthenticated_client):
    r = await unauthenticated_client.get("/api/v1/settings")
    assert r.status_code == 200

    r = await unauthenticated_client.put("/api/v1/settings/email", json={"value": "x@y.z"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(session_factory, db_session):
    await seed_defaults(session_factory)
    await seed_defaults(session_factory)

    url_count = await db_session.scalar(select(func.count()).select_from(DynamicUrl))
    keys = set((await db_session.execute(select(AppSetting.key))).scalars().all())
    assert url_count == len(DEFAULT_URLS)
    assert keys == set(DEFAULT_SETTINGS)
