"""Smoke tests: verify app boots and core routes are registered."""
from httpx import AsyncClient, ASGITransport


async def test_health():
    """App imports and /health responds without touching the database or cache."""
    from related_articles.api.main import app
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


async def test_routes_registered(client):
    """Each route answers with its own auth/validation error rather than a 404."""
    resp = await client.delete("/admin/related-cache")
    assert resp.status_code == 422

    resp = await client.delete("/admin/related-cache/1", headers={"X-Admin-Key": "wrong-key"})
    assert resp.status_code == 403

    resp = await client.post("/internal/articles/1/events", json={"event": "updated"})
    assert resp.status_code == 403

    resp = await client.get("/articles/1/related")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Article not found"
