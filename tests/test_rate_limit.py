from fastapi import FastAPI
from fastapi.testclient import TestClient

from cowork.core.rate_limit import RateLimitMiddleware


def _limited_app():
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, enabled=True)

    @app.post("/api/v1/auth/login")
    async def login():
        return {"ok": True}

    @app.get("/api/v1/auth/me")
    async def me():
        return {"ok": True}

    return app


def test_login_is_limited_to_five_per_minute():
    client = TestClient(_limited_app())
    for _ in range(5):
        resp = client.post("/api/v1/auth/login")
        assert resp.status_code == 200

    resp = client.post("/api/v1/auth/login")
    assert resp.status_code == 429
    assert int(resp.headers["Retry-After"]) >= 1


def test_reads_are_not_limited():
    client = TestClient(_limited_app())
    for _ in range(10):
        assert client.get("/api/v1/auth/me").status_code == 200
