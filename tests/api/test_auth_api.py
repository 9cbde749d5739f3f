# tests/api/test_auth_api.py
# Access-code exchange, validation, sign-out and QR checks over HTTP

import httpx
import pytest


async def sign_in(client, code="ALBUM1") -> str:
    response = await client.post("/api/auth", json={"code": code})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestAuthFlow:

    @pytest.mark.asyncio
    async def test_exchange_then_validate(self, client):
        response = await client.post("/api/auth", json={"code": "ALBUM1"})

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "album"
        assert len(body["token"]) == 36

        check = await client.get("/api/auth", headers=bearer(body["token"]))
        assert check.status_code == 200
        assert check.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_lowercase_code_accepted(self, client):
        response = await client.post("/api/auth", json={"code": "care42"})
        assert response.json()["type"] == "special"

    @pytest.mark.asyncio
    async def test_missing_code_is_400(self, client):
        response = await client.post("/api/auth", json={})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert response.json()["error"]["message"] == "Missing code"

    @pytest.mark.asyncio
    async def test_unknown_code_is_401(self, client):
        response = await client.post("/api/auth", json={"code": "WRONG"})

        assert response.status_code == 401
        assert response.json()["error"] == {"code": "INVALID_CODE", "message": "Invalid code"}

    @pytest.mark.asyncio
    async def test_malformed_json_is_400(self, client):
        response = await client.post(
            "/api/auth", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_validate_without_bearer_is_400(self, client):
        response = await client.get("/api/auth")
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing token"

    @pytest.mark.asyncio
    async def test_validate_unknown_token_is_401(self, client):
        response = await client.get("/api/auth", headers=bearer("f" * 36))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_sign_out_revokes(self, client):
        token = await sign_in(client)

        response = await client.delete("/api/auth", headers=bearer(token))
        assert response.json() == {"ok": True}

        again = await client.delete("/api/auth", headers=bearer(token))
        assert again.status_code == 200

        check = await client.get("/api/auth", headers=bearer(token))
        assert check.status_code == 401


class TestQrEndpoint:

    @pytest.mark.asyncio
    async def test_valid_qr(self, client):
        response = await client.post("/api/qr", json={"qr": " care42 "})
        assert response.json() == {"valid": True, "type": "special", "code": "CARE42"}

    @pytest.mark.asyncio
    async def test_unknown_qr(self, client):
        response = await client.post("/api/qr", json={"qr": "NOPE"})
        assert response.status_code == 200
        assert response.json() == {"valid": False}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"qr": ""}, {"qr": "   "}, {"qr": 42}])
    async def test_missing_or_non_string_qr_is_400(self, client, body):
        response = await client.post("/api/qr", json=body)
        assert response.status_code == 400


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_auth_limited_per_client(self, make_app):
        app = make_app(AUTH_RATE_LIMIT=2)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            headers = {"X-Forwarded-For": "203.0.113.7"}
            first = await client.post("/api/auth", json={"code": "ALBUM1"}, headers=headers)
            second = await client.post("/api/auth", json={"code": "WRONG"}, headers=headers)
            third = await client.post("/api/auth", json={"code": "ALBUM1"}, headers=headers)
            other = await client.post("/api/auth", json={"code": "ALBUM1"}, headers={"X-Forwarded-For": "198.51.100.1"})

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert second.status_code == 401
        assert third.status_code == 429
        assert third.headers["Retry-After"] == "60"
        assert third.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_reads_are_not_limited(self, make_app):
        app = make_app(POSTS_RATE_LIMIT=1)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            for _ in range(3):
                response = await client.get("/api/posts")
                assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_rejected_requests_are_counted(self, make_app):
        from prometheus_client import REGISTRY

        labels = {"method": "POST", "path": "unmatched", "status": "429"}
        before = REGISTRY.get_sample_value("dit_request_count_total", labels) or 0.0

        app = make_app(QR_RATE_LIMIT=1)
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            headers = {"X-Forwarded-For": "192.0.2.44"}
            await client.post("/api/qr", json={"qr": "ALBUM1"}, headers=headers)
            limited = await client.post("/api/qr", json={"qr": "ALBUM1"}, headers=headers)

        assert limited.status_code == 429
        assert REGISTRY.get_sample_value("dit_request_count_total", labels) == before + 1
