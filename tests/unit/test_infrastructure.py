# tests/unit/test_infrastructure.py
# Unit tests for error types, error responses and retry decorators

import asyncio
import json

import pytest


class TestErrorTaxonomy:

    def test_subclass_defaults_can_be_overridden(self):
        from dit.middleware.error_handler import AppError, InvalidInput

        assert InvalidInput().status_code == 400
        custom = AppError("teapot", error_code="TEAPOT", status_code=418, details={"pot": "tea"})
        assert (custom.status_code, custom.error_code, custom.details) == (418, "TEAPOT", {"pot": "tea"})

    def test_upstream_failures_map_to_gateway_statuses(self):
        from dit.middleware.error_handler import BadGateway, GatewayTimeout, UpstreamError

        assert [e().status_code for e in (UpstreamError, BadGateway, GatewayTimeout)] == [502, 502, 504]

    def test_invalid_code_is_unauthorized(self):
        from dit.middleware.error_handler import InvalidCode, Unauthorized

        error = InvalidCode()

        assert isinstance(error, Unauthorized)
        assert error.status_code == 401
        assert error.error_code == "INVALID_CODE"

    def test_rate_limited_carries_retry_after(self):
        from dit.middleware.error_handler import RateLimited

        error = RateLimited(retry_after=60)

        assert error.status_code == 429
        assert error.details == {"retry_after": 60}

    def test_session_create_failed_is_store_error(self):
        from dit.middleware.error_handler import SessionCreateFailed, StoreError

        error = SessionCreateFailed(attempts=3)

        assert isinstance(error, StoreError)
        assert error.status_code == 500
        assert "3 attempts" in error.message

    def test_create_error_response_structure(self):
        from dit.middleware.error_handler import create_error_response

        response = create_error_response(
            error_code="RATE_LIMIT_EXCEEDED",
            message="Slow down",
            status_code=429,
            details={"retry_after": 60},
            request_id="req-123",
            headers={"Retry-After": "60"},
        )

        assert response.status_code == 429
        assert response.headers["retry-after"] == "60"
        assert json.loads(response.body) == {
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Slow down",
                "details": {"retry_after": 60},
                "request_id": "req-123",
            }
        }

    def test_create_error_response_omits_empty_parts(self):
        from dit.middleware.error_handler import create_error_response

        response = create_error_response("NOT_FOUND", "nope", 404)

        assert json.loads(response.body) == {"error": {"code": "NOT_FOUND", "message": "nope"}}


class TestRetryWithBackoff:

    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        delays = []
        real_sleep = asyncio.sleep

        async def fake_sleep(delay):
            delays.append(delay)
            await real_sleep(0)

        monkeypatch.setattr("dit.utils.retry.asyncio.sleep", fake_sleep)
        return delays

    @pytest.mark.asyncio
    async def test_retry_succeeds_after_failures(self, no_sleep):
        from dit.utils.retry import retry_with_backoff

        call_count = 0

        @retry_with_backoff(max_retries=3, base_delay=0.01)
        async def flaky_webhook():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ValueError("connection reset")
            return "pong"

        result = await flaky_webhook()

        assert result == "pong"
        assert call_count == 3
        assert no_sleep == [0.01, 0.02]

    @pytest.mark.asyncio
    async def test_linear_backoff(self, no_sleep):
        from dit.utils.retry import retry_with_backoff

        @retry_with_backoff(max_retries=2, base_delay=0.5, linear=True)
        async def always_fails():
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            await always_fails()

        assert no_sleep == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_unlisted_exceptions_are_not_retried(self):
        from dit.utils.retry import retry_with_backoff

        call_count = 0

        @retry_with_backoff(max_retries=3, exceptions=(ConnectionError,))
        async def bad_input():
            nonlocal call_count
            call_count += 1
            raise ValueError("not transient")

        with pytest.raises(ValueError):
            await bad_input()

        assert call_count == 1


    def test_backoff_delays_are_capped(self):
        from dit.utils.retry import backoff_delays

        assert list(backoff_delays(4, 1.0, 5.0)) == [1.0, 2.0, 4.0, 5.0]
        assert list(backoff_delays(3, 2.0, 5.0, linear=True)) == [2.0, 4.0, 5.0]
        assert list(backoff_delays(0, 1.0, 5.0)) == []
