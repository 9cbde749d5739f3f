# tests/unit/test_chat_relay.py
# Webhook relay error mapping, using httpx.MockTransport as the upstream

import json

import httpx
import pytest

from dit.middleware.error_handler import (
    BadGateway,
    GatewayTimeout,
    InvalidInput,
    ServiceNotConfigured,
    UpstreamError,
)
from dit.services.chat_relay import ChatRelay

WEBHOOK = "https://hooks.example.test/chat"


def relay_with(handler) -> ChatRelay:
    return ChatRelay("chat", WEBHOOK, timeout=5, transport=httpx.MockTransport(handler))


class TestReplyMapping:

    @pytest.mark.asyncio
    async def test_json_reply_field(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(200, json={"reply": "hello back"})

        assert await relay_with(handler).relay("  hi  ") == "hello back"
        assert json.loads(seen["body"]) == {"message": "hi"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["response", "text", "message"])
    async def test_alternate_reply_fields(self, field):
        relay = relay_with(lambda r: httpx.Response(200, json={field: "ok"}))
        assert await relay.relay("q") == "ok"

    @pytest.mark.asyncio
    async def test_unknown_json_is_reserialized(self):
        relay = relay_with(lambda r: httpx.Response(200, json={"output": 3}))
        assert await relay.relay("q") == '{"output": 3}'

    @pytest.mark.asyncio
    async def test_plain_text_passthrough(self):
        relay = relay_with(lambda r: httpx.Response(200, text="just text"))
        assert await relay.relay("q") == "just text"


class TestFailures:

    @pytest.mark.asyncio
    async def test_missing_webhook_not_configured(self):
        relay = ChatRelay("guardian", None)
        with pytest.raises(ServiceNotConfigured) as exc:
            await relay.relay("hi")
        assert exc.value.status_code == 500
        assert exc.value.message == "Guardian service not configured"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [None, "", "   ", 42, {"a": 1}])
    async def test_invalid_message(self, message):
        relay = relay_with(lambda r: httpx.Response(200, json={"reply": "x"}))
        with pytest.raises(InvalidInput):
            await relay.relay(message)

    @pytest.mark.asyncio
    async def test_upstream_error_body_not_leaked(self):
        relay = relay_with(lambda r: httpx.Response(500, text="db password is hunter2"))
        with pytest.raises(UpstreamError) as exc:
            await relay.relay("hi")
        assert exc.value.status_code == 502
        assert "hunter2" not in exc.value.message

    @pytest.mark.asyncio
    async def test_timeout_maps_to_504(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(GatewayTimeout) as exc:
            await relay_with(handler).relay("hi")
        assert exc.value.status_code == 504

    @pytest.mark.asyncio
    async def test_network_failure_maps_to_502(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BadGateway) as exc:
            await relay_with(handler).relay("hi")
        assert exc.value.status_code == 502

    @pytest.mark.asyncio
    async def test_other_failure_maps_to_400(self):
        def handler(request):
            raise RuntimeError("boom")

        with pytest.raises(InvalidInput) as exc:
            await relay_with(handler).relay("hi")
        assert exc.value.message == "Bad request"
