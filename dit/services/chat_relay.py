# dit/services/chat_relay.py
# Stateless forwarders from the chat surfaces to an external conversational webhook

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from dit.middleware.error_handler import (
    BadGateway,
    GatewayTimeout,
    InvalidInput,
    ServiceNotConfigured,
    UpstreamError,
)
from dit.observability.metrics import CHAT_RELAY_ERRORS
from dit.utils.logger import log_exception

logger = logging.getLogger(__name__)

REPLY_FIELDS = ("reply", "response", "text", "message")


def validate_message(message: Any) -> str:
    if not isinstance(message, str) or not message.strip():
        raise InvalidInput("Missing or invalid message")
    return message.strip()


def extract_reply(response: httpx.Response) -> str:
    """Map an upstream body onto a plain reply string."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict):
            for field in REPLY_FIELDS:
                value = data.get(field)
                if value:
                    return str(value)
        return json.dumps(data)
    return response.text


class ChatRelay:
    """
    One relay instance per assistant surface.

    No state is kept between calls and failed calls are not retried.
    """

    def __init__(
        self,
        name: str,
        webhook_url: Optional[str],
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.webhook_url = webhook_url.strip() if webhook_url and webhook_url.strip() else None
        self.timeout = timeout
        self._transport = transport

    async def relay(self, message: Any) -> str:
        if not self.webhook_url:
            raise ServiceNotConfigured(self.name.capitalize())
        text = validate_message(message)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                upstream = await client.post(
                    self.webhook_url,
                    json={"message": text},
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            CHAT_RELAY_ERRORS.labels(self.name, "timeout").inc()
            logger.warning(f"{self.name} relay timed out after {self.timeout}s: {type(e).__name__}")
            raise GatewayTimeout() from e
        except httpx.TransportError as e:
            CHAT_RELAY_ERRORS.labels(self.name, "network").inc()
            logger.warning(f"{self.name} relay network failure: {type(e).__name__}: {e}")
            raise BadGateway() from e
        except Exception as e:
            CHAT_RELAY_ERRORS.labels(self.name, "other").inc()
            log_exception(e, context=f"{self.name} relay")
            raise InvalidInput("Bad request") from e

        reply = extract_reply(upstream)
        if upstream.is_error:
            CHAT_RELAY_ERRORS.labels(self.name, "upstream").inc()
            # Upstream body stays server-side
            logger.error(
                f"{self.name} upstream error status={upstream.status_code} body={reply[:500]!r}"
            )
            raise UpstreamError()
        return reply
