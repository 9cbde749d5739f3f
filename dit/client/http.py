# dit/client/http.py
# Outbound requests with a per-attempt timeout and linear backoff

from __future__ import annotations

from typing import Any

import httpx

from dit.utils.retry import retry_with_backoff

DEFAULT_TIMEOUT = 8.0
DEFAULT_RETRIES = 2
DEFAULT_BACKOFF = 0.5


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    backoff: float = DEFAULT_BACKOFF,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one request, retrying only when it never got an answer.

    Timeouts and connection failures are retried after backoff * attempt
    seconds. Any HTTP response, including 4xx/5xx, is returned as-is.
    """

    @retry_with_backoff(
        max_retries=retries,
        base_delay=backoff,
        exceptions=(httpx.TransportError,),
        linear=True,
    )
    async def _send() -> httpx.Response:
        return await client.request(method, url, timeout=timeout, **kwargs)

    return await _send()
