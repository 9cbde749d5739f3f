# dit/client/session.py
# Client half of the access flow: code exchange, validation, sign-out

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

import httpx

from dit.client.http import request_with_retry
from dit.client.storage import ClientStore
from dit.services.session_store import SessionHandle

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)


class SessionError(Exception):
    """The server refused to exchange the code."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or default
    return error or default


class SessionClient:

    def __init__(self, base_url: str, store: ClientStore, http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.http = http_client

    @property
    def auth_url(self) -> str:
        return f"{self.base_url}/api/auth"

    def current(self) -> Optional[SessionHandle]:
        token = self.store.get_token()
        return SessionHandle(token=token) if token else None

    async def exchange_code(self, code: str) -> SessionHandle:
        response = await request_with_retry(self.http, "POST", self.auth_url, json={"code": code})
        if response.status_code != 200:
            raise SessionError(_error_message(response, "Invalid code"), response.status_code)
        token = response.json()["token"]
        self.store.set_token(token, SESSION_TTL.total_seconds())
        return SessionHandle(token=token)

    async def validate(self, handle: Optional[SessionHandle] = None) -> bool:
        """True when the server accepts the session. Never raises."""
        handle = handle or self.current()
        if handle is None:
            return False
        try:
            response = await request_with_retry(
                self.http, "GET", self.auth_url,
                headers={"Authorization": f"Bearer {handle.token}"},
            )
            return response.status_code == 200 and bool(response.json().get("ok"))
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Session validation failed: {e}")
            return False

    async def sign_out(self) -> None:
        """Tell the server, then forget the token whatever it answered."""
        handle = self.current()
        if handle is None:
            return
        try:
            await request_with_retry(
                self.http, "DELETE", self.auth_url,
                headers={"Authorization": f"Bearer {handle.token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to sign out on server: {e}")
        finally:
            self.store.clear_token()
