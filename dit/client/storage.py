# dit/client/storage.py
# Durable client-side state kept in a small JSON file

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

CHAT_HISTORY_LIMIT = 200


class ClientStore:
    """
    Holds the session token with its expiry (epoch seconds), the chat
    history and whether the player drawer is open.

    Every write goes straight to disk so a restarted client picks up
    where it left off.
    """

    def __init__(self, path: str, clock: Callable[[], float] = time.time):
        self.path = path
        self._clock = clock
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Client store at {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
        os.replace(tmp, self.path)

    # --- session token ---

    def get_token(self) -> Optional[str]:
        """Stored token, or None once it is missing or past its expiry."""
        token = self._data.get("session_token")
        expires = self._data.get("session_expires")
        if not token or not isinstance(expires, (int, float)):
            return None
        if self._clock() > expires:
            self.clear_token()
            return None
        return token

    def set_token(self, token: str, ttl_seconds: float) -> None:
        self._data["session_token"] = token
        self._data["session_expires"] = self._clock() + ttl_seconds
        self._save()

    def clear_token(self) -> None:
        self._data.pop("session_token", None)
        self._data.pop("session_expires", None)
        self._save()

    # --- chat history ---

    @property
    def chat_history(self) -> List[Dict[str, Any]]:
        return list(self._data.get("chat_history", []))

    def append_chat(self, role: str, text: str) -> None:
        history = self.chat_history
        history.append({"role": role, "text": text, "at": self._clock()})
        self._data["chat_history"] = history[-CHAT_HISTORY_LIMIT:]
        self._save()

    def clear_chat(self) -> None:
        self._data["chat_history"] = []
        self._save()

    # --- player drawer ---

    @property
    def drawer_open(self) -> bool:
        return bool(self._data.get("drawer_open", False))

    @drawer_open.setter
    def drawer_open(self, value: bool) -> None:
        self._data["drawer_open"] = bool(value)
        self._save()
