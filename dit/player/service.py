# dit/player/service.py
# One playback controller per session, kept in process memory

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from dit.player.catalog import Catalog
from dit.player.controller import PlaybackController
from dit.player.transport import PlaybackCapabilities, select_transport
from dit.services.session_store import SessionHandle

logger = logging.getLogger(__name__)


class PlayerRegistry:
    """
    Controllers live as long as the process and the session: they survive
    across requests (page navigation) and are dropped on sign-out, when the
    session is found expired, or after idle_timeout seconds without a request.
    """

    def __init__(
        self,
        catalog: Catalog,
        clock: Callable[[], float] = time.monotonic,
        idle_timeout: Optional[float] = None,
    ):
        self.catalog = catalog
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._players: Dict[str, PlaybackController] = {}
        self._last_used: Dict[str, float] = {}

    def get(self, handle: SessionHandle) -> PlaybackController:
        player = self._players.get(handle.token)
        if player is None:
            player = self.create(handle, PlaybackCapabilities())
        self._last_used[handle.token] = self._clock()
        return player

    def create(
        self,
        handle: SessionHandle,
        capabilities: PlaybackCapabilities,
        autoplay_on_change: bool = False,
    ) -> PlaybackController:
        """Replace the session's controller with one on the requested transport."""
        self.drop(handle)
        transport = select_transport(capabilities, clock=self._clock)
        player = PlaybackController(transport, autoplay_on_change=autoplay_on_change)
        self._players[handle.token] = player
        self._last_used[handle.token] = self._clock()
        return player

    def drop(self, handle: SessionHandle) -> None:
        self._last_used.pop(handle.token, None)
        player = self._players.pop(handle.token, None)
        if player is not None:
            player.close()

    def drop_idle(self) -> int:
        if self.idle_timeout is None:
            return 0
        cutoff = self._clock() - self.idle_timeout
        idle = [t for t, used in self._last_used.items() if used < cutoff]
        for token in idle:
            self.drop(SessionHandle(token=token))
        if idle:
            logger.info(f"Dropped {len(idle)} idle players")
        return len(idle)

    def tick_all(self) -> None:
        self.drop_idle()
        for token, player in list(self._players.items()):
            try:
                player.tick()
            except Exception:
                logger.exception("Player tick failed; dropping controller")
                self._players.pop(token, None)
                self._last_used.pop(token, None)

    async def run_ticker(self, interval: float = 0.25, stop: Optional[asyncio.Event] = None) -> None:
        """Sample every controller a few times per second until stop is set."""
        stop = stop or asyncio.Event()
        while not stop.is_set():
            self.tick_all()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    def __len__(self) -> int:
        return len(self._players)
