# dit/player/controller.py
# Now-playing state machine: queue + transport sub-state

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from dit.player.queue import PlaybackQueue, Track
from dit.player.transport import AudioTransport, ReportedTransport

logger = logging.getLogger(__name__)

SEEK_STEP_SECONDS = 10.0
LOAD_ERROR_MESSAGE = "Could not load track"


class TransportState(str, Enum):
    IDLE = "idle"  # no current track
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


class PlaybackController:
    """
    Owns one queue and drives the transport through
    Loading -> {Playing, Paused} -> Ended.

    A source change always restarts at Loading with position 0 and an
    unknown duration. Natural end advances the queue (a one-track queue
    loops onto itself). Media load failures never raise: they leave the
    controller Paused with duration 0 and load_error set.
    """

    def __init__(self, transport: AudioTransport, autoplay_on_change: bool = False, volume: float = 0.8):
        self.queue = PlaybackQueue()
        self.transport = transport
        self.autoplay_on_change = autoplay_on_change
        self.state = TransportState.IDLE
        self.position = 0.0
        self.duration: Optional[float] = None
        self.volume = _clamp(volume, 0.0, 1.0)
        self.load_error: Optional[str] = None
        self._generation = 0
        self.transport.set_volume(self.volume)

    @property
    def current(self) -> Optional[Track]:
        return self.queue.current

    @property
    def is_playing(self) -> bool:
        return self.state == TransportState.PLAYING

    # --- queue operations ---

    def set_queue(self, tracks: Sequence[Track], start_index: int = 0) -> None:
        self.queue.set_queue(tracks, start_index)
        self._source_changed()

    def play_index(self, i: int) -> None:
        before = self.queue.index
        self.queue.play_index(i)
        if self.queue.index != before:
            self._source_changed()

    def next(self) -> None:
        if self.queue.has_queue:
            self.queue.next()
            self._source_changed()

    def prev(self) -> None:
        if self.queue.has_queue:
            self.queue.prev()
            self._source_changed()

    # --- transport operations ---

    def play(self) -> None:
        if self.state == TransportState.PAUSED and self.load_error is None:
            self.transport.play()
            self.state = TransportState.PLAYING

    def pause(self) -> None:
        if self.state == TransportState.PLAYING:
            self.position = self.transport.position()
            self.transport.pause()
            self.state = TransportState.PAUSED

    def toggle(self) -> None:
        if self.state == TransportState.PLAYING:
            self.pause()
        elif self.state == TransportState.PAUSED:
            self.play()

    def scrub(self, seconds: float) -> None:
        if self.state not in (TransportState.PLAYING, TransportState.PAUSED):
            return
        target = _clamp(float(seconds), 0.0, self.duration or 0.0)
        self.transport.seek(target)
        self.position = target

    def set_volume(self, volume: float) -> None:
        self.volume = _clamp(float(volume), 0.0, 1.0)
        self.transport.set_volume(self.volume)

    def tick(self) -> None:
        """Sample the transport; called continuously while playing."""
        if self.state != TransportState.PLAYING:
            return
        self.position = self.transport.position()
        if self.transport.ended():
            self.state = TransportState.ENDED
            self.position = self.duration or self.position
            self.queue.next()
            self._source_changed()

    def report(self, position: float, duration: Optional[float] = None, ended: bool = False, error: bool = False) -> None:
        """Progress pushed by a remote renderer."""
        if not isinstance(self.transport, ReportedTransport):
            raise ValueError("Transport does not accept reports")
        self.transport.report(position, duration=duration, ended=ended, error=error)
        self.tick()

    def handle_media_action(self, action: str, seek_time: Optional[float] = None) -> None:
        """Lock-screen / OS media keys, mirrored onto the same state machine."""
        if action == "play":
            self.play()
        elif action == "pause":
            self.pause()
        elif action == "seekto":
            if seek_time is None:
                raise ValueError("seekto requires seek_time")
            self.scrub(seek_time)
        elif action == "seekbackward":
            self.scrub(max(0.0, self._live_position() - SEEK_STEP_SECONDS))
        elif action == "seekforward":
            self.scrub(min(self.duration or 0.0, self._live_position() + SEEK_STEP_SECONDS))
        elif action == "previoustrack":
            self.prev()
        elif action == "nexttrack":
            self.next()
        else:
            raise ValueError(f"Unknown media action: {action}")

    def snapshot(self) -> Dict[str, Any]:
        self.tick()
        current = self.current
        return {
            "queue": [t.to_dict() for t in self.queue.tracks],
            "index": self.queue.index,
            "current": current.to_dict() if current else None,
            "has_queue": self.queue.has_queue,
            "state": self.state.value,
            "is_playing": self.is_playing,
            "position": round(self._live_position(), 3),
            "duration": self.duration,
            "volume": self.volume,
            "load_error": self.load_error,
            "autoplay": self.autoplay_on_change,
        }

    def close(self) -> None:
        self.transport.unload()

    # --- internals ---

    def _live_position(self) -> float:
        if self.state == TransportState.PLAYING:
            return self.transport.position()
        return self.position

    def _source_changed(self) -> None:
        self._generation += 1
        generation = self._generation
        self.transport.unload()
        self.position = 0.0
        self.duration = None
        self.load_error = None

        track = self.queue.current
        if track is None:
            self.state = TransportState.IDLE
            return

        self.state = TransportState.LOADING
        self.transport.load(
            track,
            on_loaded=lambda duration: self._on_loaded(generation, duration),
            on_error=lambda exc: self._on_load_error(generation, track, exc),
        )

    def _on_loaded(self, generation: int, duration: float) -> None:
        if generation != self._generation:
            return
        self.duration = duration
        if self.autoplay_on_change:
            self.transport.play()
            self.state = TransportState.PLAYING
        else:
            self.state = TransportState.PAUSED

    def _on_load_error(self, generation: int, track: Track, exc: Exception) -> None:
        if generation != self._generation:
            return
        logger.warning(f"Could not load {track.key}: {exc}")
        self.duration = 0.0
        self.position = 0.0
        self.load_error = LOAD_ERROR_MESSAGE
        self.state = TransportState.PAUSED
