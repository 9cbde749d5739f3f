# dit/player/transport.py
# Audio transport capability and its two implementations

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from dit.player.queue import Track

OnLoaded = Callable[[float], None]
OnError = Callable[[Exception], None]


class LoadError(Exception):
    """The track's media could not be loaded."""


class AudioTransport(Protocol):
    """What the playback controller needs from a media backend."""

    def load(self, track: Track, on_loaded: OnLoaded, on_error: OnError) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def position(self) -> float: ...

    def ended(self) -> bool: ...

    def unload(self) -> None: ...


def catalog_duration(track: Track) -> float:
    if track.duration is None or track.duration <= 0:
        raise LoadError(f"No duration known for {track.key}")
    return float(track.duration)


class ClockTransport:
    """
    Headless playback on a virtual timeline.

    Position advances with a monotonic clock while playing; the duration
    comes from a probe (the catalog by default).
    """

    def __init__(
        self,
        probe: Callable[[Track], float] = catalog_duration,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._probe = probe
        self._clock = clock
        self._duration: Optional[float] = None
        self._base = 0.0
        self._started_at: Optional[float] = None
        self.volume = 1.0

    def load(self, track: Track, on_loaded: OnLoaded, on_error: OnError) -> None:
        self.unload()
        try:
            duration = self._probe(track)
        except Exception as e:
            on_error(e)
            return
        self._duration = duration
        on_loaded(duration)

    def play(self) -> None:
        if self._started_at is None and self._duration is not None:
            self._started_at = self._clock()

    def pause(self) -> None:
        self._base = self.position()
        self._started_at = None

    def seek(self, seconds: float) -> None:
        self._base = seconds
        if self._started_at is not None:
            self._started_at = self._clock()

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def position(self) -> float:
        if self._started_at is None:
            return self._base
        elapsed = self._base + (self._clock() - self._started_at)
        return min(elapsed, self._duration or 0.0)

    def ended(self) -> bool:
        return (
            self._started_at is not None
            and self._duration is not None
            and self.position() >= self._duration
        )

    def unload(self) -> None:
        self._duration = None
        self._base = 0.0
        self._started_at = None


class ReportedTransport:
    """
    Mirror of a remote renderer (the browser's audio element).

    The renderer decodes and plays the file and reports position, duration
    and natural end back; commands issued here are intents the renderer
    picks up from the controller snapshot.
    """

    def __init__(self) -> None:
        self._on_loaded: Optional[OnLoaded] = None
        self._on_error: Optional[OnError] = None
        self._position = 0.0
        self._ended = False
        self.playing = False
        self.volume = 1.0

    def load(self, track: Track, on_loaded: OnLoaded, on_error: OnError) -> None:
        self.unload()
        self._on_loaded = on_loaded
        self._on_error = on_error

    def report(
        self,
        position: float,
        duration: Optional[float] = None,
        ended: bool = False,
        error: bool = False,
    ) -> None:
        if error and self._on_error is not None:
            callback, self._on_error, self._on_loaded = self._on_error, None, None
            callback(LoadError("Renderer could not load track"))
            return
        if duration is not None and self._on_loaded is not None:
            callback, self._on_loaded, self._on_error = self._on_loaded, None, None
            callback(float(duration))
        self._position = max(0.0, float(position))
        self._ended = ended

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek(self, seconds: float) -> None:
        self._position = seconds
        self._ended = False

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def position(self) -> float:
        return self._position

    def ended(self) -> bool:
        return self._ended

    def unload(self) -> None:
        self._on_loaded = None
        self._on_error = None
        self._position = 0.0
        self._ended = False
        self.playing = False


@dataclass(frozen=True)
class PlaybackCapabilities:
    renders_audio: bool = True  # the caller plays the media itself and reports progress


def select_transport(
    capabilities: PlaybackCapabilities,
    probe: Callable[[Track], float] = catalog_duration,
    clock: Callable[[], float] = time.monotonic,
) -> AudioTransport:
    """Choose the backend once, at construction time."""
    if capabilities.renders_audio:
        return ReportedTransport()
    return ClockTransport(probe=probe, clock=clock)
