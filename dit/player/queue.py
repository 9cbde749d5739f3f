# dit/player/queue.py
# Ordered track queue with a clamped current index

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class Track:
    key: str
    title: str
    file: str
    duration: Optional[float] = None  # seconds, when known up front

    def to_dict(self) -> dict:
        return {"key": self.key, "title": self.title, "file": self.file, "duration": self.duration}


def clamp_index(i: int, length: int) -> int:
    return min(max(i, 0), max(0, length - 1))


class PlaybackQueue:
    """
    Invariant: index lies in [0, len-1] whenever the queue is non-empty.
    An empty queue keeps index 0 and has no current track.
    """

    def __init__(self) -> None:
        self._tracks: Tuple[Track, ...] = ()
        self._index = 0

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return self._tracks

    @property
    def index(self) -> int:
        return self._index

    @property
    def has_queue(self) -> bool:
        return bool(self._tracks)

    @property
    def current(self) -> Optional[Track]:
        return self._tracks[self._index] if self._tracks else None

    def set_queue(self, tracks: Sequence[Track], start_index: int = 0) -> None:
        self._tracks = tuple(tracks)
        self._index = clamp_index(start_index, len(self._tracks))

    def play_index(self, i: int) -> None:
        self._index = clamp_index(i, len(self._tracks))

    def next(self) -> None:
        if not self._tracks:
            return
        self._index = (self._index + 1) % len(self._tracks)

    def prev(self) -> None:
        if not self._tracks:
            return
        self._index = (self._index - 1) % len(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)
