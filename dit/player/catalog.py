# dit/player/catalog.py
# Static album catalog, optionally overridden by a JSON file

from __future__ import annotations

import json
import logging
import re
from typing import Dict, Iterable, List, Optional

from dit.player.queue import Track

logger = logging.getLogger(__name__)

ALBUM_TITLE = "Dead Internet Theory"
ALBUM_ARTIST = "Dead Internet Theory"

_ALBUM = [
    ("Crown vs Pedestal", "/audio/Crown%20vs%20Pedestal%20(MIX%203.0).mp3"),
    ("COMPLX", "/audio/COMPLX%20(MIX%20V1.3).mp3"),
    ("Devil Wears Resale", "/audio/Devil%20Wears%20Resale%20(MIX%20V.05).mp3"),
    ("Trash Day", "/audio/Trash%20Day%20(MIX%20V2.1).mp3"),
    ("Terrariums", "/audio/Terrariums%20(MIX%20V1.3).mp3"),
    ("Sunken Living Room", "/audio/Sunken%20Living%20Room%20(MIX%20V3.5).mp3"),
    ("Pleasant Monsters & Mean Sprites", "/audio/Pleasant%20Monsters%20%26%20Mean%20Sprites%20(MIX%20V3.0).mp3"),
    ("Ghosts & Amusement Parks", "/audio/Ghosts%20%26%20Amusement%20Parks%20(MIX%20V1.3).mp3"),
    ("Orwell", "/audio/Orwell%20(MIX%20V1.1).mp3"),
    ("Everything's Fine", "/audio/Everything%27s%20Fine%20(MIX%20V0.5).mp3"),
    ("Apples & Oranges", "/audio/Apples%20%26%20Oranges%20(MIX%20V.1.1).mp3"),
    ("Jawscercize", "/audio/Jawscercize%20(MIX%20V2.1).mp3"),
    ("Zeros", "/audio/Zeros%20(FINFINFIN%20MIX%20V3.0).mp3"),
    ("Dead Internet - NEEDS VERSE", "/audio/Dead%20Internet%20-%20NEEDS%20VERSE%20(Mix%20V.03).mp3"),
    ("Loading Out", "/audio/Loading%20Out%20(MIX%20V2.0).mp3"),
    ("Hibernate", "/audio/Hibernate%20(NEW%20Mix%202.1).mp3"),
]


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


class Catalog:
    """Tracks addressable by key, in album order."""

    def __init__(self, tracks: Iterable[Track]):
        self._tracks: List[Track] = list(tracks)
        self._by_key: Dict[str, Track] = {t.key: t for t in self._tracks}

    @property
    def tracks(self) -> List[Track]:
        return list(self._tracks)

    def get(self, key: str) -> Optional[Track]:
        return self._by_key.get(key)

    def resolve(self, keys: Iterable[str]) -> List[Track]:
        """Map keys to tracks; raises KeyError naming the first unknown key."""
        resolved = []
        for key in keys:
            track = self._by_key.get(key)
            if track is None:
                raise KeyError(key)
            resolved.append(track)
        return resolved

    def __len__(self) -> int:
        return len(self._tracks)


def default_catalog() -> Catalog:
    return Catalog(Track(key=slugify(title), title=title, file=file) for title, file in _ALBUM)


def load_catalog(path: Optional[str] = None) -> Catalog:
    """Read [{title, file, key?, duration?}, ...] from path, else the built-in album."""
    if not path:
        return default_catalog()
    with open(path, encoding="utf-8") as fh:
        entries = json.load(fh)
    tracks = [
        Track(
            key=entry.get("key") or slugify(entry["title"]),
            title=entry["title"],
            file=entry["file"],
            duration=float(entry["duration"]) if entry.get("duration") is not None else None,
        )
        for entry in entries
    ]
    logger.info(f"Loaded {len(tracks)} tracks from {path}")
    return Catalog(tracks)
