# dit/routers/player.py
# Now-playing controls for the caller's session

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from dit.middleware.error_handler import InvalidInput
from dit.player.catalog import ALBUM_ARTIST, ALBUM_TITLE
from dit.player.transport import PlaybackCapabilities
from dit.routers.deps import get_services, require_session
from dit.services.session_store import SessionHandle

router = APIRouter(tags=["Player"])


class QueueRequest(BaseModel):
    tracks: Optional[List[str]] = None  # track keys; whole album when omitted
    start_index: int = 0
    autoplay: bool = False
    renders_audio: bool = True


class ScrubRequest(BaseModel):
    position: float = Field(..., ge=0)


class VolumeRequest(BaseModel):
    volume: float


class MediaActionRequest(BaseModel):
    action: str
    seek_time: Optional[float] = None


class ReportRequest(BaseModel):
    position: float = Field(..., ge=0)
    duration: Optional[float] = Field(None, ge=0)
    ended: bool = False
    error: bool = False


def _player(request: Request, handle: SessionHandle):
    return get_services(request).players.get(handle)


@router.get("/tracks")
async def list_tracks(request: Request) -> Dict[str, Any]:
    catalog = get_services(request).players.catalog
    return {
        "album": ALBUM_TITLE,
        "artist": ALBUM_ARTIST,
        "tracks": [t.to_dict() for t in catalog.tracks],
    }


@router.get("/player")
async def get_player(request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    return _player(request, handle).snapshot()


@router.put("/player/queue")
async def set_queue(
    payload: QueueRequest,
    request: Request,
    handle: SessionHandle = Depends(require_session),
) -> Dict[str, Any]:
    players = get_services(request).players
    if payload.tracks is None:
        tracks = players.catalog.tracks
    else:
        try:
            tracks = players.catalog.resolve(payload.tracks)
        except KeyError as e:
            raise InvalidInput(f"Unknown track: {e.args[0]}")

    player = players.create(
        handle,
        PlaybackCapabilities(renders_audio=payload.renders_audio),
        autoplay_on_change=payload.autoplay,
    )
    player.set_queue(tracks, payload.start_index)
    return player.snapshot()


@router.post("/player/play/{index}")
async def play_index(index: int, request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.play_index(index)
    return player.snapshot()


@router.post("/player/next")
async def next_track(request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.next()
    return player.snapshot()


@router.post("/player/prev")
async def prev_track(request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.prev()
    return player.snapshot()


@router.post("/player/toggle")
async def toggle(request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.toggle()
    return player.snapshot()


@router.post("/player/scrub")
async def scrub(payload: ScrubRequest, request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.scrub(payload.position)
    return player.snapshot()


@router.post("/player/volume")
async def volume(payload: VolumeRequest, request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    player = _player(request, handle)
    player.set_volume(payload.volume)
    return player.snapshot()


@router.post("/player/media")
async def media_action(
    payload: MediaActionRequest,
    request: Request,
    handle: SessionHandle = Depends(require_session),
) -> Dict[str, Any]:
    player = _player(request, handle)
    try:
        player.handle_media_action(payload.action, payload.seek_time)
    except ValueError as e:
        raise InvalidInput(str(e))
    return player.snapshot()


@router.post("/player/report")
async def report(payload: ReportRequest, request: Request, handle: SessionHandle = Depends(require_session)) -> Dict[str, Any]:
    """Progress from the browser's audio element."""
    player = _player(request, handle)
    try:
        player.report(payload.position, payload.duration, payload.ended, payload.error)
    except ValueError as e:
        raise InvalidInput(str(e))
    return player.snapshot()
