# tests/api/test_player_api.py
# Per-session playback controls over HTTP

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def auth(client) -> dict:
    response = await client.post("/api/auth", json={"code": "ALBUM1"})
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestPlayerApi:

    @pytest.mark.asyncio
    async def test_tracks_listing(self, client):
        response = await client.get("/api/tracks")
        body = response.json()
        assert body["album"] == "Dead Internet Theory"
        assert len(body["tracks"]) == 16

    @pytest.mark.asyncio
    async def test_player_requires_session(self, client):
        assert (await client.get("/api/player")).status_code == 400
        bad = await client.get("/api/player", headers={"Authorization": "Bearer " + "9" * 36})
        assert bad.status_code == 401

    @pytest.mark.asyncio
    async def test_fresh_player_is_idle(self, client, auth):
        snapshot = (await client.get("/api/player", headers=auth)).json()
        assert snapshot["state"] == "idle"
        assert snapshot["has_queue"] is False
        assert snapshot["current"] is None

    @pytest.mark.asyncio
    async def test_queue_report_and_controls(self, client, auth):
        queued = await client.put(
            "/api/player/queue",
            json={"tracks": ["trash-day", "orwell"], "start_index": 0},
            headers=auth,
        )
        assert queued.status_code == 200
        assert queued.json()["state"] == "loading"
        assert queued.json()["current"]["title"] == "Trash Day"

        reported = await client.post("/api/player/report", json={"position": 0, "duration": 190.5}, headers=auth)
        assert reported.json()["state"] == "paused"
        assert reported.json()["duration"] == 190.5

        playing = await client.post("/api/player/toggle", headers=auth)
        assert playing.json()["is_playing"] is True

        scrubbed = await client.post("/api/player/scrub", json={"position": 500}, headers=auth)
        assert scrubbed.json()["position"] == 190.5

        nxt = await client.post("/api/player/next", headers=auth)
        assert nxt.json()["index"] == 1
        assert nxt.json()["duration"] is None

        prev = await client.post("/api/player/prev", headers=auth)
        assert prev.json()["index"] == 0

        jumped = await client.post("/api/player/play/7", headers=auth)
        assert jumped.json()["index"] == 1

    @pytest.mark.asyncio
    async def test_state_survives_between_requests(self, client, auth):
        await client.put("/api/player/queue", json={"start_index": 3}, headers=auth)
        snapshot = (await client.get("/api/player", headers=auth)).json()
        assert snapshot["index"] == 3
        assert len(snapshot["queue"]) == 16

    @pytest.mark.asyncio
    async def test_volume_is_clamped(self, client, auth):
        response = await client.post("/api/player/volume", json={"volume": 3}, headers=auth)
        assert response.json()["volume"] == 1.0

    @pytest.mark.asyncio
    async def test_unknown_track_is_400(self, client, auth):
        response = await client.put("/api/player/queue", json={"tracks": ["nope"]}, headers=auth)
        assert response.status_code == 400
        assert "nope" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_media_actions(self, client, auth):
        await client.put("/api/player/queue", json={"tracks": ["orwell"]}, headers=auth)
        await client.post("/api/player/report", json={"position": 0, "duration": 100}, headers=auth)

        seek = await client.post("/api/player/media", json={"action": "seekto", "seek_time": 30}, headers=auth)
        assert seek.json()["position"] == 30

        bad = await client.post("/api/player/media", json={"action": "rewind"}, headers=auth)
        assert bad.status_code == 400

    @pytest.mark.asyncio
    async def test_headless_player_rejects_reports(self, client, auth):
        queued = await client.put("/api/player/queue", json={"renders_audio": False}, headers=auth)
        # Built-in album has no known durations, so the virtual clock cannot load it
        assert queued.json()["load_error"] == "Could not load track"

        response = await client.post("/api/player/report", json={"position": 1}, headers=auth)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_sign_out_drops_player(self, client, app, auth):
        await client.put("/api/player/queue", json={}, headers=auth)
        assert len(app.state.services.players) == 1

        await client.delete("/api/auth", headers=auth)

        assert len(app.state.services.players) == 0

    @pytest.mark.asyncio
    async def test_expired_session_drops_player(self, client, app, seeded, auth):
        from datetime import datetime, timedelta, timezone

        from sqlalchemy import update

        from dit.models.sessions_table import user_sessions

        assert (await client.get("/api/player", headers=auth)).status_code == 200
        assert len(app.state.services.players) == 1

        async with seeded.session() as session:
            await session.execute(
                update(user_sessions).values(last_active=datetime.now(timezone.utc) - timedelta(hours=25))
            )
            await session.commit()

        assert (await client.get("/api/player", headers=auth)).status_code == 401
        assert len(app.state.services.players) == 0
