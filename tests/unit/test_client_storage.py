# tests/unit/test_client_storage.py
# Durable client state in a JSON file

import json

from dit.client.storage import CHAT_HISTORY_LIMIT, ClientStore


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestClientStore:

    def test_token_round_trip_survives_reload(self, tmp_path):
        path = str(tmp_path / "state.json")
        clock = FakeClock()
        ClientStore(path, clock=clock).set_token("tok-123", ttl_seconds=3600)

        assert ClientStore(path, clock=clock).get_token() == "tok-123"

    def test_expired_token_is_cleared_on_read(self, tmp_path):
        path = str(tmp_path / "state.json")
        clock = FakeClock()
        store = ClientStore(path, clock=clock)
        store.set_token("tok-123", ttl_seconds=3600)

        clock.now += 3601

        assert store.get_token() is None
        with open(path) as f:
            assert "session_token" not in json.load(f)

    def test_chat_history_keeps_last_messages(self, tmp_path):
        store = ClientStore(str(tmp_path / "state.json"), clock=FakeClock())
        for i in range(CHAT_HISTORY_LIMIT + 5):
            store.append_chat("user", f"m{i}")

        history = store.chat_history
        assert len(history) == CHAT_HISTORY_LIMIT
        assert history[0]["text"] == "m5"
        assert history[-1]["text"] == f"m{CHAT_HISTORY_LIMIT + 4}"

    def test_drawer_flag_persists(self, tmp_path):
        path = str(tmp_path / "nested" / "state.json")
        store = ClientStore(path)
        assert store.drawer_open is False

        store.drawer_open = True

        assert ClientStore(path).drawer_open is True

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json")

        store = ClientStore(str(path))

        assert store.get_token() is None
        assert store.chat_history == []
