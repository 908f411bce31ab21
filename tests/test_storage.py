"""Tests for snapshot persistence."""

import asyncio
import json

import pytest

from monames.config import ApiConfig
from monames.core import ResponseLogEntry
from monames.engine import Role, RoleControl, Source, Team, TeamRoles, reveal_card
from monames.session import Snapshot, SnapshotStore

from conftest import card_id, make_state


@pytest.fixture
def store(tmp_path):
    return SnapshotStore(tmp_path / "nested" / "state.json", debounce_seconds=0.01)


def _snapshot(game=None):
    return Snapshot(
        theme="dark",
        api_config=ApiConfig(provider="openrouter", api_key="k", model="some/model"),
        role_control=RoleControl(red=TeamRoles(spymaster="spymaster-plain"), blue=TeamRoles(spymaster="spymaster-plain")),
        game=game or make_state(clue_count=2),
        ai_response_log=[ResponseLogEntry(
            team=Team.RED, role=Role.SPYMASTER, source=Source.AI,
            message_text="not json", error="AI response did not include JSON.",
        )],
    )


class TestSnapshotStore:

    def test_round_trip(self, store):
        game = reveal_card(make_state(clue_count=2), card_id("APPLE"), Team.RED)
        store.save(_snapshot(game))

        loaded = store.load()

        assert loaded.theme == "dark"
        assert loaded.api_config.model == "some/model"
        assert loaded.game == game
        assert loaded.ai_response_log[0].error == "AI response did not include JSON."

    def test_missing_file(self, store):
        assert store.load() is None

    def test_corrupt_file(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.load() is None

    @pytest.mark.parametrize("data", [
        {"game": {"cards": [{"word": "APPLE"}]}},
        {"game": {"cards": ["APPLE"]}},
        {"game": {"cards": "APPLE"}},
        {"game": ["APPLE"]},
        [],
        "state",
    ])
    def test_invalid_structure(self, store, data):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps(data))
        assert store.load() is None

    def test_undecodable_bytes(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_bytes(b"\xff\xfe\x00garbage")
        assert store.load() is None

    def test_legacy_game_is_repaired(self, store):
        data = _snapshot().model_dump(mode="json")
        data["game"]["remaining_guesses"] = None
        for card in data["game"]["cards"]:
            del card["id"]
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps(data))

        loaded = store.load()
        assert loaded.game.remaining_guesses == 3
        assert loaded.game.cards[0].id == card_id("APPLE")

    def test_save_without_loop_is_immediate(self, store):
        store.schedule_save(_snapshot())
        assert store.path.exists()

    @pytest.mark.asyncio
    async def test_saves_are_debounced(self, store):
        store.schedule_save(Snapshot(theme="first"))
        store.schedule_save(Snapshot(theme="second"))
        assert not store.path.exists()

        await asyncio.sleep(0.05)

        assert store.load().theme == "second"

    @pytest.mark.asyncio
    async def test_flush_writes_pending(self, store):
        store.schedule_save(Snapshot(theme="pending"))
        store.flush()

        assert store.load().theme == "pending"
