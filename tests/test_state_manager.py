# -*- coding: utf-8 -*-
"""
Tests for season snapshot persistence.
"""
import json

import pytest

from sportfolio.core.state_manager import StateManager
from sportfolio.trading.models import GameState
from sportfolio.trading.season import DEFAULT_FIXTURES
from sportfolio.utils.exceptions import StateError


class TestLoad:

    def test_missing_file_gives_fresh_season(self, state_manager):
        assert not state_manager.has_saved_state()
        state = state_manager.load_state()
        assert state.round == 0
        assert len(state.players) == 10

    def test_corrupt_file_gives_fresh_season(self, state_manager, state_file):
        state_file.write_text("{not json", encoding="utf-8")
        assert state_manager.load_state().round == 0

    def test_malformed_snapshot_gives_fresh_season(self, state_manager, state_file):
        state_file.write_text(json.dumps({"round": 4, "ladder": "nope"}), encoding="utf-8")
        assert state_manager.load_state().round == 0

    def test_non_object_snapshot_gives_fresh_season(self, state_manager, state_file):
        state_file.write_text("[1, 2, 3]", encoding="utf-8")
        assert state_manager.load_state().round == 0

    def test_missing_fixtures_are_merged(self, state_manager, state_file, state):
        state.round = 3
        data = state.to_dict()
        del data["fixtures"]
        state_file.write_text(json.dumps(data), encoding="utf-8")

        loaded = state_manager.load_state()
        assert loaded.round == 3
        assert loaded.fixtures == DEFAULT_FIXTURES

    def test_non_utf8_file_gives_fresh_season(self, state_manager, state_file):
        state_file.write_bytes(b'\x80\x81\x82')
        assert state_manager.load_state().round == 0

    def test_unknown_holding_team_gives_fresh_season(self, state_manager, state_file, state):
        state.round = 4
        data = state.to_dict()
        data["players"]["Sam"]["holdings"] = [
            {"team": "Not A Team", "shares": 10, "buy_price": 2.0, "buy_round": 1}
        ]
        state_file.write_text(json.dumps(data), encoding="utf-8")

        loaded = state_manager.load_state()
        assert loaded.round == 0
        assert loaded.participant("Sam").holdings == []

    def test_bad_ladder_positions_are_rejected(self, state):
        data = state.to_dict()
        data["ladder"][0]["pos"] = 2
        with pytest.raises(StateError):
            GameState.from_dict(data)

    def test_duplicate_ladder_names_are_rejected(self, state):
        data = state.to_dict()
        data["ladder"][1]["name"] = data["ladder"][0]["name"]
        with pytest.raises(StateError, match="duplicate"):
            GameState.from_dict(data)

    def test_duplicate_holdings_are_rejected(self, state):
        data = state.to_dict()
        holding = {"team": "Geelong", "shares": 10, "buy_price": 3.8, "buy_round": 0}
        data["players"]["Jas"]["holdings"] = [holding, dict(holding)]
        with pytest.raises(StateError, match="more than one holding"):
            GameState.from_dict(data)

    def test_unknown_snapshot_team_is_rejected(self, state):
        data = state.to_dict()
        data["snapshot"] = {
            "Jas": {
                "cash": 9000.0,
                "holdings": [{"team": "Not A Team", "shares": 10, "buy_price": 2.0, "buy_round": 0}],
                "total": 10000.0,
            }
        }
        with pytest.raises(StateError, match="snapshot:Jas"):
            GameState.from_dict(data)

    def test_non_finite_shares_are_rejected(self, state):
        data = state.to_dict()
        data["players"]["Jas"]["holdings"] = [
            {"team": "Geelong", "shares": float("nan"), "buy_price": 3.8, "buy_round": 0}
        ]
        with pytest.raises(StateError):
            GameState.from_dict(data)


class TestSave:

    def test_round_trip(self, state_manager, state, executor, fixed_now):
        jas = state.participant("Jas")
        executor.buy(jas, "Geelong", 1000, 0, state.ladder, fixed_now)
        state.prev_ladder = [entry for entry in state.ladder]
        state.trade_deadline = "2026-03-13T07:00:00+00:00"

        state_manager.save_state(state)
        loaded = state_manager.load_state()

        assert loaded.to_dict() == state.to_dict()
        assert loaded.participant("Jas").trade_log[0] == jas.trade_log[0]

    def test_save_stamps_last_updated(self, state_manager, state, fixed_now):
        state_manager.save_state(state)
        assert state.last_updated == fixed_now.isoformat()
        assert state_manager.load_state().last_updated == fixed_now.isoformat()

    def test_save_leaves_no_temp_file(self, state_manager, state, state_file):
        state_manager.save_state(state)
        assert [p.name for p in state_file.parent.iterdir()] == [state_file.name]

    def test_transient_write_errors_are_retried(self, state_manager, state, monkeypatch):
        calls = []
        real_write = state_manager._write

        def flaky(payload):
            calls.append(payload)
            if len(calls) < 3:
                raise OSError("disk busy")
            real_write(payload)

        monkeypatch.setattr(state_manager, "_write", flaky)
        state_manager.save_state(state)

        assert len(calls) == 3
        assert state_manager.has_saved_state()

    def test_persistent_write_errors_raise_state_error(self, state_manager, state, monkeypatch):
        def broken(payload):
            raise OSError("read-only file system")

        monkeypatch.setattr(state_manager, "_write", broken)
        with pytest.raises(StateError) as exc_info:
            state_manager.save_state(state)
        assert exc_info.value.error_code == "STATE_ERROR"

    def test_creates_parent_directory(self, config, tmp_path, state, no_wait_retry):
        config.storage.state_file = str(tmp_path / "nested" / "dir" / "season.json")
        manager = StateManager(config, retry_config=no_wait_retry)

        manager.save_state(state)
        assert manager.has_saved_state()
