# -*- coding: utf-8 -*-
"""
Tests for the game engine: capabilities, trade window and admin operations.
"""
import pytest

from sportfolio.core.engine import GameEngine
from sportfolio.trading.season import DEFAULT_FIXTURES
from sportfolio.utils.exceptions import (
    Forbidden,
    InsufficientFunds,
    SeasonComplete,
    TradeWindowClosed,
    ValidationError,
)


class TestGetState:

    def test_fresh_season(self, engine, config):
        state = engine.get_state()

        assert state.round == 0
        assert len(state.ladder) == 18
        assert state.ladder[0].name == "Brisbane Lions"
        assert set(state.players) == set(config.roster.all_players)
        assert all(p.cash == 10000 for p in state.players.values())
        assert state.fixtures == DEFAULT_FIXTURES
        assert state.prev_ladder is None

    def test_ai_participants_carry_their_strategy(self, engine):
        state = engine.get_state()
        assert state.participant("Jordan").strategy == "blueChip"
        assert state.participant("Jas").strategy is None


class TestTrading:

    def test_buy_persists(self, engine, config, state_manager, clock):
        result = engine.buy("Jas", "Brisbane Lions", 2000)

        reloaded = GameEngine(config, state_manager=state_manager, clock=clock).get_state()
        jas = reloaded.participant("Jas")
        assert jas.cash == pytest.approx(7954.88)
        assert jas.find_holding("Brisbane Lions").shares == result.shares == 326
        assert jas.trade_log[0].id == result.trade_id

    def test_only_humans_trade(self, engine):
        with pytest.raises(Forbidden):
            engine.buy("Alex", "Geelong", 1000)
        with pytest.raises(Forbidden):
            engine.buy("Nobody", "Geelong", 1000)

    def test_rejected_trade_is_not_saved(self, engine, state_file):
        engine.buy("Jas", "Geelong", 500)
        saved = state_file.read_text(encoding="utf-8")

        with pytest.raises(InsufficientFunds):
            engine.buy("Jas", "Geelong", 50_000)
        assert state_file.read_text(encoding="utf-8") == saved

    def test_errors_carry_operation_context(self, engine):
        with pytest.raises(Forbidden) as exc_info:
            engine.sell("Casey", "Geelong", 10)
        assert exc_info.value.context["operation"] == "sell"
        assert exc_info.value.context["participant"] == "Casey"

    def test_sell_and_undo(self, engine, config):
        buy = engine.buy("Sam", "Geelong", 1000)
        for _ in range(3):
            engine.advance_round(config.roster.admin)

        sell = engine.sell("Sam", "Geelong", buy.shares)
        assert engine.get_state().participant("Sam").holdings == []

        engine.undo("Sam", sell.trade_id)
        sam = engine.get_state().participant("Sam")
        assert sam.find_holding("Geelong").buy_round == 0

    def test_undo_buy(self, engine):
        result = engine.buy("Tyson", "Carlton", 1500)
        engine.undo("Tyson", result.trade_id)

        tyson = engine.get_state().participant("Tyson")
        assert tyson.cash == pytest.approx(10000)
        assert tyson.holdings == []


class TestTradeWindow:

    def test_deadline_in_future_allows_trading(self, engine, config):
        engine.set_trade_deadline(config.roster.admin, "2026-03-12T10:00:00Z")
        engine.buy("Jas", "Geelong", 500)

    def test_passed_deadline_closes_window(self, engine, config):
        engine.set_trade_deadline(config.roster.admin, "2026-03-12T09:00:00+00:00")

        with pytest.raises(TradeWindowClosed):
            engine.buy("Jas", "Geelong", 500)
        with pytest.raises(TradeWindowClosed):
            engine.undo("Jas", "whatever")

    def test_advance_clears_deadline(self, engine, config):
        engine.set_trade_deadline(config.roster.admin, "2026-03-12T09:00:00+00:00")
        state = engine.advance_round(config.roster.admin)

        assert state.trade_deadline is None
        engine.buy("Jas", "Geelong", 500)

    def test_clearing_deadline(self, engine, config):
        engine.set_trade_deadline(config.roster.admin, "2026-03-12T09:00:00+00:00")
        state = engine.set_trade_deadline(config.roster.admin, None)
        assert state.trade_deadline is None
        assert state.status == "trading"

    def test_invalid_deadline(self, engine, config):
        with pytest.raises(ValidationError):
            engine.set_trade_deadline(config.roster.admin, "next thursday")

    def test_season_complete_blocks_trading(self, engine, state_manager):
        state = state_manager.load_state()
        state.round = 10
        state_manager.save_state(state)

        with pytest.raises(SeasonComplete):
            engine.buy("Jas", "Geelong", 500)
        with pytest.raises(SeasonComplete):
            engine.sell("Jas", "Geelong", 5)


class TestAdminOperations:

    @pytest.mark.parametrize("operation,args", [
        ("advance_round", ()),
        ("update_ladder_results", ([],)),
        ("set_trade_deadline", ("2026-03-20T00:00:00Z",)),
        ("set_fixtures", ({},)),
        ("reset_season", ("RESET",)),
    ])
    def test_admin_only(self, engine, operation, args):
        with pytest.raises(Forbidden):
            getattr(engine, operation)("Jas", *args)

    def test_update_ladder_results(self, engine, config):
        before = engine.get_state().ladder
        state = engine.update_ladder_results(config.roster.admin, [
            {"team": "Richmond", "wins": 1, "losses": 0, "draws": 0, "pct": 140.0},
        ])

        assert state.ladder[0].name == "Richmond"
        assert state.prev_ladder == before
        assert engine.get_state().ladder[0].name == "Richmond"

    def test_ladder_change_reprices(self, engine, config):
        engine.update_ladder_results(config.roster.admin, [
            {"team": "West Coast", "wins": 1, "losses": 0, "draws": 0, "pct": 140.0},
        ])
        result = engine.buy("Jas", "West Coast", 2000)
        assert result.shares == 326

    def test_invalid_ladder_update_is_not_saved(self, engine, config):
        with pytest.raises(ValidationError):
            engine.update_ladder_results(config.roster.admin, [
                {"team": "Richmond", "wins": "many", "losses": 0, "draws": 0, "pct": 140.0},
            ])
        assert engine.get_state().prev_ladder is None

    def test_set_fixtures(self, engine, config):
        engine.set_fixtures(config.roster.admin, {1: [["Geelong", "Carlton"]]})

        assert engine.fixtures_for_round(1) == [("Geelong", "Carlton")]
        assert engine.fixtures_for_round(2) == []

    def test_set_fixtures_rejects_unknown_team(self, engine, config):
        with pytest.raises(ValidationError):
            engine.set_fixtures(config.roster.admin, {1: [["Geelong", "Tasmania Devils"]]})

    def test_reset_needs_confirmation(self, engine, config):
        engine.buy("Jas", "Geelong", 500)

        with pytest.raises(Forbidden):
            engine.reset_season(config.roster.admin, "reset")

        state = engine.reset_season(config.roster.admin, "RESET")
        assert state.round == 0
        assert engine.get_state().participant("Jas").cash == 10000


class TestReports:

    def test_fixtures_default_to_upcoming_round(self, engine):
        assert engine.fixtures_for_round() == DEFAULT_FIXTURES[1]

    def test_standings_change_since_round_open(self, engine, config):
        engine.advance_round(config.roster.admin)
        engine.buy("Jas", "Geelong", 1000)

        rows = {row['name']: row for row in engine.standings()}
        assert rows["Jas"]['change'] == pytest.approx(-50.0)
        assert rows["Sam"]['change'] == pytest.approx(0.0)

    def test_portfolio(self, engine):
        engine.buy("Jas", "West Coast", 1000)
        summary = engine.portfolio("Jas")

        assert summary['holdings_value'] == pytest.approx(1000)
        assert summary['positions'][0]['can_sell'] is False
        assert summary['positions'][0]['rounds_remaining'] == 3
        assert summary['next_fee'] == pytest.approx((10000 - 50) * 0.005 * 2)

    def test_portfolio_unknown_participant(self, engine):
        with pytest.raises(ValidationError):
            engine.portfolio("Nobody")

    def test_status(self, engine):
        status = engine.get_status()
        assert status['round'] == 0
        assert status['season_complete'] is False
        assert status['has_saved_state'] is False
        assert status['status'] == "trading"

    def test_status_after_deadline(self, engine, config):
        engine.set_trade_deadline(config.roster.admin, "2026-03-12T09:00:00+00:00")
        status = engine.get_status()
        assert status['trade_window_open'] is False
        assert status['status'] == "lockout"
