# -*- coding: utf-8 -*-
"""
Tests for trade execution: buys, sells and undo.
"""
import math

import pytest

from sportfolio.trading.models import BUY, SELL
from sportfolio.utils.exceptions import (
    ConcentrationCapExceeded,
    HoldPeriodNotMet,
    InsufficientFunds,
    InvalidAmount,
    NoHolding,
    NotCurrentRound,
    TradeNotFound,
    TradeNotReversible,
    UnknownTeamError,
)


class TestBuy:
    """Test cases for buy execution."""

    def test_preseason_buy_of_top_team(self, executor, state, jas, fixed_now):
        """$2000 of the rank-1 team at round 0 buys whole shares only."""
        result = executor.buy(jas, "Brisbane Lions", 2000, 0, state.ladder, fixed_now)

        assert result.shares == 326 == math.floor(2000 / 6.12)
        assert result.cost == pytest.approx(1995.12)
        assert result.fee == pytest.approx(50.0)
        assert jas.cash == pytest.approx(10000 - 1995.12 - 50)

        holding = jas.find_holding("Brisbane Lions")
        assert holding.shares == 326
        assert holding.buy_price == 6.12
        assert holding.buy_round == 0
        assert jas.trades_this_round == 1

    def test_buy_is_logged_for_reversal(self, executor, state, jas, fixed_now):
        result = executor.buy(jas, "Geelong", 1000, 0, state.ladder, fixed_now)

        entry = jas.trade_log[-1]
        assert entry.id == result.trade_id
        assert entry.type == BUY
        assert entry.was_new_holding is True
        assert entry.prev_buy_price is None
        assert entry.value == pytest.approx(result.cost)
        assert entry.timestamp == fixed_now.isoformat()
        assert entry.automated is False

    def test_second_buy_merges_at_weighted_average(self, executor, state, jas, fixed_now):
        executor.buy(jas, "West Coast", 500, 0, state.ladder, fixed_now)
        # West Coast climbs to 17th, priced at 1.33
        state.ladder[16], state.ladder[17] = state.ladder[17], state.ladder[16]
        executor.buy(jas, "West Coast", 133.5, 0, state.ladder, fixed_now)

        holding = jas.find_holding("West Coast")
        assert len(jas.holdings) == 1
        assert holding.shares == 600
        assert holding.buy_price == pytest.approx((500 * 1.00 + 100 * 1.33) / 600)
        assert jas.trade_log[-1].prev_buy_price == 1.00
        assert jas.trade_log[-1].was_new_holding is False

    def test_fee_doubles_then_resets(self, executor, state, jas, fixed_now):
        first = executor.buy(jas, "West Coast", 500, 0, state.ladder, fixed_now)
        second = executor.buy(jas, "Richmond", 500, 0, state.ladder, fixed_now)

        assert first.fee == pytest.approx(50.0)
        total_after_first = 10000 - 50.0
        assert second.fee == pytest.approx(total_after_first * 0.005 * 2)

        jas.trades_this_round = 0
        third = executor.buy(jas, "Essendon", 500, 0, state.ladder, fixed_now)
        assert third.fee == pytest.approx((10000 - first.fee - second.fee) * 0.005)

    def test_amount_too_small(self, executor, state, jas, fixed_now):
        with pytest.raises(InvalidAmount):
            executor.buy(jas, "Brisbane Lions", 5, 0, state.ladder, fixed_now)
        assert jas.cash == 10000
        assert jas.holdings == []
        assert jas.trade_log == []

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), "100", None, True])
    def test_non_numeric_amount(self, executor, state, jas, fixed_now, amount):
        with pytest.raises(InvalidAmount):
            executor.buy(jas, "Geelong", amount, 0, state.ladder, fixed_now)

    def test_unknown_team(self, executor, state, jas, fixed_now):
        with pytest.raises(UnknownTeamError):
            executor.buy(jas, "Tasmania Devils", 500, 0, state.ladder, fixed_now)

    def test_insufficient_funds(self, executor, state, jas, fixed_now):
        jas.cash = 100.0
        with pytest.raises(InsufficientFunds):
            executor.buy(jas, "West Coast", 100, 0, state.ladder, fixed_now)
        assert jas.cash == 100.0

    def test_concentration_cap(self, executor, state, jas, fixed_now, holding_factory):
        """$10,000 total with $2,600 already in one team rejects a $200 top-up."""
        jas.cash = 7400.0
        jas.holdings.append(holding_factory("West Coast", 2600))

        with pytest.raises(ConcentrationCapExceeded) as exc_info:
            executor.buy(jas, "West Coast", 200, 1, state.ladder, fixed_now)

        assert exc_info.value.headroom == 0
        assert exc_info.value.context["headroom"] == 0
        assert jas.cash == 7400.0
        assert jas.find_holding("West Coast").shares == 2600

    def test_cap_reports_headroom(self, executor, state, jas, fixed_now, holding_factory):
        jas.cash = 8000.0
        jas.holdings.append(holding_factory("West Coast", 2000))

        with pytest.raises(ConcentrationCapExceeded) as exc_info:
            executor.buy(jas, "West Coast", 900, 1, state.ladder, fixed_now)
        assert exc_info.value.headroom == 500

        executor.buy(jas, "West Coast", 500, 1, state.ladder, fixed_now)
        assert jas.find_holding("West Coast").shares == 2500


class TestSell:
    """Test cases for sell execution."""

    def test_preseason_holding_needs_three_rounds(self, executor, state, jas, fixed_now):
        executor.buy(jas, "Geelong", 1000, 0, state.ladder, fixed_now)
        jas.trades_this_round = 0

        with pytest.raises(HoldPeriodNotMet) as exc_info:
            executor.sell(jas, "Geelong", 100, 2, state.ladder, fixed_now)
        assert exc_info.value.rounds_remaining == 1

        result = executor.sell(jas, "Geelong", 100, 3, state.ladder, fixed_now)
        assert result.shares == 100

    def test_sell_credits_net_and_keeps_remainder(self, executor, state, jas, fixed_now, holding_factory):
        jas.cash = 5000.0
        jas.holdings.append(holding_factory("West Coast", 1000, buy_price=1.33, buy_round=1))

        result = executor.sell(jas, "West Coast", 400, 3, state.ladder, fixed_now)

        assert result.fee == pytest.approx(6000 * 0.005)
        assert result.net == pytest.approx(400 - 30)
        assert jas.cash == pytest.approx(5370.0)
        assert jas.find_holding("West Coast").shares == 600

        entry = jas.trade_log[-1]
        assert entry.type == SELL
        assert entry.prev_buy_price == 1.33
        assert entry.prev_buy_round == 1

    def test_oversell_is_clamped_and_removes_holding(self, executor, state, jas, fixed_now, holding_factory):
        jas.holdings.append(holding_factory("West Coast", 250, buy_round=1))

        result = executor.sell(jas, "West Coast", 10_000, 3, state.ladder, fixed_now)

        assert result.shares == 250
        assert jas.holdings == []

    def test_no_holding(self, executor, state, jas, fixed_now):
        with pytest.raises(NoHolding):
            executor.sell(jas, "Geelong", 10, 3, state.ladder, fixed_now)

    @pytest.mark.parametrize("shares", [0, -5, float("nan")])
    def test_invalid_share_count(self, executor, state, jas, fixed_now, holding_factory, shares):
        jas.holdings.append(holding_factory("West Coast", 250, buy_round=1))
        with pytest.raises(InvalidAmount):
            executor.sell(jas, "West Coast", shares, 3, state.ladder, fixed_now)

    def test_sell_cannot_make_cash_negative(self, executor, state, jas, fixed_now, holding_factory):
        jas.cash = 0.0
        jas.holdings.append(holding_factory("West Coast", 5000, buy_round=1))
        jas.trades_this_round = 3  # fee = 5000 * 0.005 * 8 = 200

        with pytest.raises(InsufficientFunds):
            executor.sell(jas, "West Coast", 100, 3, state.ladder, fixed_now)
        assert jas.find_holding("West Coast").shares == 5000


class TestUndo:
    """Test cases for trade reversal."""

    def test_buy_then_undo_restores_participant(self, executor, state, jas, fixed_now):
        result = executor.buy(jas, "Brisbane Lions", 2000, 0, state.ladder, fixed_now)
        executor.undo(jas, result.trade_id, 0)

        assert jas.cash == pytest.approx(10000.0)
        assert jas.holdings == []
        assert jas.trade_log == []
        assert jas.trades_this_round == 0

    def test_undo_merged_buy_restores_average_price(self, executor, state, jas, fixed_now, holding_factory):
        jas.holdings.append(holding_factory("West Coast", 1000, buy_price=1.33, buy_round=0))
        cash_before = jas.cash

        result = executor.buy(jas, "West Coast", 300, 1, state.ladder, fixed_now)
        executor.undo(jas, result.trade_id, 1)

        holding = jas.find_holding("West Coast")
        assert holding.shares == 1000
        assert holding.buy_price == 1.33
        assert holding.buy_round == 0
        assert jas.cash == pytest.approx(cash_before)

    def test_undo_sell_restores_holding(self, executor, state, jas, fixed_now, holding_factory):
        jas.holdings.append(holding_factory("West Coast", 1000, buy_price=1.33, buy_round=0))
        cash_before = jas.cash

        result = executor.sell(jas, "West Coast", 1000, 3, state.ladder, fixed_now)
        executor.undo(jas, result.trade_id, 3)

        holding = jas.find_holding("West Coast")
        assert holding.shares == 1000
        assert holding.buy_price == 1.33
        assert holding.buy_round == 0
        # Reversal charges value + fee, so the sell fee is paid twice
        assert jas.cash == pytest.approx(cash_before - 2 * result.fee)
        assert jas.trades_this_round == 0

    def test_undo_unknown_trade(self, executor, jas):
        with pytest.raises(TradeNotFound):
            executor.undo(jas, "nope", 0)

    def test_undo_previous_round(self, executor, state, jas, fixed_now):
        result = executor.buy(jas, "Geelong", 1000, 0, state.ladder, fixed_now)
        with pytest.raises(NotCurrentRound):
            executor.undo(jas, result.trade_id, 1)
        assert jas.find_holding("Geelong") is not None

    def test_undo_is_last_in_first_out_per_team(self, executor, state, jas, fixed_now):
        first = executor.buy(jas, "Geelong", 500, 0, state.ladder, fixed_now)
        other = executor.buy(jas, "Carlton", 500, 0, state.ladder, fixed_now)
        second = executor.buy(jas, "Geelong", 500, 0, state.ladder, fixed_now)

        with pytest.raises(TradeNotReversible):
            executor.undo(jas, first.trade_id, 0)

        executor.undo(jas, other.trade_id, 0)
        executor.undo(jas, second.trade_id, 0)
        executor.undo(jas, first.trade_id, 0)

        assert jas.holdings == []
        assert jas.cash == pytest.approx(10000.0)
        assert jas.trades_this_round == 0
