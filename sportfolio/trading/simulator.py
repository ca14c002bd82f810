"""
Trade execution for the Sportfolio economy.

Validates and applies buys, sells and undos against a participant's cash
and holdings. Every check runs before any mutation, so a rejected trade
leaves the participant exactly as it was.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from ..utils.exceptions import (
    ConcentrationCapExceeded,
    HoldPeriodNotMet,
    InsufficientFunds,
    InvalidAmount,
    NoHolding,
    NotCurrentRound,
    TradeNotFound,
    TradeNotReversible,
)
from ..utils.helpers import generate_trade_id
from ..utils.logging_config import TRADE_EXECUTED, TRADE_UNDONE, get_structured_logger
from .models import BUY, SELL, Holding, LadderEntry, Participant, TradeLogEntry
from .portfolio import HoldingPolicy, PortfolioAccounting

logger = get_structured_logger("sportfolio.trading.simulator")

# Float slack when comparing against the concentration cap
CAP_TOLERANCE = 1e-9


@dataclass(frozen=True)
class BuyResult:
    trade_id: str
    shares: float
    cost: float
    fee: float


@dataclass(frozen=True)
class SellResult:
    trade_id: str
    shares: float
    net: float
    fee: float


def _require_number(value, participant: Participant, team: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidAmount(
            f"Amount must be a finite number, got {value!r}",
            participant=participant.name,
            team=team
        )
    return float(value)


class TradeExecutor:
    """Applies buy, sell and undo operations for one participant at a time."""

    def __init__(
        self,
        accounting: PortfolioAccounting,
        policy: HoldingPolicy,
        portfolio_cap: float = 0.25
    ):
        """
        Initialize trade executor.

        Args:
            accounting: Valuation and fee calculator
            policy: Minimum hold policy for sells
            portfolio_cap: Max fraction of total value held in one team
        """
        self.accounting = accounting
        self.policy = policy
        self.portfolio_cap = portfolio_cap

    def buy(
        self,
        participant: Participant,
        team: str,
        amount: float,
        current_round: int,
        ladder: Sequence[LadderEntry],
        now: datetime,
        automated: bool = False
    ) -> BuyResult:
        """
        Buy as many whole shares of ``team`` as ``amount`` covers.

        Raises:
            UnknownTeamError: Team is not on the ladder
            InvalidAmount: Amount buys no shares
            InsufficientFunds: Cost plus fee exceeds cash
            ConcentrationCapExceeded: Holding would exceed the portfolio cap
        """
        price = self.accounting.price(team, ladder)
        amount = _require_number(amount, participant, team)
        fee = self.accounting.brokerage_fee(participant, ladder)

        shares = math.floor(amount / price)
        cost = shares * price
        if shares <= 0:
            raise InvalidAmount(
                f"Amount too small: ${amount:.2f} buys no shares at ${price:.2f}",
                participant=participant.name,
                team=team,
                context={"amount": amount, "price": price}
            )

        if cost + fee > participant.cash:
            raise InsufficientFunds(
                f"Insufficient cash: ${participant.cash:.2f} < ${cost + fee:.2f}",
                participant=participant.name,
                team=team,
                context={"cash": participant.cash, "cost": cost, "fee": fee}
            )

        max_invest = self.accounting.total_value(participant, ladder) * self.portfolio_cap
        existing = participant.find_holding(team)
        existing_value = existing.shares * price if existing else 0.0
        if existing_value + cost > max_invest + CAP_TOLERANCE:
            headroom = max(0, math.floor(max_invest - existing_value))
            raise ConcentrationCapExceeded(
                f"{self.portfolio_cap:.0%} cap exceeded. Max ${headroom} more in this team.",
                headroom=headroom,
                participant=participant.name,
                team=team,
                context={"existing_value": existing_value, "cost": cost}
            )

        participant.cash -= cost + fee
        participant.trades_this_round += 1
        if existing:
            prev_buy_price = existing.buy_price
            prev_buy_round = existing.buy_round
            total_shares = existing.shares + shares
            existing.buy_price = (existing.shares * existing.buy_price + shares * price) / total_shares
            existing.shares = total_shares
        else:
            prev_buy_price = None
            prev_buy_round = None
            participant.holdings.append(
                Holding(team=team, shares=shares, buy_price=price, buy_round=current_round)
            )

        entry = TradeLogEntry(
            id=generate_trade_id(now),
            type=BUY,
            team=team,
            value=cost,
            fee=fee,
            round=current_round,
            shares=shares,
            price=price,
            was_new_holding=existing is None,
            prev_buy_price=prev_buy_price,
            prev_buy_round=prev_buy_round,
            timestamp=now.isoformat(),
            automated=automated,
        )
        participant.trade_log.append(entry)

        logger.info(
            TRADE_EXECUTED, trade_type=BUY, participant=participant.name, team=team,
            shares=shares, price=price, cost=cost, fee=fee, round=current_round,
            automated=automated
        )
        return BuyResult(trade_id=entry.id, shares=shares, cost=cost, fee=fee)

    def sell(
        self,
        participant: Participant,
        team: str,
        shares: float,
        current_round: int,
        ladder: Sequence[LadderEntry],
        now: datetime,
        automated: bool = False
    ) -> SellResult:
        """
        Sell up to ``shares`` of an existing holding at the current price.

        Raises:
            NoHolding: Team is not held
            HoldPeriodNotMet: Holding is still inside its minimum hold period
            InvalidAmount: Non-positive share count
            InsufficientFunds: Fee exceeds proceeds plus cash
        """
        holding = participant.find_holding(team)
        if holding is None:
            raise NoHolding(
                f"No holding found in {team}",
                participant=participant.name,
                team=team
            )

        if not self.policy.can_sell(holding, current_round):
            remaining = self.policy.rounds_remaining(holding, current_round)
            raise HoldPeriodNotMet(
                f"Hold period not met. {remaining} more round(s) required.",
                rounds_remaining=remaining,
                participant=participant.name,
                team=team,
                context={"buy_round": holding.buy_round, "round": current_round}
            )

        requested = _require_number(shares, participant, team)
        if requested <= 0:
            raise InvalidAmount(
                f"Share count must be positive, got {requested}",
                participant=participant.name,
                team=team
            )

        sell_shares = min(requested, holding.shares)
        price = self.accounting.price(team, ladder)
        fee = self.accounting.brokerage_fee(participant, ladder)
        value = sell_shares * price
        net = value - fee
        if participant.cash + net < 0:
            raise InsufficientFunds(
                f"Proceeds ${value:.2f} do not cover the ${fee:.2f} fee",
                participant=participant.name,
                team=team,
                context={"cash": participant.cash, "value": value, "fee": fee}
            )

        prev_buy_price = holding.buy_price
        prev_buy_round = holding.buy_round

        participant.cash += net
        participant.trades_this_round += 1
        if sell_shares >= holding.shares:
            participant.remove_holding(team)
        else:
            holding.shares -= sell_shares

        entry = TradeLogEntry(
            id=generate_trade_id(now),
            type=SELL,
            team=team,
            value=value,
            fee=fee,
            round=current_round,
            shares=sell_shares,
            price=price,
            prev_buy_price=prev_buy_price,
            prev_buy_round=prev_buy_round,
            timestamp=now.isoformat(),
            automated=automated,
        )
        participant.trade_log.append(entry)

        logger.info(
            TRADE_EXECUTED, trade_type=SELL, participant=participant.name, team=team,
            shares=sell_shares, price=price, net=net, fee=fee, round=current_round,
            automated=automated
        )
        return SellResult(trade_id=entry.id, shares=sell_shares, net=net, fee=fee)

    def undo(self, participant: Participant, trade_id: str, current_round: int) -> TradeLogEntry:
        """
        Reverse a trade made this round and drop it from the log.

        Trades in one team are reversed newest first.

        Raises:
            TradeNotFound: No such trade in the log
            NotCurrentRound: Trade belongs to an earlier round
            TradeNotReversible: A later trade in the same team must be undone first
            InsufficientFunds: Reversing a sell would leave negative cash
        """
        index = next(
            (i for i, t in enumerate(participant.trade_log) if t.id == trade_id), None
        )
        if index is None:
            raise TradeNotFound(
                f"Trade not found: {trade_id}",
                participant=participant.name,
                context={"trade_id": trade_id}
            )
        trade = participant.trade_log[index]

        if trade.round != current_round:
            raise NotCurrentRound(
                "Can only undo trades from the current round",
                participant=participant.name,
                team=trade.team,
                context={"trade_id": trade_id, "trade_round": trade.round, "round": current_round}
            )

        later = [t for t in participant.trade_log[index + 1:] if t.team == trade.team]
        if later:
            raise TradeNotReversible(
                f"Undo the later {trade.team} trade first",
                participant=participant.name,
                team=trade.team,
                context={"trade_id": trade_id, "blocking_trade_id": later[-1].id}
            )

        if trade.type == BUY:
            self._reverse_buy(participant, trade)
        else:
            self._reverse_sell(participant, trade)

        participant.trades_this_round = max(0, participant.trades_this_round - 1)
        del participant.trade_log[index]

        logger.info(
            TRADE_UNDONE, trade_type=trade.type, participant=participant.name,
            team=trade.team, trade_id=trade_id, round=current_round
        )
        return trade

    def _reverse_buy(self, participant: Participant, trade: TradeLogEntry) -> None:
        holding = participant.find_holding(trade.team)
        if holding is None:
            raise TradeNotReversible(
                f"Holding in {trade.team} no longer exists",
                participant=participant.name,
                team=trade.team,
                context={"trade_id": trade.id}
            )

        if trade.was_new_holding:
            participant.remove_holding(trade.team)
        else:
            holding.shares -= trade.shares
            holding.buy_price = trade.prev_buy_price
            if holding.shares <= CAP_TOLERANCE:
                participant.remove_holding(trade.team)
        participant.cash += trade.value + trade.fee

    def _reverse_sell(self, participant: Participant, trade: TradeLogEntry) -> None:
        charge = trade.value + trade.fee
        if participant.cash < charge:
            raise InsufficientFunds(
                f"Insufficient cash to reverse sell: ${participant.cash:.2f} < ${charge:.2f}",
                participant=participant.name,
                team=trade.team,
                context={"trade_id": trade.id}
            )

        participant.cash -= charge
        holding = participant.find_holding(trade.team)
        if holding is not None:
            total_shares = holding.shares + trade.shares
            holding.buy_price = (
                holding.shares * holding.buy_price + trade.shares * trade.prev_buy_price
            ) / total_shares
            holding.shares = total_shares
        else:
            participant.holdings.append(Holding(
                team=trade.team,
                shares=trade.shares,
                buy_price=trade.prev_buy_price,
                buy_round=trade.prev_buy_round,
            ))
