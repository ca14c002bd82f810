"""
Portfolio accounting for the Sportfolio economy.

Mark-to-market valuation, the escalating brokerage fee, the minimum hold
policy and standings/performance summaries.
"""

from typing import Dict, List, Sequence

from .models import GameState, Holding, LadderEntry, Participant
from .pricing import DEFAULT_PRICE_SCALE, price_for


class PortfolioAccounting:
    """Values participants' portfolios against the current ladder."""

    def __init__(
        self,
        price_scale: Sequence[float] = DEFAULT_PRICE_SCALE,
        brokerage_rate: float = 0.005
    ):
        """
        Initialize accounting.

        Args:
            price_scale: Rank-indexed price table
            brokerage_rate: Base fee as a fraction of total value
        """
        self.price_scale = list(price_scale)
        self.brokerage_rate = brokerage_rate

    def price(self, team: str, ladder: Sequence[LadderEntry]) -> float:
        return price_for(team, ladder, self.price_scale)

    def holdings_value(self, participant: Participant, ladder: Sequence[LadderEntry]) -> float:
        return sum(h.shares * self.price(h.team, ladder) for h in participant.holdings)

    def holding_value(self, participant: Participant, team: str, ladder: Sequence[LadderEntry]) -> float:
        holding = participant.find_holding(team)
        if holding is None:
            return 0.0
        return holding.shares * self.price(team, ladder)

    def total_value(self, participant: Participant, ladder: Sequence[LadderEntry]) -> float:
        """
        Calculate total portfolio value.

        Args:
            participant: Participant to value
            ladder: Current ladder, which determines prices

        Returns:
            Cash plus mark-to-market value of all holdings
        """
        return participant.cash + self.holdings_value(participant, ladder)

    def brokerage_fee(self, participant: Participant, ladder: Sequence[LadderEntry]) -> float:
        """
        Fee for the participant's next trade this round.

        The base rate is charged on total value and doubles for every trade
        already executed this round.
        """
        total = self.total_value(participant, ladder)
        return total * self.brokerage_rate * (2 ** participant.trades_this_round)

    def performance_summary(
        self,
        participant: Participant,
        ladder: Sequence[LadderEntry],
        starting_cash: float
    ) -> Dict:
        """Get portfolio performance summary."""
        current_value = self.total_value(participant, ladder)
        total_return = current_value - starting_cash
        return_percentage = (total_return / starting_cash) * 100 if starting_cash else 0.0

        return {
            'name': participant.name,
            'initial_balance': starting_cash,
            'current_value': current_value,
            'cash_balance': participant.cash,
            'holdings_value': current_value - participant.cash,
            'total_return': total_return,
            'return_percentage': return_percentage,
            'holdings': len(participant.holdings),
            'total_trades': len(participant.trade_log)
        }

    def snapshot_row(self, participant: Participant, ladder: Sequence[LadderEntry]) -> Dict:
        holdings_value = self.holdings_value(participant, ladder)
        return {
            'name': participant.name,
            'is_human': participant.is_human,
            'strategy': participant.strategy,
            'cash': participant.cash,
            'holdings_value': holdings_value,
            'total': participant.cash + holdings_value,
        }

    def standings(self, state: GameState) -> List[Dict]:
        """
        Rank every participant by total value.

        Each row carries the change since the round-open snapshot when one
        exists.
        """
        rows = [self.snapshot_row(p, state.ladder) for p in state.players.values()]
        rows.sort(key=lambda row: row['total'], reverse=True)

        for rank, row in enumerate(rows, start=1):
            row['rank'] = rank
            opening = (state.snapshot or {}).get(row['name'])
            row['change'] = row['total'] - opening.total if opening is not None else None

        return rows


class HoldingPolicy:
    """Minimum number of rounds a holding must be kept before it can be sold."""

    def __init__(self, min_hold_rounds: int = 2, preseason_hold_rounds: int = 3):
        self.min_hold_rounds = min_hold_rounds
        self.preseason_hold_rounds = preseason_hold_rounds

    def min_hold_for(self, holding: Holding) -> int:
        return self.preseason_hold_rounds if holding.buy_round == 0 else self.min_hold_rounds

    def can_sell(self, holding: Holding, current_round: int) -> bool:
        return current_round - holding.buy_round >= self.min_hold_for(holding)

    def rounds_remaining(self, holding: Holding, current_round: int) -> int:
        return max(0, self.min_hold_for(holding) - (current_round - holding.buy_round))
