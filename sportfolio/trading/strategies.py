"""
Automated participant strategies.

Each strategy turns (participant, ladder, round) into an ordered list of
trade proposals. The AIStrategyEngine applies them through the same
TradeExecutor human trades use, capped per round.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Type

from ..utils.exceptions import ConfigurationError, TradeError
from ..utils.logging_config import get_logger
from .models import BUY, SELL, GameState, LadderEntry, Participant
from .portfolio import HoldingPolicy, PortfolioAccounting
from .pricing import ladder_position
from .simulator import TradeExecutor

logger = get_logger("sportfolio.trading.strategies")


@dataclass(frozen=True)
class TradeProposal:
    """A trade a strategy would like to make; amount is only used for buys."""
    type: str
    team: str
    amount: Optional[float] = None


class Strategy(ABC):
    """Decision policy for an automated participant."""

    name: str = ""

    def __init__(self, accounting: PortfolioAccounting, policy: HoldingPolicy, portfolio_cap: float = 0.25):
        self.accounting = accounting
        self.policy = policy
        self.portfolio_cap = portfolio_cap

    @abstractmethod
    def propose(
        self,
        participant: Participant,
        ladder: Sequence[LadderEntry],
        current_round: int
    ) -> List[TradeProposal]:
        """Proposed trades for this round, in the order they should be tried."""

    def _unheld(self, participant: Participant, teams: Sequence[LadderEntry]) -> List[LadderEntry]:
        return [t for t in teams if not participant.holds(t.name)]

    def _buy_size(self, participant: Participant, ladder: Sequence[LadderEntry], cash_fraction: float) -> float:
        total = self.accounting.total_value(participant, ladder)
        return min(participant.cash * cash_fraction, total * self.portfolio_cap)

    def _sell_below(
        self,
        participant: Participant,
        ladder: Sequence[LadderEntry],
        current_round: int,
        worst_kept_position: int
    ) -> List[TradeProposal]:
        proposals = []
        for holding in participant.holdings:
            position = ladder_position(holding.team, ladder)
            if (
                position is not None
                and position > worst_kept_position
                and self.policy.can_sell(holding, current_round)
            ):
                proposals.append(TradeProposal(SELL, holding.team))
        return proposals


class BlueChipStrategy(Strategy):
    """Round 1 only: equal stakes in the top four teams."""

    name = "blueChip"
    stake = 2000.0
    picks = 4

    def propose(self, participant, ladder, current_round):
        if current_round != 1 or participant.holdings:
            return []
        return [TradeProposal(BUY, team.name, self.stake) for team in ladder[:self.picks]]


class PassiveStrategy(BlueChipStrategy):
    """Buys the blue-chip basket once and never trades again."""

    name = "passive"


class MomentumStrategy(Strategy):
    """Chases the best-ranked unheld team and dumps teams that fall away."""

    name = "momentum"
    top_positions = 9
    sell_below_position = 12
    min_cash = 1000.0
    cash_fraction = 0.6

    def propose(self, participant, ladder, current_round):
        if current_round <= 1:
            return []

        proposals = []
        risers = self._unheld(participant, ladder[:self.top_positions])
        if risers and participant.cash > self.min_cash:
            proposals.append(TradeProposal(
                BUY, risers[0].name, self._buy_size(participant, ladder, self.cash_fraction)
            ))
        proposals.extend(self._sell_below(participant, ladder, current_round, self.sell_below_position))
        return proposals


class ContrarianStrategy(Strategy):
    """Buys into an unheld team from the bottom half of the ladder."""

    name = "contrarian"
    from_position = 10
    min_cash = 1000.0
    cash_fraction = 0.5

    def propose(self, participant, ladder, current_round):
        if current_round <= 1:
            return []

        cheap = self._unheld(participant, ladder[self.from_position - 1:])
        if not cheap or participant.cash <= self.min_cash:
            return []
        return [TradeProposal(BUY, cheap[0].name, self._buy_size(participant, ladder, self.cash_fraction))]


class BalancedStrategy(Strategy):
    """Rebalances every third round: trims the tail, adds a top-six team."""

    name = "balanced"
    every = 3
    sell_below_position = 14
    top_positions = 6
    min_cash = 1500.0
    cash_fraction = 0.7

    def propose(self, participant, ladder, current_round):
        if current_round <= 0 or current_round % self.every != 0:
            return []

        proposals = self._sell_below(participant, ladder, current_round, self.sell_below_position)
        # Cash check sees the cash before this round's sells settle
        if participant.cash > self.min_cash:
            picks = self._unheld(participant, ladder[:self.top_positions])
            if picks:
                proposals.append(TradeProposal(
                    BUY, picks[0].name, self._buy_size(participant, ladder, self.cash_fraction)
                ))
        return proposals


STRATEGIES: Dict[str, Type[Strategy]] = {
    cls.name: cls
    for cls in (BlueChipStrategy, PassiveStrategy, MomentumStrategy, ContrarianStrategy, BalancedStrategy)
}


def strategy_for(
    name: str,
    accounting: PortfolioAccounting,
    policy: HoldingPolicy,
    portfolio_cap: float = 0.25
) -> Strategy:
    """
    Instantiate the strategy registered under ``name``.

    Raises:
        ConfigurationError: If no strategy has that name
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown AI strategy: {name}",
            config_key="roster.ai_strategies",
            config_value=name,
            context={"available": sorted(STRATEGIES)}
        )
    return strategy_cls(accounting, policy, portfolio_cap)


class AIStrategyEngine:
    """Runs every automated participant's strategy for a round."""

    def __init__(
        self,
        strategies: Mapping[str, Strategy],
        executor: TradeExecutor,
        max_trades_per_round: int = 3,
        min_trade_value: float = 50.0
    ):
        """
        Initialize the engine.

        Args:
            strategies: Participant name -> strategy, resolved once at setup
            executor: Executor shared with human trading
            max_trades_per_round: Cap on executed trades per participant
            min_trade_value: Smallest buy notional worth placing
        """
        self.strategies = dict(strategies)
        self.executor = executor
        self.accounting = executor.accounting
        self.max_trades_per_round = max_trades_per_round
        self.min_trade_value = min_trade_value

    @classmethod
    def from_roster(
        cls,
        ai_strategies: Mapping[str, str],
        executor: TradeExecutor,
        max_trades_per_round: int = 3,
        min_trade_value: float = 50.0
    ) -> "AIStrategyEngine":
        strategies = {
            name: strategy_for(strategy_name, executor.accounting, executor.policy, executor.portfolio_cap)
            for name, strategy_name in ai_strategies.items()
        }
        return cls(strategies, executor, max_trades_per_round, min_trade_value)

    def run(self, state: GameState, current_round: int, now: datetime) -> Dict[str, int]:
        """
        Generate and execute trades for every automated participant.

        Args:
            state: Game state to trade against (mutated in place)
            current_round: Round the trades are recorded against
            now: Timestamp for the trade log

        Returns:
            Number of trades executed per participant
        """
        executed = {}
        for name, strategy in self.strategies.items():
            participant = state.participant(name)
            if participant is None:
                logger.warning(f"AI participant {name} missing from state, skipping")
                continue

            participant.trades_this_round = 0
            proposals = strategy.propose(participant, state.ladder, current_round)
            for proposal in proposals:
                if participant.trades_this_round >= self.max_trades_per_round:
                    break
                self._apply(participant, proposal, state.ladder, current_round, now)

            executed[name] = participant.trades_this_round
            if participant.trades_this_round:
                logger.info(
                    f"{name} ({strategy.name}) executed {participant.trades_this_round} trade(s) "
                    f"in round {current_round}"
                )
        return executed

    def _apply(
        self,
        participant: Participant,
        proposal: TradeProposal,
        ladder: Sequence[LadderEntry],
        current_round: int,
        now: datetime
    ) -> None:
        try:
            if proposal.type == BUY:
                amount = self._clip_buy(participant, proposal, ladder)
                if amount < self.min_trade_value:
                    logger.debug(
                        f"Skipping {participant.name} buy of {proposal.team}: "
                        f"${amount:.2f} below minimum"
                    )
                    return
                self.executor.buy(participant, proposal.team, amount, current_round, ladder, now, automated=True)
            else:
                holding = participant.find_holding(proposal.team)
                if holding is None:
                    return
                self.executor.sell(
                    participant, proposal.team, holding.shares, current_round, ladder, now, automated=True
                )
        except TradeError as e:
            logger.debug(f"Dropped {participant.name} {proposal.type} of {proposal.team}: {e.message}")

    def _clip_buy(self, participant: Participant, proposal: TradeProposal, ladder: Sequence[LadderEntry]) -> float:
        """Largest notional the cash, fee and concentration cap allow."""
        fee = self.accounting.brokerage_fee(participant, ladder)
        max_invest = self.accounting.total_value(participant, ladder) * self.executor.portfolio_cap
        existing = self.accounting.holding_value(participant, proposal.team, ladder)
        return min(proposal.amount or 0.0, participant.cash - fee, max_invest - existing)
