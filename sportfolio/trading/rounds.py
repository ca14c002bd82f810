"""
Round transitions.

Applies end-of-round interest and tax, lets the automated participants
trade, then opens the next round.
"""

import copy
from datetime import datetime
from typing import Dict, Mapping, Optional

from ..utils.exceptions import SeasonComplete
from ..utils.logging_config import get_logger
from .models import STATUS_TRADING, GameState, ParticipantSnapshot
from .portfolio import PortfolioAccounting
from .pricing import ladder_position
from .strategies import AIStrategyEngine

logger = get_logger("sportfolio.trading.rounds")

DEFAULT_INTEREST_RATES = {1: 0.02, 2: 0.015, 3: 0.01, 4: 0.005}


class RoundAdvancer:
    """Moves the economy from one round to the next."""

    def __init__(
        self,
        accounting: PortfolioAccounting,
        ai_engine: Optional[AIStrategyEngine] = None,
        total_rounds: int = 10,
        interest_rates: Optional[Mapping[int, float]] = None,
        bottom_tax: float = 0.01
    ):
        self.accounting = accounting
        self.ai_engine = ai_engine
        self.total_rounds = total_rounds
        self.interest_rates = {
            int(rank): rate for rank, rate in (interest_rates or DEFAULT_INTEREST_RATES).items()
        }
        self.bottom_tax = bottom_tax

    def apply_interest_and_tax(self, state: GameState) -> None:
        """
        Grow or shrink every holding's share count by its team's rank.

        Top-ranked teams earn interest and extend their consecutive-top
        streak; any other rank resets the streak. The last-placed team is
        taxed. The two branches are independent, and no single ranking puts
        a team in both.
        """
        last_position = len(state.ladder)
        for participant in state.players.values():
            for holding in participant.holdings:
                position = ladder_position(holding.team, state.ladder) or 0
                if position in self.interest_rates:
                    participant.consecutive_top4[holding.team] = (
                        participant.consecutive_top4.get(holding.team, 0) + 1
                    )
                    holding.shares *= 1 + self.interest_rates[position]
                else:
                    participant.consecutive_top4[holding.team] = 0
                if position == last_position:
                    holding.shares *= 1 - self.bottom_tax

    def take_snapshot(self, state: GameState) -> Dict[str, ParticipantSnapshot]:
        return {
            name: ParticipantSnapshot(
                cash=participant.cash,
                holdings=copy.deepcopy(participant.holdings),
                total=self.accounting.total_value(participant, state.ladder),
            )
            for name, participant in state.players.items()
        }

    def advance(self, state: GameState, now: datetime) -> GameState:
        """
        Advance ``state`` by one round in place.

        Raises:
            SeasonComplete: If the final round has already been reached
        """
        if state.round >= self.total_rounds:
            raise SeasonComplete(
                "Season complete",
                context={"round": state.round, "total_rounds": self.total_rounds}
            )

        next_round = state.round + 1
        self.apply_interest_and_tax(state)

        if self.ai_engine is not None:
            executed = self.ai_engine.run(state, next_round, now)
            logger.info(f"AI trading for round {next_round}: {sum(executed.values())} trade(s)")

        for participant in state.players.values():
            participant.trades_this_round = 0

        state.prev_ladder = copy.deepcopy(state.ladder)
        state.round = next_round
        state.snapshot = self.take_snapshot(state)
        state.trade_deadline = None
        state.status = STATUS_TRADING

        logger.info(f"Advanced to round {state.round}")
        return state
