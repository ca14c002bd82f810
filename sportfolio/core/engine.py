"""
Main engine for the Sportfolio economy

The external surface of the trading and round economy. Every operation
loads the full season, applies one intent and writes the full season back.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .config import Config
from .state_manager import StateManager
from ..trading.ladder import apply_results, parse_fixtures
from ..trading.models import STATUS_LOCKOUT, STATUS_TRADING, GameState, Participant
from ..trading.portfolio import HoldingPolicy, PortfolioAccounting
from ..trading.pricing import team_names
from ..trading.rounds import RoundAdvancer
from ..trading.simulator import BuyResult, SellResult, TradeExecutor
from ..trading.strategies import AIStrategyEngine
from ..utils.error_handler import error_context
from ..utils.exceptions import (
    Forbidden,
    SeasonComplete,
    TradeWindowClosed,
    ValidationError,
)
from ..utils.helpers import deadline_passed, parse_iso_datetime, utc_now
from ..utils.logging_config import get_logger


class GameEngine:
    """
    Orchestrates trading, round advancement and admin maintenance.

    Components are built once from the configuration; state is never held
    between calls.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        state_manager: Optional[StateManager] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize the engine.

        Args:
            config: Configuration instance, creates default if None
            state_manager: Snapshot store, built from config if None
            clock: Wall-clock source for deadlines, trade ids and timestamps
        """
        self.config = config or Config()
        self.clock = clock
        self.logger = get_logger(__name__)
        self.state_manager = state_manager or StateManager(self.config, clock=clock)

        self._initialize_components()

    def _initialize_components(self):
        """Build the economy components from the configuration."""
        economy = self.config.economy

        self.accounting = PortfolioAccounting(economy.price_scale, economy.brokerage_rate)
        self.policy = HoldingPolicy(economy.min_hold_rounds, economy.preseason_hold_rounds)
        self.executor = TradeExecutor(self.accounting, self.policy, economy.portfolio_cap)
        self.ai_engine = AIStrategyEngine.from_roster(
            self.config.roster.ai_strategies,
            self.executor,
            max_trades_per_round=economy.max_ai_trades_per_round,
            min_trade_value=economy.min_ai_trade_value
        )
        self.advancer = RoundAdvancer(
            self.accounting,
            self.ai_engine,
            total_rounds=economy.total_rounds,
            interest_rates=economy.interest_rates,
            bottom_tax=economy.bottom_tax
        )

        self.logger.debug("Engine components initialized")

    # Capability and window checks

    def _require_human(self, state: GameState, participant_id: str) -> Participant:
        participant = state.participant(participant_id)
        if participant is None or not participant.is_human:
            raise Forbidden(
                f"{participant_id} may not trade",
                participant=participant_id
            )
        return participant

    def _require_admin(self, caller_id: str) -> None:
        if caller_id != self.config.roster.admin:
            raise Forbidden("Admin only", participant=caller_id)

    def _check_window(self, state: GameState, now: datetime) -> None:
        if state.round >= self.config.economy.total_rounds:
            raise SeasonComplete(
                "Season complete",
                context={"round": state.round}
            )
        if deadline_passed(state.trade_deadline, now):
            raise TradeWindowClosed(
                "Trade window closed",
                context={"trade_deadline": state.trade_deadline}
            )

    # Read operations

    def get_state(self) -> GameState:
        return self.state_manager.load_state()

    def standings(self) -> List[Dict[str, Any]]:
        """Every participant ranked by total value, with change since round open."""
        return self.accounting.standings(self.get_state())

    def portfolio(self, participant_id: str) -> Dict[str, Any]:
        """
        Performance summary plus per-holding detail for one participant.

        Raises:
            ValidationError: If no participant has that name
        """
        state = self.get_state()
        participant = state.participant(participant_id)
        if participant is None:
            raise ValidationError(
                f"Unknown participant: {participant_id}",
                field_name="participant",
                actual_value=participant_id
            )

        summary = self.accounting.performance_summary(
            participant, state.ladder, self.config.economy.starting_cash
        )
        summary['positions'] = [
            {
                'team': h.team,
                'shares': h.shares,
                'buy_price': h.buy_price,
                'buy_round': h.buy_round,
                'price': self.accounting.price(h.team, state.ladder),
                'value': h.shares * self.accounting.price(h.team, state.ladder),
                'can_sell': self.policy.can_sell(h, state.round),
                'rounds_remaining': self.policy.rounds_remaining(h, state.round),
            }
            for h in participant.holdings
        ]
        summary['next_fee'] = self.accounting.brokerage_fee(participant, state.ladder)
        return summary

    def fixtures_for_round(self, round_number: Optional[int] = None) -> List[Tuple[str, str]]:
        """
        Games for a round; defaults to the games before the next advance.

        Returns an empty list for rounds without fixtures.
        """
        state = self.get_state()
        if round_number is None:
            round_number = state.round + 1
        return list(state.fixtures.get(round_number, []))

    # Trading

    def buy(self, participant_id: str, team: str, amount: float) -> BuyResult:
        """
        Buy whole shares of ``team`` for up to ``amount``.

        Raises:
            Forbidden, SeasonComplete, TradeWindowClosed, or any buy rejection
            from the executor
        """
        with error_context('buy', {'participant': participant_id, 'team': team, 'amount': amount}, self.logger):
            now = self.clock()
            state = self.state_manager.load_state()
            participant = self._require_human(state, participant_id)
            self._check_window(state, now)

            result = self.executor.buy(participant, team, amount, state.round, state.ladder, now)
            self.state_manager.save_state(state)
            return result

    def sell(self, participant_id: str, team: str, shares: float) -> SellResult:
        with error_context('sell', {'participant': participant_id, 'team': team, 'shares': shares}, self.logger):
            now = self.clock()
            state = self.state_manager.load_state()
            participant = self._require_human(state, participant_id)
            self._check_window(state, now)

            result = self.executor.sell(participant, team, shares, state.round, state.ladder, now)
            self.state_manager.save_state(state)
            return result

    def undo(self, participant_id: str, trade_id: str) -> None:
        with error_context('undo', {'participant': participant_id, 'trade_id': trade_id}, self.logger):
            now = self.clock()
            state = self.state_manager.load_state()
            participant = self._require_human(state, participant_id)
            self._check_window(state, now)

            self.executor.undo(participant, trade_id, state.round)
            self.state_manager.save_state(state)

    # Admin operations

    def advance_round(self, caller_id: str) -> GameState:
        """
        Close the current round and open the next one (admin only).

        Raises:
            Forbidden: Caller is not the administrator
            SeasonComplete: The final round has been reached
        """
        with error_context('advance_round', {'caller': caller_id}, self.logger):
            self._require_admin(caller_id)
            state = self.state_manager.load_state()
            self.advancer.advance(state, self.clock())
            self.state_manager.save_state(state)
            return state

    def update_ladder_results(self, caller_id: str, updates: Iterable[Any]) -> GameState:
        """
        Apply admin-entered results and re-rank the ladder.

        Args:
            caller_id: Must be the administrator
            updates: Records with team, wins, losses, draws and pct

        Raises:
            Forbidden: Caller is not the administrator
            ValidationError: Malformed, unknown or duplicate team updates
        """
        with error_context('update_ladder_results', {'caller': caller_id}, self.logger):
            self._require_admin(caller_id)
            state = self.state_manager.load_state()
            new_ladder = apply_results(state.ladder, updates)
            state.prev_ladder = state.ladder
            state.ladder = new_ladder
            self.state_manager.save_state(state)
            return state

    def set_trade_deadline(self, caller_id: str, iso_deadline: Optional[str]) -> GameState:
        """
        Set (or clear, with None) the trade deadline and reopen trading.

        Raises:
            Forbidden: Caller is not the administrator
            ValidationError: The deadline is not an ISO-8601 timestamp
        """
        with error_context('set_trade_deadline', {'caller': caller_id, 'deadline': iso_deadline}, self.logger):
            self._require_admin(caller_id)
            if iso_deadline is not None:
                try:
                    parse_iso_datetime(iso_deadline)
                except ValueError as e:
                    raise ValidationError(
                        f"Invalid deadline: {e}",
                        field_name="trade_deadline",
                        expected_type="ISO-8601 timestamp",
                        actual_value=iso_deadline
                    )

            state = self.state_manager.load_state()
            state.trade_deadline = iso_deadline
            state.status = STATUS_TRADING
            self.state_manager.save_state(state)
            self.logger.info(f"Trade deadline set to {iso_deadline}")
            return state

    def set_fixtures(self, caller_id: str, fixtures: Any) -> GameState:
        """
        Replace the fixture list (admin only).

        Raises:
            Forbidden: Caller is not the administrator
            ValidationError: Bad round numbers or unknown teams
        """
        with error_context('set_fixtures', {'caller': caller_id}, self.logger):
            self._require_admin(caller_id)
            state = self.state_manager.load_state()
            state.fixtures = parse_fixtures(
                fixtures, team_names(state.ladder), self.config.economy.total_rounds
            )
            self.state_manager.save_state(state)
            self.logger.info(f"Fixtures replaced for {len(state.fixtures)} round(s)")
            return state

    def reset_season(self, caller_id: str, confirmation_token: str) -> GameState:
        """
        Discard the season and start again from round 0.

        Raises:
            Forbidden: Caller is not the administrator or the token is wrong
        """
        with error_context('reset_season', {'caller': caller_id}, self.logger):
            self._require_admin(caller_id)
            if confirmation_token != self.config.storage.reset_confirmation:
                raise Forbidden("Forbidden", participant=caller_id)

            state = self.state_manager.new_state()
            self.state_manager.save_state(state)
            self.logger.warning(f"Season reset by {caller_id}")
            return state

    def get_status(self) -> dict:
        """
        Get current engine status.

        Returns:
            Dictionary with season status information
        """
        state = self.get_state()
        window_open = not deadline_passed(state.trade_deadline, self.clock())
        return {
            "round": state.round,
            "total_rounds": self.config.economy.total_rounds,
            "season_complete": state.round >= self.config.economy.total_rounds,
            "trade_deadline": state.trade_deadline,
            "trade_window_open": window_open,
            "status": state.status if window_open else STATUS_LOCKOUT,
            "has_saved_state": self.state_manager.has_saved_state(),
            "last_updated": state.last_updated,
        }
