from typing import Any, Dict, List, Optional, Sequence, Tuple

from colorama import Fore, Style, init

from ..trading.models import GameState, LadderEntry
from ..trading.pricing import DEFAULT_PRICE_SCALE, ladder_position, price_for_position
from .helpers import format_currency

init(autoreset=True)


class DisplayManager:
    """
    Renders the season for the terminal: ladder with movement arrows,
    standings, a participant's portfolio and the fixture list.

    Every method returns a string so callers decide where it goes.
    """

    def __init__(self, price_scale: Sequence[float] = DEFAULT_PRICE_SCALE, use_color: bool = True):
        self.price_scale = list(price_scale)
        self.use_color = use_color

    def _c(self, color: str, text: str) -> str:
        if not self.use_color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def _movement(self, team: LadderEntry, prev_ladder: Optional[Sequence[LadderEntry]]) -> str:
        """Arrow and size of a team's move since the previous ladder."""
        if not prev_ladder:
            return " "
        prev_pos = ladder_position(team.name, prev_ladder)
        if prev_pos is None or prev_pos == team.pos:
            return self._c(Fore.WHITE, "=")
        if prev_pos > team.pos:
            return self._c(Fore.GREEN, f"▲{prev_pos - team.pos}")
        return self._c(Fore.RED, f"▼{team.pos - prev_pos}")

    def _signed(self, value: Optional[float]) -> str:
        if value is None:
            return "-"
        color = Fore.GREEN if value >= 0 else Fore.RED
        return self._c(color, f"{'+' if value >= 0 else '-'}${abs(value):,.2f}")

    def render_header(self, state: GameState, total_rounds: int) -> str:
        round_label = "Pre-season" if state.round == 0 else f"Round {state.round}/{total_rounds}"
        if state.round >= total_rounds:
            window = self._c(Fore.RED, "○ Season complete")
        elif state.trade_deadline:
            window = self._c(Fore.YELLOW, f"● Trading until {state.trade_deadline}")
        else:
            window = self._c(Fore.GREEN, "● Trading open")
        return f"{self._c(Fore.CYAN + Style.BRIGHT, 'Sportfolio AFL 2026')} | {round_label} | {window}"

    def render_ladder(self, state: GameState) -> str:
        lines = [f"{'#':>3}  {'':3} {'Team':<20} {'W':>3} {'L':>3} {'D':>3} {'Pts':>4} {'%':>7} {'Price':>7}"]
        for team in state.ladder:
            price = price_for_position(team.pos, self.price_scale)
            lines.append(
                f"{team.pos:>3}  {self._movement(team, state.prev_ladder):<3} "
                f"{(team.emoji + ' ' + team.name).strip():<20} "
                f"{team.wins:>3} {team.losses:>3} {team.draws:>3} {team.pts:>4} "
                f"{team.pct:>7.1f} {price:>7.2f}"
            )
        return "\n".join(lines)

    def render_standings(self, rows: List[Dict[str, Any]]) -> str:
        lines = [f"{'#':>3}  {'Player':<10} {'Type':<11} {'Cash':>12} {'Holdings':>12} {'Total':>12}  Change"]
        for row in rows:
            kind = "human" if row['is_human'] else row.get('strategy') or "ai"
            lines.append(
                f"{row['rank']:>3}  {row['name']:<10} {kind:<11} "
                f"{row['cash']:>12,.2f} {row['holdings_value']:>12,.2f} {row['total']:>12,.2f}  "
                f"{self._signed(row.get('change'))}"
            )
        return "\n".join(lines)

    def render_portfolio(self, summary: Dict[str, Any]) -> str:
        lines = [
            self._c(Style.BRIGHT, summary['name']),
            f"  Cash:     {format_currency(summary['cash_balance'])}",
            f"  Holdings: {format_currency(summary['holdings_value'])}",
            f"  Total:    {format_currency(summary['current_value'])} "
            f"({self._signed(summary['total_return'])}, {summary['return_percentage']:+.2f}%)",
        ]
        if 'next_fee' in summary:
            lines.append(f"  Next trade fee: {format_currency(summary['next_fee'])}")

        positions = summary.get('positions', [])
        if not positions:
            lines.append("  No holdings")
            return "\n".join(lines)

        lines.append(f"  {'Team':<20} {'Shares':>10} {'Avg':>7} {'Price':>7} {'Value':>11}  Sell")
        for p in positions:
            sell = self._c(Fore.GREEN, "yes") if p['can_sell'] else self._c(
                Fore.YELLOW, f"in {p['rounds_remaining']}"
            )
            lines.append(
                f"  {p['team']:<20} {p['shares']:>10.2f} {p['buy_price']:>7.2f} "
                f"{p['price']:>7.2f} {p['value']:>11,.2f}  {sell}"
            )
        return "\n".join(lines)

    def render_fixtures(self, round_number: int, games: Sequence[Tuple[str, str]]) -> str:
        if not games:
            return f"No fixtures for round {round_number}"
        lines = [self._c(Style.BRIGHT, f"Round {round_number} fixtures")]
        lines.extend(f"  {home} v {away}" for home, away in games)
        return "\n".join(lines)

    def success(self, message: str) -> str:
        return self._c(Fore.GREEN, f"✓ {message}")

    def failure(self, message: str) -> str:
        return self._c(Fore.RED, f"✗ {message}")
