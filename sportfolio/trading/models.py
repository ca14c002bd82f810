"""
Domain model for the Sportfolio economy.

Closed dataclasses for the ladder, holdings, trade log, participants and the
GameState aggregate, with conversion to and from the JSON snapshot layout.
"""

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..utils.exceptions import StateError
from ..utils.helpers import parse_iso_datetime

BUY = "buy"
SELL = "sell"

STATUS_TRADING = "trading"
STATUS_LOCKOUT = "lockout"


@dataclass
class LadderEntry:
    """A team's line on the competition ladder."""
    name: str
    emoji: str = ""
    wins: int = 0
    losses: int = 0
    draws: int = 0
    pts: int = 0
    pct: float = 100.0
    pos: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LadderEntry":
        return cls(
            name=str(data["name"]),
            emoji=str(data.get("emoji", "")),
            wins=int(data["wins"]),
            losses=int(data["losses"]),
            draws=int(data["draws"]),
            pts=int(data["pts"]),
            pct=float(data["pct"]),
            pos=int(data["pos"]),
        )


@dataclass
class Holding:
    """An open position in one team."""
    team: str
    shares: float
    buy_price: float
    buy_round: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Holding":
        holding = cls(
            team=str(data["team"]),
            shares=float(data["shares"]),
            buy_price=float(data["buy_price"]),
            buy_round=int(data["buy_round"]),
        )
        if not math.isfinite(holding.shares) or holding.shares <= 0:
            raise ValueError(f"Holding in {holding.team} has invalid share count")
        return holding


@dataclass(frozen=True)
class TradeLogEntry:
    """
    Immutable record of one executed buy or sell.

    The ``was_new_holding``, ``prev_buy_price`` and ``prev_buy_round`` fields
    describe the holding as it was before the trade, which is what an undo
    restores.
    """
    id: str
    type: str
    team: str
    value: float
    fee: float
    round: int
    shares: float
    price: float
    was_new_holding: bool = False
    prev_buy_price: Optional[float] = None
    prev_buy_round: Optional[int] = None
    timestamp: Optional[str] = None
    automated: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeLogEntry":
        if data["type"] not in (BUY, SELL):
            raise ValueError(f"Unknown trade type: {data['type']!r}")
        prev_price = data.get("prev_buy_price")
        prev_round = data.get("prev_buy_round")
        return cls(
            id=str(data["id"]),
            type=data["type"],
            team=str(data["team"]),
            value=float(data["value"]),
            fee=float(data["fee"]),
            round=int(data["round"]),
            shares=float(data["shares"]),
            price=float(data["price"]),
            was_new_holding=bool(data.get("was_new_holding", False)),
            prev_buy_price=None if prev_price is None else float(prev_price),
            prev_buy_round=None if prev_round is None else int(prev_round),
            timestamp=data.get("timestamp"),
            automated=bool(data.get("automated", False)),
        )


@dataclass
class Participant:
    """A human or automated trader in the season."""
    name: str
    is_human: bool
    cash: float
    strategy: Optional[str] = None
    holdings: List[Holding] = field(default_factory=list)
    trade_log: List[TradeLogEntry] = field(default_factory=list)
    trades_this_round: int = 0
    consecutive_top4: Dict[str, int] = field(default_factory=dict)

    def find_holding(self, team: str) -> Optional[Holding]:
        for holding in self.holdings:
            if holding.team == team:
                return holding
        return None

    def holds(self, team: str) -> bool:
        return self.find_holding(team) is not None

    def remove_holding(self, team: str) -> None:
        self.holdings = [h for h in self.holdings if h.team != team]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        return cls(
            name=str(data["name"]),
            is_human=bool(data["is_human"]),
            cash=float(data["cash"]),
            strategy=data.get("strategy"),
            holdings=[Holding.from_dict(h) for h in data.get("holdings", [])],
            trade_log=[TradeLogEntry.from_dict(t) for t in data.get("trade_log", [])],
            trades_this_round=int(data.get("trades_this_round", 0)),
            consecutive_top4={str(k): int(v) for k, v in data.get("consecutive_top4", {}).items()},
        )


@dataclass
class ParticipantSnapshot:
    """A participant's position at the open of a round."""
    cash: float
    holdings: List[Holding]
    total: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticipantSnapshot":
        return cls(
            cash=float(data["cash"]),
            holdings=[Holding.from_dict(h) for h in data.get("holdings", [])],
            total=float(data["total"]),
        )


Fixtures = Dict[int, List[Tuple[str, str]]]


@dataclass
class GameState:
    """Aggregate root of the economy; the unit that is loaded and saved."""
    round: int
    ladder: List[LadderEntry]
    players: Dict[str, Participant]
    fixtures: Fixtures = field(default_factory=dict)
    prev_ladder: Optional[List[LadderEntry]] = None
    trade_deadline: Optional[str] = None
    status: Optional[str] = None
    snapshot: Optional[Dict[str, ParticipantSnapshot]] = None
    last_updated: Optional[str] = None

    def participant(self, name: str) -> Optional[Participant]:
        return self.players.get(name)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # JSON object keys are strings; fixture pairs become lists
        data["fixtures"] = {
            str(rnd): [list(pair) for pair in games]
            for rnd, games in self.fixtures.items()
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        """
        Build a GameState from its snapshot dictionary.

        Raises:
            StateError: If the snapshot is missing fields or holds malformed values
        """
        try:
            ladder = [LadderEntry.from_dict(t) for t in data["ladder"]]
            prev = data.get("prev_ladder")
            snapshot = data.get("snapshot")
            deadline = data.get("trade_deadline")
            if deadline:
                parse_iso_datetime(deadline)
            state = cls(
                round=int(data["round"]),
                ladder=sorted(ladder, key=lambda t: t.pos),
                players={
                    name: Participant.from_dict(p)
                    for name, p in data["players"].items()
                },
                fixtures={
                    int(rnd): [(str(home), str(away)) for home, away in games]
                    for rnd, games in (data.get("fixtures") or {}).items()
                },
                prev_ladder=None if prev is None else [LadderEntry.from_dict(t) for t in prev],
                trade_deadline=deadline,
                status=data.get("status"),
                snapshot=None if snapshot is None else {
                    name: ParticipantSnapshot.from_dict(s) for name, s in snapshot.items()
                },
                last_updated=data.get("last_updated"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateError(f"Malformed game state snapshot: {e}", state_type="game_state")

        positions = sorted(t.pos for t in state.ladder)
        if positions != list(range(1, len(state.ladder) + 1)):
            raise StateError(
                "Ladder positions are not a permutation of 1..N",
                state_type="game_state",
                context={"positions": positions}
            )
        state._check_teams()
        return state

    def _check_teams(self) -> None:
        """Every holding must name a ladder team, at most once per holder."""
        names = [t.name for t in self.ladder]
        if len(set(names)) != len(names):
            raise StateError("Ladder has duplicate team names", state_type="game_state")

        known = set(names)
        holders = [(name, p.holdings) for name, p in self.players.items()]
        holders += [(f"snapshot:{name}", s.holdings) for name, s in (self.snapshot or {}).items()]
        for holder, holdings in holders:
            teams = [h.team for h in holdings]
            unknown = sorted(set(teams) - known)
            if unknown:
                raise StateError(
                    f"{holder} holds unknown team(s): {', '.join(unknown)}",
                    state_type="game_state",
                    context={"holder": holder, "teams": unknown}
                )
            if len(set(teams)) != len(teams):
                raise StateError(
                    f"{holder} has more than one holding in a team",
                    state_type="game_state",
                    context={"holder": holder}
                )
