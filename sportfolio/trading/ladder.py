"""
Ladder re-ranking from admin-supplied results.

The only code path that changes rank positions. Input is validated with
pydantic and rejected as a whole if any entry is malformed.
"""

import copy
import math
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..utils.exceptions import ValidationError
from ..utils.logging_config import get_logger
from .models import Fixtures, LadderEntry

logger = get_logger("sportfolio.trading.ladder")

POINTS_PER_WIN = 4
POINTS_PER_DRAW = 2


class LadderUpdate(BaseModel):
    """One team's season record as entered by the administrator."""

    team: str = Field(..., min_length=1, description="Team name as shown on the ladder")
    wins: int = Field(..., ge=0)
    losses: int = Field(..., ge=0)
    draws: int = Field(..., ge=0)
    pct: float = Field(..., ge=0, description="Percentage (points for / against x 100)")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("pct")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("pct must be finite")
        return v

    @property
    def points(self) -> int:
        return self.wins * POINTS_PER_WIN + self.draws * POINTS_PER_DRAW


def _pydantic_error(message: str, error: PydanticValidationError) -> ValidationError:
    first = error.errors()[0]
    return ValidationError(
        f"{message}: {first['msg']}",
        field_name=".".join(str(part) for part in first["loc"]),
        actual_value=first.get("input"),
        context={"errors": error.error_count()}
    )


def parse_updates(raw_updates: Iterable[Any]) -> List[LadderUpdate]:
    """
    Validate raw update dictionaries.

    Raises:
        ValidationError: If any entry is missing fields, non-numeric or out of range
    """
    try:
        return TypeAdapter(List[LadderUpdate]).validate_python(list(raw_updates))
    except PydanticValidationError as e:
        raise _pydantic_error("Invalid ladder update", e)


def apply_results(ladder: Sequence[LadderEntry], raw_updates: Iterable[Any]) -> List[LadderEntry]:
    """
    Apply results and return a freshly ranked ladder.

    Teams are ordered by points, then percentage, both descending; ties keep
    their previous order. Positions are reassigned 1..N.

    Raises:
        ValidationError: Malformed update, unknown team or duplicate team
    """
    updates = parse_updates(
        u.model_dump() if isinstance(u, LadderUpdate) else u for u in raw_updates
    )

    known = {entry.name for entry in ladder}
    seen = set()
    for update in updates:
        if update.team not in known:
            raise ValidationError(
                f"Unknown team: {update.team}", field_name="team", actual_value=update.team
            )
        if update.team in seen:
            raise ValidationError(
                f"Duplicate update for {update.team}", field_name="team", actual_value=update.team
            )
        seen.add(update.team)

    by_team = {u.team: u for u in updates}
    new_ladder = copy.deepcopy(list(ladder))
    for entry in new_ladder:
        update = by_team.get(entry.name)
        if update is None:
            continue
        entry.wins = update.wins
        entry.losses = update.losses
        entry.draws = update.draws
        entry.pct = update.pct
        entry.pts = update.points

    new_ladder.sort(key=lambda t: (t.pts, t.pct), reverse=True)
    for position, entry in enumerate(new_ladder, start=1):
        entry.pos = position

    logger.info(f"Ladder re-ranked from {len(updates)} result update(s)")
    return new_ladder


def parse_fixtures(raw_fixtures: Any, team_names: Iterable[str], total_rounds: int) -> Fixtures:
    """
    Validate a round -> [(home, away), ...] fixture mapping.

    Raises:
        ValidationError: Bad shape, round outside 1..total_rounds or unknown team
    """
    try:
        fixtures = TypeAdapter(Dict[int, List[Tuple[str, str]]]).validate_python(raw_fixtures)
    except PydanticValidationError as e:
        raise _pydantic_error("Invalid fixtures", e)

    known = set(team_names)
    for rnd, games in fixtures.items():
        if not 1 <= rnd <= total_rounds:
            raise ValidationError(
                f"Fixture round {rnd} outside 1..{total_rounds}", field_name="round", actual_value=rnd
            )
        for home, away in games:
            for team in (home, away):
                if team not in known:
                    raise ValidationError(
                        f"Unknown team in round {rnd} fixtures: {team}",
                        field_name="team",
                        actual_value=team
                    )
            if home == away:
                raise ValidationError(
                    f"{home} cannot play itself in round {rnd}", field_name="team", actual_value=home
                )
    return fixtures
