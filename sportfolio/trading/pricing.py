"""
Rank-based share pricing.

A team's price is read from a fixed table indexed by its ladder position;
positions beyond the table are priced at the last slot.
"""

from typing import List, Optional, Sequence

from ..utils.exceptions import UnknownTeamError
from .models import LadderEntry

DEFAULT_PRICE_SCALE = [
    6.12, 5.56, 5.05, 4.59, 4.18,
    3.80, 3.45, 3.14, 2.85, 2.59,
    2.36, 2.14, 1.95, 1.77, 1.61,
    1.46, 1.33, 1.00,
]


def ladder_position(team: str, ladder: Sequence[LadderEntry]) -> Optional[int]:
    """1-based position of ``team`` in ``ladder``, or None if it is not listed."""
    for index, entry in enumerate(ladder):
        if entry.name == team:
            return index + 1
    return None


def price_for_position(position: int, price_scale: Sequence[float] = DEFAULT_PRICE_SCALE) -> float:
    if 1 <= position <= len(price_scale):
        return price_scale[position - 1]
    return price_scale[-1]


def price_for(
    team: str,
    ladder: Sequence[LadderEntry],
    price_scale: Sequence[float] = DEFAULT_PRICE_SCALE
) -> float:
    """
    Share price of ``team`` given the current ladder order.

    Raises:
        UnknownTeamError: If the team is not on the ladder
    """
    position = ladder_position(team, ladder)
    if position is None:
        raise UnknownTeamError(f"Unknown team: {team}", team=team)
    return price_for_position(position, price_scale)


def team_names(ladder: Sequence[LadderEntry]) -> List[str]:
    return [entry.name for entry in ladder]
