"""
Season setup: the AFL 2026 teams, the default fixture list and the
fresh GameState every new season starts from.
"""

import copy
from typing import List, Tuple

from .models import Fixtures, GameState, LadderEntry, Participant

# Pre-season seeding order (by premiership odds)
AFL_TEAMS: List[Tuple[str, str]] = [
    ("Brisbane Lions", "🦁"),
    ("Gold Coast Suns", "☀️"),
    ("Sydney Swans", "🦢"),
    ("Hawthorn", "🦅"),
    ("Fremantle", "⚓"),
    ("Geelong", "🐱"),
    ("Adelaide", "🦔"),
    ("St Kilda", "⭐"),
    ("Western Bulldogs", "🐾"),
    ("Collingwood", "🎵"),
    ("GWS Giants", "🦊"),
    ("Carlton", "💙"),
    ("Port Adelaide", "⚡"),
    ("Melbourne", "🔴"),
    ("Essendon", "🔥"),
    ("North Melbourne", "🦘"),
    ("Richmond", "🐯"),
    ("West Coast", "🌊"),
]

# Game round N trades ahead of AFL round N-1; round 1 is Opening Round
DEFAULT_FIXTURES: Fixtures = {
    1: [
        ("Sydney Swans", "Carlton"),
        ("Gold Coast Suns", "Geelong"),
        ("GWS Giants", "Hawthorn"),
        ("Brisbane Lions", "Western Bulldogs"),
        ("St Kilda", "Collingwood"),
    ],
    2: [
        ("Carlton", "Richmond"),
        ("Essendon", "Hawthorn"),
        ("Western Bulldogs", "GWS Giants"),
        ("Geelong", "Fremantle"),
        ("Sydney Swans", "Brisbane Lions"),
        ("Collingwood", "Adelaide"),
        ("North Melbourne", "Port Adelaide"),
        ("Melbourne", "St Kilda"),
        ("Gold Coast Suns", "West Coast"),
    ],
    3: [
        ("Hawthorn", "Sydney Swans"),
        ("Adelaide", "Western Bulldogs"),
        ("Richmond", "Gold Coast Suns"),
        ("GWS Giants", "St Kilda"),
        ("Fremantle", "Melbourne"),
        ("Port Adelaide", "Essendon"),
        ("West Coast", "North Melbourne"),
    ],
    4: [
        ("Geelong", "Adelaide"),
        ("Collingwood", "GWS Giants"),
        ("St Kilda", "Brisbane Lions"),
        ("Fremantle", "Richmond"),
        ("Essendon", "North Melbourne"),
        ("Port Adelaide", "West Coast"),
        ("Carlton", "Melbourne"),
    ],
    5: [
        ("Brisbane Lions", "Collingwood"),
        ("North Melbourne", "Carlton"),
        ("Adelaide", "Fremantle"),
        ("Richmond", "Port Adelaide"),
        ("West Coast", "Sydney Swans"),
        ("Melbourne", "Gold Coast Suns"),
        ("Western Bulldogs", "Essendon"),
        ("Hawthorn", "Geelong"),
    ],
    6: [
        ("Adelaide", "Carlton"),
        ("Collingwood", "Fremantle"),
        ("North Melbourne", "Brisbane Lions"),
        ("Essendon", "Melbourne"),
        ("Sydney Swans", "Gold Coast Suns"),
        ("Hawthorn", "Western Bulldogs"),
        ("Geelong", "West Coast"),
        ("GWS Giants", "Richmond"),
        ("Port Adelaide", "St Kilda"),
    ],
    7: [
        ("Carlton", "Collingwood"),
        ("Geelong", "Western Bulldogs"),
        ("Sydney Swans", "GWS Giants"),
        ("Gold Coast Suns", "Essendon"),
        ("Hawthorn", "Port Adelaide"),
        ("Adelaide", "St Kilda"),
        ("North Melbourne", "Richmond"),
        ("Melbourne", "Brisbane Lions"),
        ("West Coast", "Fremantle"),
    ],
    8: [
        ("Western Bulldogs", "Sydney Swans"),
        ("Richmond", "Melbourne"),
        ("Hawthorn", "Gold Coast Suns"),
        ("Essendon", "Collingwood"),
        ("Port Adelaide", "Geelong"),
        ("Fremantle", "Carlton"),
        ("St Kilda", "West Coast"),
        ("Brisbane Lions", "Adelaide"),
        ("GWS Giants", "North Melbourne"),
    ],
    9: [
        ("Collingwood", "Hawthorn"),
        ("Western Bulldogs", "Fremantle"),
        ("Adelaide", "Port Adelaide"),
        ("Essendon", "Brisbane Lions"),
        ("West Coast", "Richmond"),
        ("Geelong", "North Melbourne"),
        ("Carlton", "St Kilda"),
        ("Sydney Swans", "Melbourne"),
        ("Gold Coast Suns", "GWS Giants"),
    ],
    10: [
        ("Fremantle", "Hawthorn"),
        ("Brisbane Lions", "Carlton"),
        ("Port Adelaide", "Western Bulldogs"),
        ("North Melbourne", "Sydney Swans"),
        ("GWS Giants", "Essendon"),
        ("Gold Coast Suns", "St Kilda"),
        ("Geelong", "Collingwood"),
        ("Melbourne", "West Coast"),
        ("Richmond", "Adelaide"),
    ],
}


def initial_ladder() -> List[LadderEntry]:
    return [
        LadderEntry(name=name, emoji=emoji, pos=i)
        for i, (name, emoji) in enumerate(AFL_TEAMS, start=1)
    ]


def default_fixtures() -> Fixtures:
    return copy.deepcopy(DEFAULT_FIXTURES)


def new_game_state(economy, roster) -> GameState:
    """
    Create the round-0 state for a new season.

    Args:
        economy: Economy settings (``starting_cash`` is used)
        roster: Roster settings (``humans`` and ``ai_strategies``)

    Returns:
        A GameState with every participant at starting cash and no holdings
    """
    players = {}
    for name in roster.humans:
        players[name] = Participant(name=name, is_human=True, cash=economy.starting_cash)
    for name, strategy in roster.ai_strategies.items():
        players[name] = Participant(
            name=name, is_human=False, cash=economy.starting_cash, strategy=strategy
        )

    return GameState(
        round=0,
        ladder=initial_ladder(),
        players=players,
        fixtures=default_fixtures(),
    )
