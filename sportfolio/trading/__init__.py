"""
Trading components for the Sportfolio engine

Contains pricing, portfolio accounting, trade execution, round
transitions, automated strategies and ladder ranking.
"""

from .models import GameState, Holding, LadderEntry, Participant, TradeLogEntry
from .portfolio import HoldingPolicy, PortfolioAccounting
from .simulator import BuyResult, SellResult, TradeExecutor
from .strategies import AIStrategyEngine, Strategy
from .rounds import RoundAdvancer
from .season import new_game_state

__all__ = [
    "GameState",
    "Holding",
    "LadderEntry",
    "Participant",
    "TradeLogEntry",
    "HoldingPolicy",
    "PortfolioAccounting",
    "BuyResult",
    "SellResult",
    "TradeExecutor",
    "AIStrategyEngine",
    "Strategy",
    "RoundAdvancer",
    "new_game_state"
]
