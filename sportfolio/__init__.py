"""
Sportfolio - AFL ladder stock market

A fantasy share market built on the AFL ladder: each team trades at a price
set by its ladder rank, and a roster of human and automated participants
buy and sell across a ten-round season.
"""

__version__ = "0.1.0"
__author__ = "Sportfolio Development Team"

# Core imports for easy access
from .core.engine import GameEngine
from .core.config import Config
from .core.state_manager import StateManager
from .utils.logging_config import setup_logging
from .utils.exceptions import SportfolioError

__all__ = [
    "GameEngine",
    "Config",
    "StateManager",
    "SportfolioError",
    "setup_logging",
    "__version__",
]
