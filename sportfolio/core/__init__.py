"""
Core functionality for the Sportfolio engine

This module contains the game engine, configuration management,
and snapshot persistence.
"""

from .engine import GameEngine
from .config import Config
from .state_manager import StateManager

__all__ = [
    "GameEngine",
    "Config",
    "StateManager"
]
