"""
Utility functions and helpers for the Sportfolio engine

Contains logging, error handling and common helper functions.
"""

from .logging_config import setup_logging, get_logger, get_structured_logger
from .exceptions import (
    SportfolioError,
    TradeError,
    Forbidden,
    SeasonComplete,
    TradeWindowClosed,
    InvalidAmount,
    InsufficientFunds,
    ConcentrationCapExceeded,
    NoHolding,
    HoldPeriodNotMet,
    TradeNotFound,
    NotCurrentRound,
    TradeNotReversible,
    UnknownTeamError,
    ValidationError,
    ConfigurationError,
    StateError
)

from .error_handler import (
    RetryConfig,
    with_retry,
    error_context
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "get_structured_logger",

    # Error Handling
    "RetryConfig",
    "with_retry",
    "error_context",

    # Exceptions
    "SportfolioError",
    "TradeError",
    "Forbidden",
    "SeasonComplete",
    "TradeWindowClosed",
    "InvalidAmount",
    "InsufficientFunds",
    "ConcentrationCapExceeded",
    "NoHolding",
    "HoldPeriodNotMet",
    "TradeNotFound",
    "NotCurrentRound",
    "TradeNotReversible",
    "UnknownTeamError",
    "ValidationError",
    "ConfigurationError",
    "StateError"
]
