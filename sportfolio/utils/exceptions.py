"""
Custom exceptions for the Sportfolio engine

Every failure a caller can trigger (bad trade, closed window, malformed
admin input) is an expected, recoverable error with a stable error code
and a context dictionary describing what was rejected.
"""

import time
from typing import Optional, Dict, Any


class SportfolioError(Exception):
    """
    Base exception class for all sportfolio-related errors.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.timestamp = time.time()

    def __str__(self) -> str:
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            base_msg += f" Context: {self.context}"
        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to a dictionary representation.

        Returns:
            Dict containing the exception details including message, error code, and context.
        """
        return {
            "message": self.message,
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "context": self.context,
            "timestamp": self.timestamp
        }


class TradeError(SportfolioError):
    """
    Exception raised when a trade or trade-window operation is rejected.
    """

    error_code = "TRADE_ERROR"

    def __init__(
        self,
        message: str,
        participant: Optional[str] = None,
        team: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "participant": participant,
            "team": team,
            **(context or {})
        }
        super().__init__(message, self.error_code, full_context)
        self.participant = participant
        self.team = team


class Forbidden(TradeError):
    """Caller lacks the capability for the requested operation."""
    error_code = "FORBIDDEN"


class SeasonComplete(TradeError):
    """The final round has been reached; no further trading or advancing."""
    error_code = "SEASON_COMPLETE"


class TradeWindowClosed(TradeError):
    """The configured trade deadline for this round has passed."""
    error_code = "TRADE_WINDOW_CLOSED"


class InvalidAmount(TradeError):
    """The requested amount resolves to no tradable shares."""
    error_code = "INVALID_AMOUNT"


class InsufficientFunds(TradeError):
    """The trade would leave the participant with negative cash."""
    error_code = "INSUFFICIENT_FUNDS"


class ConcentrationCapExceeded(TradeError):
    """
    Exception raised when a buy would push one team past the portfolio cap.
    """

    error_code = "CONCENTRATION_CAP_EXCEEDED"

    def __init__(
        self,
        message: str,
        headroom: float = 0.0,
        participant: Optional[str] = None,
        team: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            participant=participant,
            team=team,
            context={"headroom": headroom, **(context or {})}
        )
        self.headroom = headroom


class NoHolding(TradeError):
    """The participant holds no shares in the team."""
    error_code = "NO_HOLDING"


class HoldPeriodNotMet(TradeError):
    """
    Exception raised when a holding is sold before its minimum hold period.
    """

    error_code = "HOLD_PERIOD_NOT_MET"

    def __init__(
        self,
        message: str,
        rounds_remaining: int = 0,
        participant: Optional[str] = None,
        team: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            participant=participant,
            team=team,
            context={"rounds_remaining": rounds_remaining, **(context or {})}
        )
        self.rounds_remaining = rounds_remaining


class TradeNotFound(TradeError):
    """No trade with the given id exists in the participant's log."""
    error_code = "TRADE_NOT_FOUND"


class NotCurrentRound(TradeError):
    """Undo was attempted on a trade from an earlier round."""
    error_code = "NOT_CURRENT_ROUND"


class TradeNotReversible(TradeError):
    """A later trade in the same team must be undone first."""
    error_code = "TRADE_NOT_REVERSIBLE"


class UnknownTeamError(TradeError):
    """The team is not on the ladder."""
    error_code = "UNKNOWN_TEAM"


class ValidationError(SportfolioError):
    """
    Exception raised for malformed or out-of-range input.
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        expected_type: Optional[str] = None,
        actual_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "field_name": field_name,
            "expected_type": expected_type,
            "actual_value": actual_value,
            **(context or {})
        }
        super().__init__(message, "VALIDATION_ERROR", full_context)
        self.field_name = field_name
        self.expected_type = expected_type
        self.actual_value = actual_value


class ConfigurationError(SportfolioError):
    """
    Exception raised for configuration-related errors.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "config_key": config_key,
            "config_value": config_value,
            **(context or {})
        }
        super().__init__(message, "CONFIG_ERROR", full_context)
        self.config_key = config_key
        self.config_value = config_value


class StateError(SportfolioError):
    """
    Exception raised for state persistence and snapshot decoding errors.
    """

    def __init__(
        self,
        message: str,
        state_type: Optional[str] = None,
        state_path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        full_context = {
            "state_type": state_type,
            "state_path": state_path,
            **(context or {})
        }
        super().__init__(message, "STATE_ERROR", full_context)
        self.state_type = state_type
        self.state_path = state_path
