"""
Configuration management for the Sportfolio engine

Holds the economy constants, the participant roster, storage and logging
settings. Values come from defaults, an optional YAML file and environment
variables (a ``.env`` file is honoured), and are validated as a whole.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..trading.pricing import DEFAULT_PRICE_SCALE
from ..utils.exceptions import ConfigurationError
from ..utils.logging_config import get_logger


@dataclass
class EconomyConfig:
    """Pricing, fee, cap, hold and interest settings."""
    starting_cash: float = 10000.0
    total_rounds: int = 10
    price_scale: List[float] = field(default_factory=lambda: list(DEFAULT_PRICE_SCALE))

    # Fees and limits
    brokerage_rate: float = 0.005  # 0.5% of total value, doubling per trade
    portfolio_cap: float = 0.25  # Max 25% of total value in one team
    min_hold_rounds: int = 2
    preseason_hold_rounds: int = 3

    # End-of-round adjustments
    interest_rates: Dict[int, float] = field(
        default_factory=lambda: {1: 0.02, 2: 0.015, 3: 0.01, 4: 0.005}
    )
    bottom_tax: float = 0.01

    # Automated participants
    max_ai_trades_per_round: int = 3
    min_ai_trade_value: float = 50.0


@dataclass
class RosterConfig:
    """Who plays, who administers, and which strategy each bot runs."""
    admin: str = "Tyson"
    humans: List[str] = field(default_factory=lambda: ["Tyson", "Jas", "Sam"])
    ai_strategies: Dict[str, str] = field(default_factory=lambda: {
        "Alex": "momentum",
        "Jordan": "blueChip",
        "Casey": "contrarian",
        "Riley": "balanced",
        "Morgan": "passive",
        "Quinn": "momentum",
        "Blake": "contrarian",
    })

    @property
    def all_players(self) -> List[str]:
        return [*self.humans, *self.ai_strategies]


@dataclass
class StorageConfig:
    """Snapshot persistence settings."""
    state_file: str = "gamestate.json"
    save_attempts: int = 3
    reset_confirmation: str = "RESET"


@dataclass
class SystemConfig:
    """System operation configuration."""
    log_level: str = "INFO"
    log_dir: str = "logs/"
    enable_console: bool = True
    enable_structlog: bool = True


class Config:
    """
    Main configuration class that manages all settings.
    """

    SECTIONS = ("economy", "roster", "storage", "system")

    def __init__(self, config_file: Optional[str] = None, env_file: Optional[str] = None):
        self.logger = get_logger(__name__)

        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()  # Load from .env file if exists

        self.economy = EconomyConfig()
        self.roster = RosterConfig()
        self.storage = StorageConfig()
        self.system = SystemConfig()

        if config_file:
            self.load_from_file(config_file)

        self._load_from_environment()

        self.validate()

    def load_from_file(self, config_file: str):
        """
        Load configuration from a YAML file.

        Args:
            config_file: Path to configuration file
        """
        config_path = Path(config_file)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigurationError(f"Unsupported config file format: {config_path.suffix}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        for section in self.SECTIONS:
            if section in config_data:
                self._update_dataclass(section, getattr(self, section), config_data[section])

        self.logger.info(f"Configuration loaded from {config_file}")

    def _update_dataclass(self, section: str, obj: Any, data: Any):
        """Update dataclass fields with new values, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Section '{section}' must be a mapping", config_key=section)
        for key, value in data.items():
            if not hasattr(obj, key):
                raise ConfigurationError(
                    f"Invalid configuration key: {section}.{key}",
                    config_key=f"{section}.{key}",
                    config_value=value
                )
            setattr(obj, key, value)

    def _load_from_environment(self):
        """Load configuration overrides from environment variables."""
        if state_file := os.getenv("SPORTFOLIO_STATE_FILE"):
            self.storage.state_file = state_file

        if admin := os.getenv("SPORTFOLIO_ADMIN"):
            self.roster.admin = admin

        if starting_cash := os.getenv("SPORTFOLIO_STARTING_CASH"):
            try:
                self.economy.starting_cash = float(starting_cash)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid SPORTFOLIO_STARTING_CASH: {starting_cash}",
                    config_key="economy.starting_cash",
                    config_value=starting_cash
                )

        if log_level := os.getenv("LOG_LEVEL"):
            self.system.log_level = log_level.upper()
        if log_dir := os.getenv("LOG_DIR"):
            self.system.log_dir = log_dir

    def validate(self):
        """Validate configuration settings."""
        errors = []
        economy = self.economy
        roster = self.roster

        if economy.starting_cash <= 0:
            errors.append("Starting cash must be positive")
        if economy.total_rounds <= 0:
            errors.append("Total rounds must be positive")
        if not economy.price_scale or any(p <= 0 for p in economy.price_scale):
            errors.append("Price scale must be a non-empty list of positive prices")
        if not (0 <= economy.brokerage_rate < 1):
            errors.append("Brokerage rate must be between 0 and 1")
        if not (0 < economy.portfolio_cap <= 1):
            errors.append("Portfolio cap must be between 0 and 1")
        if economy.min_hold_rounds < 0 or economy.preseason_hold_rounds < 0:
            errors.append("Hold periods must not be negative")
        if any(not (0 <= rate < 1) for rate in economy.interest_rates.values()):
            errors.append("Interest rates must be between 0 and 1")
        if not (0 <= economy.bottom_tax < 1):
            errors.append("Bottom tax must be between 0 and 1")
        if economy.max_ai_trades_per_round < 0:
            errors.append("Max AI trades per round must not be negative")

        if roster.admin not in roster.humans:
            errors.append(f"Admin '{roster.admin}' must be one of the human players")
        if len(set(roster.all_players)) != len(roster.all_players):
            errors.append("Player names must be unique across humans and AI players")

        if self.system.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            errors.append("Invalid log level")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        self.logger.debug("Configuration validation passed")

    def save_to_file(self, config_file: str):
        """
        Save current configuration to file.

        Args:
            config_file: Path to save configuration file
        """
        config_path = Path(config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, indent=2)

        self.logger.info(f"Configuration saved to {config_file}")

    def to_dict(self) -> Dict[str, Any]:
        return {section: asdict(getattr(self, section)) for section in self.SECTIONS}

    def get_setting(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a specific configuration setting.

        Args:
            section: Configuration section (economy, roster, storage, system)
            key: Setting key
            default: Default value if setting not found

        Returns:
            Configuration value or default
        """
        section_obj = getattr(self, section, None) if section in self.SECTIONS else None
        if section_obj is None:
            return default

        return getattr(section_obj, key, default)

    def set_setting(self, section: str, key: str, value: Any):
        """
        Set a specific configuration setting.

        Args:
            section: Configuration section
            key: Setting key
            value: New value
        """
        if section not in self.SECTIONS:
            raise ConfigurationError(f"Invalid configuration section: {section}")

        section_obj = getattr(self, section)
        if not hasattr(section_obj, key):
            raise ConfigurationError(f"Invalid configuration key: {section}.{key}")

        setattr(section_obj, key, value)
        self.logger.info(f"Configuration updated: {section}.{key} = {value}")

    def __str__(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, indent=2)
