# -*- coding: utf-8 -*-
"""
pytest configuration file with fixtures for sportfolio testing.
"""
import logging
from datetime import datetime, timezone

import pytest
import structlog

from sportfolio.core.config import Config
from sportfolio.core.engine import GameEngine
from sportfolio.core.state_manager import StateManager
from sportfolio.trading.models import Holding
from sportfolio.trading.portfolio import HoldingPolicy, PortfolioAccounting
from sportfolio.trading.season import new_game_state
from sportfolio.trading.simulator import TradeExecutor
from sportfolio.utils.error_handler import RetryConfig

FIXED_NOW = datetime(2026, 3, 12, 9, 30, tzinfo=timezone.utc)

ENV_VARS = [
    "SPORTFOLIO_STATE_FILE",
    "SPORTFOLIO_ADMIN",
    "SPORTFOLIO_STARTING_CASH",
    "LOG_LEVEL",
    "LOG_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "gamestate.json"


@pytest.fixture
def config(tmp_path, state_file):
    """Default configuration writing into a temporary directory."""
    config = Config()
    config.storage.state_file = str(state_file)
    config.system.log_dir = str(tmp_path / "logs")
    return config


@pytest.fixture
def no_wait_retry():
    return RetryConfig(max_attempts=3, base_delay=0, max_delay=0)


@pytest.fixture
def state_manager(config, clock, no_wait_retry):
    return StateManager(config, retry_config=no_wait_retry, clock=clock)


@pytest.fixture
def engine(config, state_manager, clock):
    return GameEngine(config, state_manager=state_manager, clock=clock)


@pytest.fixture
def state(config):
    """Fresh round-0 season."""
    return new_game_state(config.economy, config.roster)


@pytest.fixture
def accounting():
    return PortfolioAccounting()


@pytest.fixture
def policy():
    return HoldingPolicy()


@pytest.fixture
def executor(accounting, policy):
    return TradeExecutor(accounting, policy, portfolio_cap=0.25)


@pytest.fixture
def jas(state):
    return state.participant("Jas")


@pytest.fixture
def holding_factory():
    def make(team, shares, buy_price=1.0, buy_round=0):
        return Holding(team=team, shares=shares, buy_price=buy_price, buy_round=buy_round)
    return make


@pytest.fixture
def restore_logging():
    """Undo handler changes made by setup_logging during a test."""
    root = logging.getLogger()
    trading = logging.getLogger("sportfolio.trading")
    saved = (list(root.handlers), root.level, list(trading.handlers), trading.propagate)
    yield
    for handler in root.handlers:
        if handler not in saved[0]:
            handler.close()
    for handler in trading.handlers:
        if handler not in saved[2]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    trading.handlers[:] = saved[2]
    trading.propagate = saved[3]
    structlog.reset_defaults()
