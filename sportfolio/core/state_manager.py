"""
State management for the Sportfolio engine

Persists the whole GameState as a single JSON document and recovers a
usable season from whatever is (or is not) on disk.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config import Config
from ..trading.models import GameState
from ..trading.season import default_fixtures, new_game_state
from ..utils.error_handler import RetryConfig, with_retry
from ..utils.exceptions import StateError
from ..utils.helpers import utc_now
from ..utils.logging_config import get_logger


class StateManager:
    """
    Loads and saves the season snapshot.

    Loading never fails: a missing, unreadable or malformed snapshot is
    logged and replaced by a fresh season. Saving is atomic and retries
    transient I/O errors.
    """

    def __init__(
        self,
        config: Config,
        retry_config: Optional[RetryConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize state manager.

        Args:
            config: Configuration instance
            retry_config: Backoff for snapshot writes; defaults to
                ``storage.save_attempts`` attempts on OSError
            clock: Source of the ``last_updated`` timestamp
        """
        self.config = config
        self.logger = get_logger(__name__)
        self.clock = clock

        self.state_file = Path(config.storage.state_file)
        self.retry_config = retry_config or RetryConfig(
            max_attempts=config.storage.save_attempts,
            exceptions=OSError
        )

    def has_saved_state(self) -> bool:
        return self.state_file.exists()

    def new_state(self) -> GameState:
        return new_game_state(self.config.economy, self.config.roster)

    def load_state(self) -> GameState:
        """
        Load the saved season, or start a fresh one.

        Returns:
            The stored GameState, with default fixtures merged in when the
            snapshot has none
        """
        if not self.has_saved_state():
            self.logger.info(f"No saved state at {self.state_file}, starting fresh season")
            return self.new_state()

        try:
            with open(self.state_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise StateError(
                    "Snapshot root is not an object",
                    state_type="game_state",
                    state_path=str(self.state_file)
                )
            state = GameState.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, StateError) as e:
            self.logger.error(f"Error loading state from {self.state_file}: {e}; starting fresh season")
            return self.new_state()

        if not state.fixtures:
            state.fixtures = default_fixtures()
            self.logger.info("Saved state had no fixtures, merged defaults")

        self.logger.debug(f"State loaded - Round: {state.round}")
        return state

    def save_state(self, state: GameState) -> None:
        """
        Write the snapshot atomically and stamp ``last_updated``.

        Raises:
            StateError: If the write still fails after all retries
        """
        state.last_updated = self.clock().isoformat()
        payload = json.dumps(state.to_dict(), indent=2, ensure_ascii=False)

        try:
            with_retry(self.retry_config)(self._write)(payload)
        except OSError as e:
            raise StateError(
                f"Failed to save state: {e}",
                state_type="game_state",
                state_path=str(self.state_file)
            )

        self.logger.debug(f"State saved - Round: {state.round}")

    def _write(self, payload: str) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.state_file.with_suffix(self.state_file.suffix + '.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            f.write(payload)

        # Atomic rename
        temp_file.replace(self.state_file)
