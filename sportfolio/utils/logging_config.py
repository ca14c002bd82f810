"""
Logging configuration for the Sportfolio engine

Everything under the ``sportfolio.trading`` logger (executed and undone
trades, AI decisions, round advances, ladder changes) goes to its own
``trading_decisions.log``. Trade events are emitted through structlog and
land there as one JSON object per line.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import structlog

TRADING_LOGGER = "sportfolio.trading"

# Event names written by the trade executor
TRADE_EXECUTED = "trade_executed"
TRADE_UNDONE = "trade_undone"

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
DECISION_FORMAT = '%(asctime)s %(name)s %(message)s'


def _rotating_handler(
    path: Path,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_structlog(json_output: bool = True) -> None:
    """
    Route structlog through the standard library loggers.

    Args:
        json_output: Render events as JSON; key=value pairs otherwise
    """
    renderer = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_output
        else structlog.processors.KeyValueRenderer(key_order=["event"])
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Module-level loggers are created at import, before setup_logging runs
        cache_logger_on_first_use=False,
    )


def setup_logging(
    log_level: str = "INFO",
    log_dir: str = "logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    enable_console: bool = True,
    enable_structlog: bool = True
) -> None:
    """
    Set up logging for the sportfolio engine.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory to store log files
        max_bytes: Maximum size of each log file before rotation
        backup_count: Number of backup files to keep
        enable_console: Whether to log to stderr
        enable_structlog: Render trade events as JSON rather than key=value
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    detailed_formatter = logging.Formatter(fmt=DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_rotating_handler(
        log_path / "sportfolio.log", numeric_level, detailed_formatter, max_bytes, backup_count
    ))
    error_handler = _rotating_handler(
        log_path / "sportfolio_errors.log", logging.ERROR, detailed_formatter, max_bytes, backup_count
    )
    root_logger.addHandler(error_handler)

    trading_logger = logging.getLogger(TRADING_LOGGER)
    trading_logger.handlers.clear()
    trading_logger.addHandler(_rotating_handler(
        log_path / "trading_decisions.log",
        logging.INFO,
        logging.Formatter(fmt=DECISION_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'),
        max_bytes,
        backup_count
    ))
    # Kept out of the main log; errors are still written to sportfolio_errors.log
    trading_logger.propagate = False
    trading_logger.addHandler(error_handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s', datefmt='%H:%M:%S'
        ))
        root_logger.addHandler(console_handler)

    configure_structlog(json_output=enable_structlog)

    logging.getLogger(__name__).info(f"Logging initialized - Level: {log_level}, Directory: {log_dir}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)


def get_structured_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Structured logger for event-style records such as executed trades."""
    return structlog.get_logger(name)
