"""
Error handling utilities for the Sportfolio engine

Adds operation context to raised errors and retries transient I/O
failures with exponential backoff.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type, Union

import tenacity
from tenacity import (
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_exponential_jitter,
)

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)
        max_delay: Maximum delay in seconds between retries (default: 2.0)
        exponential_base: Base for the exponential backoff (default: 2.0)
        jitter: Whether to add jitter to backoff delays (default: False)
        exceptions: Exception types to retry on (default: OSError)
        reraise: Whether to re-raise the last exception when all retries are exhausted (default: True)
    """
    max_attempts: int = 3
    base_delay: float = 0.1
    max_delay: float = 2.0
    exponential_base: float = 2.0
    jitter: bool = False
    exceptions: Union[Type[Exception], tuple] = OSError
    reraise: bool = True

    def to_tenacity_config(self) -> Dict[str, Any]:
        """
        Convert this config to a dictionary of tenacity retry arguments.

        Returns:
            Dict of arguments that can be passed to tenacity.retry decorator
        """
        if self.jitter:
            wait = wait_exponential_jitter(
                initial=self.base_delay,
                max=self.max_delay,
                exp_base=self.exponential_base
            )
        else:
            wait = wait_exponential(
                multiplier=self.base_delay,
                max=self.max_delay,
                exp_base=self.exponential_base
            )

        return {
            'stop': stop_after_attempt(self.max_attempts),
            'wait': wait,
            'retry': retry_if_exception_type(self.exceptions),
            'before_sleep': before_sleep_log(logger, logging.WARNING),
            'reraise': self.reraise
        }


def with_retry(config: Optional[RetryConfig] = None, **kwargs) -> Callable:
    """
    Decorator that applies tenacity retry behavior described by a RetryConfig.

    Args:
        config: A RetryConfig instance with retry settings. If None, a default
               config will be created with any provided kwargs.
        **kwargs: If config is None, these kwargs will be used to create a new
                 RetryConfig.

    Example:
        @with_retry(RetryConfig(max_attempts=5, base_delay=0.5))
        def write_snapshot():
            ...
    """
    if config is None:
        config = RetryConfig(**kwargs)
    elif kwargs:
        raise ValueError("Cannot provide both config and kwargs to with_retry")

    def decorator(func):
        return tenacity.retry(**config.to_tenacity_config())(func)
    return decorator


def error_context(operation_name: str, context_data: Optional[Dict[str, Any]] = None, logger=None):
    """
    Context manager that adds context to any exceptions raised within its block.

    Args:
        operation_name: Name of the operation being performed (e.g., 'buy', 'advance_round')
        context_data: Optional dictionary of context data to include with any exceptions
        logger: Optional logger to log context information with exceptions

    Example:
        with error_context('buy', {'participant': 'Jas', 'team': 'Geelong'}, logger):
            executor.buy(...)
    """
    if context_data is None:
        context_data = {}

    class ErrorContext:
        def __init__(self, operation_name, context_data, logger):
            self.operation_name = operation_name
            self.context_data = context_data
            self.logger = logger

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                if hasattr(exc_val, 'context') and isinstance(exc_val.context, dict):
                    exc_val.context.update({
                        'operation': self.operation_name,
                        **self.context_data
                    })

                if self.logger is not None:
                    context_str = ', '.join(f"{k}={v}" for k, v in self.context_data.items())
                    self.logger.warning(
                        f"{self.operation_name} rejected [{context_str}]: {exc_val}"
                    )

                # Don't suppress the exception
                return False

    return ErrorContext(operation_name, context_data, logger)
