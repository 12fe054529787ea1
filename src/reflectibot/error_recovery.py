"""
Error Recovery - retry and classification for collaborator calls.

Provides:
- Retry logic with exponential backoff (async, for HTTP collaborators)
- Error classification (transient vs permanent)
- Exception types for collaborator failures

Retries belong at the collaborator boundary (the LLM gateway). The engine
itself never retries: on failure it falls back in-process.
"""

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar


class ErrorType(Enum):
    """Classification of error types."""
    TRANSIENT = "transient"  # Temporary, should retry
    PERMANENT = "permanent"  # Persistent, don't retry
    NETWORK = "network"      # Network issue, transient
    CONFIG = "config"        # Configuration error, permanent


@dataclass
class RetryConfig:
    """Configuration for retry logic."""
    max_attempts: int = 3
    initial_delay: float = 0.1  # seconds
    max_delay: float = 5.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True


T = TypeVar("T")


class CollaboratorError(Exception):
    """An external collaborator (text generation, storage) failed."""
    error_type: ErrorType = ErrorType.TRANSIENT


class TransientError(CollaboratorError):
    """Temporary failure worth retrying (rate limit, 5xx)."""
    error_type = ErrorType.TRANSIENT


class PermanentError(CollaboratorError):
    """Failure that retrying will not fix (bad key, bad request)."""
    error_type = ErrorType.PERMANENT


def classify_error(error: Exception) -> ErrorType:
    """
    Classify an exception into an error type.

    Explicit CollaboratorError subclasses carry their own type; anything
    else is classified by its message.
    """
    if isinstance(error, CollaboratorError):
        return error.error_type

    error_str = str(error).lower()

    if any(x in error_str for x in ["network", "connection", "timeout", "timed out", "unreachable"]):
        return ErrorType.NETWORK

    if any(x in error_str for x in ["config", "invalid", "missing", "unauthorized", "forbidden"]):
        return ErrorType.CONFIG

    return ErrorType.TRANSIENT


def backoff_delay(attempt: int, config: RetryConfig) -> float:
    """Delay before the retry following `attempt` (0-based)."""
    delay = min(config.initial_delay * (config.exponential_base ** attempt), config.max_delay)
    if config.jitter:
        delay = delay * (0.5 + random.random() * 0.5)
    return delay


async def retry_with_backoff_async(
    func: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    error_filter: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Async function to retry (no arguments)
        config: Retry configuration
        error_filter: Optional function to filter which errors to retry

    Returns:
        Function result

    Raises:
        Last exception if all retries fail, or the first non-retryable one
    """
    if config is None:
        config = RetryConfig()

    last_error: Optional[Exception] = None

    for attempt in range(config.max_attempts):
        try:
            return await func()
        except Exception as e:
            last_error = e

            if error_filter and not error_filter(e):
                raise

            if classify_error(e) in (ErrorType.PERMANENT, ErrorType.CONFIG):
                raise

            if attempt == config.max_attempts - 1:
                break

            await asyncio.sleep(backoff_delay(attempt, config))

    raise last_error
