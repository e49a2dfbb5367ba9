"""Retry utilities for handling transient failures.

Provides a decorator for retrying blocking operations with exponential
backoff. Used by the GitLab client for idempotent requests; the assignment
applier itself never retries.

Key Exports:
    retry: Decorator for adding retry logic to functions.

Example:
    >>> from gitlab_roulette.utils.retry import retry
    >>>
    >>> @retry(max_attempts=3, backoff_factor=2.0, exceptions=(TransportError,))
    ... def fetch_projects() -> list[dict]:
    ...     return client.get("/projects").json()

Backoff Formula:
    delay = backoff_factor ** attempt_number
    For backoff_factor=2.0: 2s, 4s, 8s, 16s, ...
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def retry(
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator with exponential backoff retry logic.

    Args:
        max_attempts: Maximum number of calls before giving up
        backoff_factor: Base of the exponential delay between attempts
        exceptions: Exception types that trigger a retry. Anything else
            propagates immediately.
        sleep: Function used to wait between attempts (time.sleep by default)

    Returns:
        A decorator wrapping the function with retry logic

    Raises:
        The last caught exception once all attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        log.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise

                    delay = backoff_factor**attempt
                    log.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    (sleep or time.sleep)(delay)

            raise RuntimeError("Retry logic error")

        return wrapper

    return decorator
