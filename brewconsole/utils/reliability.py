"""
Reliability patterns for BrewConsole.

Retry with exponential backoff for idempotent requests.
"""

from typing import Any, Awaitable, Callable, Tuple, Type

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying operation",
        function=getattr(retry_state.fn, "__name__", repr(retry_state.fn)),
        attempt=retry_state.attempt_number,
        error=str(error),
        error_type=type(error).__name__,
    )


async def call_with_retry(
    func: Callable[..., Awaitable[Any]],
    *args,
    max_attempts: int = 3,
    backoff_min: float = 0.1,
    backoff_max: float = 4.0,
    retry_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs,
) -> Any:
    """
    Await ``func(*args, **kwargs)``, retrying on the given exceptions.

    The last exception is re-raised unchanged once attempts run out.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_min, min=backoff_min, max=backoff_max),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(func, *args, **kwargs)
