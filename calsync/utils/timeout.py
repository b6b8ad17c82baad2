import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from calsync.core.config import settings
from calsync.core.exceptions import ServiceTimeoutException

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    awaitable: Awaitable[T], timeout: float, error_message: str = "Operation timed out"
) -> T:
    """
    Await with a timeout.

    Raises:
        ServiceTimeoutException: If the operation times out
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Timeout error: {error_message} (limit: {timeout}s)")
        raise ServiceTimeoutException(error_message)


async def run_blocking(
    func: Callable[..., T],
    *args: Any,
    timeout: Optional[float] = None,
    error_message: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Run a blocking call (e.g. a Google API request) in a worker thread, bounded
    by ``timeout`` seconds (default DEFAULT_TIMEOUT).

    On timeout the caller gets a ServiceTimeoutException right away; the worker
    thread itself is left to finish against its own socket timeout.
    """
    timeout = timeout if timeout is not None else settings.DEFAULT_TIMEOUT
    name = getattr(func, "__name__", repr(func))
    return await with_timeout(
        asyncio.to_thread(functools.partial(func, *args, **kwargs)),
        timeout=timeout,
        error_message=error_message or f"{name} timed out",
    )
