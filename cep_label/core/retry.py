from __future__ import annotations

import asyncio
import logging
import random
from time import perf_counter
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

import httpx
import orjson

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transport-level faults worth another attempt. HTTP status errors are not
# retried: the registry answered.
RETRIABLE: Tuple[Type[BaseException], ...] = (
    httpx.RequestError,
    asyncio.TimeoutError,
    orjson.JSONDecodeError,
)


async def retry_logic(
    func: Callable[..., Awaitable[T]],
    max_retries: int,
    backoff_factor: float,
    *args: Any,
    **kwargs: Any
) -> T:
    """Await ``func(*args, **kwargs)``, retrying transport faults with jittered backoff.

    The call is attempted at most ``max_retries + 1`` times. The last
    exception is re-raised once retries are exhausted; non-retriable
    exceptions propagate immediately.
    """
    retries = 0
    name = getattr(func, "__name__", str(func))

    while True:
        try:
            attempt_start = perf_counter()
            result = await func(*args, **kwargs)
            logger.debug(
                "Function %s succeeded in %.3f s on attempt %d/%d",
                name,
                perf_counter() - attempt_start,
                retries + 1,
                max_retries + 1,
            )
            return result

        except RETRIABLE as exc:
            retries += 1
            if retries > max_retries:
                logger.error(
                    "Function %s failed after %d retries: %s",
                    name,
                    max_retries,
                    type(exc).__name__,
                )
                raise
            wait_time = random.uniform(0, backoff_factor ** retries)
            logger.warning(
                "Function %s encountered %s, retrying in %.1f s (%d/%d)",
                name,
                type(exc).__name__,
                wait_time,
                retries,
                max_retries,
            )
            await asyncio.sleep(wait_time)
