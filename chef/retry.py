import asyncio
import logging
from typing import Awaitable, Callable, TypeAlias, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


logger = logging.getLogger(__name__)


Sleep: TypeAlias = Callable[[float], Awaitable[None]]

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int,
    initial_delay: float = 0,
    retry_on: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await `operation()`, retrying failures of type `retry_on`.

    At most `retries + 1` calls. The wait starts at `initial_delay` and doubles
    after each failure. The last failure is re-raised unchanged.
    """
    if retries < 0:
        raise ValueError("retries must not be negative.")
    if initial_delay < 0:
        raise ValueError("initial_delay must not be negative.")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=initial_delay, exp_base=2),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()

    # AsyncRetrying either returns from the block above or raises.
    raise RuntimeError("Retrying stopped without a result.")
