# dit/utils/retry.py
# Async retry decorator for flaky outbound calls

import asyncio
import logging
from functools import wraps
from typing import Callable, Iterator, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delays(retries: int, base: float, cap: float, linear: bool = False) -> Iterator[float]:
    """Pause before each retry: base, 2*base, 3*base... or base, 2*base, 4*base..."""
    for n in range(retries):
        step = n + 1 if linear else 2 ** n
        yield min(base * step, cap)


def retry_with_backoff(
    max_retries: int = 2,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    linear: bool = False,
):
    """Re-run the wrapped coroutine on the listed exceptions, at most max_retries times.

    The last failure propagates unchanged; anything not in exceptions is
    raised on the first occurrence.
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            pauses = backoff_delays(max_retries, base_delay, max_delay, linear)
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    pause = next(pauses, None)
                    if pause is None:
                        logger.error(f"{func.__name__} gave up after {max_retries + 1} tries: {e}")
                        raise
                    logger.warning(f"{func.__name__} failed ({type(e).__name__}: {e}), retry in {pause:.2f}s")
                    await asyncio.sleep(pause)

        return wrapper
    return decorator
