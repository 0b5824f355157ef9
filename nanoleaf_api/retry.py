"""Retry with growing per-attempt timeouts for Nanoleaf requests."""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .const import BACKOFF_MULTIPLIER, BASE_TIMEOUT, MAX_TIMEOUT
from .context import Context
from .exceptions import DeadlineExceededError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[Context], Awaitable[T]]
Tracef = Callable[..., Any]


def is_retryable(err: Optional[BaseException]) -> bool:
    """Return True if the error should cause another attempt.

    An error is retryable when it, or an error in its ``__cause__`` chain,
    is a context deadline or a transport timeout. aiohttp's timeout errors
    all derive from ``asyncio.TimeoutError``.
    """
    while err is not None:
        if isinstance(err, (DeadlineExceededError, asyncio.TimeoutError)):
            return True
        err = err.__cause__
    return False


def next_timeout(timeout: float, multiplier: float = BACKOFF_MULTIPLIER, maximum: float = MAX_TIMEOUT) -> float:
    """Return the attempt timeout that follows ``timeout``."""
    return min(timeout * multiplier, maximum)


class Retrier:
    """Runs an operation until it succeeds, fails permanently, or the context is done.

    There is no attempt limit. Every attempt gets a sub-deadline derived from
    the caller's context, starting at ``base_timeout`` and growing by
    ``multiplier`` up to ``max_timeout`` after each retryable failure.
    """

    def __init__(
        self,
        base_timeout: float = BASE_TIMEOUT,
        multiplier: float = BACKOFF_MULTIPLIER,
        max_timeout: float = MAX_TIMEOUT,
        tracef: Optional[Tracef] = None,
    ) -> None:
        """Initialize the retrier."""
        if base_timeout <= 0:
            raise ValueError("base_timeout must be > 0")
        if multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if max_timeout < base_timeout:
            raise ValueError("max_timeout must be >= base_timeout")
        self.base_timeout = base_timeout
        self.multiplier = multiplier
        self.max_timeout = max_timeout
        self.tracef = tracef

    def _trace(self, ctx: Context, fmt: str, *args: Any) -> None:
        if self.tracef is not None:
            self.tracef(ctx, fmt, *args)

    async def run(self, ctx: Context, operation: Operation) -> T:
        """Run ``operation`` under ``ctx`` and return its result."""
        timeout = self.base_timeout
        start = time.monotonic()
        attempt = 0
        self._trace(ctx, "Nanoleaf operation starting with timeout %.3fs", timeout)

        while True:
            attempt += 1
            _LOGGER.debug("Trying operation with timeout=%.3fs (attempt %d)", timeout, attempt)
            try:
                with ctx.with_timeout(timeout) as sub:
                    result = await sub.run(operation(sub))
            except Exception as err:
                if not is_retryable(err):
                    # Permanent failure.
                    self._trace(ctx, "Nanoleaf operation finished after %.3fs", time.monotonic() - start)
                    raise

                umbrella_err = ctx.err()
                if umbrella_err is not None:
                    _LOGGER.warning(
                        "Giving up on operation after %d attempts and %.2fs: %s",
                        attempt, time.monotonic() - start, umbrella_err
                    )
                    self._trace(ctx, "Nanoleaf operation giving up after %.3fs", time.monotonic() - start)
                    raise umbrella_err.with_traceback(None)

                _LOGGER.warning(
                    "Operation timed out after %.3fs (attempt %d), retrying: %s",
                    timeout, attempt, err
                )
                timeout = next_timeout(timeout, self.multiplier, self.max_timeout)
                continue

            self._trace(ctx, "Nanoleaf operation finished after %.3fs", time.monotonic() - start)
            return result
