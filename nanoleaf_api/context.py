"""Deadline and cancellation context for Nanoleaf operations."""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Set, TypeVar

from .exceptions import ContextCancelledError, ContextError, DeadlineExceededError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _discard_outcome(task: asyncio.Future) -> None:
    """Retrieve the outcome of an abandoned task so asyncio does not report it."""
    if task.done() and not task.cancelled():
        task.exception()


class Context:
    """Cancellation token with an optional deadline.

    A context is either a root (``Context.background()``) or a child derived
    from another context with ``with_timeout``/``with_deadline``. A child
    never outlives its parent: its deadline is capped by the parent's, and
    cancelling the parent cancels the child. Once a context is done,
    ``err()`` keeps returning the same exception object, and a child whose
    parent finished first reports the parent's exception.

    Children are context managers; leaving the ``with`` block releases them.
    """

    def __init__(
        self,
        deadline: Optional[float] = None,
        *,
        parent: Optional["Context"] = None,
        clock: Optional[Callable[[], float]] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the context."""
        self._parent = parent
        if parent is not None:
            clock = parent._clock
            if parent.deadline is not None:
                deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._clock = clock or time.monotonic
        self._deadline = deadline
        self.timeout = timeout
        self._err: Optional[ContextError] = None
        self._children: Set["Context"] = set()
        self._waiters: Set[asyncio.Future] = set()

    @classmethod
    def background(cls, clock: Optional[Callable[[], float]] = None) -> "Context":
        """Return a root context that has no deadline."""
        return cls(clock=clock)

    @property
    def deadline(self) -> Optional[float]:
        """Return the deadline on this context's clock, if any."""
        return self._deadline

    def now(self) -> float:
        """Return the current time on this context's clock."""
        return self._clock()

    def with_deadline(self, deadline: float) -> "Context":
        """Derive a child that expires at ``deadline`` at the latest."""
        return self._derive(deadline, None)

    def with_timeout(self, timeout: float) -> "Context":
        """Derive a child that expires ``timeout`` seconds from now at the latest."""
        return self._derive(self._clock() + timeout, timeout)

    def _derive(self, deadline: float, timeout: Optional[float]) -> "Context":
        child = Context(deadline, parent=self, timeout=timeout)
        self._children.add(child)
        return child

    def remaining(self) -> Optional[float]:
        """Return the seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def err(self) -> Optional[ContextError]:
        """Return why the context is done, or None while it is live."""
        if self._err is None and self._parent is not None:
            self._err = self._parent.err()
        if self._err is None and self._deadline is not None and self._clock() >= self._deadline:
            self._err = DeadlineExceededError()
        return self._err

    def done(self) -> bool:
        """Return True once the context is cancelled or past its deadline."""
        return self.err() is not None

    def cancel(self) -> None:
        """Cancel the context and every child derived from it."""
        if self.err() is None:
            self._err = ContextCancelledError()
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)
        for child in list(self._children):
            child.cancel()

    def release(self) -> None:
        """Cancel the context and detach it from its parent."""
        self.cancel()
        if self._parent is not None:
            self._parent._children.discard(self)

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` until it finishes or this context is done.

        When the context finishes first, the awaitable is cancelled and the
        context's error is raised.
        """
        err = self.err()
        if err is not None:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise err.with_traceback(None)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.add(waiter)
        try:
            await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.add_done_callback(_discard_outcome)
            task.cancel()
            raise
        finally:
            self._waiters.discard(waiter)
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        _discard_outcome(task)
        err = self.err()
        if err is None:
            # The event loop timer fired slightly ahead of the clock.
            err = self._err = DeadlineExceededError()
        _LOGGER.debug("Abandoned operation: %s", err)
        raise err.with_traceback(None)
