"""Tests for the Nanoleaf retrier."""
import asyncio

import aiohttp
import pytest

from nanoleaf_api.const import STAGE_MAKING
from nanoleaf_api.context import Context
from nanoleaf_api.exceptions import (
    ContextCancelledError,
    DeadlineExceededError,
    NanoleafHTTPStatusError,
    NanoleafRequestError,
)
from nanoleaf_api.retry import Retrier, is_retryable, next_timeout


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def wrapped(stage, cause):
    """Build a request error chained to its cause like ``raise ... from``."""
    err = NanoleafRequestError(stage, cause)
    err.__cause__ = cause
    return err


def test_is_retryable_deadline_exceeded():
    """Test that an exceeded sub-deadline is retryable."""
    assert is_retryable(DeadlineExceededError()) is True


def test_is_retryable_transport_timeouts():
    """Test that transport timeouts are retryable."""
    assert is_retryable(asyncio.TimeoutError()) is True
    assert is_retryable(aiohttp.ServerTimeoutError("read timed out")) is True


def test_is_retryable_follows_cause_chain():
    """Test that a wrapped transport timeout is retryable."""
    assert is_retryable(wrapped(STAGE_MAKING, aiohttp.ServerTimeoutError("timeout"))) is True
    assert is_retryable(wrapped(STAGE_MAKING, ConnectionRefusedError("refused"))) is False


def test_is_retryable_permanent_errors():
    """Test that cancellation and other failures are permanent."""
    assert is_retryable(None) is False
    assert is_retryable(ContextCancelledError()) is False
    assert is_retryable(aiohttp.ClientConnectionError("refused")) is False
    assert is_retryable(NanoleafHTTPStatusError(500, "Internal Server Error")) is False
    assert is_retryable(ValueError("malformed")) is False


def test_next_timeout():
    """Test the timeout growth and its cap."""
    assert next_timeout(0.1) == pytest.approx(0.15)
    assert next_timeout(4.0) == 5.0
    assert next_timeout(5.0) == 5.0
    assert next_timeout(1.0, multiplier=2.0, maximum=3.0) == 2.0


def test_retrier_rejects_bad_configuration():
    """Test retrier parameter validation."""
    with pytest.raises(ValueError):
        Retrier(base_timeout=0)
    with pytest.raises(ValueError):
        Retrier(multiplier=0.5)
    with pytest.raises(ValueError):
        Retrier(base_timeout=1.0, max_timeout=0.5)


@pytest.mark.asyncio
async def test_success_on_first_attempt():
    """Test that a successful operation runs once."""
    timeouts = []

    async def operation(sub):
        timeouts.append(sub.timeout)
        return "ok"

    result = await Retrier().run(Context.background(), operation)

    assert result == "ok"
    assert timeouts == [0.1]


@pytest.mark.asyncio
async def test_retries_until_success_with_growing_timeouts():
    """Test the per-attempt timeout sequence across retryable failures."""
    failures = 12
    timeouts = []

    async def operation(sub):
        timeouts.append(sub.timeout)
        if len(timeouts) <= failures:
            raise DeadlineExceededError()
        return "ok"

    result = await Retrier().run(Context.background(), operation)

    assert result == "ok"
    assert len(timeouts) == failures + 1
    expected = [min(0.1 * 1.5 ** k, 5.0) for k in range(failures + 1)]
    assert timeouts == pytest.approx(expected)
    assert all(a <= b for a, b in zip(timeouts, timeouts[1:]))
    assert max(timeouts) == 5.0


@pytest.mark.asyncio
async def test_retries_wrapped_transport_timeouts():
    """Test that wrapped aiohttp timeouts are retried."""
    calls = 0

    async def operation(sub):
        nonlocal calls
        calls += 1
        if calls < 3:
            raise wrapped(STAGE_MAKING, aiohttp.ServerTimeoutError("timeout"))
        return calls

    assert await Retrier().run(Context.background(), operation) == 3


@pytest.mark.asyncio
async def test_permanent_error_is_raised_after_one_attempt():
    """Test that a non-retryable error stops the loop immediately."""
    calls = 0
    error = wrapped(STAGE_MAKING, ConnectionRefusedError("connection refused"))

    async def operation(sub):
        nonlocal calls
        calls += 1
        raise error

    with pytest.raises(NanoleafRequestError) as exc_info:
        await Retrier().run(Context.background(), operation)

    assert exc_info.value is error
    assert calls == 1


@pytest.mark.asyncio
async def test_umbrella_deadline_ends_retries():
    """Test that an expired umbrella context raises its own error."""
    clock = FakeClock()
    ctx = Context.background(clock=clock).with_timeout(1.0)
    calls = 0

    async def operation(sub):
        nonlocal calls
        calls += 1
        if calls == 3:
            clock.now += 2.0
        raise aiohttp.ServerTimeoutError("timeout")

    with pytest.raises(DeadlineExceededError) as exc_info:
        await Retrier().run(ctx, operation)

    assert exc_info.value is ctx.err()
    assert calls == 3


@pytest.mark.asyncio
async def test_umbrella_deadline_is_not_a_per_attempt_timeout():
    """Test that a per-attempt timeout does not end the operation."""
    clock = FakeClock()
    ctx = Context.background(clock=clock).with_timeout(10.0)
    attempt_errors = []

    async def operation(sub):
        if len(attempt_errors) < 2:
            clock.now += sub.timeout
            attempt_errors.append(sub.err())
            raise sub.err()
        return "ok"

    assert await Retrier().run(ctx, operation) == "ok"
    assert all(isinstance(err, DeadlineExceededError) for err in attempt_errors)
    assert all(err is not ctx.err() for err in attempt_errors)
    assert ctx.err() is None


@pytest.mark.asyncio
async def test_cancelled_umbrella_ends_retries():
    """Test that cancelling the umbrella context between attempts stops the loop."""
    ctx = Context.background()
    calls = 0

    async def operation(sub):
        nonlocal calls
        calls += 1
        if calls == 2:
            ctx.cancel()
        raise asyncio.TimeoutError()

    with pytest.raises(ContextCancelledError) as exc_info:
        await Retrier().run(ctx, operation)

    assert exc_info.value is ctx.err()
    assert calls == 2


@pytest.mark.asyncio
async def test_cancel_interrupts_running_attempt():
    """Test that cancellation is observed in the middle of an attempt."""
    ctx = Context.background()
    started = asyncio.Event()

    async def operation(sub):
        started.set()
        await asyncio.sleep(10)

    async def cancel_soon():
        await started.wait()
        ctx.cancel()

    canceller = asyncio.create_task(cancel_soon())
    with pytest.raises(ContextCancelledError):
        await Retrier(base_timeout=5.0).run(ctx, operation)
    await canceller


@pytest.mark.asyncio
async def test_sub_deadline_bounds_slow_attempts():
    """Test that a hanging attempt is abandoned and retried with a longer timeout."""
    timeouts = []

    async def operation(sub):
        timeouts.append(sub.timeout)
        if len(timeouts) < 3:
            await asyncio.sleep(10)
        return "ok"

    retrier = Retrier(base_timeout=0.01, multiplier=1.5, max_timeout=0.02)
    result = await asyncio.wait_for(retrier.run(Context.background(), operation), timeout=5)

    assert result == "ok"
    assert timeouts == pytest.approx([0.01, 0.015, 0.02])


@pytest.mark.asyncio
async def test_trace_hook_called_at_start_and_end():
    """Test that tracing covers the whole operation, not each attempt."""
    traces = []
    ctx = Context.background()

    def tracef(trace_ctx, fmt, *args):
        traces.append((trace_ctx, fmt % args))

    calls = 0

    async def operation(sub):
        nonlocal calls
        calls += 1
        if calls < 3:
            raise DeadlineExceededError()
        return "ok"

    await Retrier(tracef=tracef).run(ctx, operation)

    assert len(traces) == 2
    assert all(trace_ctx is ctx for trace_ctx, _ in traces)
    assert traces[0][1].startswith("Nanoleaf operation starting")
    assert traces[1][1].startswith("Nanoleaf operation finished after")


@pytest.mark.asyncio
async def test_trace_hook_on_give_up():
    """Test the trace line written when the umbrella context is done."""
    traces = []
    ctx = Context.background()

    async def operation(sub):
        ctx.cancel()
        raise DeadlineExceededError()

    with pytest.raises(ContextCancelledError):
        await Retrier(tracef=lambda _ctx, fmt, *args: traces.append(fmt % args)).run(ctx, operation)

    assert traces[-1].startswith("Nanoleaf operation giving up")
