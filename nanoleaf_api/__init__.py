"""Client for the local HTTP API of Nanoleaf lighting controllers."""
from .api import Controller, connect
from .context import Context
from .exceptions import (
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
    NanoleafDecodeError,
    NanoleafError,
    NanoleafHTTPStatusError,
    NanoleafRequestError,
)
from .models import Color, Effects, State
from .retry import Retrier, is_retryable, next_timeout

__all__ = [
    "Color",
    "Context",
    "ContextCancelledError",
    "ContextError",
    "Controller",
    "DeadlineExceededError",
    "Effects",
    "NanoleafDecodeError",
    "NanoleafError",
    "NanoleafHTTPStatusError",
    "NanoleafRequestError",
    "Retrier",
    "State",
    "connect",
    "is_retryable",
    "next_timeout",
]
