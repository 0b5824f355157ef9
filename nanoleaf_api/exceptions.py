"""Custom exceptions for the Nanoleaf local API client."""
from typing import Optional


class NanoleafError(Exception):
    """Base exception for all Nanoleaf client failures."""

    def __init__(self, message: str, host: Optional[str] = None, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.host = host
        self.original_error = original_error


class NanoleafRequestError(NanoleafError):
    """Exception raised when building, sending or reading a request fails.

    ``stage`` names the step that failed, e.g. "making HTTP request".
    """

    def __init__(self, stage: str, original_error: BaseException, host: Optional[str] = None):
        super().__init__(f"{stage}: {original_error}", host=host, original_error=original_error)
        self.stage = stage


class NanoleafHTTPStatusError(NanoleafError):
    """Exception raised when the device answers with a status of 300 or above."""

    def __init__(self, status: int, reason: Optional[str] = None, host: Optional[str] = None, endpoint: Optional[str] = None):
        status_text = f"{status} {reason}" if reason else str(status)
        super().__init__(f"HTTP response {status_text}", host=host)
        self.status = status
        self.reason = reason
        self.endpoint = endpoint


class NanoleafDecodeError(NanoleafError):
    """Exception raised when a response body is not the expected JSON."""

    def __init__(
        self,
        stage: str,
        original_error: BaseException,
        host: Optional[str] = None,
        endpoint: Optional[str] = None,
        response_data: Optional[str] = None,
    ):
        super().__init__(f"{stage}: {original_error}", host=host, original_error=original_error)
        self.stage = stage
        self.endpoint = endpoint
        self.response_data = response_data


class ContextError(NanoleafError):
    """Base exception for a context that is done."""


class DeadlineExceededError(ContextError):
    """Exception raised when a context deadline passes."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class ContextCancelledError(ContextError):
    """Exception raised when a context has been cancelled."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)
