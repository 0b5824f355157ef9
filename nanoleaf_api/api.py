"""API client for Nanoleaf controllers on the local network."""
import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession

from .const import (
    API_BASE,
    BACKOFF_MULTIPLIER,
    BASE_TIMEOUT,
    MAX_TIMEOUT,
    API_EFFECTS,
    API_PORT,
    API_ROOT,
    API_STATE,
    DURATION_UNIT,
    HEADERS,
    KEY_BRIGHTNESS,
    KEY_DURATION,
    KEY_HUE,
    KEY_ON,
    KEY_SATURATION,
    KEY_SELECT,
    KEY_VALUE,
    MAX_RESPONSE_DATA,
    STAGE_DECODING,
    STAGE_ENCODING,
    STAGE_MAKING,
    STAGE_PREPARING,
    STAGE_READING,
    TIMEOUT,
    TOKEN_PLACEHOLDER,
)
from .context import Context
from .exceptions import (
    NanoleafDecodeError,
    NanoleafHTTPStatusError,
    NanoleafRequestError,
)
from .models import Color, State
from .retry import Retrier, Tracef

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Response:
    """Status line and body of one HTTP exchange."""

    status: int
    reason: Optional[str]
    body: bytes


class Controller:
    """Client for a single Nanoleaf controller.

    The controller holds no connection between calls: unless a session is
    injected, every attempt opens its own short-lived session and closes the
    connection afterwards, so a retry never inherits a half-broken one.
    """

    def __init__(
        self,
        host: str,
        auth_token: str,
        session: Optional[ClientSession] = None,
        tracef: Optional[Tracef] = None,
        timeout: float = TIMEOUT,
        base_timeout: float = BASE_TIMEOUT,
        backoff_multiplier: float = BACKOFF_MULTIPLIER,
        max_timeout: float = MAX_TIMEOUT,
    ) -> None:
        """Initialize the API client.

        ``timeout`` bounds calls made without a context. The remaining
        arguments tune the per-attempt timeouts of the retrier.
        """
        self._host = host
        self._auth_token = auth_token
        self._session = session
        self._tracef = tracef
        self._timeout = timeout
        self._retrier = Retrier(base_timeout, backoff_multiplier, max_timeout, tracef=tracef)

    @property
    def host(self) -> str:
        """Return the device address."""
        return self._host

    @property
    def auth_token(self) -> str:
        """Return the auth token."""
        return self._auth_token

    def _trace(self, ctx: Context, fmt: str, *args: Any) -> None:
        if self._tracef is not None:
            self._tracef(ctx, fmt, *args)

    def _build_url(self, token: str, path: str) -> str:
        """Build the full URL for the given path."""
        return f"http://{self._host}:{API_PORT}{API_BASE}{token}{path}"

    def _context(self, ctx: Optional[Context]) -> Context:
        if ctx is not None:
            return ctx
        return Context.background().with_timeout(self._timeout)

    async def state(self, ctx: Optional[Context] = None) -> State:
        """Request the state of the controller."""
        data = await self._get(self._context(ctx), API_ROOT)
        try:
            return State.from_dict(data)
        except ValueError as err:
            _LOGGER.error("Nanoleaf Invalid State: %s | Error: %s", self._host, err)
            raise NanoleafDecodeError(STAGE_DECODING, err, host=self._host, endpoint=API_ROOT) from err

    async def off(self, ctx: Optional[Context] = None) -> None:
        """Turn the controller off."""
        await self._put(self._context(ctx), API_STATE, {KEY_ON: {KEY_VALUE: False}})

    async def on(self, ctx: Optional[Context] = None) -> None:
        """Turn the controller on."""
        await self._put(self._context(ctx), API_STATE, {KEY_ON: {KEY_VALUE: True}})

    async def set_brightness(
        self,
        value: int,
        duration: Optional[timedelta] = None,
        ctx: Optional[Context] = None,
    ) -> None:
        """Set the brightness to a value in [0,100], over a period of time.

        The transition duration is sent in whole seconds and only when it is
        not negative; a zero-second transition is left out.
        """
        brightness: Dict[str, Any] = {KEY_VALUE: value}
        if duration is not None and duration >= timedelta(0):
            seconds = duration // DURATION_UNIT
            if seconds:
                brightness[KEY_DURATION] = seconds
        await self._put(self._context(ctx), API_STATE, {KEY_BRIGHTNESS: brightness})

    async def set_effect(self, effect: str, ctx: Optional[Context] = None) -> None:
        """Select an effect stored on the controller by name."""
        await self._put(self._context(ctx), API_EFFECTS, {KEY_SELECT: effect})

    async def set_color(self, color: Color, ctx: Optional[Context] = None) -> None:
        """Set the color of all panels."""
        await self._put(
            self._context(ctx),
            API_STATE,
            {
                KEY_HUE: {KEY_VALUE: color.hue},
                KEY_SATURATION: {KEY_VALUE: color.saturation},
                KEY_BRIGHTNESS: {KEY_VALUE: color.brightness},
            },
        )

    async def _get(self, ctx: Context, path: str) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        self._trace(ctx, "Nanoleaf GET to %s", self._build_url(TOKEN_PLACEHOLDER, path))
        _LOGGER.debug("GET to %s", self._build_url(TOKEN_PLACEHOLDER, path))

        response = await self._retrier.run(ctx, lambda sub: self._exchange(sub, "GET", path, None))
        self._check_status(response, path)

        text = response.body.decode("utf-8", errors="replace")
        try:
            return json.loads(text)
        except ValueError as err:
            _LOGGER.error(
                "Nanoleaf JSON Decode Error: %s | Error: %s | Response: %s",
                self._host, err, text[:MAX_RESPONSE_DATA]
            )
            raise NanoleafDecodeError(
                STAGE_DECODING,
                err,
                host=self._host,
                endpoint=path,
                response_data=text[:MAX_RESPONSE_DATA],
            ) from err

    async def _put(self, ctx: Context, path: str, obj: Dict[str, Any]) -> None:
        """PUT ``obj`` as JSON to ``path``; the response body is discarded."""
        try:
            body = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as err:
            raise NanoleafRequestError(STAGE_ENCODING, err, host=self._host) from err

        self._trace(ctx, "Nanoleaf PUT to %s", self._build_url(TOKEN_PLACEHOLDER, path))
        _LOGGER.debug("PUT to %s | Payload: %s", self._build_url(TOKEN_PLACEHOLDER, path), body)

        response = await self._retrier.run(ctx, lambda sub: self._exchange(sub, "PUT", path, body))
        if response.status != 204:
            _LOGGER.debug("Nanoleaf Response Body: %s", response.body[:MAX_RESPONSE_DATA])
        self._check_status(response, path)

    def _check_status(self, response: _Response, path: str) -> None:
        _LOGGER.debug("Nanoleaf Response: %s | Status: %s %s", path, response.status, response.reason)
        if response.status >= 300:
            _LOGGER.error(
                "Nanoleaf HTTP Error: %s%s | Status: %s %s",
                self._host, path, response.status, response.reason
            )
            raise NanoleafHTTPStatusError(response.status, response.reason, host=self._host, endpoint=path)

    async def _exchange(self, ctx: Context, method: str, path: str, body: Optional[bytes]) -> _Response:
        """Perform one HTTP attempt bounded by ``ctx``."""
        if self._session is not None:
            return await self._send(self._session, ctx, method, path, body)

        connector = aiohttp.TCPConnector(force_close=True)
        async with aiohttp.ClientSession(connector=connector) as session:
            return await self._send(session, ctx, method, path, body)

    async def _send(
        self,
        session: ClientSession,
        ctx: Context,
        method: str,
        path: str,
        body: Optional[bytes],
    ) -> _Response:
        url = self._build_url(self._auth_token, path)
        timeout = aiohttp.ClientTimeout(total=ctx.remaining())
        try:
            async with session.request(method, url, data=body, headers=HEADERS, timeout=timeout) as response:
                try:
                    payload = await response.read()
                except (aiohttp.ClientError, asyncio.TimeoutError) as err:
                    raise NanoleafRequestError(STAGE_READING, err, host=self._host) from err
                return _Response(response.status, response.reason, payload)
        except aiohttp.InvalidURL as err:
            raise NanoleafRequestError(STAGE_PREPARING, err, host=self._host) from err
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            _LOGGER.debug("Nanoleaf Request Failed: %s %s | Error: %s", method, path, err)
            raise NanoleafRequestError(STAGE_MAKING, err, host=self._host) from err


def connect(
    host: str,
    auth_token: str,
    session: Optional[ClientSession] = None,
    tracef: Optional[Tracef] = None,
    timeout: float = TIMEOUT,
    base_timeout: float = BASE_TIMEOUT,
    backoff_multiplier: float = BACKOFF_MULTIPLIER,
    max_timeout: float = MAX_TIMEOUT,
) -> Controller:
    """Return a Controller for the device at ``host``.

    No request is made; the device is first contacted by the first call.
    """
    return Controller(
        host,
        auth_token,
        session=session,
        tracef=tracef,
        timeout=timeout,
        base_timeout=base_timeout,
        backoff_multiplier=backoff_multiplier,
        max_timeout=max_timeout,
    )
