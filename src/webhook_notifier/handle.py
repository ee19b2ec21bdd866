from __future__ import annotations

import enum
import logging
import threading
import uuid
from typing import AsyncIterator, Optional

import httpx

from .errors import ConfigurationError, InvalidTransition


logger = logging.getLogger(__name__)


class RequestState(enum.IntEnum):
    CREATED = 0
    REGISTERED = 1
    STREAM_OPEN = 2
    BODY_WRITTEN = 3
    AWAITING_RESPONSE = 4
    COMPLETED = 5
    FAILED = 6


TERMINAL_STATES = frozenset({RequestState.COMPLETED, RequestState.FAILED})


def _parse_endpoint(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except (TypeError, httpx.InvalidURL) as exc:
        raise ConfigurationError(f"Invalid webhook URL: {exc}") from exc
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError("Webhook URL must be an absolute http(s) URL")
    return parsed


def _parse_proxy(proxy_address: Optional[str]) -> Optional[str]:
    if not proxy_address:
        return None
    try:
        proxy = httpx.Proxy(proxy_address)
    except (TypeError, ValueError, httpx.InvalidURL) as exc:
        raise ConfigurationError(f"Invalid proxy address {proxy_address!r}: {exc}") from exc
    if not proxy.url.host:
        raise ConfigurationError(f"Invalid proxy address {proxy_address!r}: missing host")
    return proxy_address


class RequestHandle:
    """One in-flight POST, from registration to its terminal state."""

    def __init__(self, url: str, body: bytes, proxy_address: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self.url = _parse_endpoint(url)
        self.proxy = _parse_proxy(proxy_address)
        self.body = body
        self.error: Optional[BaseException] = None
        self._state = RequestState.CREATED
        self._lock = threading.Lock()

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def advance(self, state: RequestState) -> bool:
        if state in TERMINAL_STATES:
            raise InvalidTransition(f"Use finish() to move to {state.name}")
        with self._lock:
            if self._state in TERMINAL_STATES:
                return False
            if state <= self._state:
                raise InvalidTransition(f"{self._state.name} -> {state.name}")
            self._state = state
        logger.debug("Request %s -> %s", self.id, state.name)
        return True

    def finish(self, state: RequestState, error: Optional[BaseException] = None) -> bool:
        """Move to a terminal state. Only the first call wins."""
        if state not in TERMINAL_STATES:
            raise InvalidTransition(f"{state.name} is not terminal")
        with self._lock:
            if self._state in TERMINAL_STATES:
                return False
            self._state = state
            self.error = error
        logger.debug("Request %s -> %s", self.id, state.name)
        return True

    async def iter_body(self) -> AsyncIterator[bytes]:
        self.advance(RequestState.STREAM_OPEN)
        yield self.body
        self.advance(RequestState.BODY_WRITTEN)
        self.advance(RequestState.AWAITING_RESPONSE)

    def __repr__(self) -> str:
        return f"<RequestHandle {self.id} {self._state.name}>"
