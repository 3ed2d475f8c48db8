from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable

from credentials import CredentialResolver
from errors import TokenExchangeFailed
from models import SessionToken
from utils.http import send_request


LOG = logging.getLogger(__name__)

TOKEN_EXCHANGE_URL = "https://api.github.com/copilot_internal/v2/token"
USER_AGENT = "copilot-mcp-server/1.0.0"
DEFAULT_TOKEN_TTL_SECONDS = 3600.0

# Epoch values at or above this are milliseconds.
_EPOCH_MILLIS_THRESHOLD = 1e12


def _representable(seconds: float) -> float | None:
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    try:
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return None
    return seconds


def parse_expires_at(value: Any) -> float | None:
    """Convert an upstream `expires_at` to epoch seconds, or None if unusable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            seconds = float(value)
        except OverflowError:
            return None
        if seconds >= _EPOCH_MILLIS_THRESHOLD:
            seconds /= 1000.0
        return _representable(seconds)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        try:
            numeric = float(raw)
        except ValueError:
            numeric = None
        if numeric is not None:
            return parse_expires_at(numeric)
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return _representable(parsed.timestamp())
    return None


class SessionTokenManager:
    def __init__(
        self,
        resolver: CredentialResolver,
        *,
        default_ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS,
        timeout_seconds: float = 30,
        exchange_url: str = TOKEN_EXCHANGE_URL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.resolver = resolver
        self.default_ttl_seconds = float(default_ttl_seconds)
        self.timeout_seconds = timeout_seconds
        self.exchange_url = exchange_url
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: SessionToken | None = None
        self._exchange_count = 0

    @property
    def exchange_count(self) -> int:
        return self._exchange_count

    def snapshot(self) -> SessionToken | None:
        return self._cached

    def get_valid_token(self) -> str:
        cached = self._cached
        if cached is not None and cached.is_valid(self._clock()):
            return cached.token

        with self._lock:
            # Another caller may have refreshed while we waited.
            cached = self._cached
            if cached is not None and cached.is_valid(self._clock()):
                LOG.debug("Session token refreshed by a concurrent caller")
                return cached.token
            fresh = self._exchange(self.resolver.resolve())
            self._cached = fresh
            return fresh.token

    def _exchange(self, github_token: str) -> SessionToken:
        self._exchange_count += 1
        response = send_request(
            self.exchange_url,
            method="GET",
            headers={
                "Authorization": f"token {github_token}",
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
            timeout=self.timeout_seconds,
        )
        if not response.ok:
            LOG.warning("Copilot token exchange rejected with HTTP %s", response.status)
            raise TokenExchangeFailed(
                f"Failed to get Copilot token: {response.status} {response.reason} - {response.body}",
                status=response.status,
                reason=response.reason,
                body=response.body,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise TokenExchangeFailed(
                "Failed to get Copilot token: response did not include a token",
                status=response.status,
                reason=response.reason,
                body=response.body,
            )

        now = self._clock()
        expires_at = parse_expires_at(payload.get("expires_at"))
        if expires_at is None:
            expires_at = now + self.default_ttl_seconds
        LOG.info(
            "Copilot session token refreshed (expires %s)",
            datetime.fromtimestamp(expires_at, tz=timezone.utc).isoformat(),
        )
        return SessionToken(token=token, expires_at=expires_at)
