from __future__ import annotations

import json
import threading
import time

import pytest

from credentials import CredentialResolver
from errors import CredentialNotFound, TokenExchangeFailed, UpstreamUnavailable
from models import SessionToken
from session_token import SessionTokenManager, parse_expires_at
from utils.http import HttpResponse


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _manager(clock: FakeClock, *, token: str = "gho_test", ttl: float = 3600) -> SessionTokenManager:
    resolver = CredentialResolver(configured_token=token, credential_paths=[], environ={})
    return SessionTokenManager(resolver, default_ttl_seconds=ttl, clock=clock)


def _install_exchange(monkeypatch, responses: list[HttpResponse]) -> list[dict]:
    calls: list[dict] = []

    def fake_send(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return responses[min(len(calls), len(responses)) - 1]

    monkeypatch.setattr("session_token.send_request", fake_send)
    return calls


def _ok(payload: dict) -> HttpResponse:
    return HttpResponse(status=200, reason="OK", body=json.dumps(payload))


def test_cached_unexpired_token_skips_exchange(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)
    manager._cached = SessionToken(token="cached", expires_at=clock.now + 10)
    calls = _install_exchange(monkeypatch, [_ok({"token": "fresh"})])

    assert manager.get_valid_token() == "cached"
    assert calls == []


def test_absent_token_triggers_single_exchange_and_caches(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)
    calls = _install_exchange(monkeypatch, [_ok({"token": "tid=abc", "expires_at": int(clock.now) + 1500})])

    assert manager.get_valid_token() == "tid=abc"
    assert manager.get_valid_token() == "tid=abc"

    assert len(calls) == 1
    assert calls[0]["method"] == "GET"
    assert calls[0]["url"] == "https://api.github.com/copilot_internal/v2/token"
    assert calls[0]["headers"]["Authorization"] == "token gho_test"
    snapshot = manager.snapshot()
    assert snapshot is not None
    assert snapshot.expires_at == clock.now + 1500


def test_expired_token_is_replaced(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)
    old = SessionToken(token="old", expires_at=clock.now)
    manager._cached = old
    calls = _install_exchange(monkeypatch, [_ok({"token": "new"})])

    assert manager.get_valid_token() == "new"
    assert len(calls) == 1
    assert manager.snapshot() is not old


def test_missing_expiry_defaults_to_configured_ttl(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock, ttl=120)
    _install_exchange(monkeypatch, [_ok({"token": "new"})])

    manager.get_valid_token()
    snapshot = manager.snapshot()
    assert snapshot is not None
    assert snapshot.expires_at == clock.now + 120


def test_rejected_exchange_raises_with_status_and_body(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)
    _install_exchange(monkeypatch, [HttpResponse(status=401, reason="Unauthorized", body="bad credentials")])

    with pytest.raises(TokenExchangeFailed) as excinfo:
        manager.get_valid_token()
    assert excinfo.value.status == 401
    assert "401" in str(excinfo.value)
    assert "bad credentials" in str(excinfo.value)
    assert manager.snapshot() is None


def test_failed_refresh_keeps_previous_token(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)
    previous = SessionToken(token="prev", expires_at=clock.now - 1)
    manager._cached = previous
    _install_exchange(monkeypatch, [HttpResponse(status=500, reason="Server Error", body="boom")])

    with pytest.raises(TokenExchangeFailed):
        manager.get_valid_token()
    assert manager.snapshot() is previous


def test_transport_failure_leaves_cache_untouched(monkeypatch) -> None:
    clock = FakeClock()
    manager = _manager(clock)

    def fail(url, **kwargs):
        raise UpstreamUnavailable("Request to token endpoint failed: timed out")

    monkeypatch.setattr("session_token.send_request", fail)
    with pytest.raises(UpstreamUnavailable):
        manager.get_valid_token()
    assert manager.snapshot() is None


def test_response_without_token_is_rejected(monkeypatch) -> None:
    manager = _manager(FakeClock())
    _install_exchange(monkeypatch, [_ok({"expires_at": 1})])
    with pytest.raises(TokenExchangeFailed, match="did not include a token"):
        manager.get_valid_token()


def test_credential_errors_propagate(monkeypatch) -> None:
    resolver = CredentialResolver(credential_paths=[], environ={})
    manager = SessionTokenManager(resolver, clock=FakeClock())
    calls = _install_exchange(monkeypatch, [_ok({"token": "never"})])
    with pytest.raises(CredentialNotFound):
        manager.get_valid_token()
    assert calls == []


def test_concurrent_callers_share_one_exchange(monkeypatch) -> None:
    manager = _manager(FakeClock())
    calls: list[str] = []
    gate = threading.Event()

    def slow_send(url, **kwargs):
        calls.append(url)
        gate.wait(timeout=2)
        return _ok({"token": "shared"})

    monkeypatch.setattr("session_token.send_request", slow_send)
    results: list[str] = []
    threads = [threading.Thread(target=lambda: results.append(manager.get_valid_token())) for _ in range(5)]
    for thread in threads:
        thread.start()
    time.sleep(0.05)
    gate.set()
    for thread in threads:
        thread.join(timeout=5)

    assert results == ["shared"] * 5
    assert len(calls) == 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1_700_000_000, 1_700_000_000.0),
        (1_700_000_000_000, 1_700_000_000.0),
        ("1700000000", 1_700_000_000.0),
        ("2023-11-14T22:13:20Z", 1_700_000_000.0),
        (None, None),
        ("soon", None),
        (True, None),
        (0, None),
        (999_999_999_999, None),
        (10**400, None),
        (float("inf"), None),
        (float("nan"), None),
        ("1700000000.5", 1_700_000_000.5),
        ("1700000000000.0", 1_700_000_000.0),
        ("nan", None),
    ],
)
def test_parse_expires_at(raw, expected) -> None:
    assert parse_expires_at(raw) == expected
