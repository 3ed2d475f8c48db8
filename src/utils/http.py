from __future__ import annotations

import json
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any

from errors import UpstreamUnavailable


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)


def send_request(
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
    timeout: float = 30,
) -> HttpResponse:
    """Perform one HTTP exchange.

    Non-success statuses are returned, not raised; only transport failures raise
    (as UpstreamUnavailable).
    """
    data = json.dumps(body).encode("utf-8") if body is not None else None
    req = urllib.request.Request(url, data=data, headers=dict(headers or {}), method=method)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
            return HttpResponse(
                status=int(resp.status),
                reason=str(getattr(resp, "reason", "") or ""),
                body=raw.decode("utf-8", errors="replace"),
            )
    except urllib.error.HTTPError as exc:
        try:
            raw = exc.read() or b""
        except OSError:
            raw = b""
        return HttpResponse(
            status=int(exc.code),
            reason=str(exc.reason or ""),
            body=raw.decode("utf-8", errors="replace"),
        )
    except (urllib.error.URLError, socket.timeout, TimeoutError, OSError) as exc:
        reason = getattr(exc, "reason", exc)
        raise UpstreamUnavailable(f"Request to {url} failed: {reason}") from exc
