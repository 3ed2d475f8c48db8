from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from errors import MalformedUpstreamResponse, UpstreamError, UpstreamUnavailable
from session_token import USER_AGENT, SessionTokenManager
from utils.http import send_request


LOG = logging.getLogger(__name__)

COMPLETIONS_URL = "https://api.githubcopilot.com/chat/completions"
DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.1

CLIENT_HEADERS = {
    "Editor-Version": "vscode/1.0.0",
    "Editor-Plugin-Version": USER_AGENT,
    "Copilot-Integration-Id": "vscode-chat",
}

UNAVAILABLE_MESSAGE = "GitHub Copilot API not available. Make sure you have access to GitHub Copilot."
MALFORMED_MESSAGE = "Invalid response format from GitHub Copilot API"


def extract_message_content(payload: Any) -> str:
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not isinstance(choices, list) or not choices:
        raise MalformedUpstreamResponse(MALFORMED_MESSAGE)
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict) or "content" not in message:
        raise MalformedUpstreamResponse(MALFORMED_MESSAGE)
    content = message["content"]
    if content is None:
        return ""
    if not isinstance(content, str):
        raise MalformedUpstreamResponse(MALFORMED_MESSAGE)
    return content


def _token_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


def extract_token_counts(payload: Any) -> dict[str, int] | None:
    usage = payload.get("usage") if isinstance(payload, dict) else None
    if not isinstance(usage, dict):
        return None
    return {
        "prompt": _token_count(usage.get("prompt_tokens")),
        "completion": _token_count(usage.get("completion_tokens")),
        "total": _token_count(usage.get("total_tokens")),
    }


class CompletionDispatcher:
    def __init__(
        self,
        tokens: SessionTokenManager,
        *,
        default_model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_seconds: float = 30,
        completions_url: str = COMPLETIONS_URL,
    ) -> None:
        self.tokens = tokens
        self.default_model = default_model
        self.max_tokens = int(max_tokens)
        self.temperature = float(temperature)
        self.timeout_seconds = timeout_seconds
        self.completions_url = completions_url
        self._usage_lock = threading.Lock()
        self._usage: dict[str, Any] = {
            "requests_total": 0,
            "success_total": 0,
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
            "last_call_tokens": {"prompt": 0, "completion": 0, "total": 0},
            "last_request_at": "",
            "last_success_at": "",
        }

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def build_body(self, prompt: str, model: str | None = None, temperature: float | None = None) -> dict[str, Any]:
        return {
            "messages": [{"role": "user", "content": prompt}],
            "model": model or self.default_model,
            "stream": False,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature if temperature is None else float(temperature),
        }

    def complete(self, prompt: str, model: str | None = None, temperature: float | None = None) -> str:
        session_token = self.tokens.get_valid_token()
        body = self.build_body(prompt, model, temperature)
        with self._usage_lock:
            self._usage["requests_total"] += 1
            self._usage["last_request_at"] = self._now_iso()

        try:
            response = send_request(
                self.completions_url,
                method="POST",
                headers={
                    "Authorization": f"Bearer {session_token}",
                    "Content-Type": "application/json",
                    **CLIENT_HEADERS,
                },
                body=body,
                timeout=self.timeout_seconds,
            )
        except UpstreamUnavailable as exc:
            LOG.warning("Copilot completion transport failure: %s", exc)
            raise UpstreamUnavailable(UNAVAILABLE_MESSAGE) from exc

        if response.status == 404:
            LOG.warning("Copilot completion endpoint returned 404")
            raise UpstreamUnavailable(UNAVAILABLE_MESSAGE)
        if not response.ok:
            LOG.warning("Copilot completion failed with HTTP %s", response.status)
            raise UpstreamError(
                f"GitHub Copilot API error: {response.status} {response.reason} - {response.body}",
                status=response.status,
                reason=response.reason,
                body=response.body,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedUpstreamResponse(MALFORMED_MESSAGE) from exc
        content = extract_message_content(payload)
        self._record_usage(payload)
        return content

    def _record_usage(self, payload: Any) -> None:
        counts = extract_token_counts(payload)
        with self._usage_lock:
            self._usage["success_total"] += 1
            self._usage["last_success_at"] = self._now_iso()
            if counts is None:
                return
            self._usage["prompt_tokens"] += counts["prompt"]
            self._usage["completion_tokens"] += counts["completion"]
            self._usage["total_tokens"] += counts["total"]
            self._usage["last_call_tokens"] = dict(counts)

    def usage_snapshot(self) -> dict[str, Any]:
        with self._usage_lock:
            snapshot = dict(self._usage)
            snapshot["last_call_tokens"] = dict(self._usage["last_call_tokens"])
            return snapshot
