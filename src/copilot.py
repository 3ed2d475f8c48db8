from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from completion import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, CompletionDispatcher
from credentials import CredentialResolver
from errors import CopilotError, OperationFailed
from models import ChatRequest, ExplainRequest, OperationResponse, ReviewRequest, SuggestRequest
from prompts import build_chat_prompt, build_explain_prompt, build_review_prompt, build_suggest_prompt
from rate_limit import DEFAULT_MAX_REQUESTS, DEFAULT_WINDOW_SECONDS, FixedWindowRateLimiter
from session_token import DEFAULT_TOKEN_TTL_SECONDS, SessionTokenManager


LOG = logging.getLogger(__name__)

OPERATION_PREFIXES = {
    "chat": "Copilot chat failed",
    "explain": "Code explanation failed",
    "suggest": "Code suggestion failed",
    "review": "Code review failed",
}


@dataclass(frozen=True)
class CopilotConfig:
    github_token: str | None = None
    default_model: str = DEFAULT_MODEL
    max_requests_per_minute: int = DEFAULT_MAX_REQUESTS
    rate_limit_window_seconds: float = DEFAULT_WINDOW_SECONDS
    session_token_ttl_seconds: float = DEFAULT_TOKEN_TTL_SECONDS
    request_timeout_seconds: float = 30
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    credential_paths: list[str] | None = None


def _iso(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat()


class CopilotClient:
    """Rate-limited chat/explain/suggest/review operations against GitHub Copilot."""

    def __init__(
        self,
        config: CopilotConfig,
        *,
        environ: Mapping[str, str] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._clock = clock
        self.resolver = CredentialResolver(
            configured_token=config.github_token,
            credential_paths=config.credential_paths,
            environ=environ,
        )
        self.tokens = SessionTokenManager(
            self.resolver,
            default_ttl_seconds=config.session_token_ttl_seconds,
            timeout_seconds=config.request_timeout_seconds,
            clock=clock,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            max_requests=config.max_requests_per_minute,
            window_seconds=config.rate_limit_window_seconds,
            clock=clock,
        )
        self.dispatcher = CompletionDispatcher(
            self.tokens,
            default_model=config.default_model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.request_timeout_seconds,
        )

    def _run(self, operation: str, build: Callable[[], str], model: str | None = None, temperature: float | None = None) -> str:
        self.rate_limiter.check_and_consume()
        try:
            prompt = build()
            return self.dispatcher.complete(prompt, model, temperature)
        except CopilotError as exc:
            LOG.warning("%s operation failed: %s", operation, exc)
            raise OperationFailed(operation, OPERATION_PREFIXES[operation], exc) from exc
        except Exception as exc:
            LOG.exception("%s operation failed unexpectedly", operation)
            raise OperationFailed(operation, OPERATION_PREFIXES[operation], exc) from exc

    def chat(self, request: ChatRequest) -> OperationResponse:
        content = self._run(
            "chat",
            lambda: build_chat_prompt(request),
            model=request.model,
            temperature=request.temperature,
        )
        return OperationResponse(content=content, model=request.model)

    def explain(self, request: ExplainRequest) -> OperationResponse:
        return OperationResponse(content=self._run("explain", lambda: build_explain_prompt(request)))

    def suggest(self, request: SuggestRequest) -> OperationResponse:
        return OperationResponse(content=self._run("suggest", lambda: build_suggest_prompt(request)))

    def review(self, request: ReviewRequest) -> OperationResponse:
        return OperationResponse(content=self._run("review", lambda: build_review_prompt(request)))

    def get_usage(self) -> dict[str, Any]:
        window = self.rate_limiter.snapshot()
        cached = self.tokens.snapshot()
        return {
            "message": "Usage data from GitHub Copilot",
            "request_count": window.count,
            "window_start": _iso(window.window_start),
            "window_seconds": self.rate_limiter.window_seconds,
            "max_requests": self.rate_limiter.max_requests,
            "has_cached_token": cached is not None,
            "has_valid_token": cached is not None and cached.is_valid(self._clock()),
            "token_expiry": _iso(cached.expires_at) if cached is not None else None,
            "credential_source": self.resolver.source,
            "tokens": self.dispatcher.usage_snapshot(),
        }
