from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ReviewType(str, Enum):
    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    GENERAL = "general"


SUPPORTED_MODELS = ("gpt-4o", "claude-3-5-sonnet", "gemini-2.0-flash")

MODEL_CATALOG = [
    {
        "name": "gpt-4o",
        "description": "OpenAI GPT-4 Omni - Advanced multimodal model",
        "provider": "OpenAI",
    },
    {
        "name": "claude-3-5-sonnet",
        "description": "Anthropic Claude 3.5 Sonnet - Fast and capable",
        "provider": "Anthropic",
    },
    {
        "name": "gemini-2.0-flash",
        "description": "Google Gemini 2.0 Flash - Fast and efficient",
        "provider": "Google",
    },
]


@dataclass(frozen=True)
class ChatRequest:
    message: str
    context: str | None = None
    model: str | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class ExplainRequest:
    code: str
    language: str | None = None
    context: str | None = None


@dataclass(frozen=True)
class SuggestRequest:
    prompt: str
    language: str | None = None
    context: str | None = None
    max_suggestions: int | None = None


@dataclass(frozen=True)
class ReviewRequest:
    code: str
    language: str | None = None
    review_type: ReviewType | None = None


@dataclass(frozen=True)
class OperationResponse:
    content: str
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"content": self.content}
        if self.model is not None:
            payload["model"] = self.model
        return payload


@dataclass(frozen=True)
class SessionToken:
    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class RateWindowState:
    count: int
    window_start: float
