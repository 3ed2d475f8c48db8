from __future__ import annotations

from models import (
    SUPPORTED_MODELS,
    ChatRequest,
    ExplainRequest,
    ReviewRequest,
    ReviewType,
    SuggestRequest,
)

MAX_CHAT_MESSAGE_CHARS = 10000
MAX_SUGGESTIONS = 10


def _required_text(value: object, field: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"`{field}` must be a string")
    if not value:
        raise ValueError(f"`{field}` is required")
    return value


def _optional_text(value: object, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"`{field}` must be a string")
    return value


def validate_chat_request(
    *,
    message: object,
    context: object = None,
    model: object = None,
    temperature: object = None,
) -> ChatRequest:
    text = _required_text(message, "message")
    if len(text) > MAX_CHAT_MESSAGE_CHARS:
        raise ValueError(f"`message` must be at most {MAX_CHAT_MESSAGE_CHARS} characters")

    if model is not None and model not in SUPPORTED_MODELS:
        raise ValueError(f"`model` must be one of: {', '.join(SUPPORTED_MODELS)}")

    resolved_temperature: float | None = None
    if temperature is not None:
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            raise ValueError("`temperature` must be numeric")
        if not 0 <= float(temperature) <= 2:
            raise ValueError("`temperature` must be between 0 and 2")
        resolved_temperature = float(temperature)

    return ChatRequest(
        message=text,
        context=_optional_text(context, "context"),
        model=model,  # type: ignore[arg-type]
        temperature=resolved_temperature,
    )


def validate_explain_request(*, code: object, language: object = None, context: object = None) -> ExplainRequest:
    return ExplainRequest(
        code=_required_text(code, "code"),
        language=_optional_text(language, "language"),
        context=_optional_text(context, "context"),
    )


def validate_suggest_request(
    *,
    prompt: object,
    language: object = None,
    context: object = None,
    max_suggestions: object = None,
) -> SuggestRequest:
    count: int | None = None
    if max_suggestions is not None:
        if isinstance(max_suggestions, bool) or not isinstance(max_suggestions, (int, float)):
            raise ValueError("`max_suggestions` must be an integer")
        if isinstance(max_suggestions, float) and not max_suggestions.is_integer():
            raise ValueError("`max_suggestions` must be an integer")
        count = int(max_suggestions)
        if not 1 <= count <= MAX_SUGGESTIONS:
            raise ValueError(f"`max_suggestions` must be between 1 and {MAX_SUGGESTIONS}")

    return SuggestRequest(
        prompt=_required_text(prompt, "prompt"),
        language=_optional_text(language, "language"),
        context=_optional_text(context, "context"),
        max_suggestions=count,
    )


def validate_review_request(*, code: object, language: object = None, review_type: object = None) -> ReviewRequest:
    resolved_type: ReviewType | None = None
    if review_type is not None:
        try:
            resolved_type = ReviewType(review_type)
        except ValueError:
            allowed = ", ".join(item.value for item in ReviewType)
            raise ValueError(f"`review_type` must be one of: {allowed}") from None

    return ReviewRequest(
        code=_required_text(code, "code"),
        language=_optional_text(language, "language"),
        review_type=resolved_type,
    )
