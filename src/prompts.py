from __future__ import annotations

from models import ChatRequest, ExplainRequest, ReviewRequest, ReviewType, SuggestRequest


EXPLAIN_HEADER = (
    "Please explain the following code in detail, including what it does, "
    "how it works, and any important concepts:\n\n"
)
SUGGEST_HEADER = "Generate code based on the following description:\n\n"
REVIEW_HEADER = "Please review the following code"
REVIEW_FOOTER = (
    "\n\nProvide specific feedback, suggestions for improvement, "
    "and explain the reasoning behind your recommendations."
)

REVIEW_FOCUS: dict[ReviewType, str] = {
    ReviewType.SECURITY: "for security vulnerabilities and best practices",
    ReviewType.PERFORMANCE: "for performance issues and optimizations",
    ReviewType.STYLE: "for code style and formatting improvements",
    ReviewType.GENERAL: "for general improvements and best practices",
}


def _fence(code: str) -> str:
    return f"```\n{code}\n```"


def _language_line(language: str | None) -> str:
    return f"Language: {language}\n\n" if language else ""


def build_chat_prompt(request: ChatRequest) -> str:
    prompt = request.message
    if request.context:
        prompt += f"\n\nContext:\n{request.context}"
    return prompt


def build_explain_prompt(request: ExplainRequest) -> str:
    prompt = EXPLAIN_HEADER + _language_line(request.language) + _fence(request.code)
    if request.context:
        prompt += f"\n\nAdditional context: {request.context}"
    return prompt


def build_suggest_prompt(request: SuggestRequest) -> str:
    prompt = SUGGEST_HEADER + request.prompt
    if request.language:
        prompt += f"\n\nTarget language: {request.language}"
    if request.context:
        prompt += f"\n\nContext/constraints:\n{request.context}"
    if request.max_suggestions and request.max_suggestions > 1:
        prompt += f"\n\nPlease provide up to {request.max_suggestions} alternative implementations."
    return prompt


def build_review_prompt(request: ReviewRequest) -> str:
    prompt = REVIEW_HEADER
    if request.review_type is not None:
        prompt += f" {REVIEW_FOCUS[request.review_type]}"
    prompt += ":\n\n"
    prompt += _language_line(request.language)
    prompt += _fence(request.code)
    return prompt + REVIEW_FOOTER
