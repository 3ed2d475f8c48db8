from .http import HttpResponse, send_request
from .json_schema import validate_chat_request, validate_explain_request, validate_review_request, validate_suggest_request

__all__ = [
    "HttpResponse",
    "send_request",
    "validate_chat_request",
    "validate_explain_request",
    "validate_review_request",
    "validate_suggest_request",
]
