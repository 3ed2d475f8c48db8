from __future__ import annotations

from copilot import CopilotClient
from utils.json_schema import validate_review_request


def run(
    client: CopilotClient,
    *,
    code: str,
    language: str | None = None,
    review_type: str | None = None,
) -> dict:
    request = validate_review_request(code=code, language=language, review_type=review_type)
    return client.review(request).to_dict()
