from __future__ import annotations

from copilot import CopilotClient
from utils.json_schema import validate_suggest_request


def run(
    client: CopilotClient,
    *,
    prompt: str,
    language: str | None = None,
    context: str | None = None,
    max_suggestions: int | None = None,
) -> dict:
    request = validate_suggest_request(
        prompt=prompt,
        language=language,
        context=context,
        max_suggestions=max_suggestions,
    )
    return client.suggest(request).to_dict()
