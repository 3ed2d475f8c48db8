from __future__ import annotations

from copilot import CopilotClient
from utils.json_schema import validate_explain_request


def run(
    client: CopilotClient,
    *,
    code: str,
    language: str | None = None,
    context: str | None = None,
) -> dict:
    request = validate_explain_request(code=code, language=language, context=context)
    return client.explain(request).to_dict()
