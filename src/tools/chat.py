from __future__ import annotations

from copilot import CopilotClient
from utils.json_schema import validate_chat_request


def run(
    client: CopilotClient,
    *,
    message: str,
    context: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
) -> dict:
    request = validate_chat_request(
        message=message,
        context=context,
        model=model,
        temperature=temperature,
    )
    return client.chat(request).to_dict()
