from __future__ import annotations

from models import MODEL_CATALOG


def run(*, default_model: str) -> dict:
    return {
        "default_model": default_model,
        "models": [dict(item) for item in MODEL_CATALOG],
    }
