from __future__ import annotations

import logging

from copilot import CopilotClient


LOG = logging.getLogger(__name__)

USAGE_UNAVAILABLE = {"error": "Unable to fetch usage data"}


def run(client: CopilotClient) -> dict:
    # Degrades to an error payload instead of raising.
    try:
        return client.get_usage()
    except Exception:
        LOG.exception("Failed to collect usage data")
        return dict(USAGE_UNAVAILABLE)
