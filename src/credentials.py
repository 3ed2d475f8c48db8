from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping

from errors import CredentialNotFound


LOG = logging.getLogger(__name__)

GITHUB_HOST_MARKER = "github.com"
ENV_TOKEN_VAR = "GITHUB_TOKEN"
MANAGED_ENV_VAR = "CODESPACES"

NOT_FOUND_MESSAGE = (
    "Failed to find GitHub token. Please ensure GitHub Copilot is installed and authenticated, "
    "or set GITHUB_TOKEN environment variable."
)


def default_credential_paths(environ: Mapping[str, str] | None = None) -> list[Path]:
    env = os.environ if environ is None else environ
    xdg = (env.get("XDG_CONFIG_HOME") or "").strip()
    config_dir = Path(xdg) if xdg else Path.home() / ".config"
    return [
        config_dir / "github-copilot" / "hosts.json",
        config_dir / "github-copilot" / "apps.json",
    ]


def _read_json(path: Path) -> dict[str, Any] | None:
    try:
        data = path.expanduser().read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        decoded = json.loads(data)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, dict) else None


def extract_oauth_token(payload: dict[str, Any]) -> str:
    for key, record in payload.items():
        if GITHUB_HOST_MARKER not in str(key):
            continue
        if not isinstance(record, dict):
            continue
        token = record.get("oauth_token")
        if isinstance(token, str) and token.strip():
            return token.strip()
    return ""


class CredentialResolver:
    """Finds the long-lived GitHub credential used for session-token exchange.

    Sources are tried in order: the environment token (only inside Codespaces),
    the configured token, then the Copilot editor credential files. The first hit
    is cached for the lifetime of the resolver and never re-resolved.
    """

    def __init__(
        self,
        *,
        configured_token: str | None = None,
        credential_paths: Iterable[str | Path] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._configured_token = (configured_token or "").strip()
        self._paths = (
            [Path(item).expanduser() for item in credential_paths]
            if credential_paths is not None
            else default_credential_paths(environ)
        )
        self._environ = environ
        self._lock = threading.Lock()
        self._cached: str | None = None
        self._source = ""

    @property
    def source(self) -> str:
        return self._source

    @property
    def credential_paths(self) -> list[Path]:
        return list(self._paths)

    def resolve(self) -> str:
        with self._lock:
            if self._cached is not None:
                return self._cached
            token, source = self._discover()
            self._cached = token
            self._source = source
            LOG.debug("Resolved GitHub credential from %s", source)
            return token

    def _discover(self) -> tuple[str, str]:
        env = os.environ if self._environ is None else self._environ
        env_token = (env.get(ENV_TOKEN_VAR) or "").strip()
        if env_token and (env.get(MANAGED_ENV_VAR) or "").strip():
            return env_token, "environment"
        if env_token:
            LOG.debug("Ignoring %s outside a managed environment", ENV_TOKEN_VAR)

        if self._configured_token:
            return self._configured_token, "config"

        for path in self._paths:
            if not path.exists():
                continue
            payload = _read_json(path)
            if payload is None:
                LOG.debug("Skipping unreadable credential file %s", path)
                continue
            token = extract_oauth_token(payload)
            if token:
                return token, str(path)
            LOG.debug("No %s oauth_token in %s", GITHUB_HOST_MARKER, path)

        raise CredentialNotFound(NOT_FOUND_MESSAGE)
