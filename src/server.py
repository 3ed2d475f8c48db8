from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from copilot import CopilotClient, CopilotConfig
from errors import CopilotError
from tools import chat, explain, model_catalog, review, suggest, usage


LOG = logging.getLogger(__name__)

SERVER_NAME = "Copilot_MCP"
ENV_PREFIX = "COPILOT_MCP_"
TRUTHY = {"1", "true", "yes", "on"}


class CopilotEngine:
    def __init__(self, config: dict[str, Any], *, environ: Mapping[str, str] | None = None) -> None:
        self.raw_config = config
        self.config = build_copilot_config(config, environ=environ)
        self.client = CopilotClient(self.config, environ=environ)

    def _run_tool(self, tool: str, action: Callable[..., dict], **kwargs: Any) -> dict:
        started = time.perf_counter()
        try:
            result = action(self.client, **kwargs)
        except (CopilotError, ValueError) as exc:
            duration_ms = int((time.perf_counter() - started) * 1000)
            LOG.warning("%s failed after %sms: %s", tool, duration_ms, exc)
            raise
        duration_ms = int((time.perf_counter() - started) * 1000)
        LOG.info("%s completed in %sms (%s chars)", tool, duration_ms, len(str(result.get("content", ""))))
        return result

    def run_chat(self, **kwargs: Any) -> dict:
        return self._run_tool("copilot.chat", chat.run, **kwargs)

    def run_explain(self, **kwargs: Any) -> dict:
        return self._run_tool("copilot.explain", explain.run, **kwargs)

    def run_suggest(self, **kwargs: Any) -> dict:
        return self._run_tool("copilot.suggest", suggest.run, **kwargs)

    def run_review(self, **kwargs: Any) -> dict:
        return self._run_tool("copilot.review", review.run, **kwargs)

    def usage_payload(self) -> dict:
        return usage.run(self.client)

    def models_payload(self) -> dict:
        return model_catalog.run(default_model=self.config.default_model)


def _env_value(environ: Mapping[str, str], name: str) -> str:
    return (environ.get(name) or "").strip()


def build_copilot_config(config: dict[str, Any], *, environ: Mapping[str, str] | None = None) -> CopilotConfig:
    env = os.environ if environ is None else environ

    github_token = str(config.get("github_token", "") or "").strip()
    env_token = _env_value(env, f"{ENV_PREFIX}GITHUB_TOKEN")
    if env_token:
        github_token = env_token

    default_model = str(config.get("default_model", "gpt-4o")).strip() or "gpt-4o"
    env_model = _env_value(env, f"{ENV_PREFIX}DEFAULT_MODEL")
    if env_model:
        default_model = env_model

    max_requests = int(config.get("max_requests_per_minute", 60))
    env_max_requests = _env_value(env, "MAX_REQUESTS_PER_MINUTE")
    if env_max_requests:
        try:
            max_requests = int(env_max_requests)
        except ValueError:
            LOG.warning("Ignoring non-integer MAX_REQUESTS_PER_MINUTE=%r", env_max_requests)

    credential_paths = config.get("credential_paths")
    if credential_paths is not None and not isinstance(credential_paths, list):
        credential_paths = [str(credential_paths)]

    return CopilotConfig(
        github_token=github_token or None,
        default_model=default_model,
        max_requests_per_minute=max(1, max_requests),
        rate_limit_window_seconds=float(config.get("rate_limit_window_seconds", 60)),
        session_token_ttl_seconds=float(config.get("session_token_ttl_seconds", 3600)),
        request_timeout_seconds=float(config.get("request_timeout_seconds", 30)),
        max_tokens=int(config.get("max_tokens", 4096)),
        temperature=float(config.get("temperature", 0.1)),
        credential_paths=[str(item) for item in credential_paths] if credential_paths else None,
    )


def resolve_log_level(config: dict[str, Any], *, environ: Mapping[str, str] | None = None) -> int:
    env = os.environ if environ is None else environ
    if _env_value(env, "DEBUG").lower() in TRUTHY:
        return logging.DEBUG
    name = _env_value(env, "LOG_LEVEL") or str(config.get("log_level", "ERROR"))
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.ERROR


def load_config(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    return raw or {}


def resolve_server_home() -> Path:
    return Path(
        os.environ.get(f"{ENV_PREFIX}SERVER_HOME", Path(__file__).resolve().parents[1].as_posix())
    ).resolve()


def _tool_call(action: Callable[..., dict], **kwargs: Any) -> str:
    try:
        result = action(**kwargs)
    except (CopilotError, ValueError) as exc:
        raise ToolError(f"Error: {exc}") from exc
    return str(result.get("content", ""))


def build_mcp(engine: CopilotEngine) -> FastMCP:
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(
        name="copilot.chat",
        description="Chat with GitHub Copilot AI models for general programming assistance",
    )
    def tool_chat(
        message: str,
        context: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> str:
        return _tool_call(
            engine.run_chat,
            message=message,
            context=context,
            model=model,
            temperature=temperature,
        )

    @mcp.tool(
        name="copilot.explain",
        description="Get detailed explanations of code from GitHub Copilot",
    )
    def tool_explain(code: str, language: str | None = None, context: str | None = None) -> str:
        return _tool_call(engine.run_explain, code=code, language=language, context=context)

    @mcp.tool(
        name="copilot.suggest",
        description="Get code suggestions and completions from GitHub Copilot",
    )
    def tool_suggest(
        prompt: str,
        language: str | None = None,
        context: str | None = None,
        max_suggestions: int | None = None,
    ) -> str:
        return _tool_call(
            engine.run_suggest,
            prompt=prompt,
            language=language,
            context=context,
            max_suggestions=max_suggestions,
        )

    @mcp.tool(
        name="copilot.review",
        description="Get code review and improvement suggestions from GitHub Copilot",
    )
    def tool_review(code: str, language: str | None = None, review_type: str | None = None) -> str:
        return _tool_call(engine.run_review, code=code, language=language, review_type=review_type)

    @mcp.resource(
        "copilot://models",
        name="Available Copilot Models",
        description="List of available GitHub Copilot AI models",
        mime_type="application/json",
    )
    def resource_models() -> str:
        return json.dumps(engine.models_payload(), indent=2)

    @mcp.resource(
        "copilot://usage",
        name="Usage Statistics",
        description="Current Copilot usage metrics and limits",
        mime_type="application/json",
    )
    def resource_usage() -> str:
        return json.dumps(engine.usage_payload(), indent=2)

    return mcp


def main() -> None:
    server_home = resolve_server_home()
    config = load_config(server_home / "config.yaml")
    # Keep stdio transport quiet unless verbosity was requested.
    logging.basicConfig(level=resolve_log_level(config))

    engine = CopilotEngine(config)
    mcp = build_mcp(engine)
    LOG.info("Starting %s on stdio", SERVER_NAME)
    mcp.run(show_banner=False, log_level="ERROR")


if __name__ == "__main__":
    main()
