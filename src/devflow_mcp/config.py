"""Configuration loading for devflow-mcp.

Configuration is supplied by the host environment (e.g., MCP client config) or a `.env` file in the
working directory, never by the agent.
Each service loads its configuration exactly once at startup and passes it explicitly into the
adapters; nothing here is cached or re-read.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from dotenv import load_dotenv

from . import __version__
from .errors import configuration_error

DEFAULT_USER_AGENT = f"devflow-mcp/{__version__} (+https://github.com)"


@dataclass(frozen=True, slots=True)
class HostingConfig:
    """GitHub REST API configuration."""

    token: str
    user_agent: str = DEFAULT_USER_AGENT
    default_owner: str | None = None

    def __post_init__(self) -> None:
        if not self.token:
            raise configuration_error("GitHub token is required")


@dataclass(frozen=True, slots=True)
class WebhookConfig:
    """Slack incoming-webhook configuration."""

    default_url: str | None = None
    webhook_map: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    username: str | None = None
    icon_emoji: str | None = None

    def __post_init__(self) -> None:
        if not self.default_url and not self.webhook_map:
            raise configuration_error(
                "Missing Slack webhook configuration. Set SLACK_WEBHOOK_URL or SLACK_WEBHOOK_MAP."
            )


def first_present(*candidates: str | None) -> str | None:
    """Return the first candidate with non-whitespace content, stripped.

    Empty strings count as absent, so a blank per-call override falls back to the next value.
    """
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def _env(name: str) -> str | None:
    return first_present(os.getenv(name))


def _parse_webhook_map(raw: str | None) -> Mapping[str, str]:
    if raw is None:
        return MappingProxyType({})

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise configuration_error(f"Failed to parse SLACK_WEBHOOK_MAP: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise configuration_error(
            "Failed to parse SLACK_WEBHOOK_MAP: must be a JSON object of name to URL"
        )

    webhooks: dict[str, str] = {}
    for name, url in parsed.items():
        if not isinstance(url, str) or not url.strip():
            raise configuration_error(
                f"Failed to parse SLACK_WEBHOOK_MAP: invalid webhook URL for key '{name}', "
                "expected a non-empty string"
            )
        webhooks[name] = url.strip()
    return MappingProxyType(webhooks)


def load_env_file(directory: Path | None = None) -> None:
    """Read `.env` from `directory` (default: the working directory) into the environment.

    Variables already set in the process environment win over the file.
    """
    load_dotenv(dotenv_path=(directory or Path.cwd()) / ".env", override=False)


def load_hosting_config_from_env() -> HostingConfig:
    """Load GitHub configuration from environment variables.

    Raises:
        AdapterError: `Configuration` kind if GITHUB_TOKEN is missing.
    """
    token = _env("GITHUB_TOKEN")
    if token is None:
        raise configuration_error("Missing GitHub token. Set the GITHUB_TOKEN environment variable.")

    return HostingConfig(
        token=token,
        user_agent=_env("GITHUB_USER_AGENT") or DEFAULT_USER_AGENT,
        default_owner=_env("GITHUB_DEFAULT_OWNER"),
    )


def load_webhook_config_from_env() -> WebhookConfig:
    """Load Slack webhook configuration from environment variables.

    Raises:
        AdapterError: `Configuration` kind if the map is malformed or no webhook is configured.
    """
    return WebhookConfig(
        default_url=_env("SLACK_WEBHOOK_URL"),
        webhook_map=_parse_webhook_map(_env("SLACK_WEBHOOK_MAP")),
        username=_env("SLACK_USERNAME"),
        icon_emoji=_env("SLACK_ICON_EMOJI"),
    )


def load_audit_path_from_env() -> Path | None:
    """Return the optional audit log file path."""
    raw = _env("DEVFLOW_MCP_AUDIT_LOG_PATH")
    if raw is None:
        return None
    path = Path(raw)
    if not path.is_absolute():
        raise configuration_error("DEVFLOW_MCP_AUDIT_LOG_PATH must be an absolute path when set")
    return path
