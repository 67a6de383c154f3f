"""Configuration loading tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from devflow_mcp.config import (
    DEFAULT_USER_AGENT,
    HostingConfig,
    WebhookConfig,
    first_present,
    load_audit_path_from_env,
    load_env_file,
    load_hosting_config_from_env,
    load_webhook_config_from_env,
)
from devflow_mcp.errors import AdapterError, ErrorKind

_SLACK_VARS = ("SLACK_WEBHOOK_URL", "SLACK_WEBHOOK_MAP", "SLACK_USERNAME", "SLACK_ICON_EMOJI")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ("GITHUB_TOKEN", "GITHUB_DEFAULT_OWNER", "GITHUB_USER_AGENT", "DEVFLOW_MCP_AUDIT_LOG_PATH", *_SLACK_VARS):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_hosting_config_requires_token(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(AdapterError) as exc:
        _ = load_hosting_config_from_env()

    assert exc.value.kind is ErrorKind.CONFIGURATION
    assert "GITHUB_TOKEN" in exc.value.message


def test_hosting_config_treats_blank_token_as_absent(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("GITHUB_TOKEN", "   ")

    with pytest.raises(AdapterError) as exc:
        _ = load_hosting_config_from_env()

    assert exc.value.kind is ErrorKind.CONFIGURATION


def test_hosting_config_reads_optional_fields(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("GITHUB_TOKEN", " tok ")
    clean_env.setenv("GITHUB_DEFAULT_OWNER", "octo")
    clean_env.setenv("GITHUB_USER_AGENT", "my-agent/1.0")

    cfg = load_hosting_config_from_env()
    assert cfg.token == "tok"
    assert cfg.default_owner == "octo"
    assert cfg.user_agent == "my-agent/1.0"


def test_hosting_config_defaults(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("GITHUB_TOKEN", "tok")
    clean_env.setenv("GITHUB_DEFAULT_OWNER", "")

    cfg = load_hosting_config_from_env()
    assert cfg.default_owner is None
    assert cfg.user_agent == DEFAULT_USER_AGENT


def test_hosting_config_constructor_rejects_empty_token() -> None:
    with pytest.raises(AdapterError):
        _ = HostingConfig(token="")


def test_webhook_config_requires_url_or_map(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(AdapterError) as exc:
        _ = load_webhook_config_from_env()

    assert exc.value.kind is ErrorKind.CONFIGURATION
    assert "SLACK_WEBHOOK_URL" in exc.value.message


def test_webhook_config_empty_map_without_default_is_rejected(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SLACK_WEBHOOK_MAP", "{}")

    with pytest.raises(AdapterError):
        _ = load_webhook_config_from_env()


def test_webhook_config_parses_and_trims_map(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SLACK_WEBHOOK_MAP", '{"dev": "  https://hooks.example/dev  ", "ops": "https://hooks.example/ops"}')
    clean_env.setenv("SLACK_USERNAME", " bot ")
    clean_env.setenv("SLACK_ICON_EMOJI", ":robot_face:")

    cfg = load_webhook_config_from_env()
    assert cfg.default_url is None
    assert dict(cfg.webhook_map) == {"dev": "https://hooks.example/dev", "ops": "https://hooks.example/ops"}
    assert cfg.username == "bot"
    assert cfg.icon_emoji == ":robot_face:"


def test_webhook_map_is_read_only(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SLACK_WEBHOOK_MAP", '{"dev": "https://hooks.example/dev"}')

    cfg = load_webhook_config_from_env()
    with pytest.raises(TypeError):
        cfg.webhook_map["other"] = "https://x"  # type: ignore[index]


@pytest.mark.parametrize(
    "raw",
    [
        "not-json",
        '["https://hooks.example/dev"]',
        '{"dev": ""}',
        '{"dev": "   "}',
        '{"dev": 42}',
        '{"dev": {"url": "https://x"}}',
    ],
)
def test_webhook_config_rejects_malformed_map(clean_env: pytest.MonkeyPatch, raw: str) -> None:
    clean_env.setenv("SLACK_WEBHOOK_URL", "https://hooks.example/default")
    clean_env.setenv("SLACK_WEBHOOK_MAP", raw)

    with pytest.raises(AdapterError) as exc:
        _ = load_webhook_config_from_env()

    assert exc.value.kind is ErrorKind.CONFIGURATION
    assert "SLACK_WEBHOOK_MAP" in exc.value.message


def test_webhook_config_default_url_only(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("SLACK_WEBHOOK_URL", "https://hooks.example/default")

    cfg = load_webhook_config_from_env()
    assert cfg.default_url == "https://hooks.example/default"
    assert len(cfg.webhook_map) == 0
    assert cfg.username is None


def test_webhook_config_constructor_invariant() -> None:
    with pytest.raises(AdapterError):
        _ = WebhookConfig()


def test_audit_path_must_be_absolute(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("DEVFLOW_MCP_AUDIT_LOG_PATH", "relative/audit.jsonl")

    with pytest.raises(AdapterError) as exc:
        _ = load_audit_path_from_env()

    assert "absolute path" in exc.value.message


def test_audit_path_absent(clean_env: pytest.MonkeyPatch) -> None:
    assert load_audit_path_from_env() is None


@pytest.mark.parametrize(
    "candidates,expected",
    [
        ((None, "fallback"), "fallback"),
        (("", "fallback"), "fallback"),
        (("  ", "fallback"), "fallback"),
        ((" call ", "fallback"), "call"),
        ((None, None), None),
        ((), None),
    ],
)
def test_first_present(candidates: tuple, expected: str | None) -> None:
    assert first_present(*candidates) == expected


def test_env_file_fills_gaps_without_overriding(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("GITHUB_TOKEN", "placeholder")
    clean_env.delenv("GITHUB_TOKEN")
    clean_env.setenv("GITHUB_DEFAULT_OWNER", "octo")
    (tmp_path / ".env").write_text("GITHUB_TOKEN=file-token\nGITHUB_DEFAULT_OWNER=ignored\n", encoding="utf-8")

    load_env_file(tmp_path)
    cfg = load_hosting_config_from_env()

    assert cfg.token == "file-token"
    assert cfg.default_owner == "octo"


def test_missing_env_file_is_ignored(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    load_env_file(tmp_path)

    with pytest.raises(AdapterError):
        load_hosting_config_from_env()
