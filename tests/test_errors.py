"""Error normalization coverage."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from devflow_mcp.errors import AdapterError, ErrorKind, Outcome, internal_error, normalize_error, render_error


def test_outcome_constructors() -> None:
    assert Outcome.success("done") == Outcome(succeeded=True, message="done", is_error=False)
    assert Outcome.failure("bad") == Outcome(succeeded=False, message="bad", is_error=True)


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_every_kind_normalizes_to_error_outcome(kind: ErrorKind) -> None:
    out = normalize_error(AdapterError(kind=kind, message="boom"))

    assert out.is_error is True
    assert out.succeeded is False
    assert "boom" in out.message


def test_details_joined_by_newline_verbatim() -> None:
    stderr = "error: pathspec 'x' did not match any file(s) known to git\n  hint: check spelling"
    err = AdapterError(kind=ErrorKind.PROCESS_FAILURE, message="git add -- x exited with code 128", details=stderr)

    assert render_error(err) == f"Command failed: git add -- x exited with code 128\n{stderr}"


def test_rate_limited_includes_reset_and_guidance() -> None:
    err = AdapterError(
        kind=ErrorKind.RATE_LIMITED,
        message="GitHub API request failed with 403. Rate limit resets at 2024-01-01T00:00:00Z.",
        reset_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    text = render_error(err)
    assert "2024-01-01T00:00:00Z" in text
    assert "retrying" in text


@pytest.mark.parametrize("kind", [ErrorKind.CONFIGURATION, ErrorKind.VALIDATION])
def test_configuration_and_validation_have_no_retry_guidance(kind: ErrorKind) -> None:
    text = render_error(AdapterError(kind=kind, message="nope"))
    assert "retry" not in text.lower()
    assert "\n" not in text


def test_adapter_error_str_is_message() -> None:
    assert str(AdapterError(kind=ErrorKind.HTTP, message="failed")) == "failed"


def test_internal_error_shape() -> None:
    out = internal_error()
    assert out.is_error is True
    assert out.message == "Internal error"
