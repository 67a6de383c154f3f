"""Rendering helpers."""

from __future__ import annotations

from devflow_mcp.formatting import (
    compose_pull_request_body,
    format_commit_status,
    format_issue,
    format_merge_result,
    format_rate_limit,
    format_repository,
    pull_request_blocks,
    truncate,
)


def test_compose_body_prefers_explicit_body() -> None:
    assert compose_pull_request_body("Body", "Summary", "graph TD") == "Body"


def test_compose_body_from_parts() -> None:
    assert compose_pull_request_body(None, " Summary ", None) == "## Summary\n\nSummary"
    assert compose_pull_request_body("  ", None, None) is None


def test_truncate() -> None:
    assert truncate("short") == "short"
    assert truncate("abcdef", max_length=4) == "abc…"


def test_format_repository_optional_lines() -> None:
    text = format_repository({"full_name": "octo/repo", "visibility": "internal", "default_branch": "main"})

    assert text.splitlines()[0] == "octo/repo (internal)"
    assert "Description" not in text
    assert "Last push: unknown" in text


def test_format_issue_labels_and_assignees() -> None:
    text = format_issue(
        {
            "number": 3,
            "title": "Crash",
            "state": "open",
            "user": {"login": "mona"},
            "labels": [{"name": "bug"}, {"name": "p1"}],
            "assignees": [{"login": "hubot"}],
        }
    )

    assert "Author: mona" in text
    assert "Labels: bug, p1" in text
    assert "Assignees: hubot" in text


def test_format_commit_status_lists_checks() -> None:
    text = format_commit_status(
        {
            "state": "failure",
            "sha": "abc",
            "total_count": 1,
            "statuses": [{"context": "ci", "state": "failure", "target_url": "https://ci/1"}],
        }
    )

    assert "Statuses:" in text
    assert "Context: ci" in text
    assert "Target: https://ci/1" in text


def test_format_merge_result() -> None:
    text = format_merge_result({"merged": True, "sha": "abc", "merged_by": {"login": "mona"}, "message": "ok"})
    assert text == "Merged: yes\nCommit: abc\nMerged by: mona\nMessage: ok"


def test_format_rate_limit_skips_missing_buckets() -> None:
    text = format_rate_limit({"search": {"limit": 30, "remaining": 29, "reset": 0}})

    assert "Search: 29/30 remaining (resets 1970-01-01T00:00:00Z)" in text
    assert "Core" not in text


def test_pull_request_blocks_include_description_when_present() -> None:
    pr = {
        "repository": "octo/repo",
        "number": 1,
        "title": "T",
        "url": "https://github.com/octo/repo/pull/1",
        "author": "mona",
        "state": "merged",
        "draft": False,
        "labels": [],
        "reviewers": [],
        "body": "Details",
    }

    blocks = pull_request_blocks(pr)

    assert ":tada:" in blocks[0]["text"]["text"]
    assert blocks[-1]["text"]["text"] == "*Description:*\nDetails"
    assert {"type": "mrkdwn", "text": "*State:* Merged"} in blocks[2]["fields"]
