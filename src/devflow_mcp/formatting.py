"""Plain-text rendering of GitHub payloads and Slack pull-request messages."""

from __future__ import annotations

from typing import Any

from .github_client import format_reset


def _lines(*parts: str | None) -> str:
    return "\n".join(p for p in parts if p)


def _login(obj: Any) -> str:
    return obj.get("login", "unknown") if isinstance(obj, dict) else "unknown"


def format_repository(repo: dict[str, Any]) -> str:
    """One repository as a short block: name, visibility, branch, counters, URL."""
    visibility = repo.get("visibility") or ("private" if repo.get("private") else "public")
    return _lines(
        f"{repo.get('full_name')} ({visibility})",
        f"Description: {repo['description']}" if repo.get("description") else None,
        f"Default branch: {repo.get('default_branch')}",
        f"Stars: {repo.get('stargazers_count', 0)}, Open issues: {repo.get('open_issues_count', 0)}",
        f"Primary language: {repo['language']}" if repo.get("language") else None,
        f"Last push: {repo.get('pushed_at') or 'unknown'}",
        f"URL: {repo.get('html_url')}",
    )


def format_issue(issue: dict[str, Any]) -> str:
    """Issue or pull request summary, including labels and body when present."""
    labels = [label.get("name") for label in issue.get("labels") or [] if isinstance(label, dict) and label.get("name")]
    assignees = [_login(a) for a in issue.get("assignees") or []]
    return _lines(
        issue.get("html_url"),
        f"{issue.get('title')} (#{issue.get('number')})",
        f"State: {issue.get('state')}",
        f"Author: {_login(issue.get('user'))}",
        f"Labels: {', '.join(labels)}" if labels else None,
        f"Assignees: {', '.join(assignees)}" if assignees else None,
        f"Comments: {issue.get('comments', 0)}",
        f"Created: {issue.get('created_at')}",
        f"Updated: {issue.get('updated_at')}",
        f"Closed: {issue['closed_at']}" if issue.get("closed_at") else None,
        f"\n{issue['body']}" if issue.get("body") else None,
    )


def format_pull_request(pr: dict[str, Any]) -> str:
    """Pull request headline, head and base refs, and body."""
    base = pr.get("base") or {}
    head = pr.get("head") or {}
    base_repo = (base.get("repo") or {}).get("full_name")
    return _lines(
        pr.get("html_url"),
        f"{pr.get('title')} (#{pr.get('number')})",
        f"Author: {_login(pr.get('user'))}",
        f"State: {pr.get('state')}{' (draft)' if pr.get('draft') else ''}",
        f"Base: {base_repo}@{base.get('ref')}",
        f"Head: {head.get('label')}",
        f"Created: {pr.get('created_at')}",
        f"Merged: {pr['merged_at']}" if pr.get("merged_at") else None,
        f"\n{pr['body']}" if pr.get("body") else None,
    )


def format_review(review: dict[str, Any]) -> str:
    """A submitted review."""
    return _lines(
        review.get("html_url"),
        f"Reviewer: {_login(review.get('user'))}",
        f"State: {review.get('state')}",
        f"Submitted: {review.get('submitted_at')}",
        f"\n{review['body']}" if review.get("body") else None,
    )


def format_merge_result(result: dict[str, Any]) -> str:
    """Merge response from `PUT /pulls/{n}/merge`."""
    return _lines(
        f"Merged: {'yes' if result.get('merged') else 'no'}",
        f"Commit: {result['sha']}" if result.get("sha") else None,
        f"Merged by: {_login(result['merged_by'])}" if result.get("merged_by") else None,
        f"Message: {result.get('message')}",
    )


def format_git_reference(ref: dict[str, Any]) -> str:
    """A git ref and the object it points at."""
    obj = ref.get("object") or {}
    return _lines(
        f"Ref: {ref.get('ref')}",
        f"Object SHA: {obj.get('sha')}",
        f"Object type: {obj.get('type')}",
        f"URL: {ref.get('url')}",
    )


def format_commit_status(status: dict[str, Any]) -> str:
    """Combined commit status followed by one block per status check."""
    sections = [
        f"State: {status.get('state')}",
        f"Commit: {status.get('sha')}",
        f"Checks: {status.get('total_count', 0)}",
    ]
    checks = status.get("statuses") or []
    if not checks:
        sections.append("No individual status checks reported.")
    else:
        sections.append("Statuses:")
        sections.extend(
            _lines(
                f"Context: {c.get('context')}",
                f"State: {c.get('state')}",
                f"Description: {c['description']}" if c.get("description") else None,
                f"Target: {c['target_url']}" if c.get("target_url") else None,
                f"Updated: {c.get('updated_at')}",
            )
            for c in checks
        )
    return "\n\n".join(sections)


def format_rate_limit(resources: dict[str, Any]) -> str:
    """One quota line per rate-limit bucket, with its reset time."""
    lines = ["GitHub REST API rate limits:", ""]
    for key, label in (("core", "Core"), ("search", "Search"), ("graphql", "GraphQL")):
        bucket = resources.get(key)
        if not isinstance(bucket, dict):
            continue
        lines.append(
            f"{label}: {bucket.get('remaining')}/{bucket.get('limit')} remaining "
            f"(resets {format_reset(int(bucket.get('reset', 0)))})"
        )
    return "\n".join(lines)


def compose_pull_request_body(body: str | None, summary: str | None, mermaid: str | None) -> str | None:
    """Use `body` verbatim, otherwise build one from a summary and a mermaid diagram."""
    if body and body.strip():
        return body

    sections = []
    if summary and summary.strip():
        sections.append(f"## Summary\n\n{summary.strip()}")
    if mermaid and mermaid.strip():
        sections.append(f"## Diagram\n\n```mermaid\n{mermaid.strip()}\n```")
    return "\n\n".join(sections) or None


def truncate(text: str, max_length: int = 400) -> str:
    """Cut `text` to `max_length` characters, ending with an ellipsis when shortened."""
    if len(text) <= max_length:
        return text
    return f"{text[: max_length - 1]}…"


def _pr_state_label(state: str, draft: bool) -> str:
    if draft and state == "open":
        return "Draft"
    return state.capitalize()


def _pr_status_emoji(state: str, draft: bool) -> str:
    if draft and state == "open":
        return ":memo:"
    return {"open": ":white_check_mark:", "merged": ":tada:", "closed": ":x:"}.get(state, ":information_source:")


def _pr_fields(pr: dict[str, Any], bold: bool) -> list[str]:
    b = "*" if bold else ""
    fields = [
        f"{b}State:{b} {_pr_state_label(pr['state'], pr['draft'])}",
        f"{b}Author:{b} {pr['author']}",
    ]
    if pr["reviewers"]:
        fields.append(f"{b}Reviewers:{b} {', '.join(pr['reviewers'])}")
    if pr["labels"]:
        fields.append(f"{b}Labels:{b} {', '.join(pr['labels'])}")
    for key, label, sign in (("additions", "Additions", "+"), ("deletions", "Deletions", "-"), ("comments", "Comments", "")):
        if pr.get(key) is not None:
            fields.append(f"{b}{label}:{b} {sign}{pr[key]}")
    return fields


def pull_request_text(pr: dict[str, Any]) -> str:
    """Plain-text fallback for a pull-request announcement."""
    headline = f"{_pr_status_emoji(pr['state'], pr['draft'])} {pr['repository']}#{pr['number']} - {pr['title']}"
    return _lines(
        headline,
        *_pr_fields(pr, bold=False),
        f"Description: {truncate(pr['body'])}" if pr.get("body") else None,
        f"Link: {pr['url']}",
    )


def pull_request_blocks(pr: dict[str, Any]) -> list[dict[str, Any]]:
    """Block Kit sections for a pull-request announcement."""
    headline = f"{_pr_status_emoji(pr['state'], pr['draft'])} {pr['repository']}#{pr['number']} - {pr['title']}"
    blocks: list[dict[str, Any]] = [
        {"type": "section", "text": {"type": "mrkdwn", "text": f"*<{pr['url']}|{headline}>*"}},
        {"type": "context", "elements": [{"type": "mrkdwn", "text": f"Opened by *{pr['author']}*"}]},
        {"type": "section", "fields": [{"type": "mrkdwn", "text": f} for f in _pr_fields(pr, bold=True)]},
    ]
    if pr.get("body"):
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Description:*\n{truncate(pr['body'])}"}})
    return blocks
