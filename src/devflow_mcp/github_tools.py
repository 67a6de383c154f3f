"""GitHub and local git tools.

Handlers receive validated arguments, resolve configuration defaults (owner), then await exactly
one adapter call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .config import HostingConfig, first_present
from .errors import AdapterError, ErrorKind, Outcome, normalize_error, validation_error
from .formatting import (
    compose_pull_request_body,
    format_commit_status,
    format_git_reference,
    format_issue,
    format_merge_result,
    format_pull_request,
    format_rate_limit,
    format_repository,
    format_review,
)
from .git_local import LocalGit
from .github_client import GitHubClient, normalize_branch
from .schema import ArrayArg, BooleanArg, IntegerArg, StringArg, ToolSchema
from .tools import Gateway, ToolSpec, service_instructions

RATE_LIMIT_URI = "github://rate-limit"


@dataclass(frozen=True, slots=True)
class HostingRuntime:
    """Runtime dependencies shared across GitHub/git tool calls."""

    config: HostingConfig
    github: GitHubClient
    git: LocalGit


def _resolve_owner(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    owner = first_present(args.get("owner"), runtime.config.default_owner)
    if owner is None:
        raise validation_error("Provide an `owner` argument or set GITHUB_DEFAULT_OWNER.")
    return owner


_OWNER = StringArg(description="Repository owner. Falls back to GITHUB_DEFAULT_OWNER.")
_REPO = StringArg(description="Repository name.", required=True, min_length=1)
_REPO_PATH = StringArg(description="Path to the local git repository (relative or absolute).", required=True, min_length=1)


async def _tool_list_repositories(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    owner = first_present(args.get("owner"), runtime.config.default_owner)
    owner_type = args.get("ownerType") or "user"
    if owner is None and owner_type == "org":
        raise validation_error("Specify an organization via the `owner` argument or GITHUB_DEFAULT_OWNER.")

    repositories = await runtime.github.list_repositories(
        owner=owner,
        owner_type=owner_type,
        per_page=args.get("perPage") or 20,
        include_private=bool(args.get("includePrivate")),
    )
    if not repositories:
        return "No repositories found for the provided criteria."
    return "\n\n".join(format_repository(r) for r in repositories)


async def _tool_get_issue(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    issue = await runtime.github.get_issue(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        issue_number=args["issueNumber"],
    )
    return format_issue(issue)


async def _tool_search_issues(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    total, items = await runtime.github.search_issues(query=args["query"], per_page=args.get("perPage") or 10)
    if not items:
        return "No issues matched the query."
    header = f"Found {total} matching issues (showing {len(items)}):"
    return "\n\n".join([header, *(format_issue(i) for i in items)])


async def _tool_create_pull_request(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    owner = _resolve_owner(runtime, args)
    pr = await runtime.github.create_pull_request(
        owner=owner,
        repo=args["repo"],
        title=args["title"],
        head=args["head"],
        base=args["base"],
        body=compose_pull_request_body(args.get("body"), args.get("summary"), args.get("mermaid")),
        draft=args.get("draft"),
        maintainer_can_modify=args.get("maintainerCanModify"),
    )
    return f"Created pull request:\n\n{format_pull_request(pr)}"


async def _tool_approve_pull_request(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    review = await runtime.github.approve_pull_request(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        pull_number=args["pullNumber"],
        body=args.get("body"),
    )
    return f"Submitted approval review:\n\n{format_review(review)}"


async def _tool_merge_pull_request(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    result = await runtime.github.merge_pull_request(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        pull_number=args["pullNumber"],
        merge_method=args.get("mergeMethod"),
        commit_title=args.get("commitTitle"),
        commit_message=args.get("commitMessage"),
        expected_head_sha=args.get("expectedHeadSha"),
    )
    if not isinstance(result, dict) or not result.get("merged"):
        reason = result.get("message") if isinstance(result, dict) else None
        raise AdapterError(kind=ErrorKind.HTTP, message=f"Merge unsuccessful: {reason or 'Unknown error.'}")
    return f"Merged pull request:\n\n{format_merge_result(result)}"


async def _tool_create_branch(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    ref = await runtime.github.create_branch(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        branch=args["branch"],
        sha=args["sha"],
    )
    return f"Created branch:\n\n{format_git_reference(ref)}"


async def _tool_update_branch(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    ref = await runtime.github.update_branch(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        branch=args["branch"],
        sha=args["sha"],
        force=bool(args.get("force")),
    )
    return f"Updated branch:\n\n{format_git_reference(ref)}"


async def _tool_delete_remote_branch(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    owner = _resolve_owner(runtime, args)
    branch = normalize_branch(args["branch"].strip())
    await runtime.github.delete_branch(owner=owner, repo=args["repo"], branch=branch)
    return f"Deleted remote branch '{branch}' from {owner}/{args['repo']}."


async def _tool_get_commit_status(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    status = await runtime.github.get_commit_status(
        owner=_resolve_owner(runtime, args),
        repo=args["repo"],
        ref=args["ref"],
    )
    return format_commit_status(status)


async def _tool_create_local_branch(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    await runtime.git.create_branch(
        repo_path=args["repoPath"],
        branch=args["branch"],
        start_point=args.get("startPoint"),
    )
    return f"Created local branch '{args['branch']}' in {args['repoPath']}."


async def _tool_git_status(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    result = await runtime.git.status(repo_path=args["repoPath"])
    return result.stdout or "Working tree clean."


async def _tool_stage_changes(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    paths = args.get("paths") or None
    await runtime.git.stage(repo_path=args["repoPath"], paths=paths)
    descriptor = ", ".join(paths) if paths else "all changes"
    return f"Staged {descriptor} in {args['repoPath']}."


async def _tool_create_commit(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    result = await runtime.git.commit(
        repo_path=args["repoPath"],
        message=args["message"],
        allow_empty=bool(args.get("allowEmpty")),
        signoff=bool(args.get("signoff")),
    )
    return result.stdout or "Created commit."


async def _tool_delete_local_branch(runtime: HostingRuntime, args: dict[str, Any]) -> str:
    await runtime.git.delete_branch(
        repo_path=args["repoPath"],
        branch=args["branch"],
        force=bool(args.get("force")),
    )
    return f"Deleted local branch '{args['branch'].strip()}' from {args['repoPath']}."


GITHUB_TOOLS: dict[str, ToolSpec] = {
    "list-repositories": ToolSpec(
        description="List repositories for the supplied owner or the authenticated user.",
        schema=ToolSchema(
            {
                "owner": StringArg(description="GitHub username or organization login."),
                "ownerType": StringArg(
                    description="Treat the owner as a user or organization.",
                    choices=("user", "org"),
                    default="user",
                ),
                "perPage": IntegerArg(
                    description="Number of repositories to return (max 100).",
                    minimum=1,
                    maximum=100,
                    default=20,
                ),
                "includePrivate": BooleanArg(
                    description="When true, include private repositories accessible to the token.",
                    default=False,
                ),
            }
        ),
        handler=_tool_list_repositories,
    ),
    "get-issue": ToolSpec(
        description="Fetch a single issue by number.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "issueNumber": IntegerArg(description="Issue number.", required=True, minimum=1),
            }
        ),
        handler=_tool_get_issue,
    ),
    "search-issues": ToolSpec(
        description="Search issues and pull requests using GitHub search syntax.",
        schema=ToolSchema(
            {
                "query": StringArg(description="GitHub issue search query.", required=True, min_length=1),
                "perPage": IntegerArg(description="Number of results (max 100).", minimum=1, maximum=100, default=10),
            }
        ),
        handler=_tool_search_issues,
    ),
    "create-pull-request": ToolSpec(
        description="Create a pull request targeting the specified repository.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "title": StringArg(description="Title for the pull request.", required=True, min_length=1),
                "head": StringArg(
                    description="Branch where changes are implemented. Accepts `user:branch` for cross-fork PRs.",
                    required=True,
                    min_length=1,
                ),
                "base": StringArg(description="Branch to merge into (usually `main`).", required=True, min_length=1),
                "body": StringArg(description="Optional markdown body for the pull request."),
                "summary": StringArg(description="Summary used to build the body when `body` is omitted."),
                "mermaid": StringArg(description="Mermaid diagram included in the body when `body` is omitted."),
                "draft": BooleanArg(description="Create the pull request in draft mode.", default=False),
                "maintainerCanModify": BooleanArg(
                    description="Allow maintainers to update the head branch.", default=True
                ),
            }
        ),
        handler=_tool_create_pull_request,
    ),
    "approve-pull-request": ToolSpec(
        description="Submit an approval review for a pull request.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "pullNumber": IntegerArg(description="Pull request number.", required=True, minimum=1),
                "body": StringArg(description="Optional review comment body."),
            }
        ),
        handler=_tool_approve_pull_request,
    ),
    "merge-pull-request": ToolSpec(
        description="Merge a pull request (merge, squash, or rebase).",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "pullNumber": IntegerArg(description="Pull request number.", required=True, minimum=1),
                "mergeMethod": StringArg(
                    description="Merge strategy to use.", choices=("merge", "squash", "rebase"), default="merge"
                ),
                "commitTitle": StringArg(description="Optional commit title (merge and squash)."),
                "commitMessage": StringArg(description="Optional commit message (merge and squash)."),
                "expectedHeadSha": StringArg(description="Head SHA the pull request must still point at."),
            }
        ),
        handler=_tool_merge_pull_request,
    ),
    "create-branch": ToolSpec(
        description="Create a new branch pointing at a commit.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "branch": StringArg(
                    description="Branch name to create. The full ref (e.g. `refs/heads/feature`) is accepted.",
                    required=True,
                    min_length=1,
                ),
                "sha": StringArg(description="Commit SHA the new branch should point to.", required=True, min_length=1),
            }
        ),
        handler=_tool_create_branch,
    ),
    "update-branch": ToolSpec(
        description="Move an existing branch to another commit.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "branch": StringArg(
                    description="Branch name to update. Prefix `refs/heads/` is optional.", required=True, min_length=1
                ),
                "sha": StringArg(description="Commit SHA the branch should point to.", required=True, min_length=1),
                "force": BooleanArg(description="Allow moving the branch backward.", default=False),
            }
        ),
        handler=_tool_update_branch,
    ),
    "delete-remote-branch": ToolSpec(
        description="Delete a remote branch on GitHub (excluding main).",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "branch": StringArg(
                    description="Branch name (with or without `refs/heads/`) to delete.", required=True, min_length=1
                ),
            }
        ),
        handler=_tool_delete_remote_branch,
    ),
    "get-commit-status": ToolSpec(
        description="Fetch the combined status for the provided commit SHA or ref.",
        schema=ToolSchema(
            {
                "owner": _OWNER,
                "repo": _REPO,
                "ref": StringArg(description="Commit SHA or branch name to check.", required=True, min_length=1),
            }
        ),
        handler=_tool_get_commit_status,
    ),
    "create-local-branch": ToolSpec(
        description="Create a new local git branch in the given repository path.",
        schema=ToolSchema(
            {
                "repoPath": _REPO_PATH,
                "branch": StringArg(description="Name of the local branch to create.", required=True, min_length=1),
                "startPoint": StringArg(description="Optional starting point (commit or branch)."),
            }
        ),
        handler=_tool_create_local_branch,
    ),
    "git-status": ToolSpec(
        description="Show git status (short) for a local repository.",
        schema=ToolSchema({"repoPath": _REPO_PATH}),
        handler=_tool_git_status,
    ),
    "stage-changes": ToolSpec(
        description="Stage files or directories for the next local commit.",
        schema=ToolSchema(
            {
                "repoPath": _REPO_PATH,
                "paths": ArrayArg(
                    items=StringArg(min_length=1),
                    description="Paths to stage. Defaults to all changes when omitted.",
                ),
            }
        ),
        handler=_tool_stage_changes,
    ),
    "create-commit": ToolSpec(
        description="Create a local commit with the provided message.",
        schema=ToolSchema(
            {
                "repoPath": _REPO_PATH,
                "message": StringArg(description="Commit message.", required=True, min_length=1),
                "allowEmpty": BooleanArg(description="Allow creating an empty commit.", default=False),
                "signoff": BooleanArg(description="Add a Signed-off-by trailer.", default=False),
            }
        ),
        handler=_tool_create_commit,
    ),
    "delete-local-branch": ToolSpec(
        description="Delete a local branch (excluding main).",
        schema=ToolSchema(
            {
                "repoPath": _REPO_PATH,
                "branch": StringArg(
                    description="Local branch name to delete (main is protected).", required=True, min_length=1
                ),
                "force": BooleanArg(description="Force delete, ignoring unmerged commits.", default=False),
            }
        ),
        handler=_tool_delete_local_branch,
    ),
}

GITHUB_INSTRUCTIONS = service_instructions(
    "GitHub MCP Server",
    (
        ("GITHUB_TOKEN", "(required) personal access token or GitHub App installation token."),
        ("GITHUB_DEFAULT_OWNER", "(optional) default owner/org for repository operations."),
        ("GITHUB_USER_AGENT", "(optional) override the default User-Agent header."),
        ("DEVFLOW_MCP_AUDIT_LOG_PATH", "(optional) absolute path of a JSONL audit log file."),
    ),
    GITHUB_TOOLS,
)


class GitHubGateway(Gateway):
    """Gateway for the GitHub service, adding the rate-limit resource."""

    runtime: HostingRuntime

    async def read_rate_limit(self) -> Outcome:
        """Return the current rate-limit snapshot. Takes no arguments and never raises."""
        try:
            resources = await self.runtime.github.get_rate_limit()
        except AdapterError as err:
            return normalize_error(err)
        return Outcome.success(format_rate_limit(resources))


def build_github_gateway(
    config: HostingConfig,
    *,
    audit=None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GitHubGateway:
    """Wire adapters for the GitHub service from an already-loaded config."""
    runtime = HostingRuntime(
        config=config,
        github=GitHubClient(config=config, transport=transport),
        git=LocalGit(),
    )
    return GitHubGateway(
        name="devflow-github",
        tools=GITHUB_TOOLS,
        runtime=runtime,
        audit=audit,
        instructions=GITHUB_INSTRUCTIONS,
    )
