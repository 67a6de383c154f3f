"""Slack webhook tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .config import WebhookConfig
from .errors import validation_error
from .formatting import pull_request_blocks, pull_request_text
from .schema import ArrayArg, BooleanArg, IntegerArg, ObjectArg, StringArg, ToolSchema
from .slack_client import SlackWebhookClient
from .tools import Gateway, ToolSpec, service_instructions


@dataclass(frozen=True, slots=True)
class WebhookRuntime:
    config: WebhookConfig
    slack: SlackWebhookClient


_ROUTING = {
    "webhookName": StringArg(description="Named webhook from SLACK_WEBHOOK_MAP."),
    "webhookUrl": StringArg(description="Explicit webhook URL; overrides webhookName.", url=True),
    "username": StringArg(description="Sender name override. Falls back to SLACK_USERNAME."),
    "iconEmoji": StringArg(description="Sender icon override. Falls back to SLACK_ICON_EMOJI."),
}


async def _tool_post_message(runtime: WebhookRuntime, args: dict[str, Any]) -> str:
    if not args.get("text") and args.get("blocks") is None and args.get("attachments") is None:
        raise validation_error("Provide at least one of text, blocks, or attachments for Slack message.")

    await runtime.slack.post_message(
        text=args.get("text"),
        blocks=args.get("blocks"),
        attachments=args.get("attachments"),
        webhook_url=args.get("webhookUrl"),
        webhook_name=args.get("webhookName"),
        username=args.get("username"),
        icon_emoji=args.get("iconEmoji"),
    )
    return "Message posted to Slack."


async def _tool_post_pull_request(runtime: WebhookRuntime, args: dict[str, Any]) -> str:
    pr = dict(args)
    pr["draft"] = bool(pr.get("draft"))
    pr["state"] = pr.get("state") or "open"
    pr["labels"] = pr.get("labels") or []
    pr["reviewers"] = pr.get("reviewers") or []

    await runtime.slack.post_message(
        text=pull_request_text(pr),
        blocks=pull_request_blocks(pr),
        webhook_url=args.get("webhookUrl"),
        webhook_name=args.get("webhookName"),
        username=args.get("username"),
        icon_emoji=args.get("iconEmoji"),
    )
    return f"Pull request posted: {args['repository']}#{args['number']} ({args['title']})"


SLACK_TOOLS: dict[str, ToolSpec] = {
    "post-message": ToolSpec(
        description="Send a message or block payload to Slack.",
        schema=ToolSchema(
            {
                "text": StringArg(description="Message text.", min_length=1),
                "blocks": ArrayArg(items=ObjectArg(), description="Slack Block Kit blocks."),
                "attachments": ArrayArg(items=ObjectArg(), description="Legacy Slack attachments."),
                **_ROUTING,
            }
        ),
        handler=_tool_post_message,
    ),
    "post-pr": ToolSpec(
        description="Share pull request information in Slack.",
        schema=ToolSchema(
            {
                "repository": StringArg(description="Repository in owner/name format.", required=True, min_length=1),
                "number": IntegerArg(description="Pull request number.", required=True, minimum=1),
                "title": StringArg(required=True, min_length=1),
                "url": StringArg(required=True, url=True),
                "author": StringArg(required=True, min_length=1),
                "state": StringArg(choices=("open", "closed", "merged"), default="open"),
                "draft": BooleanArg(default=False),
                "labels": ArrayArg(items=StringArg(min_length=1), default=[]),
                "reviewers": ArrayArg(items=StringArg(min_length=1), default=[]),
                "additions": IntegerArg(minimum=0),
                "deletions": IntegerArg(minimum=0),
                "comments": IntegerArg(minimum=0),
                "body": StringArg(),
                **_ROUTING,
            }
        ),
        handler=_tool_post_pull_request,
    ),
}

SLACK_INSTRUCTIONS = service_instructions(
    "Slack MCP Server",
    (
        ("SLACK_WEBHOOK_URL", "(optional) default Slack incoming webhook URL."),
        ("SLACK_WEBHOOK_MAP", "(optional) JSON map of named webhooks."),
        ("SLACK_USERNAME", "(optional) override the username shown in Slack."),
        ("SLACK_ICON_EMOJI", "(optional) emoji avatar for messages."),
        ("DEVFLOW_MCP_AUDIT_LOG_PATH", "(optional) absolute path of a JSONL audit log file."),
    ),
    SLACK_TOOLS,
)


def build_slack_gateway(
    config: WebhookConfig,
    *,
    audit=None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Gateway:
    """Wire the webhook adapter for the Slack service from an already-loaded config."""
    runtime = WebhookRuntime(config=config, slack=SlackWebhookClient(config=config, transport=transport))
    return Gateway(
        name="devflow-slack",
        tools=SLACK_TOOLS,
        runtime=runtime,
        audit=audit,
        instructions=SLACK_INSTRUCTIONS,
    )
