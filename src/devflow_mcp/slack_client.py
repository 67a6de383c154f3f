"""Slack incoming-webhook client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .config import WebhookConfig, first_present
from .errors import AdapterError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WebhookPostResult:
    status: int
    reason: str
    body: str


class SlackWebhookClient:
    """Posts JSON payloads to configured or caller-supplied Slack webhooks."""

    def __init__(self, *, config: WebhookConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Bind the client to webhook configuration; `transport` is for tests."""
        self._config = config
        self._transport = transport

    def resolve_url(self, *, webhook_url: str | None = None, webhook_name: str | None = None) -> str:
        """Resolve the target URL: explicit URL, then named webhook, then configured default."""
        explicit = first_present(webhook_url)
        if explicit:
            return explicit

        name = first_present(webhook_name)
        if name:
            mapped = self._config.webhook_map.get(name)
            if not mapped:
                raise AdapterError(
                    kind=ErrorKind.NOT_FOUND,
                    message=f"Unknown webhook name '{name}'. Define it in SLACK_WEBHOOK_MAP.",
                )
            return mapped

        default = first_present(self._config.default_url)
        if default:
            return default

        raise AdapterError(
            kind=ErrorKind.CONFIGURATION,
            message="No Slack webhook configured. Provide webhookUrl, webhookName, or SLACK_WEBHOOK_URL.",
        )

    def build_payload(
        self,
        *,
        text: str | None = None,
        blocks: list[Any] | None = None,
        attachments: list[Any] | None = None,
        username: str | None = None,
        icon_emoji: str | None = None,
    ) -> dict[str, Any]:
        """Assemble the webhook body. Absent fields are omitted, never sent as null."""
        payload: dict[str, Any] = {}
        if text:
            payload["text"] = text
        if blocks is not None:
            payload["blocks"] = blocks
        if attachments is not None:
            payload["attachments"] = attachments

        sender = first_present(username, self._config.username)
        if sender:
            payload["username"] = sender

        icon = first_present(icon_emoji, self._config.icon_emoji)
        if icon:
            payload["icon_emoji"] = icon
        return payload

    async def post_message(
        self,
        *,
        text: str | None = None,
        blocks: list[Any] | None = None,
        attachments: list[Any] | None = None,
        webhook_url: str | None = None,
        webhook_name: str | None = None,
        username: str | None = None,
        icon_emoji: str | None = None,
    ) -> WebhookPostResult:
        """Post one message. Non-2xx responses raise an `Http` error; nothing is retried."""
        url = self.resolve_url(webhook_url=webhook_url, webhook_name=webhook_name)
        payload = self.build_payload(
            text=text,
            blocks=blocks,
            attachments=attachments,
            username=username,
            icon_emoji=icon_emoji,
        )

        try:
            async with httpx.AsyncClient(follow_redirects=False, timeout=None, transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            raise AdapterError(
                kind=ErrorKind.HTTP,
                message="Slack webhook request failed",
                details=str(exc) or type(exc).__name__,
            ) from exc

        body = resp.text
        if not resp.is_success:
            raise AdapterError(
                kind=ErrorKind.HTTP,
                message=f"Slack webhook returned {resp.status_code} {resp.reason_phrase}".rstrip(),
                details=body or None,
                status_code=resp.status_code,
            )

        logger.info("Slack webhook accepted message (%s)", resp.status_code)
        return WebhookPostResult(status=resp.status_code, reason=resp.reason_phrase, body=body)
