"""Tool registry and dispatch layer.

This module:
- defines the `ToolSpec` contract shared by the GitHub and Slack tool tables
- creates a correlation_id per invocation and writes one audit event for it
- validates arguments before any adapter is touched
- turns every result or error into a uniform `Outcome`
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .audit import AuditLogger, build_event, new_correlation_id
from .errors import AdapterError, ErrorKind, Outcome, internal_error, normalize_error, validation_error
from .schema import ToolSchema, validate_arguments

logger = logging.getLogger(__name__)

Handler = Callable[[Any, dict[str, Any]], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A named tool: description, argument schema and handler."""

    description: str
    schema: ToolSchema
    handler: Handler

    def metadata(self) -> dict[str, Any]:
        return {"description": self.description, "inputSchema": self.schema.to_json_schema()}


_DENIED_KINDS = frozenset({ErrorKind.VALIDATION, ErrorKind.CONFIGURATION})


def _target_from_args(arguments: object) -> str:
    if not isinstance(arguments, dict):
        return "<unknown>"
    owner = arguments.get("owner")
    repo = arguments.get("repo")
    if isinstance(owner, str) and owner and isinstance(repo, str) and repo:
        return f"{owner}/{repo}"
    for key in ("repo", "repository", "repoPath", "webhookName"):
        value = arguments.get(key)
        if isinstance(value, str) and value:
            return value
    return "<none>"


def service_instructions(
    title: str, environment: Sequence[tuple[str, str]], tools: Mapping[str, ToolSpec]
) -> str:
    """Render the text a client shows when it connects: configuration variables, then tools."""
    lines = [title, "", "Configure using environment variables (a `.env` file in the working directory is also read):"]
    lines.extend(f"- {var} {note}" for var, note in environment)
    lines.extend(["", "Available tools:"])
    lines.extend(f"- {tool_name}: {spec.description}" for tool_name, spec in tools.items())
    return "\n".join(lines)


class Gateway:
    """Dispatches invocations for one service's tool table.

    The runtime (config + adapters) is built once at startup and shared read-only by every
    invocation.
    """

    def __init__(
        self,
        *,
        name: str,
        tools: Mapping[str, ToolSpec],
        runtime: Any,
        audit: AuditLogger | None = None,
        instructions: str = "",
    ) -> None:
        self.name = name
        self.tools = tools
        self.runtime = runtime
        self.audit = audit or AuditLogger()
        self.instructions = instructions

    async def dispatch(self, name: str, arguments: object) -> Outcome:
        """Run one tool invocation. Never raises."""
        correlation_id = new_correlation_id()
        target = _target_from_args(arguments)
        start = self.audit.measure_start()

        try:
            spec = self.tools.get(name)
            if spec is None:
                raise validation_error(
                    f"Unknown tool: {name}",
                    details=f"Available tools: {', '.join(sorted(self.tools))}",
                )

            validated = validate_arguments(spec.schema, arguments)
            if not validated.ok:
                raise validation_error(f"Invalid arguments for {name}", details=validated.describe())

            message = await spec.handler(self.runtime, validated.value)
            outcome = Outcome.success(message)
            self._audit(correlation_id, name, target, "succeeded", None, start)
            return outcome

        except AdapterError as err:
            outcome_label = "denied" if err.kind in _DENIED_KINDS else "failed"
            self._audit(correlation_id, name, target, outcome_label, err.message, start)
            return normalize_error(err)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Tool %s failed unexpectedly [%s]", name, correlation_id)
            self._audit(correlation_id, name, target, "failed", "Internal error", start)
            return internal_error(f"Internal error while running {name} (correlation id {correlation_id})")

    def _audit(
        self,
        correlation_id: str,
        operation: str,
        target: str,
        outcome: str,
        reason: str | None,
        start: float,
    ) -> None:
        self.audit.write_event(
            build_event(
                correlation_id=correlation_id,
                operation=operation,
                target=target,
                outcome=outcome,
                reason=reason,
                duration_ms=self.audit.measure_duration_ms(start),
            )
        )
