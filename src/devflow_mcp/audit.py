"""Structured audit logging.

Each tool invocation produces one compact JSON line on stderr, mirrored to an optional JSONL file
(`DEVFLOW_MCP_AUDIT_LOG_PATH`). Events carry the tool name and a coarse target (owner/repo, repo
path or webhook name); tokens and webhook URLs never appear in them.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class AuditEvent:
    timestamp: str
    correlation_id: str
    operation: str
    target: str
    outcome: str
    reason: str | None
    duration_ms: int | None

    def to_line(self) -> str:
        """Serialize as one sorted, compact JSON line; unset fields are left out."""
        fields = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(fields, sort_keys=True, separators=(",", ":"))


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return AuditEvent(stamp, correlation_id, operation, target, outcome, reason, duration_ms)


class AuditLogger:
    """Emits audit events; the file sink is optional and failures there are only logged."""

    def __init__(self, *, sink_path: Path | None = None) -> None:
        self._sink_path = sink_path

    def write_event(self, event: AuditEvent) -> None:
        line = event.to_line()
        print(line, file=sys.stderr)
        if self._sink_path is not None:
            self._append(self._sink_path, line)

    @staticmethod
    def _append(path: Path, line: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as sink:
                sink.write(f"{line}\n")
        except OSError as exc:
            logger.warning("Audit file sink unavailable: %s", exc)

    def measure_start(self) -> float:
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        return int((time.monotonic() - start) * 1000)
