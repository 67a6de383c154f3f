"""Error taxonomy and outcome normalization.

Adapters raise `AdapterError`; the gateway renders every error into an `Outcome`
so that raw transport exceptions never reach the MCP client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Failure classes surfaced to callers."""

    HTTP = "Http"
    RATE_LIMITED = "RateLimited"
    PROCESS_FAILURE = "ProcessFailure"
    NOT_FOUND = "NotFound"
    VALIDATION = "Validation"
    CONFIGURATION = "Configuration"


@dataclass(frozen=True, slots=True)
class AdapterError(Exception):
    """A typed failure raised by configuration loading or a backend adapter."""

    kind: ErrorKind
    message: str
    details: str | None = None
    status_code: int | None = None
    reset_at: datetime | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class Outcome:
    """Uniform result of a tool invocation."""

    succeeded: bool
    message: str
    is_error: bool

    @classmethod
    def success(cls, message: str) -> Outcome:
        return cls(succeeded=True, message=message, is_error=False)

    @classmethod
    def failure(cls, message: str) -> Outcome:
        return cls(succeeded=False, message=message, is_error=True)


_TEMPLATES: dict[ErrorKind, str] = {
    ErrorKind.CONFIGURATION: "Configuration error",
    ErrorKind.VALIDATION: "Invalid request",
    ErrorKind.HTTP: "Request failed",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded",
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.PROCESS_FAILURE: "Command failed",
}

_GUIDANCE: dict[ErrorKind, str] = {
    ErrorKind.RATE_LIMITED: "Wait until the rate limit resets before retrying.",
}

_LOG_LEVELS: dict[ErrorKind, int] = {
    ErrorKind.CONFIGURATION: logging.ERROR,
    ErrorKind.VALIDATION: logging.INFO,
    ErrorKind.HTTP: logging.WARNING,
    ErrorKind.RATE_LIMITED: logging.WARNING,
    ErrorKind.NOT_FOUND: logging.INFO,
    ErrorKind.PROCESS_FAILURE: logging.WARNING,
}


def render_error(err: AdapterError) -> str:
    """Render an error as user-facing text.

    Details (e.g. captured stderr) are appended verbatim on their own line.
    """
    lines = [f"{_TEMPLATES[err.kind]}: {err.message}"]
    if err.details:
        lines.append(err.details)
    guidance = _GUIDANCE.get(err.kind)
    if guidance:
        lines.append(guidance)
    return "\n".join(lines)


def normalize_error(err: AdapterError) -> Outcome:
    """Convert an `AdapterError` into an error `Outcome`. Never raises."""
    logger.log(_LOG_LEVELS[err.kind], "%s error: %s", err.kind.value, err.message)
    return Outcome.failure(render_error(err))


def internal_error(message: str = "Internal error") -> Outcome:
    """Outcome for unexpected failures."""
    return Outcome.failure(message)


def validation_error(message: str, details: str | None = None) -> AdapterError:
    return AdapterError(kind=ErrorKind.VALIDATION, message=message, details=details)


def configuration_error(message: str, details: str | None = None) -> AdapterError:
    return AdapterError(kind=ErrorKind.CONFIGURATION, message=message, details=details)
