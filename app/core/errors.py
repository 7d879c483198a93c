"""Error taxonomy shared by the forecast clients."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ConfigurationError(Exception):
    """TLS material or upstream settings are unusable. Fatal at startup."""

    pass


class ErrorKind(str, Enum):
    """Kinds of request-time failure, each mapped to one HTTP status."""

    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"


@dataclass(frozen=True)
class Violation:
    """A single field constraint violation."""

    field: str
    reason: str


class UpstreamError(Exception):
    """Base for failures of an outbound forecast call."""

    kind: ErrorKind

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.violations: tuple[Violation, ...] = ()


class TransportError(UpstreamError):
    """Connection, TLS handshake, timeout or unexpected status from upstream."""

    kind = ErrorKind.TRANSPORT


class NotFoundError(UpstreamError):
    """Upstream answered 404."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(UpstreamError):
    """Forecast data from upstream violates field constraints."""

    kind = ErrorKind.VALIDATION

    def __init__(self, violations: Iterable[Violation], detail: str | None = None):
        violations = tuple(violations)
        message = "; ".join(f"{v.field}: {v.reason}" for v in violations)
        super().__init__(message or "Invalid upstream response", detail=detail)
        self.violations = violations
