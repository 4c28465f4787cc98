"""Error Hierarchy — typed, categorized exceptions for all Verdict Engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Recoverable errors (ProviderError, SchemaMismatchError) never escape the run;
      the orchestrator and gateway absorb them with a fallback
    - to_response() produces REST envelope; to_sse_event() produces SSE envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with VerdictEngineError base: FastAPI global handler catches all
      (ADR: uniform error shape)
    - Parse failures are NOT exceptions: parse_response returns a tagged ParseResult
      so the orchestration loop never needs try/except around parsing
    - "Verdict already exists" is NOT an error: the pipeline returns status="exists"
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"
    CANCELLED = "cancelled"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    verdict_date: str | None = None
    persona: str | None = None
    round_number: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class VerdictEngineError(Exception):
    """Base exception for all Verdict Engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "verdict_date": self.context.verdict_date,
                    "persona": self.context.persona,
                    "round_number": self.context.round_number,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to SSE error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
                "persona": self.context.persona,
            },
        }


# ─── Debate Errors ──────────────────────────────────────────────

class ProviderError(VerdictEngineError):
    """Upstream model call failed (transport, auth, non-2xx)."""
    def __init__(
        self,
        message: str,
        persona: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.persona = persona
        status = status_code if status_code is not None else "n/a"
        super().__init__(
            f"Provider call failed for {persona} (status {status}): {message}",
            "PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 502,
        )
        self.persona = persona
        self.status_code = status_code
        self.upstream_message = message


class PersonaConfigError(VerdictEngineError):
    """Persona has no model identifier or credential configured."""
    def __init__(self, persona: str, missing: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.persona = persona
        super().__init__(
            f"Persona '{persona}' is missing a configured {missing}",
            "PERSONA_NOT_CONFIGURED", ErrorCategory.CONFIGURATION,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.persona = persona
        self.missing = missing


class EmptyConsensusError(VerdictEngineError):
    """No symbol survived the debate — nothing to rank."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Failed to derive a consensus top 5: no picks were collected",
            "EMPTY_CONSENSUS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DebateCancelledError(VerdictEngineError):
    """Run aborted through its cancellation token."""
    def __init__(self, round_number: int | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.round_number = round_number
        super().__init__(
            "Debate run was cancelled",
            "DEBATE_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.WARNING, ctx, 409,
        )


class ResourceNotFoundError(VerdictEngineError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(VerdictEngineError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class SchemaMismatchError(VerdictEngineError):
    """Store rejected the richer verdict shape (detail columns missing)."""
    def __init__(
        self, message: str, dropped_columns: list[str], context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Verdict store rejected detail columns ({', '.join(dropped_columns)}): {message}",
            "SCHEMA_MISMATCH", ErrorCategory.DATABASE,
            ErrorSeverity.WARNING, context, 503,
        )
        self.dropped_columns = dropped_columns
