"""Error Hierarchy — tests for codes, HTTP status and response envelopes.

Tests cover:
    - every VerdictEngineError subclass carries its code and HTTP status
    - to_response() / to_sse_event() shapes
"""

import pytest

from verdict_engine.core.errors import (
    DatabaseError,
    DebateCancelledError,
    EmptyConsensusError,
    ErrorContext,
    PersonaConfigError,
    ProviderError,
    ResourceNotFoundError,
    SchemaMismatchError,
)


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (ProviderError("boom", "value", 500), "PROVIDER_ERROR", 502),
        (PersonaConfigError("macro", "model identifier"), "PERSONA_NOT_CONFIGURED", 500),
        (EmptyConsensusError(), "EMPTY_CONSENSUS", 500),
        (DebateCancelledError(2), "DEBATE_CANCELLED", 409),
        (ResourceNotFoundError("Verdict", "2026-10-16"), "RESOURCE_NOT_FOUND", 404),
        (DatabaseError("gone", "insert"), "DATABASE_ERROR", 503),
        (SchemaMismatchError("no column", ["debate_log"]), "SCHEMA_MISMATCH", 503),
    ],
)
def test_error_codes_and_status(error, code, status):
    assert error.code == code
    assert error.http_status == status


def test_to_response_includes_context():
    error = ProviderError("overloaded", "growth", status_code=529,
                          context=ErrorContext(verdict_date="2026-10-16"))
    body = error.to_response()["error"]
    assert body["code"] == "PROVIDER_ERROR"
    assert "529" in body["message"]
    assert body["context"] == {
        "verdict_date": "2026-10-16", "persona": "growth", "round_number": None,
    }


def test_to_sse_event_marks_warnings_recoverable():
    event = DebateCancelledError(3).to_sse_event()
    assert event["type"] == "error"
    assert event["data"]["code"] == "DEBATE_CANCELLED"
    assert event["data"]["recoverable"] is True
    assert EmptyConsensusError().to_sse_event()["data"]["recoverable"] is False
