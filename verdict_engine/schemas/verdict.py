"""Verdict Schemas — Pydantic models for the generate/history endpoints.

Invariants:
    - GenerateVerdictRequest.date is ISO YYYY-MM-DD or absent (today in KST)
    - Response models read ORM rows and gateway records via from_attributes

Design Decisions:
    - top5 / per_persona_top5 stay loosely typed (list[dict]): the JSON column shape
      is owned by ConsensusEntry.to_dict(), not duplicated here
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from verdict_engine.core.domain_types import Direction, VerdictStatus

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class GenerateVerdictRequest(BaseModel):
    """Trigger body — optional target date, optional forced regeneration."""
    date: str | None = Field(None, pattern=DATE_PATTERN)
    force: bool = False

    @field_validator("date")
    @classmethod
    def valid_calendar_date(cls, v: str | None) -> str | None:
        if v is not None:
            date.fromisoformat(v)
        return v


class GenerateVerdictResponse(BaseModel):
    """Pipeline outcome — identical for HTTP and CLI."""
    status: VerdictStatus
    date: str
    verdict_id: str
    top5: list[dict]
    per_persona_top5: dict[str, list[dict]] | None = None
    consensus_summary: str | None = None
    debate_rounds: int


class PredictionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    symbol: str
    symbol_name: str
    predicted_direction: Direction
    avg_score: float


class VerdictSummaryResponse(BaseModel):
    """Verdict as listed in the monthly history."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    verdict_date: date
    top5: list[dict]
    consensus_summary: str | None = None
    created_at: datetime | None = None


class VerdictDetailResponse(VerdictSummaryResponse):
    predictions: list[PredictionResponse] = []
