"""Verdict Routes — trigger the daily debate and browse stored verdicts.

Invariants:
    - POST and GET /generate run the same pipeline (GET exists for cron schedulers)
    - An existing verdict is returned with status "exists" unless force=true
    - GET /{date} → 404 via ResourceNotFoundError when no verdict is stored
    - History reads never touch the model providers

Design Decisions:
    - AgentInvoker is a process-wide singleton built lazily from settings
      (ADR: one connection pool per credential, reused across requests)
    - PersonaConfigError surfaces at first use, through the global handler
"""

import calendar
import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from verdict_engine.config import get_settings
from verdict_engine.core.errors import ResourceNotFoundError
from verdict_engine.core.repository_protocols import AgentInvokerLike
from verdict_engine.infrastructure.agent_invoker import AgentInvoker
from verdict_engine.infrastructure.database import get_db
from verdict_engine.schemas.verdict import (
    GenerateVerdictRequest,
    GenerateVerdictResponse,
    PredictionResponse,
    VerdictDetailResponse,
    VerdictSummaryResponse,
)
from verdict_engine.services.daily_debate import run_daily_debate
from verdict_engine.services.verdict_gateway import VerdictGateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/verdicts", tags=["verdicts"])

_agent_invoker: AgentInvoker | None = None


def get_agent_invoker() -> AgentInvokerLike:
    """Singleton invoker — overridden with a scripted fake in tests."""
    global _agent_invoker
    if _agent_invoker is None:
        settings = get_settings()
        _agent_invoker = AgentInvoker(
            settings.persona_endpoints(),
            max_tokens=settings.agent_max_tokens,
            temperature=settings.agent_temperature,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
    return _agent_invoker


@router.post("/generate", response_model=GenerateVerdictResponse)
async def generate_verdict(
    body: GenerateVerdictRequest,
    db: AsyncSession = Depends(get_db),
    invoker: AgentInvokerLike = Depends(get_agent_invoker),
):
    """Run the three-round debate for a date (default: today, KST)."""
    return await run_daily_debate(
        db, invoker, verdict_date=body.date, force=body.force,
    )


@router.get("/generate", response_model=GenerateVerdictResponse)
async def generate_verdict_scheduled(
    verdict_date: date | None = Query(None, alias="date"),
    force: bool = False,
    db: AsyncSession = Depends(get_db),
    invoker: AgentInvokerLike = Depends(get_agent_invoker),
):
    """Scheduler-friendly variant of POST /generate."""
    return await run_daily_debate(
        db, invoker, verdict_date=verdict_date, force=force,
    )


@router.get("", response_model=list[VerdictSummaryResponse])
async def list_verdicts(
    year: int | None = Query(None, ge=2000, le=2100),
    month: int | None = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
):
    """Verdicts of one calendar month (default: current month, KST)."""
    today = datetime.now(ZoneInfo(get_settings().verdict_timezone)).date()
    year = year or today.year
    month = month or today.month
    last_day = calendar.monthrange(year, month)[1]
    records = await VerdictGateway(db).list_between(
        date(year, month, 1), date(year, month, last_day),
    )
    return [VerdictSummaryResponse.model_validate(r) for r in records]


@router.get("/{verdict_date}", response_model=VerdictDetailResponse)
async def get_verdict(verdict_date: date, db: AsyncSession = Depends(get_db)):
    """One verdict with its predictions."""
    gateway = VerdictGateway(db)
    record = await gateway.find_by_date(verdict_date)
    if not record:
        raise ResourceNotFoundError("Verdict", verdict_date.isoformat())
    predictions = await gateway.predictions_for(record.id)
    summary = VerdictSummaryResponse.model_validate(record)
    return VerdictDetailResponse(
        **summary.model_dump(),
        predictions=[PredictionResponse.model_validate(p) for p in predictions],
    )
