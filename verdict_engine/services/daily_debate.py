"""Daily Debate Pipeline — date → debate → consensus → persisted verdict.

Invariants:
    - Existing verdict and force=False → "exists" payload, no agent is invoked
    - Consensus is computed before anything is written: EmptyConsensusError and
      DebateCancelledError leave the store untouched
    - Every VerdictEngineError escaping the run carries the verdict date in its context
    - The returned dict is the single response shape of the HTTP routes and the CLI

Design Decisions:
    - Plain async function, not a class: the pipeline has no state of its own
    - The default date is "today" in settings.verdict_timezone (KST), not UTC
      (ADR: verdicts are keyed by the exchange's trading day)
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from verdict_engine.config import Settings, get_settings
from verdict_engine.core.aggregate_consensus import aggregate
from verdict_engine.core.candidate_catalog import CANDIDATES
from verdict_engine.core.domain_types import Candidate, VerdictStatus
from verdict_engine.core.errors import VerdictEngineError
from verdict_engine.core.repository_protocols import AgentInvokerLike, EventSink, emit
from verdict_engine.core.verdict_payload import (
    build_debate_log, build_persona_top5,
)
from verdict_engine.services.round_orchestrator import DebateOrchestrator
from verdict_engine.services.verdict_gateway import VerdictGateway

logger = logging.getLogger(__name__)


def resolve_verdict_date(value: date | str | None, timezone_name: str) -> date:
    """Explicit date (ISO string or date) or today in the given zone."""
    if isinstance(value, date):
        return value
    if value:
        return date.fromisoformat(value)
    return datetime.now(ZoneInfo(timezone_name)).date()


async def run_daily_debate(
    db: AsyncSession,
    invoker: AgentInvokerLike,
    *,
    verdict_date: date | str | None = None,
    force: bool = False,
    candidates: Sequence[Candidate] = CANDIDATES,
    settings: Settings | None = None,
    on_event: EventSink | None = None,
    cancel_event: asyncio.Event | None = None,
) -> dict:
    settings = settings or get_settings()
    target = resolve_verdict_date(verdict_date, settings.verdict_timezone)
    iso = target.isoformat()
    gateway = VerdictGateway(db)

    try:
        existing = await gateway.find_by_date(target)
        if existing and not force:
            logger.info("Verdict already exists", extra={"verdict_date": iso})
            emit(on_event, "verdict_exists", {
                "date": iso, "verdict_id": str(existing.id),
            })
            return _exists_payload(existing)

        logger.info(
            "Starting debate (force=%s)", force, extra={"verdict_date": iso},
        )
        emit(on_event, "debate_started", {
            "date": iso, "force": force, "candidates": len(candidates),
        })
        orchestrator = DebateOrchestrator(
            invoker,
            pacing_seconds=settings.debate_pacing_seconds,
            summary_chars=settings.debate_summary_chars,
            debate_date=iso,
            on_event=on_event,
            cancel_event=cancel_event,
        )
        rounds = await orchestrator.run_debate(candidates)

        entries = aggregate(rounds, candidates)
        emit(on_event, "consensus", {
            "date": iso, "top5": [e.to_dict() for e in entries],
        })
        persona_top5 = build_persona_top5(rounds, candidates)
        record = await gateway.save(
            target, entries, force,
            persona_top5=persona_top5,
            debate_log=build_debate_log(iso, rounds, settings.debate_log_chars),
            on_event=on_event,
        )
    except VerdictEngineError as e:
        e.context.verdict_date = e.context.verdict_date or iso
        raise

    emit(on_event, "verdict_saved", {
        "date": iso,
        "verdict_id": str(record.id),
        "downgraded": record.downgraded,
        "predictions_saved": record.predictions_saved,
    })
    return {
        "status": VerdictStatus.CREATED.value,
        "date": iso,
        "verdict_id": str(record.id),
        "top5": record.top5,
        "per_persona_top5": persona_top5,
        "consensus_summary": record.consensus_summary,
        "debate_rounds": len(rounds),
    }


def _exists_payload(record) -> dict:
    return {
        "status": VerdictStatus.EXISTS.value,
        "date": record.verdict_date.isoformat(),
        "verdict_id": str(record.id),
        "top5": record.top5,
        "per_persona_top5": None,
        "consensus_summary": record.consensus_summary,
        "debate_rounds": 0,
    }
