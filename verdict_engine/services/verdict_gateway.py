"""Verdict Gateway — idempotent verdict persistence with schema downgrade.

Invariants:
    - At most one verdict per date; force=True deletes predictions + verdict first
    - Full insert first; a store rejection (missing detail columns) is retried ONCE
      with the minimal column set, logged and emitted as verdict_downgraded
    - Minimal insert failure → DatabaseError (fatal, nothing else written)
    - Predictions committed one by one; a failed row is rolled back, logged, emitted
      as prediction_failed, and never stops the remaining rows
    - Reads select CORE_COLUMNS only (work against either schema generation)

Design Decisions:
    - Core insert()/delete() over session.add(): the statement lists exactly the
      columns we send, so the minimal shape never references detail columns
    - Verdict id generated client-side: both attempts share it, and predictions
      need it without a round-trip
    - Existence check and insert are not atomic; the unique constraint on date turns
      a concurrent duplicate into DatabaseError instead of a second row
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import (
    IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from verdict_engine.core.domain_types import ConsensusEntry
from verdict_engine.core.errors import DatabaseError, SchemaMismatchError
from verdict_engine.core.repository_protocols import EventSink, emit
from verdict_engine.core.verdict_payload import (
    build_consensus_summary, build_prediction_rows,
)
from verdict_engine.models.prediction import Prediction
from verdict_engine.models.verdict import CORE_COLUMNS, DETAIL_COLUMNS, Verdict

logger = logging.getLogger(__name__)


@dataclass
class VerdictRecord:
    """Persisted verdict as seen through the core columns."""
    id: uuid.UUID
    verdict_date: date
    top5: list
    consensus_summary: str | None
    created_at: datetime | None
    created: bool = False
    downgraded: bool = False
    predictions_saved: int = 0
    predictions_failed: list[str] = field(default_factory=list)


class VerdictGateway:
    """Reads and writes verdicts/predictions through one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ───────────────────────────────────────────────────

    async def find_by_date(self, verdict_date: date) -> VerdictRecord | None:
        result = await self.db.execute(
            select(*CORE_COLUMNS).where(Verdict.verdict_date == verdict_date)
        )
        row = result.first()
        return _record_from_row(row) if row else None

    async def list_between(self, start: date, end: date) -> list[VerdictRecord]:
        """Verdicts with start <= date <= end, oldest first."""
        result = await self.db.execute(
            select(*CORE_COLUMNS)
            .where(Verdict.verdict_date >= start, Verdict.verdict_date <= end)
            .order_by(Verdict.verdict_date)
        )
        return [_record_from_row(row) for row in result.all()]

    async def predictions_for(self, verdict_id: uuid.UUID) -> list[Prediction]:
        result = await self.db.execute(
            select(Prediction)
            .where(Prediction.verdict_id == verdict_id)
            .order_by(Prediction.avg_score.desc(), Prediction.symbol)
        )
        return list(result.scalars().all())

    # ─── Writes ──────────────────────────────────────────────────

    async def save(
        self,
        verdict_date: date,
        entries: Sequence[ConsensusEntry],
        force: bool = False,
        *,
        persona_top5: dict | None = None,
        debate_log: dict | None = None,
        on_event: EventSink | None = None,
    ) -> VerdictRecord:
        """Persist one verdict and its predictions; idempotent unless force."""
        log_extra = {"verdict_date": verdict_date.isoformat()}
        existing = await self.find_by_date(verdict_date)
        if existing and not force:
            logger.info("Verdict already exists, skipping save", extra=log_extra)
            return existing
        if existing:
            await self._delete_for_date(verdict_date)
            logger.info("Deleted existing verdict for forced regeneration", extra=log_extra)

        core_values = {
            Verdict.id: uuid.uuid4(),
            Verdict.verdict_date: verdict_date,
            Verdict.top5: [e.to_dict() for e in entries],
            Verdict.consensus_summary: build_consensus_summary(entries),
            Verdict.created_at: datetime.now(timezone.utc),
        }
        downgraded = await self._insert_verdict(
            core_values,
            {Verdict.persona_top5: persona_top5, Verdict.debate_log: debate_log},
            verdict_date, on_event,
        )

        record = VerdictRecord(
            id=core_values[Verdict.id],
            verdict_date=verdict_date,
            top5=core_values[Verdict.top5],
            consensus_summary=core_values[Verdict.consensus_summary],
            created_at=core_values[Verdict.created_at],
            created=True,
            downgraded=downgraded,
        )
        await self._insert_predictions(record, entries, on_event)
        logger.info(
            "Verdict saved (%d/%d predictions)",
            record.predictions_saved, len(entries), extra=log_extra,
        )
        return record

    async def _delete_for_date(self, verdict_date: date) -> None:
        await self.db.execute(
            delete(Prediction).where(Prediction.prediction_date == verdict_date)
        )
        await self.db.execute(
            delete(Verdict).where(Verdict.verdict_date == verdict_date)
        )
        await self.db.commit()

    async def _insert_verdict(
        self,
        core_values: dict,
        detail_values: dict,
        verdict_date: date,
        on_event: EventSink | None,
    ) -> bool:
        """Returns True when the minimal shape had to be used."""
        try:
            await self.db.execute(
                insert(Verdict).values({**core_values, **detail_values})
            )
            await self.db.commit()
            return False
        except IntegrityError as e:
            await self.db.rollback()
            raise DatabaseError(str(e.orig), "verdict insert")
        except (OperationalError, ProgrammingError) as e:
            await self.db.rollback()
            mismatch = SchemaMismatchError(str(e.orig), list(DETAIL_COLUMNS))

        logger.warning(
            "Verdict detail columns rejected, retrying with minimal columns",
            extra={
                "verdict_date": verdict_date.isoformat(),
                "error_code": mismatch.code,
            },
        )
        logger.info(
            "Dropped verdict detail: %s",
            {col.key: value for col, value in detail_values.items()},
            extra={"verdict_date": verdict_date.isoformat()},
        )
        emit(on_event, "verdict_downgraded", {
            "date": verdict_date.isoformat(),
            "dropped_columns": mismatch.dropped_columns,
            "message": mismatch.message,
        })

        try:
            await self.db.execute(insert(Verdict).values(core_values))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(str(getattr(e, "orig", e)), "verdict insert")
        return True

    async def _insert_predictions(
        self,
        record: VerdictRecord,
        entries: Sequence[ConsensusEntry],
        on_event: EventSink | None,
    ) -> None:
        for row in build_prediction_rows(entries):
            try:
                await self.db.execute(insert(Prediction).values({
                    Prediction.id: uuid.uuid4(),
                    Prediction.verdict_id: record.id,
                    Prediction.symbol: row["symbol"],
                    Prediction.symbol_name: row["symbol_name"],
                    Prediction.predicted_direction: row["predicted_direction"],
                    Prediction.avg_score: row["avg_score"],
                    Prediction.prediction_date: record.verdict_date,
                    Prediction.created_at: datetime.now(timezone.utc),
                }))
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(
                    "Prediction insert failed: %s", getattr(e, "orig", e),
                    extra={
                        "verdict_date": record.verdict_date.isoformat(),
                        "symbol": row["symbol"],
                    },
                )
                record.predictions_failed.append(str(row["symbol"]))
                emit(on_event, "prediction_failed", {
                    "date": record.verdict_date.isoformat(),
                    "symbol": row["symbol"],
                })
                continue
            record.predictions_saved += 1


def _record_from_row(row) -> VerdictRecord:
    verdict_id, verdict_date, top5, summary, created_at = row
    return VerdictRecord(
        id=verdict_id,
        verdict_date=verdict_date,
        top5=top5 or [],
        consensus_summary=summary,
        created_at=created_at,
    )
