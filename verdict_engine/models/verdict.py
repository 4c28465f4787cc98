"""Verdict ORM — one consensus top 5 per calendar date.

Invariants:
    - date is unique: at most one verdict per day (delete-then-recreate under force)
    - top5 stores the ranked ConsensusEntry dicts exactly as returned to callers
    - persona_top5 / debate_log are OPTIONAL detail columns (migration 002); every
      query outside the gateway's full insert reads CORE_COLUMNS only

Design Decisions:
    - JSON columns for top5/persona_top5/debate_log: stored as-is, never queried into
    - Column attribute verdict_date maps to DB column "date" (avoids shadowing datetime.date)
    - predictions cascade on delete: forced regeneration removes them with the verdict
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from verdict_engine.db.base import Base


class Verdict(Base):
    """Verdict aggregate root — owns its predictions."""
    __tablename__ = "verdicts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    verdict_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False, unique=True,
    )
    top5: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    consensus_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    persona_top5: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    debate_log: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    predictions: Mapped[list["Prediction"]] = relationship(
        "Prediction", back_populates="verdict",
        cascade="all, delete-orphan", passive_deletes=True,
    )


DETAIL_COLUMNS: tuple[str, ...] = ("persona_top5", "debate_log")

CORE_COLUMNS = (
    Verdict.id,
    Verdict.verdict_date,
    Verdict.top5,
    Verdict.consensus_summary,
    Verdict.created_at,
)
