"""Prediction ORM — one directional call per top-5 entry of a verdict.

Invariants:
    - Always belongs to a Verdict (verdict_id FK, ON DELETE CASCADE)
    - predicted_direction in {up, hold, down}, derived from avg_score
    - date duplicated from the verdict so forced regeneration can delete by date

Design Decisions:
    - symbol_name denormalized: history views never join the catalog
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from verdict_engine.db.base import Base


class Prediction(Base):
    """Prediction entity — direction derived from consensus score."""
    __tablename__ = "predictions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    verdict_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("verdicts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    symbol_name: Mapped[str] = mapped_column(String(100), nullable=False)
    predicted_direction: Mapped[str] = mapped_column(String(10), nullable=False)
    avg_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    prediction_date: Mapped[date] = mapped_column(
        "date", Date, nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    verdict: Mapped["Verdict"] = relationship(
        "Verdict", back_populates="predictions",
    )
