"""Initial schema — verdicts (core columns) and predictions.

Revision ID: 001_verdicts_predictions
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_verdicts_predictions"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "verdicts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("top5", sa.JSON, nullable=False),
        sa.Column("consensus_summary", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("date", name="uq_verdicts_date"),
    )

    op.create_table(
        "predictions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "verdict_id", UUID(as_uuid=True),
            sa.ForeignKey("verdicts.id", ondelete="CASCADE", name="fk_predictions_verdict_id_verdicts"),
            nullable=False,
        ),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("symbol_name", sa.String(100), nullable=False),
        sa.Column("predicted_direction", sa.String(10), nullable=False),
        sa.Column("avg_score", sa.Float, nullable=False, server_default="0"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_predictions_date", "predictions", ["date"])
    op.create_index("ix_predictions_verdict_id", "predictions", ["verdict_id"])


def downgrade() -> None:
    op.drop_index("ix_predictions_verdict_id", table_name="predictions")
    op.drop_index("ix_predictions_date", table_name="predictions")
    op.drop_table("predictions")
    op.drop_table("verdicts")
