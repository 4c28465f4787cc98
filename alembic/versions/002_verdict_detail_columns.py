"""Add verdict detail columns — persona_top5, debate_log.

Both nullable: verdicts saved through the minimal-column fallback keep NULL.

Revision ID: 002_verdict_detail_columns
Revises: 001_verdicts_predictions
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_verdict_detail_columns"
down_revision: Union[str, None] = "001_verdicts_predictions"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("verdicts", sa.Column("persona_top5", sa.JSON, nullable=True))
    op.add_column("verdicts", sa.Column("debate_log", sa.JSON, nullable=True))


def downgrade() -> None:
    op.drop_column("verdicts", "debate_log")
    op.drop_column("verdicts", "persona_top5")
