"""ORM Models — SQLAlchemy declarative models for verdict persistence.

Invariants:
    - All models inherit from Base (db/base.py)
    - Verdict is the aggregate root; predictions are scoped by verdict_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from verdict_engine.models.verdict import Verdict  # noqa: F401
from verdict_engine.models.prediction import Prediction  # noqa: F401
