"""Verdict Gateway — tests for idempotent save, forced regeneration and downgrade.

Tests cover:
    - save writes one verdict + one prediction per entry with derived directions
    - second save without force returns the existing verdict unchanged
    - force=True leaves exactly one verdict (new id) and a fresh prediction set
    - store without detail columns → minimal insert + verdict_downgraded event
    - a failing prediction insert does not stop the remaining rows
    - date range listing
"""

import json
from datetime import date

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from verdict_engine.core.aggregate_consensus import aggregate
from verdict_engine.models.prediction import Prediction
from verdict_engine.models.verdict import Verdict
from verdict_engine.services.verdict_gateway import VerdictGateway
from tests.core.debate_fixtures import TEST_CANDIDATES, golden_rounds

DAY = date(2026, 10, 16)


@pytest.fixture
def entries():
    return aggregate(golden_rounds(), TEST_CANDIDATES)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ─── Save ────────────────────────────────────────────────────────

async def test_save_creates_verdict_and_predictions(test_db, entries):
    gateway = VerdictGateway(test_db)
    record = await gateway.save(
        DAY, entries, persona_top5={"value": []}, debate_log={"date": "2026-10-16"},
    )

    assert record.created
    assert not record.downgraded
    assert record.predictions_saved == 5
    assert [e["symbol"] for e in record.top5] == ["X", "Y", "Z", "W", "V"]

    stored = await test_db.get(Verdict, record.id)
    assert stored.persona_top5 == {"value": []}
    assert stored.debate_log == {"date": "2026-10-16"}

    predictions = await gateway.predictions_for(record.id)
    directions = {p.symbol: p.predicted_direction for p in predictions}
    assert directions == {"X": "up", "Y": "up", "Z": "down", "W": "down", "V": "down"}
    assert all(p.prediction_date == DAY for p in predictions)


async def test_second_save_without_force_is_idempotent(test_db, entries):
    gateway = VerdictGateway(test_db)
    first = await gateway.save(DAY, entries)
    second = await gateway.save(DAY, entries[:2])

    assert not second.created
    assert second.id == first.id
    assert second.top5 == first.top5
    assert json.dumps(second.top5, sort_keys=True) == json.dumps(first.top5, sort_keys=True)
    assert second.consensus_summary == first.consensus_summary
    assert await _count(test_db, Verdict) == 1
    assert await _count(test_db, Prediction) == 5


async def test_force_replaces_verdict_and_predictions(test_db, entries):
    gateway = VerdictGateway(test_db)
    first = await gateway.save(DAY, entries)
    second = await gateway.save(DAY, entries[:3], force=True)

    assert second.created
    assert second.id != first.id
    assert await _count(test_db, Verdict) == 1
    assert await _count(test_db, Prediction) == 3
    assert await gateway.predictions_for(first.id) == []


async def test_summary_written_with_verdict(test_db, entries):
    record = await VerdictGateway(test_db).save(DAY, entries)
    found = await VerdictGateway(test_db).find_by_date(DAY)
    assert found.consensus_summary == record.consensus_summary
    assert "#1: Xylem Power" in found.consensus_summary


# ─── Partial prediction failure ──────────────────────────────────

async def test_failed_prediction_does_not_stop_the_rest(test_db, entries):
    entries[1].symbol = None
    events = []
    record = await VerdictGateway(test_db).save(DAY, entries, on_event=events.append)

    assert record.predictions_saved == 4
    assert record.predictions_failed == ["None"]
    assert [e["type"] for e in events] == ["prediction_failed"]
    assert await _count(test_db, Prediction) == 4
    assert await _count(test_db, Verdict) == 1


# ─── Schema downgrade ────────────────────────────────────────────

@pytest.fixture
async def minimal_db():
    """Verdict store created before the detail columns existed."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.execute(text(
            "CREATE TABLE verdicts ("
            " id CHAR(32) PRIMARY KEY, date DATE NOT NULL UNIQUE,"
            " top5 JSON NOT NULL, consensus_summary TEXT,"
            " created_at DATETIME NOT NULL)"
        ))
        await conn.execute(text(
            "CREATE TABLE predictions ("
            " id CHAR(32) PRIMARY KEY, verdict_id CHAR(32) NOT NULL,"
            " symbol VARCHAR(20) NOT NULL, symbol_name VARCHAR(100) NOT NULL,"
            " predicted_direction VARCHAR(10) NOT NULL, avg_score FLOAT NOT NULL,"
            " date DATE NOT NULL, created_at DATETIME NOT NULL)"
        ))
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


async def test_missing_detail_columns_downgrade_to_minimal_insert(minimal_db, entries):
    events = []
    gateway = VerdictGateway(minimal_db)
    record = await gateway.save(
        DAY, entries,
        persona_top5={"value": []}, debate_log={"rounds": []},
        on_event=events.append,
    )

    assert record.created
    assert record.downgraded
    assert record.predictions_saved == 5
    assert events[0]["type"] == "verdict_downgraded"
    assert events[0]["data"]["dropped_columns"] == ["persona_top5", "debate_log"]

    found = await gateway.find_by_date(DAY)
    assert found.id == record.id
    assert [e["symbol"] for e in found.top5] == ["X", "Y", "Z", "W", "V"]


async def test_force_works_against_minimal_schema(minimal_db, entries):
    gateway = VerdictGateway(minimal_db)
    await gateway.save(DAY, entries)
    record = await gateway.save(DAY, entries, force=True)

    assert record.created
    rows = (await minimal_db.execute(text("SELECT COUNT(*) FROM verdicts"))).scalar_one()
    assert rows == 1


# ─── Reads ───────────────────────────────────────────────────────

async def test_list_between_is_inclusive_and_ordered(test_db, entries):
    gateway = VerdictGateway(test_db)
    for day in (date(2026, 10, 31), date(2026, 10, 1), date(2026, 11, 1)):
        await gateway.save(day, entries)

    records = await gateway.list_between(date(2026, 10, 1), date(2026, 10, 31))
    assert [r.verdict_date for r in records] == [date(2026, 10, 1), date(2026, 10, 31)]


async def test_find_by_date_missing_returns_none(test_db):
    assert await VerdictGateway(test_db).find_by_date(DAY) is None
