"""Round Orchestrator — tests for sequencing, fallbacks, events and cancellation.

Tests cover:
    - golden script → three rounds, speaking order rotation, parsed statements
    - later speakers see earlier picks; later rounds see earlier rounds
    - provider errors and unparseable output → fallback statements (every round)
    - events emitted in order through the sink
    - a pacing delay after every invocation (9 per debate), fallbacks included
    - cancellation during pacing and during an in-flight call
"""

import asyncio

import pytest

from verdict_engine.core.domain_types import Persona
from verdict_engine.core.errors import DebateCancelledError, ProviderError
from verdict_engine.core.persona_prompts import get_system_prompt
from verdict_engine.services.round_orchestrator import DebateOrchestrator
from tests.core.debate_fixtures import A, B, C, TEST_CANDIDATES
from tests.services.fake_invoker import (
    BlockingInvoker, ScriptedInvoker, TimedInvoker, golden_script, picks_reply,
)

FALLBACK = ("X", "Y", "Z", "W", "V")


def _orchestrator(invoker, **kwargs):
    kwargs.setdefault("pacing_seconds", 0)
    kwargs.setdefault("debate_date", "2026-10-16")
    return DebateOrchestrator(invoker, **kwargs)


# ─── Happy path ──────────────────────────────────────────────────

async def test_golden_debate_produces_three_full_rounds():
    invoker = ScriptedInvoker(golden_script())
    rounds = await _orchestrator(invoker).run_debate(TEST_CANDIDATES)

    assert [r.round_number for r in rounds] == [1, 2, 3]
    assert all(len(r.statements) == 3 for r in rounds)
    assert not any(s.is_fallback for r in rounds for s in r.statements)
    assert rounds[0].statement_for(A).picks == ("X", "Y", "Z", "W", "V")
    assert rounds[2].statement_for(C).scores == {"X": 5.0, "Y": 5.0, "V": 4.0, "Z": 3.0, "T": 2.0}


async def test_speaking_order_rotates_across_rounds():
    invoker = ScriptedInvoker(golden_script())
    rounds = await _orchestrator(invoker).run_debate(TEST_CANDIDATES)

    assert [s.persona for s in rounds[0].statements] == [A, B, C]
    assert [s.persona for s in rounds[1].statements] == [B, C, A]
    assert [s.persona for s in rounds[2].statements] == [C, A, B]
    assert [(c.persona, c.round_number) for c in invoker.calls][:4] == [
        (A, 1), (B, 1), (C, 1), (B, 2),
    ]


async def test_invoker_receives_persona_model_and_system_prompt():
    invoker = ScriptedInvoker(golden_script())
    await _orchestrator(invoker).run_round(1, TEST_CANDIDATES, [])

    first = invoker.calls[0]
    assert first.model_id == "fake-value"
    assert first.system_prompt == get_system_prompt(Persona.VALUE)


async def test_later_speakers_and_rounds_see_earlier_context():
    invoker = ScriptedInvoker(golden_script())
    await _orchestrator(invoker).run_debate(TEST_CANDIDATES)

    round1_second = invoker.calls[1].user_prompt
    assert "picked - X, Y, Z, W, V" in round1_second
    round2_first = invoker.calls[3].user_prompt
    assert "## Previous rounds" in round2_first
    assert "### Round 1" in round2_first


# ─── Fallbacks ───────────────────────────────────────────────────

@pytest.mark.parametrize("round_number", [1, 2, 3])
async def test_failing_invoker_yields_fallbacks_every_round(round_number):
    script = {
        (p, round_number): ProviderError("boom", p.value, status_code=500)
        for p in Persona
    }
    invoker = ScriptedInvoker(script)
    debate_round = await _orchestrator(invoker).run_round(
        round_number, TEST_CANDIDATES, [],
    )

    assert len(debate_round.statements) == 3
    for s in debate_round.statements:
        assert s.is_fallback
        assert s.picks == FALLBACK
        assert s.scores is None


async def test_unparseable_output_falls_back_but_keeps_raw_text():
    script = {(A, 1): "I refuse to answer in JSON", (B, 1): picks_reply(["Q"])}
    script[(C, 1)] = picks_reply(["Y", "X"])
    invoker = ScriptedInvoker(script)
    debate_round = await _orchestrator(invoker).run_round(1, TEST_CANDIDATES, [])

    value = debate_round.statement_for(A)
    assert value.is_fallback
    assert value.raw_text == "I refuse to answer in JSON"
    assert debate_round.statement_for(B).is_fallback
    assert debate_round.statement_for(C).picks == ("Y", "X")


# ─── Events ──────────────────────────────────────────────────────

async def test_events_emitted_in_order():
    events = []
    script = golden_script()
    script[(B, 1)] = ProviderError("overloaded", "growth", status_code=529)
    invoker = ScriptedInvoker(script)
    await _orchestrator(invoker, on_event=events.append).run_round(1, TEST_CANDIDATES, [])

    types = [e["type"] for e in events]
    assert types == [
        "round_started", "statement", "agent_fallback", "statement",
        "statement", "round_completed",
    ]
    fallback = events[2]["data"]
    assert fallback == {"round": 1, "persona": "growth", "reason": "provider_error"}
    assert events[-1]["data"]["fallbacks"] == 1


async def test_failing_event_sink_does_not_break_round():
    def sink(event):
        raise RuntimeError("sink down")

    invoker = ScriptedInvoker(golden_script())
    debate_round = await _orchestrator(invoker, on_event=sink).run_round(
        1, TEST_CANDIDATES, [],
    )
    assert len(debate_round.statements) == 3


# ─── Pacing ──────────────────────────────────────────────────────

PACING = 0.05
# Event-loop timers may fire up to one clock tick early.
PACING_FLOOR = PACING * 0.8


def _assert_paced(invoker, finished_at):
    """Every call is followed by a pacing delay, the last one included."""
    boundaries = invoker.started_at[1:] + [finished_at]
    gaps = [b - a for a, b in zip(invoker.started_at, boundaries)]
    assert all(gap >= PACING_FLOOR for gap in gaps), gaps


@pytest.mark.parametrize("with_cancel_token", [False, True])
async def test_pacing_delay_follows_every_invocation(with_cancel_token):
    invoker = TimedInvoker(golden_script())
    orchestrator = _orchestrator(
        invoker,
        pacing_seconds=PACING,
        cancel_event=asyncio.Event() if with_cancel_token else None,
    )
    loop = asyncio.get_running_loop()

    await orchestrator.run_debate(TEST_CANDIDATES)
    finished_at = loop.time()

    assert len(invoker.started_at) == 9
    _assert_paced(invoker, finished_at)


async def test_pacing_applies_to_fallback_turns():
    script = {(p, 1): ProviderError("boom", p.value, status_code=500) for p in Persona}
    invoker = TimedInvoker(script)
    loop = asyncio.get_running_loop()

    await _orchestrator(invoker, pacing_seconds=PACING).run_round(1, TEST_CANDIDATES, [])
    finished_at = loop.time()

    assert len(invoker.started_at) == 3
    _assert_paced(invoker, finished_at)


# ─── Cancellation ────────────────────────────────────────────────

async def test_cancel_before_start_raises():
    cancel = asyncio.Event()
    cancel.set()
    invoker = ScriptedInvoker(golden_script())
    with pytest.raises(DebateCancelledError):
        await _orchestrator(invoker, cancel_event=cancel).run_debate(TEST_CANDIDATES)
    assert invoker.calls == []


async def test_cancel_during_pacing_delay():
    cancel = asyncio.Event()
    invoker = ScriptedInvoker(golden_script())
    orchestrator = _orchestrator(invoker, pacing_seconds=30, cancel_event=cancel)

    task = asyncio.create_task(orchestrator.run_debate(TEST_CANDIDATES))
    while not invoker.calls:
        await asyncio.sleep(0)
    cancel.set()

    with pytest.raises(DebateCancelledError):
        await asyncio.wait_for(task, timeout=5)
    assert len(invoker.calls) == 1


async def test_cancel_during_inflight_call():
    cancel = asyncio.Event()
    invoker = BlockingInvoker()
    orchestrator = _orchestrator(invoker, cancel_event=cancel)

    task = asyncio.create_task(orchestrator.run_round(1, TEST_CANDIDATES, []))
    await asyncio.wait_for(invoker.started.wait(), timeout=5)
    cancel.set()

    with pytest.raises(DebateCancelledError) as exc_info:
        await asyncio.wait_for(task, timeout=5)
    assert exc_info.value.context.round_number == 1
