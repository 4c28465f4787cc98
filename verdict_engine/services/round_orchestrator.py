"""Round Orchestrator — sequential three-persona debate with fallbacks and pacing.

Invariants:
    - Every round yields exactly three statements, one per persona, in speaking order
    - Invocations are strictly sequential: persona N+1 sees persona N's picks
    - ProviderError or parse failure → fallback statement (first five candidates)
    - A pacing delay follows every invocation; the cancel token aborts it and any
      in-flight invocation, raising DebateCancelledError
    - PersonaConfigError and DebateCancelledError are never converted to fallbacks

Design Decisions:
    - Invoker injected as a protocol (ADR: tests drive the debate with scripted fakes)
    - Events delivered through an optional sink, same envelope as the SSE stream
    - Prompt text built by pure helpers in core/debate_prompts.py; this module only
      sequences calls and classifies outcomes
"""

import asyncio
import logging
from typing import Sequence

from verdict_engine.core.candidate_catalog import fallback_picks
from verdict_engine.core.debate_prompts import (
    DEFAULT_SUMMARY_CHARS, build_round_prompt, speaking_order,
)
from verdict_engine.core.domain_types import (
    AgentStatement, Candidate, DebateRound, Persona, ROUND_NUMBERS,
)
from verdict_engine.core.errors import DebateCancelledError, ProviderError
from verdict_engine.core.parse_response import (
    ParseResult, extract_statement_fields, parse_agent_output,
)
from verdict_engine.core.persona_prompts import get_system_prompt
from verdict_engine.core.repository_protocols import (
    AgentInvokerLike, EventSink, emit,
)

logger = logging.getLogger(__name__)

PROVIDER_ERROR_REASON = "provider_error"


class DebateOrchestrator:
    """Runs the three-round debate against any AgentInvokerLike."""

    def __init__(
        self,
        invoker: AgentInvokerLike,
        *,
        pacing_seconds: float = 1.0,
        summary_chars: int = DEFAULT_SUMMARY_CHARS,
        debate_date: str = "",
        on_event: EventSink | None = None,
        cancel_event: asyncio.Event | None = None,
    ):
        self.invoker = invoker
        self.pacing_seconds = pacing_seconds
        self.summary_chars = summary_chars
        self.debate_date = debate_date
        self.on_event = on_event
        self.cancel_event = cancel_event

    async def run_debate(self, candidates: Sequence[Candidate]) -> list[DebateRound]:
        """Rounds 1..3, each fed every earlier round."""
        rounds: list[DebateRound] = []
        for round_number in ROUND_NUMBERS:
            rounds.append(await self.run_round(round_number, candidates, rounds))
        return rounds

    async def run_round(
        self,
        round_number: int,
        candidates: Sequence[Candidate],
        prior_rounds: Sequence[DebateRound],
    ) -> DebateRound:
        order = speaking_order(round_number)
        emit(self.on_event, "round_started", {
            "round": round_number,
            "speaking_order": [p.value for p in order],
        })
        allowed = {c.symbol for c in candidates}
        statements: list[AgentStatement] = []

        for persona in order:
            self._check_cancelled(round_number)
            prompt = build_round_prompt(
                round_number, candidates, prior_rounds, statements,
                self.debate_date, self.summary_chars,
            )
            statement = await self._take_turn(
                persona, round_number, prompt, candidates, allowed,
            )
            statements.append(statement)
            emit(self.on_event, "statement", {
                "round": round_number,
                "persona": persona.value,
                "picks": list(statement.picks),
                "commentary": statement.commentary,
                "is_fallback": statement.is_fallback,
            })
            await self._pace(round_number)

        emit(self.on_event, "round_completed", {
            "round": round_number,
            "picks": {s.persona.value: list(s.picks) for s in statements},
            "fallbacks": sum(1 for s in statements if s.is_fallback),
        })
        return DebateRound(round_number=round_number, statements=tuple(statements))

    # ─── Single turn ─────────────────────────────────────────────

    async def _take_turn(
        self,
        persona: Persona,
        round_number: int,
        prompt: str,
        candidates: Sequence[Candidate],
        allowed: set[str],
    ) -> AgentStatement:
        try:
            raw_text = await self._invoke_cancellable(persona, round_number, prompt)
        except ProviderError as e:
            logger.warning(
                "Agent call failed, using fallback picks: %s", e.upstream_message,
                extra={
                    "persona": persona.value, "round_number": round_number,
                    "error_code": e.code, "verdict_date": self.debate_date,
                },
            )
            return self._fallback(
                persona, round_number, candidates, PROVIDER_ERROR_REASON, "",
            )

        parsed = parse_agent_output(raw_text)
        fields = (
            extract_statement_fields(parsed.value, round_number, allowed)
            if parsed.ok else parsed
        )
        if isinstance(fields, ParseResult):
            logger.warning(
                "Agent output unusable, using fallback picks",
                extra={
                    "persona": persona.value, "round_number": round_number,
                    "reason": fields.reason, "verdict_date": self.debate_date,
                },
            )
            return self._fallback(
                persona, round_number, candidates, fields.reason, raw_text,
            )

        return AgentStatement(
            persona=persona,
            round_number=round_number,
            raw_text=raw_text,
            picks=fields.picks,
            scores=fields.scores,
            reasons=fields.reasons,
            commentary=fields.commentary,
        )

    def _fallback(
        self,
        persona: Persona,
        round_number: int,
        candidates: Sequence[Candidate],
        reason: str,
        raw_text: str,
    ) -> AgentStatement:
        emit(self.on_event, "agent_fallback", {
            "round": round_number, "persona": persona.value, "reason": reason,
        })
        return AgentStatement(
            persona=persona,
            round_number=round_number,
            raw_text=raw_text,
            picks=fallback_picks(candidates),
            commentary=f"Fallback picks ({reason})",
            is_fallback=True,
        )

    # ─── Cancellation ────────────────────────────────────────────

    def _check_cancelled(self, round_number: int) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise DebateCancelledError(round_number)

    async def _invoke_cancellable(
        self, persona: Persona, round_number: int, prompt: str,
    ) -> str:
        call = self.invoker.invoke(
            persona,
            self.invoker.model_for(persona),
            get_system_prompt(persona),
            prompt,
        )
        if self.cancel_event is None:
            return await call

        invoke_task = asyncio.ensure_future(call)
        cancel_task = asyncio.ensure_future(self.cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {invoke_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_task.cancel()
        if invoke_task in done:
            return invoke_task.result()

        invoke_task.cancel()
        await asyncio.gather(invoke_task, return_exceptions=True)
        logger.info(
            "Debate cancelled during agent call",
            extra={"persona": persona.value, "round_number": round_number},
        )
        raise DebateCancelledError(round_number)

    async def _pace(self, round_number: int) -> None:
        if self.cancel_event is None:
            if self.pacing_seconds > 0:
                await asyncio.sleep(self.pacing_seconds)
            return
        self._check_cancelled(round_number)
        if self.pacing_seconds <= 0:
            return
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=self.pacing_seconds)
        except asyncio.TimeoutError:
            return
        raise DebateCancelledError(round_number)
