"""Consensus Aggregation — reduces three rounds of statements into a ranked top 5.

Invariants:
    - rank_score(i) = max(5 - i, 1): never zero, never negative
    - Phase A (rounds 1-2): rank scores pooled + persona added to selected-by
    - Phase B (round 3): explicit scores pooled + final_votes incremented; fallback
      statements carry no explicit scores and contribute nothing
    - votes = |selected-by| from Phase A only
    - is_unanimous iff every persona's individual top 5 contains the symbol
    - Sort key: is_unanimous desc, votes desc, avg_score desc, symbol asc
    - aggregate() is PURE and deterministic: no randomness, no insertion-order tiebreak

Design Decisions:
    - avg_score rounded to one decimal BEFORE sorting: ranking agrees with the displayed score
    - Symbol ascending as the last key closes full ties reproducibly (ADR: open question
      on fully tied entries resolved in favour of a documented total order)
    - Individual top 5 taken from round 2 (the narrowing round), falling back to round 1
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from verdict_engine.core.domain_types import (
    Candidate, ConsensusEntry, DebateRound, Persona, PERSONAS, FINAL_ROUND, TOP_N,
)
from verdict_engine.core.errors import EmptyConsensusError


BREADTH_ROUNDS: tuple[int, ...] = (1, 2)
MAX_RANK_SCORE: int = 5


@dataclass
class _SymbolPool:
    scores: list[float] = field(default_factory=list)
    selected_by: set[Persona] = field(default_factory=set)
    final_votes: int = 0
    reasons: list[str] = field(default_factory=list)


def rank_score(index: int) -> int:
    """Rank weight for a 0-indexed pick position."""
    return max(MAX_RANK_SCORE - index, 1)


def individual_top5(rounds: Sequence[DebateRound]) -> dict[Persona, tuple[str, ...]]:
    """Each persona's own top 5: round-2 picks, else round-1 picks, else empty."""
    result: dict[Persona, tuple[str, ...]] = {p: () for p in PERSONAS}
    for round_number in (2, 1):
        for debate_round in rounds:
            if debate_round.round_number != round_number:
                continue
            for statement in debate_round.statements:
                if not result[statement.persona] and statement.picks:
                    result[statement.persona] = tuple(statement.picks[:TOP_N])
    return result


def persona_score(top5: Sequence[str], symbol: str) -> int:
    """5 for first place down to 1 for fifth; 0 when absent."""
    if symbol not in top5:
        return 0
    return MAX_RANK_SCORE - list(top5).index(symbol)


def aggregate(
    rounds: Sequence[DebateRound], candidates: Sequence[Candidate] = (),
) -> list[ConsensusEntry]:
    """Combine all rounds into the ranked top 5. Raises EmptyConsensusError."""
    pools = _collect_pools(rounds)
    if not pools:
        raise EmptyConsensusError()

    catalog = {c.symbol: c for c in candidates}
    personal = individual_top5(rounds)
    entries = [
        _build_entry(symbol, pool, catalog.get(symbol), personal)
        for symbol, pool in pools.items()
    ]
    entries.sort(key=_sort_key)

    top = entries[:TOP_N]
    for idx, entry in enumerate(top):
        entry.rank = idx + 1
    return top


def _collect_pools(rounds: Sequence[DebateRound]) -> dict[str, _SymbolPool]:
    pools: dict[str, _SymbolPool] = {}

    # Phase A — breadth
    for debate_round in rounds:
        if debate_round.round_number not in BREADTH_ROUNDS:
            continue
        for statement in debate_round.statements:
            for idx, symbol in enumerate(statement.picks):
                pool = pools.setdefault(symbol, _SymbolPool())
                pool.scores.append(float(rank_score(idx)))
                pool.selected_by.add(statement.persona)

    # Phase B — final agreement
    for debate_round in rounds:
        if debate_round.round_number != FINAL_ROUND:
            continue
        for statement in debate_round.statements:
            if not statement.scores:
                continue
            for symbol in statement.picks:
                if symbol not in statement.scores:
                    continue
                pool = pools.setdefault(symbol, _SymbolPool())
                pool.scores.append(float(statement.scores[symbol]))
                pool.final_votes += 1
                reason = (statement.reasons or {}).get(symbol, "")
                pool.reasons.append(f"{statement.persona.value}: {reason}")
    return pools


def _build_entry(
    symbol: str,
    pool: _SymbolPool,
    candidate: Candidate | None,
    personal: dict[Persona, tuple[str, ...]],
) -> ConsensusEntry:
    avg = sum(pool.scores) / len(pool.scores) if pool.scores else 0.0
    per_persona = {p.value: persona_score(personal[p], symbol) for p in PERSONAS}
    return ConsensusEntry(
        symbol=symbol,
        name=candidate.name if candidate else symbol,
        sector=candidate.sector if candidate else "Other",
        tags=list(candidate.tags) if candidate else [],
        votes=len(pool.selected_by),
        final_votes=pool.final_votes,
        avg_score=round(avg, 1),
        is_unanimous=all(score > 0 for score in per_persona.values()),
        per_persona_score=per_persona,
        reasons=list(pool.reasons),
    )


def _sort_key(entry: ConsensusEntry) -> tuple:
    return (not entry.is_unanimous, -entry.votes, -entry.avg_score, entry.symbol)
