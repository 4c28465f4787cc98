"""Verdict Payload — pure builders for everything persisted or returned alongside the top 5.

Invariants:
    - predicted_direction: up if avg >= 4, hold if avg >= 3, else down
    - Persona top 5 score = 5 - index (rank 1 scores 5)
    - Debate log truncates each statement's raw text to log_chars
    - No IO, no clock: the caller supplies the date

Design Decisions:
    - Separate from aggregate_consensus: ranking logic vs presentation shape
      (ADR: responsibility separation — the aggregator never formats strings)
"""

from collections.abc import Sequence

from verdict_engine.core.domain_types import (
    Candidate, ConsensusEntry, DebateRound, Direction,
)
from verdict_engine.core.aggregate_consensus import individual_top5, MAX_RANK_SCORE


UP_THRESHOLD: float = 4.0
HOLD_THRESHOLD: float = 3.0
DEFAULT_LOG_CHARS: int = 500


def predicted_direction(avg_score: float) -> Direction:
    if avg_score >= UP_THRESHOLD:
        return Direction.UP
    if avg_score >= HOLD_THRESHOLD:
        return Direction.HOLD
    return Direction.DOWN


def build_consensus_summary(entries: Sequence[ConsensusEntry]) -> str:
    """One-line headline stored with the verdict."""
    unanimous = sum(1 for e in entries if e.is_unanimous)
    leader = entries[0].name if entries else "n/a"
    return f"Three-analyst debate complete | {unanimous} unanimous | #1: {leader}"


def build_persona_top5(
    rounds: Sequence[DebateRound], candidates: Sequence[Candidate] = (),
) -> dict[str, list[dict]]:
    """Each persona's individual top 5 with catalog details."""
    catalog = {c.symbol: c for c in candidates}
    result: dict[str, list[dict]] = {}
    for persona, symbols in individual_top5(rounds).items():
        result[persona.value] = [
            _persona_pick(idx, symbol, catalog.get(symbol))
            for idx, symbol in enumerate(symbols)
        ]
    return result


def _persona_pick(idx: int, symbol: str, candidate: Candidate | None) -> dict:
    return {
        "rank": idx + 1,
        "symbol": symbol,
        "name": candidate.name if candidate else symbol,
        "sector": candidate.sector if candidate else "Other",
        "score": MAX_RANK_SCORE - idx,
    }


def build_debate_log(
    debate_date: str,
    rounds: Sequence[DebateRound],
    log_chars: int = DEFAULT_LOG_CHARS,
) -> dict:
    """Transcript persisted in the optional debate_log column."""
    return {
        "date": debate_date,
        "rounds": [
            {
                "round": r.round_number,
                "messages": [
                    {
                        "persona": s.persona.value,
                        "picks": list(s.picks),
                        "content": s.raw_text[:log_chars],
                        "is_fallback": s.is_fallback,
                    }
                    for s in r.statements
                ],
            }
            for r in rounds
        ],
    }


def build_prediction_rows(entries: Sequence[ConsensusEntry]) -> list[dict]:
    """Prediction fields derived from each top-5 entry (verdict id added by the gateway)."""
    return [
        {
            "symbol": e.symbol,
            "symbol_name": e.name,
            "predicted_direction": predicted_direction(e.avg_score).value,
            "avg_score": e.avg_score,
        }
        for e in entries
    ]
