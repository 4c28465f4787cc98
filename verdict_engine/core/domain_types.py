"""Domain Types — immutable value objects shared by the debate, aggregation and persistence layers.

Invariants:
    - Exactly three personas; their declaration order is the round-1 speaking order (A, B, C)
    - Candidate, AgentStatement, DebateRound are frozen — created once per run, never mutated
    - ConsensusEntry.rank is 1..5, unique and contiguous within one verdict
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - Frozen dataclasses over Pydantic: core/ stays dependency-free and hashable
      (ADR: Pydantic is reserved for the HTTP boundary in schemas/)
    - str Enums: serialize to JSON without custom encoders (ADR: JSON columns and SSE payloads)
    - to_dict() on entries: single source for the persisted top5 JSON shape
"""

from dataclasses import dataclass, field
from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Persona(str, Enum):
    """The three analyst identities. Declaration order = (A, B, C)."""
    VALUE = "value"
    GROWTH = "growth"
    MACRO = "macro"


class Direction(str, Enum):
    """Predicted direction derived from a consensus avg_score."""
    UP = "up"
    HOLD = "hold"
    DOWN = "down"


class VerdictStatus(str, Enum):
    """Outcome of one pipeline run."""
    CREATED = "created"
    EXISTS = "exists"


PERSONAS: tuple[Persona, ...] = tuple(Persona)
ROUND_NUMBERS: tuple[int, ...] = (1, 2, 3)
FINAL_ROUND: int = 3
TOP_N: int = 5


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Candidate:
    """Externally supplied catalog entry."""
    symbol: str
    name: str
    sector: str
    tags: tuple[str, ...] = ()

    def to_prompt_line(self) -> str:
        return f"{self.name} ({self.symbol}) - {self.sector}, themes: {', '.join(self.tags)}"


@dataclass(frozen=True)
class AgentStatement:
    """One persona's contribution to one round."""
    persona: Persona
    round_number: int
    raw_text: str
    picks: tuple[str, ...]
    scores: dict[str, float] | None = None
    reasons: dict[str, str] | None = None
    commentary: str = ""
    is_fallback: bool = False


@dataclass(frozen=True)
class DebateRound:
    """One full cycle — exactly one statement per persona, in speaking order."""
    round_number: int
    statements: tuple[AgentStatement, ...]

    def statement_for(self, persona: Persona) -> AgentStatement | None:
        for statement in self.statements:
            if statement.persona == persona:
                return statement
        return None


@dataclass
class ConsensusEntry:
    """Aggregated standing of one symbol after all rounds."""
    symbol: str
    name: str
    sector: str
    votes: int
    avg_score: float
    is_unanimous: bool
    per_persona_score: dict[str, int]
    final_votes: int = 0
    tags: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    rank: int = 0

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "symbol": self.symbol,
            "name": self.name,
            "sector": self.sector,
            "tags": list(self.tags),
            "votes": self.votes,
            "final_votes": self.final_votes,
            "avg_score": self.avg_score,
            "is_unanimous": self.is_unanimous,
            "per_persona_score": dict(self.per_persona_score),
            "reasons": list(self.reasons),
        }
