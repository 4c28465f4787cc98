"""Debate Prompts — round-aware user prompts and speaking-order rotation.

Invariants:
    - speaking_order(r) rotates PERSONAS left by (r - 1): (A,B,C), (B,C,A), (C,A,B)
    - Prior-round summary truncates each statement to summary_chars and always lists picks
    - In-round context lists only statements made EARLIER in the same round
    - All builders are pure: same inputs → identical prompt text

Design Decisions:
    - Rotation avoids first-speaker anchoring bias (every persona opens one round)
    - Commentary (analysis / reaction / finalThoughts) summarized instead of raw JSON
      when available — cheaper context, same information for peers
    - Candidate list repeated in every round so round-3 names/symbols stay grounded
"""

from collections.abc import Sequence

from verdict_engine.core.domain_types import (
    AgentStatement, Candidate, DebateRound, Persona, PERSONAS, ROUND_NUMBERS,
)
from verdict_engine.core.persona_prompts import display_name


DEFAULT_SUMMARY_CHARS: int = 300


def speaking_order(round_number: int) -> tuple[Persona, ...]:
    """Speaking order for a round. Raises ValueError outside 1..3."""
    if round_number not in ROUND_NUMBERS:
        raise ValueError(f"round_number must be one of {ROUND_NUMBERS}, got {round_number}")
    shift = (round_number - 1) % len(PERSONAS)
    return PERSONAS[shift:] + PERSONAS[:shift]


def format_candidate_list(candidates: Sequence[Candidate]) -> str:
    return "\n".join(c.to_prompt_line() for c in candidates)


def summarize_prior_rounds(
    prior_rounds: Sequence[DebateRound], summary_chars: int = DEFAULT_SUMMARY_CHARS,
) -> str:
    """Condensed transcript of earlier rounds. Empty string when there are none."""
    if not prior_rounds:
        return ""
    lines = ["", "", "## Previous rounds"]
    for debate_round in prior_rounds:
        lines.append(f"\n### Round {debate_round.round_number}")
        for statement in debate_round.statements:
            lines.append(
                f"**{display_name(statement.persona)}**: "
                f"{_truncate(_statement_text(statement), summary_chars)}"
            )
            lines.append(f"Picks: {', '.join(statement.picks)}\n")
    return "\n".join(lines)


def summarize_in_round(statements: Sequence[AgentStatement]) -> str:
    """Picks already announced by earlier speakers of the current round."""
    if not statements:
        return ""
    lines = ["", "", "## Already said this round"]
    for statement in statements:
        lines.append(
            f"**{display_name(statement.persona)}**: picked - {', '.join(statement.picks)}"
        )
    return "\n".join(lines)


def build_round_prompt(
    round_number: int,
    candidates: Sequence[Candidate],
    prior_rounds: Sequence[DebateRound],
    in_round: Sequence[AgentStatement],
    debate_date: str,
    summary_chars: int = DEFAULT_SUMMARY_CHARS,
) -> str:
    """Full user prompt for one persona's turn."""
    if round_number not in ROUND_NUMBERS:
        raise ValueError(f"round_number must be one of {ROUND_NUMBERS}, got {round_number}")
    template = _ROUND_TEMPLATES[round_number]
    body = template.format(
        date=debate_date,
        candidates=format_candidate_list(candidates),
        previous=summarize_prior_rounds(prior_rounds, summary_chars),
    )
    return body + summarize_in_round(in_round)


def _statement_text(statement: AgentStatement) -> str:
    return statement.commentary or statement.raw_text


def _truncate(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


# Round templates use str.format — literal JSON braces are doubled.
_ROUND_1 = """Debate round 1 for today's ({date}) recommendations.

## Candidates
{candidates}{previous}

## Round 1 mission
From the candidates above, pick the **top 7** that fit your investment philosophy and explain why.
The other analysts may choose differently — make your own view clear.

## Response format (JSON only)
{{
  "analysis": "2-3 sentences on the market and your selection criteria",
  "picks": ["symbol1", "symbol2", ...],
  "reasons": {{
    "symbol1": "1-2 sentence reason",
    "symbol2": "1-2 sentence reason"
  }}
}}"""

_ROUND_2 = """Debate round 2. Use the other analysts' views to refine yours.

## Candidates
{candidates}{previous}

## Round 2 mission
- Analyze the other analysts' picks and agree or push back explicitly
- Separate the symbols you agree on from the ones you dispute
- Narrow your list to a **top 5**

## Response format (JSON only)
{{
  "reaction": "2-3 sentences reacting to the other analysts",
  "agreements": ["symbols you agree with"],
  "disagreements": {{"symbol": "why you disagree"}},
  "picks": ["your final 5 symbols, best first"],
  "reasons": {{"symbol": "reason"}}
}}"""

_ROUND_3 = """Final debate round 3. The panel must reach a consensus.

## Candidates
{candidates}{previous}

## Round 3 mission
- Select the **top 5** all three analysts can agree on
- Give each one a score from 1 to 5
- Present the final consensus

## Response format (JSON only)
{{
  "finalThoughts": "2-3 sentences wrapping up your view",
  "consensusPicks": [
    {{"symbol": "symbol", "name": "name", "score": 4.5, "reason": "why"}}
  ],
  "overallRisk": "main risk factors for the basket",
  "marketOutlook": "short-term market outlook"
}}"""

_ROUND_TEMPLATES: dict[int, str] = {1: _ROUND_1, 2: _ROUND_2, 3: _ROUND_3}
