"""Response Parsing — extracts structured picks from loosely formatted model output.

Invariants:
    - parse_agent_output is PURE and NEVER raises: returns ParseResult(ok=...) always
    - Exactly two decode attempts: strict, then one bounded repair pass
    - Greedy span: first "{" to last "}" (handles markdown fences and preambles)
    - extract_statement_fields only returns catalog symbols, deduplicated, order preserved
    - An empty pick list is a failure (caller substitutes the fallback statement)

Design Decisions:
    - Tagged result over exceptions: the orchestration loop branches on .ok instead of
      wrapping every parse in try/except (ADR: isolate repair logic from orchestration)
    - Repair is deliberately narrow (trailing commas, control chars, blank lines,
      missing commas between values split by a line break) — broader heuristics
      corrupt valid text
    - Comma insertion scans outside string literals only; string contents are
      never rewritten
    - The repaired text is decoded with strict=False so raw newlines and tabs inside
      string values (the usual model slip) are accepted as-is
    - Round-3 scores clamped to [1, 5]; missing/invalid default to 3
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable


# ─── Failure reasons ─────────────────────────────────────────────

NO_JSON_OBJECT = "no_json_object"
NOT_AN_OBJECT = "not_an_object"
UNPARSEABLE_AFTER_REPAIR = "unparseable_after_repair"
NO_VALID_PICKS = "no_valid_picks"

DEFAULT_FINAL_SCORE: float = 3.0
MIN_FINAL_SCORE: float = 1.0
MAX_FINAL_SCORE: float = 5.0

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_DUPLICATE_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
_VALUE_END = '"0123456789'
_VALUE_START = '"0123456789{['


@dataclass(frozen=True)
class ParseResult:
    """Tagged parse outcome: ok=True carries value, ok=False carries reason."""
    ok: bool
    value: dict | None = None
    reason: str | None = None

    @classmethod
    def success(cls, value: dict) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "ParseResult":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class StatementFields:
    """Normalized per-round payload content."""
    picks: tuple[str, ...]
    scores: dict[str, float] | None
    reasons: dict[str, str] | None
    commentary: str


def repair_json_text(text: str) -> str:
    """Apply the bounded repair pass. Pure, idempotent on valid JSON objects."""
    repaired = _CONTROL_CHARS.sub("", text)
    repaired = _TRAILING_COMMA.sub(r"\1", repaired)
    repaired = _DUPLICATE_BLANK_LINES.sub("\n\n", repaired)
    return _insert_missing_commas(repaired)


def _insert_missing_commas(text: str) -> str:
    """Add a comma where two values are separated only by a line break."""
    out: list[str] = []
    in_string = escaped = False
    last = ""
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                last = ch
            i += 1
            continue

        if ch.isspace():
            j = i
            while j < n and text[j].isspace():
                j += 1
            gap = text[i:j]
            if (
                "\n" in gap and j < n and last
                and last in _VALUE_END and text[j] in _VALUE_START
            ):
                out.append(",")
            out.append(gap)
            i = j
            continue

        if ch == '"':
            in_string = True
        out.append(ch)
        last = ch
        i += 1
    return "".join(out)


def parse_agent_output(raw_text: str | None) -> ParseResult:
    """Extract the JSON object from raw model text. Never raises."""
    if not raw_text:
        return ParseResult.failure(NO_JSON_OBJECT)

    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end <= start:
        return ParseResult.failure(NO_JSON_OBJECT)
    span = raw_text[start:end + 1]

    try:
        value = json.loads(span)
    except json.JSONDecodeError:
        try:
            value = json.loads(repair_json_text(span), strict=False)
        except json.JSONDecodeError:
            return ParseResult.failure(UNPARSEABLE_AFTER_REPAIR)

    if not isinstance(value, dict):
        return ParseResult.failure(NOT_AN_OBJECT)
    return ParseResult.success(value)


# ─── Payload → statement fields ──────────────────────────────────

def normalize_picks(
    raw_picks: Iterable[Any], allowed_symbols: set[str] | None = None,
) -> tuple[str, ...]:
    """Strip, deduplicate (first wins), and keep only allowed symbols."""
    seen: list[str] = []
    for pick in raw_picks:
        if isinstance(pick, dict):
            pick = pick.get("symbol")
        if pick is None or isinstance(pick, bool):
            continue
        symbol = str(pick).strip()
        if not symbol or symbol in seen:
            continue
        if allowed_symbols is not None and symbol not in allowed_symbols:
            continue
        seen.append(symbol)
    return tuple(seen)


def coerce_final_score(raw: Any) -> float:
    """Round-3 explicit score → float in [1, 5]; default 3."""
    if isinstance(raw, bool):
        return DEFAULT_FINAL_SCORE
    try:
        score = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_FINAL_SCORE
    if score != score:  # NaN
        return DEFAULT_FINAL_SCORE
    return max(MIN_FINAL_SCORE, min(MAX_FINAL_SCORE, score))


def extract_statement_fields(
    payload: dict, round_number: int, allowed_symbols: set[str] | None = None,
) -> StatementFields | ParseResult:
    """Map a parsed payload onto picks/scores/reasons for the given round.

    Returns ParseResult.failure(NO_VALID_PICKS) when nothing usable remains.
    """
    if round_number == 3:
        return _extract_final_round(payload, allowed_symbols)

    raw_picks = payload.get("picks")
    if not isinstance(raw_picks, list):
        return ParseResult.failure(NO_VALID_PICKS)
    picks = normalize_picks(raw_picks, allowed_symbols)
    if not picks:
        return ParseResult.failure(NO_VALID_PICKS)

    raw_reasons = payload.get("reasons")
    reasons = None
    if isinstance(raw_reasons, dict):
        reasons = {
            str(k).strip(): str(v) for k, v in raw_reasons.items()
            if str(k).strip() in picks
        }
    commentary = payload.get("analysis") or payload.get("reaction") or ""
    return StatementFields(
        picks=picks, scores=None, reasons=reasons or None,
        commentary=str(commentary),
    )


def _extract_final_round(
    payload: dict, allowed_symbols: set[str] | None,
) -> StatementFields | ParseResult:
    raw = payload.get("consensusPicks")
    if not isinstance(raw, list):
        return ParseResult.failure(NO_VALID_PICKS)

    picks: list[str] = []
    scores: dict[str, float] = {}
    reasons: dict[str, str] = {}
    for item in raw:
        if not isinstance(item, dict):
            continue
        symbol = str(item.get("symbol") or "").strip()
        if not symbol or symbol in scores:
            continue
        if allowed_symbols is not None and symbol not in allowed_symbols:
            continue
        picks.append(symbol)
        scores[symbol] = coerce_final_score(item.get("score"))
        reasons[symbol] = str(item.get("reason") or "")

    if not picks:
        return ParseResult.failure(NO_VALID_PICKS)
    return StatementFields(
        picks=tuple(picks), scores=scores, reasons=reasons,
        commentary=str(payload.get("finalThoughts") or ""),
    )
