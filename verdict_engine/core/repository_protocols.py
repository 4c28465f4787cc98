"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The orchestrator talks to model providers only through AgentInvokerLike
    - Debate observability flows only through EventSink callbacks

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
      (ADR: the Anthropic-backed invoker and scripted fakes are interchangeable)
    - EventSink is a plain callable taking {"type", "data"} dicts — the same envelope
      the SSE route streams, so no translation layer exists between them
"""

import logging
from typing import Callable, Protocol

from verdict_engine.core.domain_types import Persona

logger = logging.getLogger(__name__)


class AgentInvokerLike(Protocol):
    """Contract for one system+user prompt round-trip — implemented by shell."""

    def model_for(self, persona: Persona) -> str: ...

    async def invoke(
        self,
        persona: Persona,
        model_id: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str: ...


EventSink = Callable[[dict], None]


def emit(sink: EventSink | None, event_type: str, data: dict) -> None:
    """Deliver one event if a sink is attached. Sink failures never reach the caller."""
    if sink is None:
        return
    try:
        sink({"type": event_type, "data": data})
    except Exception:
        logger.warning(
            "Event sink raised while handling %s", event_type, exc_info=True,
        )
