"""Agent Invoker — one system+user prompt round-trip per call, mapped errors, no retry.

Invariants:
    - Every persona must resolve to a model id AND a credential at construction time;
      otherwise PersonaConfigError (fatal for the run, never retried)
    - Exactly one outbound request per invoke(); SDK retries disabled (max_retries=0)
    - All SDK failures mapped to ProviderError (core/errors.py) with upstream status
    - Returns the concatenated text blocks of the first response ("" when none)

Design Decisions:
    - One AsyncAnthropic client per distinct (api_key, base_url): personas sharing a
      credential share a connection pool (ADR: rate limits are per key)
    - Retry/fallback policy lives in the round orchestrator, not here
      (ADR: single responsibility — the invoker only translates the wire)
    - APITimeoutError checked before APIConnectionError (it is a subclass)
    - Anthropic Messages API only: every persona model must be reachable through it,
      directly or via a compatible gateway at ANTHROPIC_BASE_URL
"""

import logging

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
)

from verdict_engine.config import PersonaEndpoint
from verdict_engine.core.domain_types import Persona
from verdict_engine.core.errors import PersonaConfigError, ProviderError

logger = logging.getLogger(__name__)


class AgentInvoker:
    """Anthropic-backed implementation of AgentInvokerLike."""

    def __init__(
        self,
        endpoints: dict[Persona, PersonaEndpoint],
        max_tokens: int = 3000,
        temperature: float = 0.8,
        timeout_seconds: int = 120,
    ):
        self._endpoints = dict(endpoints)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        for persona in Persona:
            self._validate(persona, self._endpoints.get(persona))
        self._clients: dict[Persona, anthropic.AsyncAnthropic] = {}
        shared: dict[tuple[str, str | None], anthropic.AsyncAnthropic] = {}
        for persona, endpoint in self._endpoints.items():
            key = (endpoint.api_key, endpoint.base_url)
            if key not in shared:
                shared[key] = anthropic.AsyncAnthropic(
                    api_key=endpoint.api_key,
                    base_url=endpoint.base_url,
                    timeout=timeout_seconds,
                    max_retries=0,
                )
            self._clients[persona] = shared[key]

    @staticmethod
    def _validate(persona: Persona, endpoint: PersonaEndpoint | None) -> None:
        if endpoint is None or not endpoint.model:
            raise PersonaConfigError(persona.value, "model identifier")
        if not endpoint.api_key:
            raise PersonaConfigError(persona.value, "API credential")

    def model_for(self, persona: Persona) -> str:
        return self._endpoints[persona].model

    async def invoke(
        self,
        persona: Persona,
        model_id: str,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Send one prompt pair; return raw text or raise ProviderError."""
        client = self._clients[persona]
        try:
            response = await client.messages.create(
                model=model_id,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except APITimeoutError:
            raise ProviderError("request timed out", persona.value)
        except APIConnectionError as e:
            raise ProviderError(f"connection error: {e}", persona.value)
        except APIStatusError as e:
            raise ProviderError(str(e), persona.value, status_code=e.status_code)
        except APIError as e:
            raise ProviderError(str(e), persona.value)

        self._log_success(persona, model_id, response)
        return _response_text(response)

    def _log_success(self, persona: Persona, model_id: str, response) -> None:
        usage = getattr(response, "usage", None)
        logger.info(
            "Agent call succeeded",
            extra={
                "persona": persona.value,
                "model": model_id,
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )


def _response_text(response) -> str:
    """Join text blocks of a Messages API response."""
    parts = [
        getattr(b, "text", "") or "" for b in getattr(response, "content", None) or []
        if getattr(b, "type", None) == "text"
    ]
    return "\n".join(parts)
