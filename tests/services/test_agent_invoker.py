"""Agent Invoker Tests — persona config validation, request shape, error mapping.

Invariants:
    - No real API calls: the SDK client is replaced at the messages.create boundary
    - Every SDK failure surfaces as ProviderError with persona and status

Design Decisions:
    - Real anthropic exception classes built over httpx objects, so the mapping is
      exercised against the SDK's own hierarchy
"""

import httpx
import anthropic
import pytest

from verdict_engine.config import PersonaEndpoint, Settings
from verdict_engine.core.domain_types import Persona
from verdict_engine.core.errors import PersonaConfigError, ProviderError
from verdict_engine.infrastructure.agent_invoker import AgentInvoker

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


# -- Fakes ---------------------------------------------------------------------


class _Block:
    def __init__(self, type, text=""):
        self.type = type
        self.text = text


class _Usage:
    input_tokens = 120
    output_tokens = 80


class _Response:
    def __init__(self, *blocks):
        self.content = list(blocks)
        self.usage = _Usage()


class _FakeMessages:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class _FakeClient:
    def __init__(self, outcome):
        self.messages = _FakeMessages(outcome)


def _endpoints(overrides: dict | None = None):
    endpoints = {p: PersonaEndpoint(model=f"model-{p.value}", api_key="sk-test") for p in Persona}
    endpoints.update(overrides or {})
    return endpoints


def _invoker_with(outcome) -> tuple[AgentInvoker, _FakeClient]:
    invoker = AgentInvoker(_endpoints(), max_tokens=1234, temperature=0.5)
    fake = _FakeClient(outcome)
    invoker._clients[Persona.VALUE] = fake
    return invoker, fake


# -- Configuration -------------------------------------------------------------


def test_missing_model_raises_persona_config_error():
    endpoints = _endpoints({Persona.GROWTH: PersonaEndpoint(model="", api_key="sk")})
    with pytest.raises(PersonaConfigError) as exc_info:
        AgentInvoker(endpoints)
    assert exc_info.value.persona == "growth"
    assert exc_info.value.missing == "model identifier"


def test_missing_credential_raises_persona_config_error():
    endpoints = _endpoints({Persona.MACRO: PersonaEndpoint(model="m", api_key="")})
    with pytest.raises(PersonaConfigError) as exc_info:
        AgentInvoker(endpoints)
    assert exc_info.value.missing == "API credential"


def test_missing_persona_raises_persona_config_error():
    endpoints = _endpoints()
    del endpoints[Persona.VALUE]
    with pytest.raises(PersonaConfigError):
        AgentInvoker(endpoints)


def test_personas_sharing_a_key_share_a_client():
    invoker = AgentInvoker(_endpoints())
    assert invoker._clients[Persona.VALUE] is invoker._clients[Persona.MACRO]


def test_settings_fall_back_to_shared_api_key():
    settings = Settings(anthropic_api_key="sk-shared", persona_growth_api_key="sk-growth")
    endpoints = settings.persona_endpoints()
    assert endpoints[Persona.VALUE].api_key == "sk-shared"
    assert endpoints[Persona.GROWTH].api_key == "sk-growth"
    assert endpoints[Persona.MACRO].model == settings.persona_macro_model


def test_settings_normalize_postgres_url():
    settings = Settings(database_url="postgresql://u:p@host:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/db"


# -- invoke() ------------------------------------------------------------------


async def test_invoke_returns_joined_text_blocks():
    response = _Response(_Block("text", "{\"picks\":"), _Block("thinking"), _Block("text", "[]}"))
    invoker, fake = _invoker_with(response)

    text = await invoker.invoke(Persona.VALUE, "model-value", "system", "user")

    assert text == "{\"picks\":\n[]}"
    assert fake.messages.kwargs == {
        "model": "model-value",
        "max_tokens": 1234,
        "temperature": 0.5,
        "system": "system",
        "messages": [{"role": "user", "content": "user"}],
    }


async def test_invoke_with_no_content_returns_empty_string():
    invoker, _ = _invoker_with(_Response())
    assert await invoker.invoke(Persona.VALUE, "m", "s", "u") == ""


async def test_status_error_maps_to_provider_error():
    error = anthropic.InternalServerError(
        "overloaded",
        response=httpx.Response(529, request=_REQUEST),
        body=None,
    )
    invoker, _ = _invoker_with(error)

    with pytest.raises(ProviderError) as exc_info:
        await invoker.invoke(Persona.VALUE, "m", "s", "u")
    assert exc_info.value.persona == "value"
    assert exc_info.value.status_code == 529
    assert exc_info.value.http_status == 502


async def test_timeout_maps_to_provider_error():
    invoker, _ = _invoker_with(anthropic.APITimeoutError(request=_REQUEST))

    with pytest.raises(ProviderError) as exc_info:
        await invoker.invoke(Persona.VALUE, "m", "s", "u")
    assert exc_info.value.status_code is None
    assert "timed out" in exc_info.value.upstream_message


async def test_connection_error_maps_to_provider_error():
    invoker, _ = _invoker_with(anthropic.APIConnectionError(request=_REQUEST))

    with pytest.raises(ProviderError) as exc_info:
        await invoker.invoke(Persona.VALUE, "m", "s", "u")
    assert "connection error" in exc_info.value.upstream_message
