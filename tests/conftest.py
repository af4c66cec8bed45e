"""
Pytest configuration and shared fixtures for Kisaan Sahayak tests.

Provides:
- Frozen provider settings with dummy credentials
- Scripted async fakes for the specialist and general-purpose adapters
- An orchestrator factory wiring the fakes and an in-memory store

Usage:
    pytest tests/ -v
"""

import pytest

from sahayak.core.engine import Orchestrator
from sahayak.core.routing_types import Mode, ProviderResponse
from sahayak.llm.provider_config import ProviderSettings
from sahayak.memory.conversation_store import InMemoryConversationStore


# ═══════════════════════════════════════════════════════════════════
# PROVIDER FAKES
# ═══════════════════════════════════════════════════════════════════


class ScriptedGeneral:
    """Returns (or raises) scripted replies in order and records every call."""

    provider_id = "gemini"

    def __init__(self, replies=(), model_id="gemini-test"):
        self.replies = list(replies)
        self.model_id = model_id
        self.models = (model_id,)
        self.calls: list[tuple[str, int]] = []

    async def generate(self, prompt: str, max_output_tokens: int = 400) -> ProviderResponse:
        self.calls.append((prompt, max_output_tokens))
        if not self.replies:
            raise AssertionError("Unexpected general-purpose call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ProviderResponse(text=reply, provider_id=self.provider_id, model_id=self.model_id)

    @property
    def prompts(self) -> list[str]:
        return [prompt for prompt, _ in self.calls]

    @property
    def token_limits(self) -> list[int]:
        return [limit for _, limit in self.calls]


class ScriptedSpecialist:
    provider_id = "dhenu"

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.calls: list[str] = []

    async def generate(self, query: str) -> ProviderResponse:
        self.calls.append(query)
        if not self.replies:
            raise AssertionError("Unexpected specialist call")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ProviderResponse(text=reply, provider_id=self.provider_id)


# ═══════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def settings() -> ProviderSettings:
    return ProviderSettings(
        general_model="gemini-test",
        specialist_api_key="dhenu-test-key",
        general_api_key="gemini-test-key",
    )


@pytest.fixture
def store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def make_orchestrator(settings, store):
    """Factory: build an orchestrator around scripted providers.

    Returns `(orchestrator, general, specialist)`.
    """

    def _make(mode=Mode.HYBRID_LITE, general=(), specialist=(), with_store=True):
        general_fake = ScriptedGeneral(general)
        specialist_fake = ScriptedSpecialist(specialist)
        orchestrator = Orchestrator(
            ProviderSettings(
                general_model=settings.general_model,
                mode=mode,
                specialist_api_key=settings.specialist_api_key,
                general_api_key=settings.general_api_key,
            ),
            specialist=specialist_fake,
            general=general_fake,
            store=store if with_store else None,
        )
        return orchestrator, general_fake, specialist_fake

    return _make
