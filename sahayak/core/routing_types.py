"""Routing data contracts shared by classifier, router, and orchestration engine.

Architectural role:
    Defines the per-request classification, the pipeline/mode enumerations, the
    routing decision handed to the engine, and the caller-facing result.

Control-flow interaction:
    `nlp.intent_classifier.classify_message` builds `Classification`;
    `nlp.intent_router.decide_route` maps it plus `Mode` to a `Pipeline`;
    `core.engine.Orchestrator` executes the pipeline and returns `ChatResult`.

Determinism:
    The data classes are structural and state-free.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


Language = Literal["auto", "english", "hindi", "marathi", "tamil", "telugu", "punjabi"]
Complexity = Literal["low", "medium", "high"]

LANGUAGES: tuple[str, ...] = ("auto", "english", "hindi", "marathi", "tamil", "telugu", "punjabi")


class Mode(str, Enum):
    """Process-wide operating mode selecting the non-elaboration pipeline."""

    SPECIALIST_ONLY = "specialist_only"
    HYBRID_LITE = "hybrid_lite"
    HYBRID_FULL = "hybrid_full"


# Earlier deployments configured the specialist-only mode by provider name.
MODE_ALIASES = {
    "dhenu_only": Mode.SPECIALIST_ONLY,
}


def normalize_mode(value: str | None) -> Mode:
    """Map a configured mode string to `Mode`; unknown values become `hybrid_lite`."""
    cleaned = (value or "").strip().lower()
    if cleaned in MODE_ALIASES:
        return MODE_ALIASES[cleaned]
    try:
        return Mode(cleaned)
    except ValueError:
        return Mode.HYBRID_LITE


class Pipeline(str, Enum):
    """Terminal pipeline states of the router."""

    ELABORATE = "elaborate"
    SPECIALIST_ONLY = "specialist_only"
    TRIAGE_HYBRID = "triage_hybrid"
    REWRITE_HYBRID = "rewrite_hybrid"


@dataclass(frozen=True)
class Classification:
    """Linguistic and conversational signals computed for one message.

    Attributes:
        language: Detected language of the message.
        complexity: Complexity tier controlling reply length targets.
        wants_detail: A detail-request phrase occurs anywhere in the message.
        is_elaboration_only: The whole message is an elaboration request.
        is_elaboration_hint: Short message containing a detail-request phrase.
        is_follow_up: Short "what next / how do I fix it" message.
        is_loose_continuation: Short message that introduces no new topic.
        is_new_topic: An agriculture-topic keyword is present.
    """

    language: Language = "english"
    complexity: Complexity = "low"
    wants_detail: bool = False
    is_elaboration_only: bool = False
    is_elaboration_hint: bool = False
    is_follow_up: bool = False
    is_loose_continuation: bool = False
    is_new_topic: bool = False

    @property
    def is_elaboration_request(self) -> bool:
        return self.is_elaboration_only or self.is_elaboration_hint

    @property
    def is_continuation(self) -> bool:
        """True when the message likely continues the previous turn."""
        return self.is_elaboration_request or self.is_follow_up or self.is_loose_continuation


@dataclass(frozen=True)
class RoutingDecision:
    """Selected pipeline plus the message and prior answer it operates on."""

    pipeline: Pipeline
    effective_message: str
    previous_answer: str = ""


@dataclass(frozen=True)
class ProviderResponse:
    """Text returned by one provider call."""

    text: str
    provider_id: str
    model_id: str | None = None


@dataclass(frozen=True)
class ChatResult:
    """Final reply with provenance metadata.

    Attributes:
        reply: Normalized reply text.
        mode_used: Configured mode active for the request.
        provider: Provenance tag naming the pipeline/providers used.
        model_id: General-purpose model that produced the final text.
        language: Language the reply was requested in.
        conversation_id: Conversation the turn was stored under, if any.
    """

    reply: str
    mode_used: Mode
    provider: str
    model_id: str
    language: Language = "auto"
    conversation_id: str | None = None
