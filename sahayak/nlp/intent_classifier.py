"""Conversational-intent flags and the combined message classification.

Intent classification logic:
    - Detail wanted: detail phrase anywhere in the message.
    - Elaboration only: the whole message is an elaboration phrase.
    - Elaboration hint: detail phrase in a message of at most 60 characters, so
      long substantive questions that say "explain" are not treated as
      elaboration requests.
    - Follow-up: "what next / how do I fix it" phrase in at most 80 characters.
    - New topic: an agriculture-topic keyword is present.
    - Loose continuation: at most 120 characters and no new topic.

Interaction with core:
    `classify_message` feeds `core.engine.Orchestrator`, which uses
    `Classification.is_continuation` to decide on context resolution and the
    elaborate pipeline.

Determinism:
    Pure functions over the message text and the constant tables in
    `phrase_tables`.
"""

from sahayak.core.routing_types import Classification
from sahayak.nlp.complexity import estimate_complexity
from sahayak.nlp.language_detector import detect_language
from sahayak.nlp.phrase_tables import (
    DETAIL_PHRASES,
    ELABORATION_ONLY_PHRASES,
    FOLLOW_UP_PHRASES,
    TOPIC_KEYWORDS,
)


ELABORATION_HINT_MAX_CHARS = 60
FOLLOW_UP_MAX_CHARS = 80
LOOSE_CONTINUATION_MAX_CHARS = 120


def wants_detail(text: str) -> bool:
    t = (text or "").lower()
    return any(phrase in t for phrase in DETAIL_PHRASES)


def is_elaboration_only(text: str) -> bool:
    return (text or "").strip().lower() in ELABORATION_ONLY_PHRASES


def is_elaboration_hint(text: str) -> bool:
    t = (text or "").strip().lower()
    if not t or len(t) > ELABORATION_HINT_MAX_CHARS:
        return False
    return wants_detail(t)


def is_follow_up_question(text: str) -> bool:
    t = (text or "").strip().lower()
    if not t or len(t) > FOLLOW_UP_MAX_CHARS:
        return False
    return any(phrase in t for phrase in FOLLOW_UP_PHRASES)


def looks_like_new_topic(text: str) -> bool:
    """True when the message names an agriculture topic of its own."""
    t = (text or "").lower()
    return any(keyword in t for keyword in TOPIC_KEYWORDS)


def is_loose_continuation(text: str) -> bool:
    t = (text or "").strip()
    if not t:
        return False
    return len(t) <= LOOSE_CONTINUATION_MAX_CHARS and not looks_like_new_topic(t)


def classify_message(text: str) -> Classification:
    """Compute every classification signal for one preprocessed message."""
    return Classification(
        language=detect_language(text),
        complexity=estimate_complexity(text),
        wants_detail=wants_detail(text),
        is_elaboration_only=is_elaboration_only(text),
        is_elaboration_hint=is_elaboration_hint(text),
        is_follow_up=is_follow_up_question(text),
        is_loose_continuation=is_loose_continuation(text),
        is_new_topic=looks_like_new_topic(text),
    )
