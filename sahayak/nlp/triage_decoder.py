"""Tolerant decoding of the triage model's structured decision.

The triage prompt asks for strict JSON with `dhenu_needed` and `dhenu_question`,
but models often wrap it in prose or code fences. Decoding therefore:
    1. Tries each `{` in the reply, left to right.
    2. Parses one JSON value starting there (trailing prose is ignored).
    3. Keeps the first position that yields a JSON object.

Anything else yields `Undecodable`, which behaves as "consultation not needed".
Decode failures are never fatal.
"""

import json
from dataclasses import dataclass


NEEDED_KEY = "dhenu_needed"
QUESTION_KEY = "dhenu_question"

_TRUE_STRINGS = {"true", "yes", "1"}


@dataclass(frozen=True)
class Decoded:
    needed: bool
    question: str


@dataclass(frozen=True)
class Undecodable:
    raw: str = ""

    @property
    def needed(self) -> bool:
        return False

    @property
    def question(self) -> str:
        return ""


def _coerce_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def decode_triage(reply: str | None) -> Decoded | Undecodable:
    """Decode a triage reply into `Decoded(needed, question)` or `Undecodable`.

    Examples:
        >>> decode_triage('Sure: {"dhenu_needed": true, "dhenu_question": "soil pH"}')
        Decoded(needed=True, question='soil pH')
        >>> decode_triage("No braces here").needed
        False
    """
    if not reply or not isinstance(reply, str):
        return Undecodable()

    parsed = None
    decoder = json.JSONDecoder()
    start = reply.find("{")
    while start >= 0:
        try:
            candidate, _ = decoder.raw_decode(reply, start)
        except json.JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict):
            parsed = candidate
            break
        start = reply.find("{", start + 1)

    if parsed is None:
        return Undecodable(raw=reply)

    question = parsed.get(QUESTION_KEY)
    return Decoded(
        needed=_coerce_bool(parsed.get(NEEDED_KEY)),
        question=question.strip() if isinstance(question, str) else "",
    )
