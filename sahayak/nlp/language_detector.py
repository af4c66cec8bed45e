"""Script-share heuristic language detection for Indian-language farmer queries.

Parsing rules:
    - Letter-class characters are ASCII Latin letters plus everything in the
      U+0900-U+0D7F Indic block span.
    - Devanagari, Gurmukhi, Tamil, and Telugu code points are counted per script.
    - If the dominant script share is below `SCRIPT_SHARE_THRESHOLD`, or no
      letters exist, the text is English.
    - Gurmukhi, Tamil, and Telugu map to one language each (checked in that order
      on ties); Devanagari is shared by Marathi and Hindi and is resolved by
      marker words, Marathi first, defaulting to Hindi.

Determinism:
    Fully deterministic given identical input and static marker tables.

Non-goal:
    This is a heuristic for reply-language selection, not a language identifier.
"""

import re

from sahayak.core.routing_types import LANGUAGES, Language
from sahayak.nlp.phrase_tables import HINDI_MARKERS, MARATHI_MARKERS


SCRIPT_SHARE_THRESHOLD = 0.30

DEVANAGARI = (0x0900, 0x097F)
GURMUKHI = (0x0A00, 0x0A7F)
TAMIL = (0x0B80, 0x0BFF)
TELUGU = (0x0C00, 0x0C7F)
INDIC_SPAN = (0x0900, 0x0D7F)

# Priority order for scripts that map to exactly one language.
_SINGLE_LANGUAGE_SCRIPTS = (
    ("gurmukhi", "punjabi"),
    ("tamil", "tamil"),
    ("telugu", "telugu"),
)

_TOKEN_SPLIT = re.compile(r"[\s,;:.!?।॥\"'()\[\]{}]+")


def _in_range(code: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= code <= bounds[1]


def tokenize(text: str) -> list[str]:
    """Split lowercase text on whitespace and punctuation (Devanagari-safe)."""
    return [t for t in _TOKEN_SPLIT.split(text.lower()) if t]


def script_shares(text: str) -> dict[str, float]:
    """Return each tracked script's share of letter-class characters."""
    counts = {"devanagari": 0, "gurmukhi": 0, "tamil": 0, "telugu": 0}
    letters = 0

    for ch in text:
        code = ord(ch)

        if _in_range(code, DEVANAGARI):
            counts["devanagari"] += 1
        elif _in_range(code, GURMUKHI):
            counts["gurmukhi"] += 1
        elif _in_range(code, TAMIL):
            counts["tamil"] += 1
        elif _in_range(code, TELUGU):
            counts["telugu"] += 1

        is_latin = ("a" <= ch <= "z") or ("A" <= ch <= "Z")
        if is_latin or _in_range(code, INDIC_SPAN):
            letters += 1

    if letters == 0:
        return {script: 0.0 for script in counts}

    return {script: count / letters for script, count in counts.items()}


def _resolve_devanagari(text: str) -> Language:
    tokens = set(tokenize(text))
    if any(marker in tokens for marker in MARATHI_MARKERS):
        return "marathi"
    if any(marker in tokens for marker in HINDI_MARKERS):
        return "hindi"
    return "hindi"


def detect_language(text: str) -> Language:
    """Classify `text` as english, hindi, marathi, tamil, telugu, or punjabi.

    Edge cases:
        - Empty input returns `english`.
        - Purely Latin (or symbol-only) input returns `english`.
    """
    cleaned = (text or "").strip()
    if not cleaned:
        return "english"

    shares = script_shares(cleaned)
    top_share = max(shares.values())

    if top_share < SCRIPT_SHARE_THRESHOLD:
        return "english"

    for script, language in _SINGLE_LANGUAGE_SCRIPTS:
        if shares[script] == top_share:
            return language

    return _resolve_devanagari(cleaned)


def resolve_response_language(requested: str | None, detected: Language) -> Language:
    """Pick the reply language from the caller's request and the detected one.

    `auto` (or an unknown value) follows the message. An explicit request is
    honored unless the message is written in a different non-English language.
    """
    requested = (requested or "auto").strip().lower()
    if requested == "auto" or requested not in LANGUAGES:
        return detected

    if detected != "english" and detected != requested:
        return detected
    return requested
