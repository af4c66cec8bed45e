"""Reply normalization applied to every final model text.

Formatting steps:
    1. Strip `**` / `__` emphasis markup.
    2. Remove whitespace that precedes a newline.
    3. Move inline " - " bullets onto their own lines.
    4. Without an existing blank-line break and with more than two sentences,
       insert a paragraph break after the second sentence.

The under-detailed check only drives the single re-query of the elaborate
pipeline.
"""

import re


UNDERDETAILED_MIN_CHARS = 220
UNDERDETAILED_MIN_BULLETS = 3
BULLET_MARKER = "- "

_EMPHASIS = re.compile(r"\*\*|__")
_SPACE_BEFORE_NEWLINE = re.compile(r"[^\S\n]+\n")
_INLINE_BULLET = re.compile(r"(^|[^\n])\s-\s+")
# Sentence terminators include the Devanagari danda.
_SENTENCE_END = re.compile(r"[.!?।](?=\s)")


def _split_after_second_sentence(text: str) -> str:
    ends = list(_SENTENCE_END.finditer(text))
    # More than two sentences means a second terminator followed by more text.
    if len(ends) < 2:
        return text

    cut = ends[1].end()
    head = text[:cut].rstrip()
    tail = text[cut:].strip()
    if not tail:
        return text
    return f"{head}\n\n{tail}"


def normalize_reply(text: str | None) -> str:
    """Return `text` reformatted into the consistent bullet/paragraph shape."""
    cleaned = _EMPHASIS.sub("", text or "")
    cleaned = _SPACE_BEFORE_NEWLINE.sub("\n", cleaned).strip()
    cleaned = _INLINE_BULLET.sub(lambda m: f"{m.group(1)}\n{BULLET_MARKER}", cleaned)

    if "\n\n" in cleaned:
        return cleaned

    return _split_after_second_sentence(cleaned).strip()


def count_bullets(text: str) -> int:
    return sum(1 for line in (text or "").split("\n") if line.strip().startswith(BULLET_MARKER))


def looks_underdetailed(text: str | None) -> bool:
    """True when text is shorter than 220 chars or has fewer than 3 bullet lines."""
    cleaned = (text or "").strip()
    if len(cleaned) < UNDERDETAILED_MIN_CHARS:
        return True
    return count_bullets(cleaned) < UNDERDETAILED_MIN_BULLETS
