"""Deterministic message cleanup applied before validation and classification.

Normalization steps:
    1. Drop invisible format/control characters (zero-width space/joiners, BOM,
       word joiner, other Unicode `Cf`/`Cc` code points) except whitespace.
    2. Collapse whitespace runs to a single space.
    3. Trim.

Edge cases:
    - `None` or input made only of whitespace and invisible characters yields `""`.
    - Rejecting empty output is the caller's concern.
"""

import re
import unicodedata


_WHITESPACE_RUN = re.compile(r"\s+")


def _is_invisible(ch: str) -> bool:
    if ch.isspace():
        return False
    return unicodedata.category(ch) in ("Cf", "Cc")


def preprocess_message(text: str | None) -> str:
    """Return `text` without invisible characters and with collapsed whitespace."""
    if not text:
        return ""

    visible = "".join(ch for ch in text if not _is_invisible(ch))
    return _WHITESPACE_RUN.sub(" ", visible).strip()
