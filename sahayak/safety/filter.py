"""Rule-based input screening applied before classification.

Purpose:
    Reject empty, oversized, or structurally hostile messages before any provider
    call, and produce the sanitized text that is stored for identified users.

Validation model:
    - `sanitize_input`: strips dangerous markup blocks, then any remaining tag.
    - `validate_message`: emptiness, length limit, sanitization outcome.
    - `detect_suspicious_patterns`: injection-style patterns, special-character
      density, long character repetition.

Determinism:
    For the same input text and pattern lists, output is deterministic.

Bypass risk:
    Pattern matching is coarse screening, not content moderation. Obfuscated input
    can pass; provider-side safety still applies.
"""

import re
from dataclasses import dataclass, field


MAX_MESSAGE_CHARS = 2000
SPECIAL_CHAR_RATIO_LIMIT = 0.3

DANGEROUS_PATTERNS = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
]

SUSPICIOUS_PATTERNS = [
    re.compile(r"union\s+select", re.IGNORECASE),
    re.compile(r"drop\s+table", re.IGNORECASE),
    re.compile(r"insert\s+into", re.IGNORECASE),
    re.compile(r"delete\s+from", re.IGNORECASE),
    re.compile(r"exec\s*\(", re.IGNORECASE),
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"document\.", re.IGNORECASE),
    re.compile(r"<img[^>]*on\w+\s*=", re.IGNORECASE),
]

_ANY_TAG = re.compile(r"<[^>]*>")
_SPECIAL_CHARS = re.compile(r"[<>\"'()\[\]{}]")
_REPETITION = re.compile(r"(.)\1{10,}")


@dataclass
class ValidationResult:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    sanitized: str = ""


def sanitize_input(text: str) -> str:
    """Remove dangerous markup and all remaining HTML tags."""
    if not text:
        return ""

    sanitized = text
    for pattern in DANGEROUS_PATTERNS:
        sanitized = pattern.sub("", sanitized)

    sanitized = _ANY_TAG.sub("", sanitized)
    return sanitized.strip()


def validate_message(message: str) -> ValidationResult:
    """Check emptiness, length, and sanitization outcome of a message.

    Returns:
        `ValidationResult` with `sanitized` populated only when valid.
    """
    result = ValidationResult()

    if not message or not message.strip():
        result.valid = False
        result.errors.append("Message is empty")
        return result

    if len(message) > MAX_MESSAGE_CHARS:
        result.valid = False
        result.errors.append(f"Message is too long (max {MAX_MESSAGE_CHARS} characters)")
        return result

    sanitized = sanitize_input(message)
    if not sanitized:
        result.valid = False
        result.errors.append("Invalid message content")
        return result

    result.sanitized = sanitized
    return result


def detect_suspicious_patterns(message: str) -> list[str]:
    """Return human-readable hits; an empty list means the message passes."""
    hits: list[str] = []

    if any(pattern.search(message) for pattern in SUSPICIOUS_PATTERNS):
        hits.append("Suspicious pattern detected")

    special_count = len(_SPECIAL_CHARS.findall(message))
    if special_count > len(message) * SPECIAL_CHAR_RATIO_LIMIT:
        hits.append("Excessive special characters")

    if _REPETITION.search(message):
        hits.append("Suspicious repetition")

    return hits
