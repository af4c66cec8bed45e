"""Rule-based question complexity scoring.

The tier only sets reply length and bullet-count targets in the prompt builder;
it has no influence on routing.

Scoring (points):
    - length > 240: 3, > 160: 2, > 90: 1
    - question marks >= 2: 2, == 1: 1
    - commas/semicolons >= 3: 1
    - conjunction tokens >= 2: 1
    - domain keyword tokens >= 2: 1

Tiers: score >= 5 -> high, >= 2 -> medium, else low.

Every component is non-decreasing as text is appended, so the total score is
monotonic under appending questions, conjunctions, or keywords.
"""

from sahayak.core.routing_types import Complexity
from sahayak.nlp.language_detector import tokenize
from sahayak.nlp.phrase_tables import CONJUNCTION_WORDS, DOMAIN_KEYWORDS


LENGTH_BREAKPOINTS = ((240, 3), (160, 2), (90, 1))
HIGH_THRESHOLD = 5
MEDIUM_THRESHOLD = 2


def complexity_score(text: str) -> int:
    """Return the raw weighted complexity score for `text`."""
    cleaned = (text or "").strip()
    if not cleaned:
        return 0

    score = 0

    for limit, points in LENGTH_BREAKPOINTS:
        if len(cleaned) > limit:
            score += points
            break

    question_marks = cleaned.count("?")
    if question_marks >= 2:
        score += 2
    elif question_marks == 1:
        score += 1

    separators = cleaned.count(",") + cleaned.count(";")
    if separators >= 3:
        score += 1

    tokens = tokenize(cleaned)

    if sum(1 for t in tokens if t in CONJUNCTION_WORDS) >= 2:
        score += 1

    if sum(1 for t in tokens if t in DOMAIN_KEYWORDS) >= 2:
        score += 1

    return score


def estimate_complexity(text: str) -> Complexity:
    score = complexity_score(text)
    if score >= HIGH_THRESHOLD:
        return "high"
    if score >= MEDIUM_THRESHOLD:
        return "medium"
    return "low"
