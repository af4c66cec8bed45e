"""Pipeline selection for the orchestration state machine.

Routing rules (fixed priority):
    1. Continuation signal (or explicit elaborate flag) AND a previous answer
       -> `Pipeline.ELABORATE`.
    2. Mode `specialist_only` -> `Pipeline.SPECIALIST_ONLY`.
    3. Mode `hybrid_full` -> `Pipeline.REWRITE_HYBRID`.
    4. Otherwise (`hybrid_lite`) -> `Pipeline.TRIAGE_HYBRID`.

Determinism:
    Pure function of classification, mode, flag, and previous-answer presence;
    identical inputs always select the same pipeline.
"""

from sahayak.core.routing_types import Classification, Mode, Pipeline


def decide_route(
    classification: Classification,
    mode: Mode,
    previous_answer: str = "",
    elaborate: bool = False,
) -> Pipeline:
    """Select the pipeline for one request."""
    wants_continuation = elaborate or classification.is_continuation

    if wants_continuation and previous_answer.strip():
        return Pipeline.ELABORATE

    if mode is Mode.SPECIALIST_ONLY:
        return Pipeline.SPECIALIST_ONLY

    if mode is Mode.HYBRID_FULL:
        return Pipeline.REWRITE_HYBRID

    return Pipeline.TRIAGE_HYBRID
