"""Prompt assembly helpers used by core orchestration.

This module only builds prompt strings from already routed inputs. Pipeline
selection, provider calls, and reply normalization happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Fixed ordering of prompt components per template.
    - No hidden side effects (no I/O, no global state mutation).

Shared components:
    - Language directive line (`language_instruction`).
    - Location line (`location_line`).
    - Dosage-safety instruction (`DOSAGE_SAFETY_LINE`), present in every template.

Prompt safety model:
    Safety is instruction-led. User text, draft answers, and specialist output are
    interpolated as raw strings; upstream screening handles hostile input.
"""

from dataclasses import dataclass

from sahayak.core.routing_types import Complexity, Language


# =========================================================
# SHARED LINES
# =========================================================

ADVISOR_IDENTITY = "You are Kisaan Sahayak, an agricultural advisor for Indian farmers."

DOSAGE_SAFETY_LINE = (
    "Avoid unsafe fixed pesticide or chemical dosage claims; advise following the "
    "product label and confirming with a local agriculture officer."
)

BULLET_STYLE_LINE = 'Use plain text bullets like "- ".'
NO_INTRO_LINE = "Do not add an intro sentence before the bullets."

PLACEHOLDER_DRAFT = (
    "No specialist answer is available. Answer from general agronomy best practice "
    "for the farmer's situation."
)

_LANGUAGE_NAMES = {
    "english": "English",
    "hindi": "Hindi",
    "marathi": "Marathi",
    "tamil": "Tamil",
    "telugu": "Telugu",
    "punjabi": "Punjabi",
}


def language_instruction(language: Language) -> str:
    name = _LANGUAGE_NAMES.get(language)
    if name:
        return f"Reply in {name}."
    return "Reply in the same language as the user question."


def location_line(location: str | None) -> str:
    cleaned = (location or "").strip()
    return f"Location: {cleaned}." if cleaned else "Location not available."


@dataclass(frozen=True)
class PromptContext:
    """Per-request parameters shared by every template."""

    language: Language = "auto"
    location: str = ""
    complexity: Complexity = "low"
    detail_requested: bool = False


# =========================================================
# LENGTH TARGETS
# =========================================================
# Detail requests override the complexity tier. Word ranges are omitted for
# detail requests so the model can go longer.

_SPECIALIST_TARGETS = {
    "detail": "Provide detailed guidance in 5-7 bullet points. Each bullet should be 2-3 sentences.",
    "high": "Provide detailed guidance in 5-7 bullet points. Each bullet should be 2-3 sentences (140-220 words total).",
    "medium": "Provide helpful detail in 4-6 bullet points. Each bullet should be 2-3 sentences (100-160 words total).",
    "low": "Provide clear guidance in 3-5 bullet points. Each bullet should be 2-3 sentences (80-120 words total).",
}

_REFINE_TARGETS = {
    "detail": "Expand the draft. Use 5-7 short bullet points with 2-3 sentences each.",
    "high": "Provide detailed guidance (140-220 words). Use 5-7 short bullet points with 2-3 sentences each.",
    "medium": "Provide helpful detail (100-160 words). Use 4-6 short bullet points with 2-3 sentences each.",
    "low": "Provide clear guidance (80-120 words). Use 3-5 short bullet points with 2-3 sentences each.",
}

_SYNTHESIS_TARGETS = {
    "detail": "Provide detailed guidance using 5-7 bullet points with 2-3 sentences each.",
    "high": "Provide detailed guidance (140-220 words) using 5-7 bullet points with 2-3 sentences each.",
    "medium": "Provide helpful detail (100-160 words) using 4-6 bullet points with 2-3 sentences each.",
    "low": "Provide clear guidance (80-120 words) using 3-5 bullet points with 2-3 sentences each.",
}


def _length_target(targets: dict[str, str], ctx: PromptContext) -> str:
    key = "detail" if ctx.detail_requested else ctx.complexity
    return targets.get(key, targets["low"])


# =========================================================
# SPECIALIST QUERY
# =========================================================
# Sent as the `query` of the specialist call.
# Component order: identity, tone/format, safety, language, location, length
# target, question.

def build_specialist_prompt(question: str, ctx: PromptContext) -> str:
    """Build the query sent to the specialist model.

    Args:
        question: Question (or extracted sub-question) to ask.
        ctx: Language, location, complexity, and detail settings.

    Returns:
        Prompt string.
    """
    return (
        f"{ADVISOR_IDENTITY}\n\n"
        "Write in a friendly, practical tone.\n"
        "Use 3-7 short bullet points depending on question complexity. "
        "Each bullet is a short paragraph (2-3 sentences).\n"
        f"{BULLET_STYLE_LINE}\n"
        f"{DOSAGE_SAFETY_LINE}\n"
        f"{language_instruction(ctx.language)}\n"
        f"{location_line(ctx.location)}\n"
        f"{_length_target(_SPECIALIST_TARGETS, ctx)}\n\n"
        f"Question: {question.strip()}"
    )


# =========================================================
# REFINE DRAFT
# =========================================================

def build_refine_prompt(question: str, draft: str, ctx: PromptContext) -> str:
    """Build a prompt asking the general model to improve a draft answer.

    Edge cases:
        An empty draft is replaced with `PLACEHOLDER_DRAFT` so the model always
        receives explicit grounding instructions.
    """
    draft_text = draft.strip() or PLACEHOLDER_DRAFT

    return (
        "Please refine the draft answer for clarity and usefulness.\n\n"
        f"{_length_target(_REFINE_TARGETS, ctx)}\n"
        f"{BULLET_STYLE_LINE} Each bullet should be 2-3 sentences.\n"
        f"{NO_INTRO_LINE}\n"
        "Keep agricultural accuracy.\n"
        f"{DOSAGE_SAFETY_LINE}\n"
        f"{language_instruction(ctx.language)}\n"
        f"{location_line(ctx.location)}\n\n"
        f"Question:\n{question.strip()}\n\n"
        f"Draft:\n{draft_text}"
    )


# =========================================================
# TRIAGE / ROUTER
# =========================================================
# Output contract decoded by `sahayak.nlp.triage_decoder`.

def build_triage_prompt(question: str, ctx: PromptContext) -> str:
    return (
        "You are deciding whether to consult an agriculture specialist model (Dhenu).\n\n"
        "Return ONLY strict JSON with these keys:\n"
        '- "dhenu_needed": boolean\n'
        '- "dhenu_question": string (empty string if not needed)\n\n'
        "Rules:\n"
        "- Dhenu is only for agriculture domain knowledge.\n"
        "- If the question is mixed, extract only the agriculture part for Dhenu.\n"
        '- If not needed, set "dhenu_question" to "".\n'
        '- Write "dhenu_question" in the same language as the user.\n'
        "- Do not add any extra keys or commentary.\n"
        f"- {DOSAGE_SAFETY_LINE}\n\n"
        f"{language_instruction(ctx.language)}\n"
        f"{location_line(ctx.location)}\n\n"
        f"User question:\n{question.strip()}"
    )


# =========================================================
# SYNTHESIS
# =========================================================

def build_synthesis_prompt(question: str, specialist_answer: str, ctx: PromptContext) -> str:
    """Build the final-answer prompt, optionally grounded on a specialist answer.

    Edge cases:
        Without a specialist answer the prompt says so explicitly and asks for
        general best practice instead.
    """
    if specialist_answer.strip():
        specialist_block = (
            "Dhenu (agriculture specialist) answer:\n"
            f"{specialist_answer.strip()}\n\n"
            "Use Dhenu as the authoritative source for agricultural facts."
        )
    else:
        specialist_block = (
            "No Dhenu answer available. Use general best practices."
        )

    return (
        f"{ADVISOR_IDENTITY}\n\n"
        f"{_length_target(_SYNTHESIS_TARGETS, ctx)}\n"
        f"{BULLET_STYLE_LINE}\n"
        f"{NO_INTRO_LINE}\n"
        "Keep agricultural accuracy.\n"
        f"{DOSAGE_SAFETY_LINE}\n"
        f"{language_instruction(ctx.language)}\n"
        f"{location_line(ctx.location)}\n\n"
        f"Question:\n{question.strip()}\n\n"
        f"{specialist_block}"
    )


# =========================================================
# ELABORATION EXPANSION
# =========================================================
# Used for the single re-query when a refined expansion is under-detailed.

def build_elaboration_prompt(question: str, previous_answer: str, ctx: PromptContext) -> str:
    return (
        "You are expanding a previous answer into more detail.\n\n"
        "Write ONLY bullets (no intro sentence).\n"
        "Use 3-5 bullets. Each bullet must be 3-4 sentences.\n"
        f"{BULLET_STYLE_LINE}\n"
        "Keep agricultural accuracy.\n"
        f"{DOSAGE_SAFETY_LINE}\n"
        f"{language_instruction(ctx.language)}\n"
        f"{location_line(ctx.location)}\n\n"
        f"Question:\n{question.strip()}\n\n"
        f"Previous answer:\n{previous_answer.strip()}"
    )


# =========================================================
# REWRITE
# =========================================================
# First step of the rewrite-hybrid pipeline. The reply is reduced to its first
# line by the engine.

def build_rewrite_prompt(question: str, ctx: PromptContext) -> str:
    return (
        "Rewrite the farmer's question below so it is grammatically correct and clear.\n"
        "Preserve the meaning and keep it in the same language as the original.\n"
        "Do not answer the question.\n"
        f"{DOSAGE_SAFETY_LINE}\n"
        f"{location_line(ctx.location)}\n\n"
        f"Question:\n{question.strip()}\n\n"
        "Return ONLY the rewritten question. One single line. No explanation."
    )
