"""Core request orchestration for classification, routing, prompting, and generation.

Architectural role:
    Provides the main execution pipeline used by API/CLI layers to turn one farmer
    message into a normalized, language-matched reply with provenance metadata.

Control-flow model (router state machine):
    Start -> Validate -> ClassifyAndResolveContext -> SelectPipeline ->
    {Elaborate | SpecialistOnly | TriageHybrid | RewriteHybrid} -> Normalize -> Done

    1. Preprocess and screen the message (`InputValidationError` on failure).
    2. Classify; for continuation messages of identified users, recover the prior
       question/answer from the conversation store and reclassify.
    3. Select the pipeline (`nlp.intent_router.decide_route`).
    4. Build prompts and call providers (one to three calls).
    5. Normalize the reply, persist the turn, return `ChatResult`.

Pipelines and provenance tags:
    - Elaborate: `gemini_expand`
    - SpecialistOnly: `dhenu+gemini_refine`
    - TriageHybrid: `gemini_router+dhenu`, `gemini_router+dhenu_failed`,
      `gemini_router_only`
    - RewriteHybrid: `gemini_rewrite+dhenu+gemini_refine`,
      `gemini_rewrite+gemini_fallback`

Error handling strategy:
    - Specialist failures are absorbed by TriageHybrid and RewriteHybrid and
      propagate from SpecialistOnly (the refine step never runs on a failed draft).
    - General-purpose failures propagate after the adapter's fallback chain.

Side effects:
    Writes user and assistant turns for identified users; emits routing logs.

Determinism:
    Pipeline selection and prompt assembly are deterministic for fixed inputs,
    mode, and stored turns. Provider output is not.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass

from sahayak.core.errors import ConfigurationError, InputValidationError, ProviderError
from sahayak.core.normalizer import looks_underdetailed, normalize_reply
from sahayak.core.routing_types import (
    ChatResult,
    Classification,
    Pipeline,
    ProviderResponse,
    RoutingDecision,
)
from sahayak.llm.provider_config import ProviderSettings, load_settings
from sahayak.llm.service import GeneralModelAdapter, SpecialistAdapter
from sahayak.memory.context_resolver import resolve_context
from sahayak.memory.conversation_store import ConversationStore, InMemoryConversationStore
from sahayak.nlp.complexity import estimate_complexity
from sahayak.nlp.intent_classifier import classify_message
from sahayak.nlp.intent_router import decide_route
from sahayak.nlp.language_detector import detect_language, resolve_response_language
from sahayak.nlp.preprocessor import preprocess_message
from sahayak.nlp.triage_decoder import decode_triage
from sahayak.prompting.prompt_builder import (
    PLACEHOLDER_DRAFT,
    PromptContext,
    build_elaboration_prompt,
    build_refine_prompt,
    build_rewrite_prompt,
    build_specialist_prompt,
    build_synthesis_prompt,
    build_triage_prompt,
)
from sahayak.safety.filter import detect_suspicious_patterns, validate_message


logger = logging.getLogger(__name__)

NEW_CONVERSATION_TITLE = "New conversation"

TRIAGE_MAX_TOKENS = 200
REWRITE_MAX_TOKENS = 200
ANSWER_MAX_TOKENS = 400
DETAILED_ANSWER_MAX_TOKENS = 1000
ELABORATION_MAX_TOKENS = 1200

PROVENANCE_EXPAND = "gemini_expand"
PROVENANCE_SPECIALIST_REFINE = "dhenu+gemini_refine"
PROVENANCE_TRIAGE_SPECIALIST = "gemini_router+dhenu"
PROVENANCE_TRIAGE_SPECIALIST_FAILED = "gemini_router+dhenu_failed"
PROVENANCE_TRIAGE_ONLY = "gemini_router_only"
PROVENANCE_REWRITE_SPECIALIST = "gemini_rewrite+dhenu+gemini_refine"
PROVENANCE_REWRITE_FALLBACK = "gemini_rewrite+gemini_fallback"

# Specialist failures the hybrid pipelines absorb.
SPECIALIST_FAILURES = (ProviderError, ConfigurationError)


@dataclass(frozen=True)
class PipelineOutcome:
    response: ProviderResponse
    provider: str


def _first_line(text: str) -> str:
    """Normalize rewrite output to a single trimmed line."""
    if not text or not text.strip():
        return ""

    line = text.strip().splitlines()[0].strip()
    return line.strip('"').strip("'").strip()


def _answer_tokens(detail_requested: bool) -> int:
    return DETAILED_ANSWER_MAX_TOKENS if detail_requested else ANSWER_MAX_TOKENS


class Orchestrator:
    """Composes screening, classification, routing, providers, and normalization.

    Collaborators are injected so tests and alternative deployments can swap
    providers and storage. Settings are read once and never re-read per request.
    """

    def __init__(
        self,
        settings: ProviderSettings,
        specialist: SpecialistAdapter | None = None,
        general: GeneralModelAdapter | None = None,
        store: ConversationStore | None = None,
    ):
        self.settings = settings
        self.mode = settings.mode
        self.specialist = specialist or SpecialistAdapter(settings)
        self.general = general or GeneralModelAdapter(settings)
        self.store = store

    # -----------------------------------------------------
    # VALIDATE
    # -----------------------------------------------------

    @staticmethod
    def _validate(message: str) -> tuple[str, str]:
        """Return `(normalized, sanitized)` or raise `InputValidationError`."""
        normalized = preprocess_message(message)
        if not normalized:
            raise InputValidationError("Empty message")

        validation = validate_message(normalized)
        if not validation.valid:
            raise InputValidationError("Invalid message", validation.errors)

        suspicious = detect_suspicious_patterns(normalized)
        if suspicious:
            raise InputValidationError("Message contains suspicious patterns", suspicious)

        return normalized, validation.sanitized

    # -----------------------------------------------------
    # PIPELINES
    # -----------------------------------------------------

    async def _run_elaborate(
        self, question: str, previous_answer: str, ctx: PromptContext
    ) -> PipelineOutcome:
        ctx = dataclasses.replace(ctx, detail_requested=True)

        expanded = await self.general.generate(
            build_refine_prompt(question, previous_answer, ctx),
            max_output_tokens=DETAILED_ANSWER_MAX_TOKENS,
        )

        if looks_underdetailed(expanded.text):
            logger.info("Expanded answer under-detailed; re-querying with elaboration prompt")
            expanded = await self.general.generate(
                build_elaboration_prompt(question, previous_answer, ctx),
                max_output_tokens=ELABORATION_MAX_TOKENS,
            )

        return PipelineOutcome(expanded, PROVENANCE_EXPAND)

    async def _run_specialist_only(self, question: str, ctx: PromptContext) -> PipelineOutcome:
        draft = await self.specialist.generate(build_specialist_prompt(question, ctx))

        refined = await self.general.generate(
            build_refine_prompt(question, draft.text, ctx),
            max_output_tokens=_answer_tokens(ctx.detail_requested),
        )
        return PipelineOutcome(refined, PROVENANCE_SPECIALIST_REFINE)

    async def _run_triage_hybrid(self, question: str, ctx: PromptContext) -> PipelineOutcome:
        triage = await self.general.generate(
            build_triage_prompt(question, ctx),
            max_output_tokens=TRIAGE_MAX_TOKENS,
        )
        decision = decode_triage(triage.text)

        specialist_answer = ""
        if decision.needed and decision.question:
            try:
                sub_ctx = dataclasses.replace(
                    ctx, complexity=estimate_complexity(decision.question)
                )
                draft = await self.specialist.generate(
                    build_specialist_prompt(decision.question, sub_ctx)
                )
                specialist_answer = draft.text
                provider = PROVENANCE_TRIAGE_SPECIALIST
            except SPECIALIST_FAILURES as exc:
                logger.warning("Specialist consultation failed, continuing without it: %s", exc)
                provider = PROVENANCE_TRIAGE_SPECIALIST_FAILED
        else:
            provider = PROVENANCE_TRIAGE_ONLY

        synthesis = await self.general.generate(
            build_synthesis_prompt(question, specialist_answer, ctx),
            max_output_tokens=_answer_tokens(ctx.detail_requested),
        )
        return PipelineOutcome(synthesis, provider)

    async def _run_rewrite_hybrid(self, question: str, ctx: PromptContext) -> PipelineOutcome:
        rewrite = await self.general.generate(
            build_rewrite_prompt(question, ctx),
            max_output_tokens=REWRITE_MAX_TOKENS,
        )
        rewritten = _first_line(rewrite.text) or question

        try:
            draft = await self.specialist.generate(build_specialist_prompt(rewritten, ctx))
            draft_text = draft.text
            provider = PROVENANCE_REWRITE_SPECIALIST
        except SPECIALIST_FAILURES as exc:
            logger.warning("Specialist failed after rewrite, answering from placeholder: %s", exc)
            draft_text = PLACEHOLDER_DRAFT
            provider = PROVENANCE_REWRITE_FALLBACK

        refined = await self.general.generate(
            build_refine_prompt(question, draft_text, ctx),
            max_output_tokens=_answer_tokens(ctx.detail_requested),
        )
        return PipelineOutcome(refined, provider)

    async def _dispatch(self, decision: RoutingDecision, ctx: PromptContext) -> PipelineOutcome:
        question = decision.effective_message

        if decision.pipeline is Pipeline.ELABORATE:
            return await self._run_elaborate(question, decision.previous_answer, ctx)
        if decision.pipeline is Pipeline.SPECIALIST_ONLY:
            return await self._run_specialist_only(question, ctx)
        if decision.pipeline is Pipeline.REWRITE_HYBRID:
            return await self._run_rewrite_hybrid(question, ctx)
        return await self._run_triage_hybrid(question, ctx)

    # -----------------------------------------------------
    # PERSISTENCE
    # -----------------------------------------------------

    async def _ensure_conversation(
        self, identity: str | None, conversation_id: str | None, first_message: str
    ) -> str | None:
        if self.store is None or not identity:
            return None
        if conversation_id:
            return conversation_id
        return await asyncio.to_thread(
            self.store.create_conversation, identity, NEW_CONVERSATION_TITLE, first_message
        )

    async def _save(self, identity, conversation_id, role, text) -> None:
        if self.store is None or not identity or not conversation_id:
            return
        await asyncio.to_thread(self.store.save_message, identity, conversation_id, role, text)

    # -----------------------------------------------------
    # ENTRYPOINT
    # -----------------------------------------------------

    async def process_message(
        self,
        message: str,
        language: str = "auto",
        location: str = "",
        identity: str | None = None,
        conversation_id: str | None = None,
        elaborate: bool = False,
        previous_answer: str = "",
    ) -> ChatResult:
        """Process one farmer message through the router state machine.

        Args:
            message: Raw user text.
            language: Requested reply language (`auto` to follow the message).
            location: Optional free-text location for regional advice.
            identity: Verified user id; `None` for guests (no store access).
            conversation_id: Existing conversation for identified users.
            elaborate: Explicit caller request to expand the previous answer.
            previous_answer: Prior answer supplied by the caller (guests/CLI).

        Returns:
            `ChatResult` with normalized reply and provenance.

        Raises:
            InputValidationError: Empty, oversized, or suspicious input.
            ConfigurationError: Missing credential on a non-absorbed call.
            ProviderError: General-purpose chain exhausted or aborted, or the
                specialist failed in specialist-only mode.
        """
        normalized, sanitized = self._validate(message)

        classification: Classification = classify_message(normalized)
        wants_context = elaborate or classification.is_continuation

        resolved = await resolve_context(
            self.store,
            normalized,
            previous_answer=previous_answer,
            identity=identity,
            conversation_id=conversation_id,
            is_continuation=wants_context,
        )
        effective_message = resolved.effective_message

        if effective_message != normalized:
            classification = dataclasses.replace(
                classification,
                language=detect_language(effective_message),
                complexity=estimate_complexity(effective_message),
            )

        response_language = resolve_response_language(language, classification.language)
        decision = RoutingDecision(
            pipeline=decide_route(
                classification,
                self.mode,
                previous_answer=resolved.previous_answer,
                elaborate=elaborate,
            ),
            effective_message=effective_message,
            previous_answer=resolved.previous_answer,
        )

        ctx = PromptContext(
            language=response_language,
            location=(location or "").strip(),
            complexity=classification.complexity,
            detail_requested=(
                elaborate or classification.is_elaboration_request or classification.wants_detail
            ),
        )

        logger.info(
            "route_debug pipeline=%s mode=%s language=%s complexity=%s continuation=%s "
            "recovered_subject=%s recovered_answer=%s",
            decision.pipeline.value,
            self.mode.value,
            response_language,
            classification.complexity,
            wants_context,
            resolved.recovered_subject,
            resolved.recovered_answer,
        )

        conversation_id = await self._ensure_conversation(identity, conversation_id, sanitized)

        # Elaboration turns are not stored so the recoverable subject stays the
        # substantive question.
        if decision.pipeline is not Pipeline.ELABORATE:
            await self._save(identity, conversation_id, "user", sanitized)

        outcome = await self._dispatch(decision, ctx)

        reply = normalize_reply(outcome.response.text)
        await self._save(identity, conversation_id, "assistant", reply)

        logger.info(
            "Reply ready provider=%s model=%s chars=%d",
            outcome.provider,
            outcome.response.model_id,
            len(reply),
        )

        return ChatResult(
            reply=reply,
            mode_used=self.mode,
            provider=outcome.provider,
            model_id=outcome.response.model_id or "",
            language=response_language,
            conversation_id=conversation_id,
        )


def build_orchestrator(
    settings: ProviderSettings | None = None,
    store: ConversationStore | None = None,
) -> Orchestrator:
    """Wire an `Orchestrator` with default adapters and an in-process store."""
    settings = settings or load_settings()
    return Orchestrator(
        settings,
        store=store if store is not None else InMemoryConversationStore(),
    )
