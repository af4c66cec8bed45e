"""Provider adapters used by the orchestration engine.

Architectural role:
    Wraps blocking transport calls from `sahayak.llm.client` into async adapters and
    implements the general-purpose model fallback chain.

Model call flow:
    prompt -> adapter.generate(...) -> asyncio.to_thread(client call) ->
    `ProviderResponse`.

Deadline:
    `requests` only bounds connect and per-read waits, so a provider that
    trickles bytes could hold a call open indefinitely. Each attempt is also
    bounded as a whole by `settings.request_timeout`; when it expires the
    attempt is abandoned and reported as a `ProviderError` (retryable for the
    general-purpose chain, final for the specialist).

Fallback chain:
    `GeneralModelAdapter` walks `settings.model_chain` strictly in order. Each
    attempt ends in one of three steps:
        - SUCCESS: return the response tagged with the model id.
        - RETRY_NEXT: retryable failure, move to the next model.
        - ABORT: non-retryable failure, raise immediately.
    Exhausting the chain raises the last error. Attempts never overlap.

Determinism:
    Model ordering and step decisions are deterministic for fixed settings and
    provider outcomes. Generated text is not.
"""

import asyncio
import logging
from enum import Enum

from sahayak.core.errors import ProviderError
from sahayak.core.routing_types import ProviderResponse
from sahayak.llm.client import send_general_request, send_specialist_request
from sahayak.llm.provider_config import (
    GENERAL_PROVIDER,
    SPECIALIST_PROVIDER,
    ProviderSettings,
)


logger = logging.getLogger(__name__)


class FallbackStep(str, Enum):
    SUCCESS = "success"
    RETRY_NEXT = "retry_next"
    ABORT = "abort"


async def _call_with_deadline(
    call,
    *args,
    timeout: float,
    provider: str,
    retryable: bool,
    model: str | None = None,
):
    """Run a blocking transport call in a worker thread under a hard deadline."""
    try:
        return await asyncio.wait_for(asyncio.to_thread(call, *args), timeout)
    except asyncio.TimeoutError:
        raise ProviderError(
            f"{provider} request timed out after {timeout:g}s",
            provider,
            retryable=retryable,
            model=model,
        ) from None


def decide_fallback_step(error: Exception | None) -> FallbackStep:
    """Map one attempt outcome to the next fallback-chain step."""
    if error is None:
        return FallbackStep.SUCCESS
    if isinstance(error, ProviderError) and error.retryable:
        return FallbackStep.RETRY_NEXT
    return FallbackStep.ABORT


class SpecialistAdapter:
    """Single-endpoint adapter for the agriculture specialist model.

    Failures are never retried here; the engine decides whether to degrade.
    """

    provider_id = SPECIALIST_PROVIDER

    def __init__(self, settings: ProviderSettings):
        self.settings = settings

    async def generate(self, query: str) -> ProviderResponse:
        text = await _call_with_deadline(
            send_specialist_request,
            query,
            self.settings,
            timeout=self.settings.request_timeout,
            provider=self.provider_id,
            retryable=False,
        )
        return ProviderResponse(text=text, provider_id=self.provider_id)


class GeneralModelAdapter:
    """General-purpose adapter trying each model of the chain in sequence."""

    provider_id = GENERAL_PROVIDER

    def __init__(self, settings: ProviderSettings):
        self.settings = settings
        self.models = settings.model_chain

    async def generate(self, prompt: str, max_output_tokens: int = 400) -> ProviderResponse:
        """Generate text with the first model that succeeds.

        Args:
            prompt: Fully assembled prompt.
            max_output_tokens: Generation length cap forwarded to every attempt.

        Returns:
            `ProviderResponse` tagged with the model that answered.

        Raises:
            ConfigurationError: Missing credential (aborts the chain).
            ProviderError: Non-retryable failure, or the last retryable failure
                once every model has been tried.
        """
        last_error: ProviderError | None = None

        for model in self.models:
            error: Exception | None = None
            try:
                text = await _call_with_deadline(
                    send_general_request,
                    prompt,
                    model,
                    self.settings,
                    max_output_tokens,
                    timeout=self.settings.request_timeout,
                    provider=self.provider_id,
                    retryable=True,
                    model=model,
                )
            except Exception as exc:
                error = exc
                text = ""

            step = decide_fallback_step(error)

            if step is FallbackStep.SUCCESS:
                return ProviderResponse(text=text, provider_id=self.provider_id, model_id=model)

            if step is FallbackStep.ABORT:
                logger.warning("Model %s failed without retry: %s", model, error)
                raise error

            logger.warning("Model %s unavailable, trying next model: %s", model, error)
            last_error = error

        if last_error is not None:
            raise last_error

        raise ProviderError("No general-purpose models configured", self.provider_id)
