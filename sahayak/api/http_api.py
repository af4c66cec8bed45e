"""
HTTP API adapter for the Kisaan Sahayak orchestrator.

Architectural role:
- Expose the chat endpoint consumed by the web client.
- Enforce adapter-level request-schema validation.
- Delegate classification/routing/generation to `Orchestrator.process_message`.
- Map the core exception taxonomy onto HTTP statuses.

Endpoint responsibilities:
- `POST /api/chat`: validate the body, forward it with the caller identity, and
  return `{reply, modeUsed, provider, modelId, conversation_id}`.
- `GET /api/health`: report the configured mode and model chain.

API request lifecycle (`POST /api/chat`):
1. Parse and validate the JSON body against `ChatRequest` (unknown fields rejected).
2. Read the optional `X-User-Id` header as the verified identity (set by the
   upstream authentication proxy; absent for guests).
3. Call the orchestrator.
4. Shape the `ChatResult` into the response contract.

Error handling strategy:
- Schema failures -> HTTP 400 `{"error": "Validation error", "details": [...]}`.
- `InputValidationError` -> HTTP 400 `{"error": reason, "details": [...]}`.
- `ConfigurationError` -> HTTP 500.
- `ProviderError` -> HTTP 503 when the final failure was transient, else 502.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Configures root logging from `LOG_LEVEL`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
import threading
from typing import Literal

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from sahayak.core.engine import Orchestrator, build_orchestrator
from sahayak.core.errors import ConfigurationError, InputValidationError, ProviderError
from sahayak.safety.filter import MAX_MESSAGE_CHARS

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Kisaan Sahayak")

_orchestrator: Orchestrator | None = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> Orchestrator:
    """Return the process-wide orchestrator, building it once on first use.

    Sync handlers run in the threadpool, so the first build is serialized.
    """
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator()
    return _orchestrator


# ============================================================
# Request / Response Schema
# ============================================================

class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=MAX_MESSAGE_CHARS)
    language: Literal[
        "auto", "english", "hindi", "marathi", "tamil", "telugu", "punjabi"
    ] = "auto"
    location: str = Field(default="", max_length=200)
    elaborate: bool = False
    previous_answer: str = Field(default="", max_length=8000)
    conversation_id: str | None = Field(default=None, max_length=200)


class ChatResponse(BaseModel):
    reply: str
    modeUsed: str
    provider: str
    modelId: str
    conversation_id: str | None = None


# ============================================================
# Error Mapping
# ============================================================

@app.exception_handler(RequestValidationError)
async def handle_schema_error(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Validation error", "details": details})


@app.exception_handler(InputValidationError)
async def handle_input_error(request: Request, exc: InputValidationError):
    logger.info("Rejected message: %s", exc.reason)
    return JSONResponse(status_code=400, content={"error": exc.reason, "details": exc.details})


@app.exception_handler(ConfigurationError)
async def handle_configuration_error(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.exception_handler(ProviderError)
async def handle_provider_error(request: Request, exc: ProviderError):
    status = 503 if exc.retryable else 502
    logger.error(
        "Provider failure provider=%s model=%s status=%s: %s",
        exc.provider,
        exc.model,
        exc.status_code,
        exc,
    )
    return JSONResponse(status_code=status, content={"error": str(exc)})


# ============================================================
# Endpoints
# ============================================================

@app.get("/api/health")
def health(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return {
        "status": "ok",
        "mode": orchestrator.mode.value,
        "models": list(orchestrator.general.models),
    }


@app.post("/api/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    x_user_id: str | None = Header(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Answer one farmer message.

    Guests (no `X-User-Id`) get stateless answers; the client passes the
    previous answer back for elaboration. Identified users get persisted turns
    and a `conversation_id` to continue with.
    """
    identity = (x_user_id or "").strip() or None

    result = await orchestrator.process_message(
        body.message,
        language=body.language,
        location=body.location,
        identity=identity,
        conversation_id=body.conversation_id,
        elaborate=body.elaborate,
        previous_answer=body.previous_answer,
    )

    return ChatResponse(
        reply=result.reply,
        modeUsed=result.mode_used.value,
        provider=result.provider,
        modelId=result.model_id,
        conversation_id=result.conversation_id,
    )
