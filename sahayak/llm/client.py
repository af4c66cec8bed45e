"""Provider-specific transport client for LLM requests.

Architectural role:
    Executes one HTTP request against a provider and parses its response text.
    Adapters in `sahayak.llm.service` decide what to do with failures.

Model invocation flow:
    `SpecialistAdapter.generate` -> `send_specialist_request(query, settings)`
    `GeneralModelAdapter.generate` -> `send_general_request(prompt, model, ...)` per
    model in the fallback chain.

Retry behavior:
    No retry loop is implemented here. Each call is attempted once with
    `settings.request_timeout`; retryability is only reported on the raised
    `ProviderError`.

Failure handling model:
    - Missing credentials raise `ConfigurationError`.
    - Timeouts, HTTP errors, and unusable payloads raise `ProviderError` with
      sanitized messages (no key material, truncated provider bodies).
"""

import requests

from sahayak.core.errors import ConfigurationError, ProviderError
from sahayak.llm.provider_config import (
    GENERAL_PROVIDER,
    SPECIALIST_PROVIDER,
    ProviderSettings,
)


RETRYABLE_STATUS_CODES = {429, 503}
GENERATION_TEMPERATURE = 0.5
GENERATION_TOP_P = 0.9
MAX_ERROR_BODY_CHARS = 300

# Response keys checked in order for the specialist answer.
SPECIALIST_ANSWER_PATHS = (
    ("answer",),
    ("response",),
    ("result",),
    ("data", "answer"),
    ("data", "response"),
)


def _error_body(response: requests.Response) -> str:
    """Return a truncated response body for error messages."""
    try:
        body = (response.text or "").strip()
    except Exception:
        body = ""
    return body[:MAX_ERROR_BODY_CHARS] or (response.reason or "")


def _extract_specialist_answer(data) -> str:
    """Pick the first non-empty string answer from known response shapes."""
    if not isinstance(data, dict):
        return ""

    for path in SPECIALIST_ANSWER_PATHS:
        value = data
        for key in path:
            value = value.get(key) if isinstance(value, dict) else None
        if isinstance(value, str) and value.strip():
            return value.strip()

    return ""


def send_specialist_request(query: str, settings: ProviderSettings) -> str:
    """Send one query to the specialist endpoint and return its answer text.

    Args:
        query: Fully built specialist prompt.
        settings: Frozen provider settings (endpoint, key, timeout).

    Returns:
        Trimmed answer text.

    Failure scenarios:
        - Missing key -> `ConfigurationError`.
        - Timeout, transport error, non-2xx status, invalid JSON, or no answer
          under a known key -> `ProviderError(retryable=False)`.
    """
    if not settings.specialist_api_key:
        raise ConfigurationError("Server missing DHENU_API_KEY")

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {settings.specialist_api_key}",
    }

    try:
        response = requests.post(
            settings.specialist_url,
            headers=headers,
            json={"query": query},
            timeout=settings.request_timeout,
        )
    except requests.exceptions.Timeout as err:
        raise ProviderError("Dhenu request timed out", SPECIALIST_PROVIDER) from err
    except requests.exceptions.RequestException as err:
        raise ProviderError("Dhenu request failed", SPECIALIST_PROVIDER) from err

    if not response.ok:
        raise ProviderError(
            f"Dhenu API error ({response.status_code}): {_error_body(response)}",
            SPECIALIST_PROVIDER,
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as err:
        raise ProviderError("Dhenu returned invalid JSON", SPECIALIST_PROVIDER) from err

    answer = _extract_specialist_answer(data)
    if not answer:
        raise ProviderError("Dhenu returned empty response", SPECIALIST_PROVIDER)

    return answer


def _extract_gemini_text(data) -> str:
    """Join text parts of the first candidate with newlines."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""

    texts = [
        part.get("text")
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and part.get("text")
    ]
    return "\n".join(texts).strip()


def send_general_request(
    prompt: str,
    model: str,
    settings: ProviderSettings,
    max_output_tokens: int = 400,
) -> str:
    """Send one prompt to a single general-purpose model.

    Args:
        prompt: Fully assembled prompt text.
        model: Model identifier from the fallback chain.
        settings: Frozen provider settings.
        max_output_tokens: Generation length cap.

    Returns:
        Concatenated text parts of the first candidate.

    Parameter handling:
        `temperature=0.5`, `topP=0.9`, `maxOutputTokens` mapped into
        `generationConfig`; the prompt is sent as a single user part.

    Failure scenarios:
        - Missing key -> `ConfigurationError`.
        - 429/503, timeouts, connection failures -> `ProviderError(retryable=True)`.
        - Other non-2xx statuses, invalid JSON, empty text ->
          `ProviderError(retryable=False)`.
    """
    if not settings.general_api_key:
        raise ConfigurationError("Server missing GEMINI_API_KEY")

    url = settings.general_url_template.format(model=model)

    headers = {
        "x-goog-api-key": settings.general_api_key,
        "Content-Type": "application/json",
    }

    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": GENERATION_TEMPERATURE,
            "topP": GENERATION_TOP_P,
            "maxOutputTokens": max_output_tokens,
        },
    }

    try:
        response = requests.post(
            url,
            headers=headers,
            json=payload,
            timeout=settings.request_timeout,
        )
    except requests.exceptions.Timeout as err:
        raise ProviderError(
            f"Gemini request timed out ({model})",
            GENERAL_PROVIDER,
            retryable=True,
            model=model,
        ) from err
    except requests.exceptions.ConnectionError as err:
        raise ProviderError(
            f"Gemini connection failed ({model})",
            GENERAL_PROVIDER,
            retryable=True,
            model=model,
        ) from err
    except requests.exceptions.RequestException as err:
        raise ProviderError(
            f"Gemini request failed ({model})",
            GENERAL_PROVIDER,
            model=model,
        ) from err

    if not response.ok:
        status_code = response.status_code
        if status_code == 404:
            detail = (
                "Gemini model not available for this API version; "
                "check GEMINI_MODEL or list the available models."
            )
        else:
            detail = _error_body(response)
        raise ProviderError(
            f"Gemini API error ({status_code}): {detail}",
            GENERAL_PROVIDER,
            status_code=status_code,
            retryable=status_code in RETRYABLE_STATUS_CODES,
            model=model,
        )

    try:
        data = response.json()
    except ValueError as err:
        raise ProviderError(
            "Gemini returned invalid JSON", GENERAL_PROVIDER, model=model
        ) from err

    text = _extract_gemini_text(data)
    if not text:
        raise ProviderError("Gemini returned empty response", GENERAL_PROVIDER, model=model)

    return text
