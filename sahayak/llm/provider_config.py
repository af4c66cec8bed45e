"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Centralizes model selection, endpoints, operating mode, timeouts, and credential
    lookup for `sahayak.llm.service` adapters and `sahayak.core.engine`.

Model call flow integration:
    - `service.GeneralModelAdapter` walks `ProviderSettings.model_chain`.
    - `service.SpecialistAdapter` posts to `ProviderSettings.specialist_url`.
    - `engine.Orchestrator` branches on `ProviderSettings.mode`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    once by `load_settings()` and frozen; nothing downstream re-reads the environment.

Failure behavior:
    Missing key material is represented as `None`; adapters raise
    `ConfigurationError` on the first call that needs it.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from sahayak.core.routing_types import Mode, normalize_mode


SPECIALIST_PROVIDER = "dhenu"
GENERAL_PROVIDER = "gemini"

DEFAULT_GENERAL_MODEL = "gemini-2.5-flash-lite"
DEFAULT_SPECIALIST_URL = "https://api.dhenu.ai/v2/query"
DEFAULT_TIMEOUT_SECONDS = 18.0

# Appended after the configured chain so a misconfigured primary still answers.
LAST_RESORT_MODELS = ("gemini-2.5-flash", "gemini-2.5-flash-lite")

GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "{model}:generateContent"
)

SPECIALIST_KEY_FILE = "config/dhenu.key"
GENERAL_KEY_FILE = "config/gemini.key"


def load_key(path):
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/dhenu.key` -> `DHENU_API_KEY`).
        2. Raw file contents at `path`.

    Args:
        path: Configured key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing or blank file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value.strip()
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip() or None


def build_model_chain(primary: str, fallbacks) -> tuple[str, ...]:
    """Return the deduplicated, ordered model list tried by the fallback chain.

    Order: primary, configured fallbacks, then `LAST_RESORT_MODELS`. Blank entries
    are dropped and the first occurrence of each id wins.
    """
    chain: list[str] = []
    for model in [primary, *fallbacks, *LAST_RESORT_MODELS]:
        cleaned = (model or "").strip()
        if cleaned and cleaned not in chain:
            chain.append(cleaned)
    return tuple(chain)


@dataclass(frozen=True)
class ProviderSettings:
    """Immutable process-wide configuration, constructed once at startup."""

    general_model: str = DEFAULT_GENERAL_MODEL
    fallback_models: tuple[str, ...] = ()
    specialist_url: str = DEFAULT_SPECIALIST_URL
    mode: Mode = Mode.HYBRID_LITE
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS
    specialist_api_key: str | None = field(default=None, repr=False)
    general_api_key: str | None = field(default=None, repr=False)
    general_url_template: str = GEMINI_URL_TEMPLATE

    @property
    def model_chain(self) -> tuple[str, ...]:
        return build_model_chain(self.general_model, self.fallback_models)


def _parse_timeout(raw: str | None) -> float:
    try:
        value = float(raw) if raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def load_settings() -> ProviderSettings:
    """Read `.env` and the process environment into a `ProviderSettings`.

    Environment variables:
        GEMINI_MODEL, GEMINI_MODEL_FALLBACK (comma separated), DHENU_BASE_URL,
        AI_MODE, PROVIDER_TIMEOUT_SECONDS, DHENU_API_KEY, GEMINI_API_KEY.
    """
    load_dotenv()

    fallback_raw = os.getenv("GEMINI_MODEL_FALLBACK", "")

    return ProviderSettings(
        general_model=(os.getenv("GEMINI_MODEL") or DEFAULT_GENERAL_MODEL).strip(),
        fallback_models=tuple(m.strip() for m in fallback_raw.split(",") if m.strip()),
        specialist_url=(os.getenv("DHENU_BASE_URL") or DEFAULT_SPECIALIST_URL).strip(),
        mode=normalize_mode(os.getenv("AI_MODE", Mode.HYBRID_LITE.value)),
        request_timeout=_parse_timeout(os.getenv("PROVIDER_TIMEOUT_SECONDS")),
        specialist_api_key=load_key(SPECIALIST_KEY_FILE),
        general_api_key=load_key(GENERAL_KEY_FILE),
    )
