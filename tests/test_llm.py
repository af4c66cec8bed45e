"""
Unit tests for the provider layer.

Tests cover:
- Settings loading, credential lookup, and model-chain construction
- Specialist and Gemini transport parsing and error classification
- Fallback-chain ordering and abort/exhaustion behavior
- Whole-attempt deadline for slow transports

No network: `requests.post` and the transport functions are monkeypatched.
"""

import time

import pytest
import requests

from sahayak.core.errors import ConfigurationError, ProviderError
from sahayak.core.routing_types import Mode
from sahayak.llm import client, service
from sahayak.llm.provider_config import (
    LAST_RESORT_MODELS,
    ProviderSettings,
    build_model_chain,
    load_key,
    load_settings,
)
from sahayak.llm.service import (
    FallbackStep,
    GeneralModelAdapter,
    SpecialistAdapter,
    decide_fallback_step,
)

pytestmark = pytest.mark.unit


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", reason="", bad_json=False):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._payload = payload
        self.text = text
        self.reason = reason
        self._bad_json = bad_json

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


@pytest.fixture
def captured_post(monkeypatch):
    """Replace `requests.post` with a recorder returning a scripted response."""
    calls = []
    state = {"response": FakeResponse(), "error": None}

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if state["error"] is not None:
            raise state["error"]
        return state["response"]

    monkeypatch.setattr(client.requests, "post", fake_post)
    return calls, state


def gemini_payload(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


# ═══════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════


class TestModelChain:
    def test_order_and_dedup(self):
        chain = build_model_chain("gemini-2.5-flash", ["custom-a", " ", "custom-a", "gemini-2.5-flash-lite"])
        assert chain == ("gemini-2.5-flash", "custom-a", "gemini-2.5-flash-lite")

    def test_last_resort_models_are_appended(self):
        chain = build_model_chain("primary", [])
        assert chain == ("primary", *LAST_RESORT_MODELS)


class TestLoadKey:
    def test_environment_wins(self, tmp_path, monkeypatch):
        key_file = tmp_path / "dhenu.key"
        key_file.write_text("from-file\n", encoding="utf-8")
        monkeypatch.setenv("DHENU_API_KEY", " from-env ")
        assert load_key(str(key_file)) == "from-env"

    def test_file_fallback(self, tmp_path, monkeypatch):
        key_file = tmp_path / "gemini.key"
        key_file.write_text("  from-file \n", encoding="utf-8")
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert load_key(str(key_file)) == "from-file"

    def test_missing(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        assert load_key(str(tmp_path / "gemini.key")) is None
        assert load_key(None) is None


class TestLoadSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL", "gemini-pro-test")
        monkeypatch.setenv("GEMINI_MODEL_FALLBACK", "fb-one, fb-two,")
        monkeypatch.setenv("AI_MODE", "dhenu_only")
        monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.setenv("DHENU_API_KEY", "d-key")

        settings = load_settings()

        assert settings.mode is Mode.SPECIALIST_ONLY
        assert settings.model_chain[:3] == ("gemini-pro-test", "fb-one", "fb-two")
        assert settings.request_timeout == 5.0
        assert settings.general_api_key == "g-key"
        assert settings.specialist_api_key == "d-key"

    def test_defaults(self, monkeypatch):
        for name in ("GEMINI_MODEL", "GEMINI_MODEL_FALLBACK", "DHENU_BASE_URL"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("AI_MODE", "unknown")
        monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "not-a-number")

        settings = load_settings()

        assert settings.mode is Mode.HYBRID_LITE
        assert settings.general_model == "gemini-2.5-flash-lite"
        assert settings.specialist_url == "https://api.dhenu.ai/v2/query"
        assert settings.request_timeout == 18.0

    def test_keys_are_hidden_from_repr(self):
        assert "secret" not in repr(ProviderSettings(general_api_key="secret"))


# ═══════════════════════════════════════════════════════════════════
# SPECIALIST TRANSPORT
# ═══════════════════════════════════════════════════════════════════


class TestSpecialistRequest:
    def test_posts_query_with_bearer(self, settings, captured_post):
        calls, state = captured_post
        state["response"] = FakeResponse(payload={"answer": " Spray neem oil. "})

        answer = client.send_specialist_request("aphids on mustard", settings)

        assert answer == "Spray neem oil."
        assert calls[0]["url"] == settings.specialist_url
        assert calls[0]["json"] == {"query": "aphids on mustard"}
        assert calls[0]["headers"]["Authorization"] == "Bearer dhenu-test-key"
        assert calls[0]["timeout"] == settings.request_timeout

    @pytest.mark.parametrize(
        "payload",
        [
            {"response": "ok"},
            {"result": "ok"},
            {"data": {"answer": "ok"}},
            {"data": {"response": "ok"}},
            {"answer": "", "data": {"response": "ok"}},
        ],
    )
    def test_answer_shapes(self, settings, captured_post, payload):
        _, state = captured_post
        state["response"] = FakeResponse(payload=payload)
        assert client.send_specialist_request("q", settings) == "ok"

    def test_missing_key(self, settings, captured_post):
        calls, _ = captured_post
        no_key = ProviderSettings(general_api_key="g")
        with pytest.raises(ConfigurationError):
            client.send_specialist_request("q", no_key)
        assert calls == []

    def test_http_error_is_not_retryable(self, settings, captured_post):
        _, state = captured_post
        state["response"] = FakeResponse(status_code=503, text="busy")
        with pytest.raises(ProviderError) as exc_info:
            client.send_specialist_request("q", settings)
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is False
        assert exc_info.value.provider == "dhenu"

    def test_empty_payload(self, settings, captured_post):
        _, state = captured_post
        state["response"] = FakeResponse(payload={"answer": "   "})
        with pytest.raises(ProviderError, match="empty"):
            client.send_specialist_request("q", settings)

    def test_timeout(self, settings, captured_post):
        _, state = captured_post
        state["error"] = requests.exceptions.Timeout()
        with pytest.raises(ProviderError, match="timed out"):
            client.send_specialist_request("q", settings)


# ═══════════════════════════════════════════════════════════════════
# GEMINI TRANSPORT
# ═══════════════════════════════════════════════════════════════════


class TestGeneralRequest:
    def test_payload_and_text_join(self, settings, captured_post):
        calls, state = captured_post
        state["response"] = FakeResponse(payload=gemini_payload("- one", "- two"))

        text = client.send_general_request("prompt", "gemini-x", settings, max_output_tokens=200)

        assert text == "- one\n- two"
        call = calls[0]
        assert call["url"].endswith("/models/gemini-x:generateContent")
        assert call["headers"]["x-goog-api-key"] == "gemini-test-key"
        assert call["json"]["contents"][0]["parts"][0]["text"] == "prompt"
        assert call["json"]["generationConfig"] == {
            "temperature": 0.5,
            "topP": 0.9,
            "maxOutputTokens": 200,
        }

    @pytest.mark.parametrize("status, retryable", [(429, True), (503, True), (400, False), (500, False)])
    def test_status_retryability(self, settings, captured_post, status, retryable):
        _, state = captured_post
        state["response"] = FakeResponse(status_code=status, text="err")
        with pytest.raises(ProviderError) as exc_info:
            client.send_general_request("p", "gemini-x", settings)
        assert exc_info.value.retryable is retryable
        assert exc_info.value.model == "gemini-x"

    def test_not_found_mentions_model_hint(self, settings, captured_post):
        _, state = captured_post
        state["response"] = FakeResponse(status_code=404, text="not found")
        with pytest.raises(ProviderError, match="GEMINI_MODEL") as exc_info:
            client.send_general_request("p", "gemini-x", settings)
        assert exc_info.value.retryable is False

    @pytest.mark.parametrize(
        "error", [requests.exceptions.Timeout(), requests.exceptions.ConnectionError()]
    )
    def test_transport_failures_are_retryable(self, settings, captured_post, error):
        _, state = captured_post
        state["error"] = error
        with pytest.raises(ProviderError) as exc_info:
            client.send_general_request("p", "gemini-x", settings)
        assert exc_info.value.retryable is True

    def test_empty_candidates(self, settings, captured_post):
        _, state = captured_post
        state["response"] = FakeResponse(payload={"candidates": []})
        with pytest.raises(ProviderError) as exc_info:
            client.send_general_request("p", "gemini-x", settings)
        assert exc_info.value.retryable is False

    def test_missing_key(self, captured_post):
        calls, _ = captured_post
        with pytest.raises(ConfigurationError):
            client.send_general_request("p", "gemini-x", ProviderSettings())
        assert calls == []


# ═══════════════════════════════════════════════════════════════════
# FALLBACK CHAIN
# ═══════════════════════════════════════════════════════════════════


class TestDecideFallbackStep:
    def test_steps(self):
        assert decide_fallback_step(None) is FallbackStep.SUCCESS
        assert decide_fallback_step(ProviderError("x", "gemini", retryable=True)) is FallbackStep.RETRY_NEXT
        assert decide_fallback_step(ProviderError("x", "gemini")) is FallbackStep.ABORT
        assert decide_fallback_step(ConfigurationError("x")) is FallbackStep.ABORT


@pytest.fixture
def chain_settings() -> ProviderSettings:
    return ProviderSettings(
        general_model="model-a",
        fallback_models=("model-b", "model-c"),
        general_api_key="g",
    )


@pytest.fixture
def scripted_transport(monkeypatch):
    """Replace `send_general_request` with per-model outcomes."""
    attempted = []
    outcomes = {}

    def fake_send(prompt, model, settings, max_output_tokens=400):
        attempted.append((model, max_output_tokens))
        outcome = outcomes.get(model, ProviderError("down", "gemini", retryable=True, model=model))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(service, "send_general_request", fake_send)
    return attempted, outcomes


class TestGeneralModelAdapter:
    @pytest.mark.asyncio
    async def test_retryable_failure_moves_to_next_model(self, chain_settings, scripted_transport):
        attempted, outcomes = scripted_transport
        outcomes["model-a"] = ProviderError("rate limited", "gemini", status_code=429, retryable=True)
        outcomes["model-b"] = "answer from b"
        outcomes["model-c"] = "answer from c"

        response = await GeneralModelAdapter(chain_settings).generate("p", max_output_tokens=200)

        assert response.text == "answer from b"
        assert response.model_id == "model-b"
        assert [model for model, _ in attempted] == ["model-a", "model-b"]
        assert all(limit == 200 for _, limit in attempted)

    @pytest.mark.asyncio
    async def test_non_retryable_failure_aborts(self, chain_settings, scripted_transport):
        attempted, outcomes = scripted_transport
        outcomes["model-a"] = ProviderError("bad request", "gemini", status_code=400)
        outcomes["model-b"] = "never used"

        with pytest.raises(ProviderError, match="bad request"):
            await GeneralModelAdapter(chain_settings).generate("p")

        assert [model for model, _ in attempted] == ["model-a"]

    @pytest.mark.asyncio
    async def test_missing_key_aborts(self, chain_settings, scripted_transport):
        attempted, outcomes = scripted_transport
        outcomes["model-a"] = ConfigurationError("Server missing GEMINI_API_KEY")

        with pytest.raises(ConfigurationError):
            await GeneralModelAdapter(chain_settings).generate("p")

        assert len(attempted) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_raises_last_error(self, chain_settings, scripted_transport):
        attempted, _ = scripted_transport

        with pytest.raises(ProviderError) as exc_info:
            await GeneralModelAdapter(chain_settings).generate("p")

        models = [model for model, _ in attempted]
        assert models == list(chain_settings.model_chain)
        assert exc_info.value.model == models[-1]
        assert exc_info.value.retryable is True


class TestSpecialistAdapter:
    @pytest.mark.asyncio
    async def test_wraps_transport(self, settings, monkeypatch):
        monkeypatch.setattr(service, "send_specialist_request", lambda query, s: f"re: {query}")

        response = await SpecialistAdapter(settings).generate("aphids")

        assert response.text == "re: aphids"
        assert response.provider_id == "dhenu"
        assert response.model_id is None


# ═══════════════════════════════════════════════════════════════════
# ATTEMPT DEADLINE
# ═══════════════════════════════════════════════════════════════════


def _slow_transport(delay: float, text: str):
    def send(*args, **kwargs):
        time.sleep(delay)
        return text

    return send


class TestAttemptDeadline:
    @pytest.mark.asyncio
    async def test_slow_specialist_fails_without_retry(self, monkeypatch):
        settings = ProviderSettings(specialist_api_key="d", request_timeout=0.05)
        monkeypatch.setattr(service, "send_specialist_request", _slow_transport(0.5, "late"))

        started = time.monotonic()
        with pytest.raises(ProviderError, match="timed out") as exc_info:
            await SpecialistAdapter(settings).generate("aphids")

        assert time.monotonic() - started < 0.4
        assert exc_info.value.provider == "dhenu"
        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_slow_model_moves_to_next_model(self, monkeypatch):
        settings = ProviderSettings(
            general_model="model-a",
            fallback_models=("model-b",),
            general_api_key="g",
            request_timeout=0.05,
        )
        slow = _slow_transport(0.5, "late answer")

        def fake_send(prompt, model, settings, max_output_tokens=400):
            if model == "model-a":
                return slow()
            return "answer from b"

        monkeypatch.setattr(service, "send_general_request", fake_send)

        response = await GeneralModelAdapter(settings).generate("p")

        assert response.text == "answer from b"
        assert response.model_id == "model-b"

    @pytest.mark.asyncio
    async def test_every_model_too_slow_raises_retryable_timeout(self, monkeypatch):
        settings = ProviderSettings(
            general_model="model-a",
            fallback_models=(),
            general_api_key="g",
            request_timeout=0.05,
        )
        monkeypatch.setattr(service, "send_general_request", _slow_transport(0.3, "late"))

        with pytest.raises(ProviderError, match="timed out") as exc_info:
            await GeneralModelAdapter(settings).generate("p")

        assert exc_info.value.retryable is True
        assert exc_info.value.model == settings.model_chain[-1]
