import json
import threading
import httpx
import numpy as np
import pytest
from stackrag import (
    BillingError,
    ConfigError,
    EmbeddingGateway,
    MockProvider,
    OpenAIProvider,
    OperationCancelled,
    ProviderError,
    RetryPolicy,
    Settings,
    TransientProviderError,
)
from stackrag.config import mask_key
from stackrag.providers.mock_provider import (
    OFFLINE_MARKER,
    deterministic_embedding,
    extract_context,
    fnv1a_32,
    summarize_context,
)
from stackrag.providers.openai_provider import classify_response, parse_retry_after

BASE_URL = "https://llm.test/v1"


def no_wait_policy(max_attempts: int = 5, sleeps=None) -> RetryPolicy:
    recorded = sleeps if sleeps is not None else []
    return RetryPolicy(
        max_attempts=max_attempts,
        base_delay=0.5,
        max_delay=8.0,
        jitter=0.0,
        sleep=recorded.append,
    )


def embedding_body(vector):
    return {"data": [{"embedding": vector, "index": 0}], "model": "test"}


def make_provider(handler, policy=None) -> OpenAIProvider:
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return OpenAIProvider(
        api_key="sk-test-1234567890",
        retry_policy=policy or no_wait_policy(),
        client=client,
    )


class FailingProvider(MockProvider):
    name = "failing"
    is_mock = False

    def __init__(self, error):
        super().__init__(dimension=8)
        self.error = error
        self.calls = 0

    def embed(self, text, cancel=None):
        self.calls += 1
        raise self.error


class TestMockProvider:
    def test_embeddings_are_deterministic(self):
        provider = MockProvider(dimension=32)
        first = provider.embed("hello")
        second = provider.embed("hello")
        assert first == second
        assert provider.embed("world") != first

    def test_embedding_shape_and_norm(self):
        vector = deterministic_embedding("some text", 128)
        assert len(vector) == 128
        assert np.linalg.norm(vector) == pytest.approx(1.0)
        assert all(-1.0 <= value <= 1.0 for value in vector)

    def test_empty_text_still_embeds(self):
        vector = deterministic_embedding("", 16)
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    def test_fnv1a_known_values(self):
        assert fnv1a_32("") == 0x811C9DC5
        assert fnv1a_32("a") == 0xE40C292C
        assert fnv1a_32("foobar") == 0xBF9CF968

    def test_extract_context(self):
        prompt = (
            "You are helpful.\n\nContext from the uploaded documents:\nAlpha.\nBeta."
        )
        assert extract_context(prompt) == "Alpha.\nBeta."
        assert extract_context("no marker here") == ""

    def test_summarize_context_skips_headers(self):
        context = (
            "[Source 1: Guide]\nFirst sentence. Second sentence!\n\n---\n\n"
            "[Source 2: Notes]\n- bullet point\n"
        )
        assert summarize_context(context, max_items=5) == [
            "First sentence.",
            "Second sentence!",
            "bullet point",
        ]
        assert summarize_context(context, max_items=1) == ["First sentence."]

    def test_chat_complete_summarizes_context(self):
        provider = MockProvider(dimension=8)
        messages = [
            {
                "role": "system",
                "content": "Answer.\n\nContext from docs:\n[Source 1: A]\nThe sky is blue.",
            },
            {"role": "user", "content": "Question: what colour is the sky?"},
        ]
        answer = provider.chat_complete(messages)
        assert answer.startswith(OFFLINE_MARKER)
        assert "- The sky is blue." in answer
        assert "Question" not in answer

    def test_chat_complete_without_context(self):
        answer = MockProvider().chat_complete([{"role": "user", "content": "hi"}])
        assert answer == f"{OFFLINE_MARKER} No context was available to summarize."


class TestRetryPolicy:
    def test_succeeds_after_transient_failures(self):
        sleeps = []
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise TransientProviderError("rate limited", status_code=429)
            return "ok"

        assert no_wait_policy(sleeps=sleeps).call(flaky) == "ok"
        assert len(attempts) == 3
        assert sleeps == [0.5, 1.0]

    def test_backoff_is_capped(self):
        policy = RetryPolicy(base_delay=0.5, max_delay=8.0, jitter=0.0)
        assert [policy.backoff_delay(n) for n in range(1, 8)] == [
            0.5,
            1.0,
            2.0,
            4.0,
            8.0,
            8.0,
            8.0,
        ]

    def test_jitter_bounds(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=8.0, jitter=0.2)
        for _ in range(50):
            assert 1.0 <= policy.backoff_delay(1) <= 1.2

    def test_retry_after_overrides_backoff(self):
        policy = RetryPolicy(jitter=0.2)
        error = TransientProviderError("slow down", status_code=429, retry_after=12.0)
        assert policy.backoff_delay(1, error) == 12.0

    def test_retry_after_is_clamped(self):
        policy = RetryPolicy(max_retry_after=30.0)
        error = TransientProviderError("slow down", status_code=429, retry_after=3600)
        assert policy.backoff_delay(1, error) == 30.0
        assert RetryPolicy(max_retry_after=5.0).backoff_delay(1, error) == 5.0

    def test_non_retryable_error_is_raised_immediately(self):
        attempts = []

        def bad_request():
            attempts.append(1)
            raise ProviderError("bad request", status_code=400)

        with pytest.raises(ProviderError) as exc_info:
            no_wait_policy().call(bad_request)
        assert exc_info.value.status_code == 400
        assert len(attempts) == 1

    def test_exhaustion_wraps_last_error(self):
        sleeps = []

        def always_down():
            raise TransientProviderError(
                "server error", status_code=503, provider="openai"
            )

        with pytest.raises(ProviderError) as exc_info:
            no_wait_policy(max_attempts=3, sleeps=sleeps).call(always_down)
        error = exc_info.value
        assert not isinstance(error, TransientProviderError)
        assert "after 3 attempts" in error.message
        assert error.status_code == 503
        assert isinstance(error.__cause__, TransientProviderError)
        assert len(sleeps) == 2

    def test_custom_classifier(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise KeyError("retry me")
            return 42

        policy = RetryPolicy(
            is_retryable=lambda e: isinstance(e, KeyError),
            jitter=0.0,
            sleep=lambda s: None,
        )
        assert policy.call(flaky) == 42

    def test_cancelled_before_first_attempt(self):
        cancel = threading.Event()
        cancel.set()
        called = []
        with pytest.raises(OperationCancelled):
            no_wait_policy().call(lambda: called.append(1), cancel=cancel)
        assert called == []

    def test_cancelled_during_backoff(self):
        cancel = threading.Event()
        attempts = []

        def failing():
            attempts.append(1)
            cancel.set()
            raise TransientProviderError("busy", status_code=503)

        policy = RetryPolicy(base_delay=5.0, jitter=0.0)
        with pytest.raises(OperationCancelled):
            policy.call(failing, cancel=cancel)
        assert len(attempts) == 1

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestClassification:
    def test_parse_retry_after(self):
        assert parse_retry_after("3") == 3.0
        assert parse_retry_after(" 1.5 ") == 1.5
        assert parse_retry_after(None) is None
        assert parse_retry_after("soon") is None
        assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0

    @pytest.mark.parametrize(
        "status,body,expected",
        [
            (429, "rate limit", TransientProviderError),
            (500, "oops", TransientProviderError),
            (503, "insufficient_quota", TransientProviderError),
            (402, "payment required", BillingError),
            (403, "forbidden", BillingError),
            (429, '{"error": {"code": "insufficient_quota"}}', BillingError),
            (400, "Please check your billing details", BillingError),
            (400, "bad input", ProviderError),
            (401, "invalid key", ProviderError),
        ],
    )
    def test_classify_response(self, status, body, expected):
        response = httpx.Response(status, text=body)
        error = classify_response(response)
        assert type(error) is expected
        assert error.status_code == status

    def test_retry_after_header_is_carried(self):
        response = httpx.Response(429, text="slow", headers={"Retry-After": "2"})
        assert classify_response(response).retry_after == 2.0


class TestOpenAIProvider:
    def test_embed_request(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=embedding_body([0.1, 0.2, 0.3]))

        provider = make_provider(handler)
        assert provider.embed("hello") == [0.1, 0.2, 0.3]
        request = seen[0]
        assert request.url.path == "/v1/embeddings"
        assert request.headers["Authorization"] == "Bearer sk-test-1234567890"
        assert json.loads(request.content) == {
            "input": "hello",
            "model": "text-embedding-3-small",
        }

    def test_rate_limit_then_success(self):
        responses = iter(
            [
                httpx.Response(429, text="rate limited", headers={"Retry-After": "1"}),
                httpx.Response(200, json=embedding_body([1.0, 0.0])),
            ]
        )
        sleeps = []
        provider = make_provider(
            lambda request: next(responses), no_wait_policy(sleeps=sleeps)
        )
        assert provider.embed("text") == [1.0, 0.0]
        assert sleeps == [1.0]

    def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, text="invalid input")

        with pytest.raises(ProviderError) as exc_info:
            make_provider(handler).embed("text")
        assert exc_info.value.status_code == 400
        assert len(calls) == 1

    def test_billing_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(402, text="payment required")

        with pytest.raises(BillingError):
            make_provider(handler).embed("text")
        assert len(calls) == 1

    def test_network_errors_exhaust_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderError) as exc_info:
            make_provider(handler, no_wait_policy(max_attempts=4)).embed("text")
        assert "after 4 attempts" in exc_info.value.message
        assert len(calls) == 4

    def test_malformed_response(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"data": []}))
        with pytest.raises(ProviderError):
            provider.embed("text")

    def test_chat_complete(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            message = {"role": "assistant", "content": "Hi!"}
            return httpx.Response(200, json={"choices": [{"message": message}]})

        provider = make_provider(handler)
        messages = [{"role": "user", "content": "hello"}]
        assert provider.chat_complete(messages) == "Hi!"
        assert seen[0]["model"] == "gpt-4o-mini"
        assert seen[0]["messages"] == messages
        assert seen[0]["max_tokens"] == 1000


class TestEmbeddingGateway:
    def test_mock_mode(self):
        settings = Settings(_env_file=None, mock_mode=True, embedding_dimension=16)
        gateway = EmbeddingGateway.from_settings(settings)
        assert gateway.is_mock
        assert len(gateway.embed("hello")) == 16

    def test_missing_key_is_a_config_error(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("STACKRAG_OPENAI_API_KEY", raising=False)
        settings = Settings(_env_file=None, mock_mode=False, openai_api_key=None)
        with pytest.raises(ConfigError):
            EmbeddingGateway.from_settings(settings)

    def test_live_provider_from_settings(self):
        client = httpx.Client(
            base_url=BASE_URL,
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json=embedding_body([0.5, 0.5]))
            ),
        )
        settings = Settings(_env_file=None, openai_api_key="sk-abcdefghijkl")
        gateway = EmbeddingGateway.from_settings(settings, client=client)
        assert not gateway.is_mock
        assert gateway.embed("x") == [0.5, 0.5]

    def test_billing_error_without_fallback(self):
        provider = FailingProvider(BillingError("quota", status_code=429))
        gateway = EmbeddingGateway(provider, fallback_on_billing_error=False)
        with pytest.raises(BillingError):
            gateway.embed("x")
        assert not gateway.is_mock

    def test_billing_error_switches_to_mock(self):
        provider = FailingProvider(BillingError("quota", status_code=402))
        gateway = EmbeddingGateway(
            provider,
            fallback_on_billing_error=True,
            fallback_provider=MockProvider(dimension=8),
        )
        vector = gateway.embed("x")
        assert vector == deterministic_embedding("x", 8)
        assert gateway.is_mock
        gateway.embed("y")
        assert provider.calls == 1

    def test_other_errors_do_not_switch(self):
        provider = FailingProvider(ProviderError("bad", status_code=400))
        gateway = EmbeddingGateway(
            provider, fallback_on_billing_error=True, fallback_provider=MockProvider()
        )
        with pytest.raises(ProviderError):
            gateway.embed("x")
        assert not gateway.is_mock


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.similarity_threshold == 0.7
        assert settings.max_results == 5
        assert settings.fallback_thresholds == (0.3, 0.0)
        assert settings.max_file_bytes == 50 * 1024 * 1024

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("STACKRAG_MOCK_MODE", "true")
        monkeypatch.setenv("STACKRAG_LOG_LEVEL", "debug")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
        settings = Settings(_env_file=None)
        assert settings.mock_mode is True
        assert settings.log_level == "DEBUG"
        assert settings.openai_api_key == "sk-from-env"

    def test_mask_key(self):
        assert mask_key(None) == "<missing>"
        assert mask_key("short") == "s****"
        assert mask_key("sk-abcdefghijkl") == "sk-a*******ijkl"
