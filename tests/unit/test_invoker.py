"""Tests for the retrying invoker."""

import asyncio

import pytest
from hypothesis import given, strategies as st

from clients.base import GeneratedContent
from core.errors import (
    BackendUnavailable,
    HostedGenerationError,
    InvocationTimeout,
    RateLimited,
    RetriesExhausted,
    TerminalGenerationError,
    as_generation_error,
)
from generation.invoker import (
    RETRYABLE,
    TERMINAL,
    RetryingInvoker,
    RetryPolicy,
    classify,
)


# ============================================================================
# Policy
# ============================================================================

@pytest.mark.unit
def test_default_policy():
    policy = RetryPolicy()
    assert policy.max_attempts == 4
    assert policy.base_delay_ms == 2000
    assert policy.jitter_ms == 1000


@pytest.mark.unit
def test_policy_from_settings(settings):
    policy = RetryPolicy.from_settings(settings.model_copy(update={"max_attempts": 6, "base_delay_ms": 10}))
    assert policy.max_attempts == 6
    assert policy.base_delay(3) == 40


@pytest.mark.unit
@given(st.integers(min_value=2, max_value=10), st.integers(min_value=1, max_value=5000))
def test_backoff_doubles_per_attempt(max_attempts, base_delay_ms):
    """Delay without jitter is base * 2^(attempt-1) and strictly increasing."""
    policy = RetryPolicy(max_attempts=max_attempts, base_delay_ms=base_delay_ms)
    delays = [policy.base_delay(a) for a in range(1, max_attempts)]

    assert delays == [base_delay_ms * 2 ** (a - 1) for a in range(1, max_attempts)]
    assert all(b > a for a, b in zip(delays, delays[1:]))


@pytest.mark.unit
def test_jitter_is_bounded():
    policy = RetryPolicy(base_delay_ms=2000, jitter_ms=1000)
    assert policy.delay_ms(1, rng=lambda: 0.0) == 2000
    assert policy.delay_ms(2, rng=lambda: 0.999) < 4000 + 1000


# ============================================================================
# Classification
# ============================================================================

@pytest.mark.unit
@pytest.mark.parametrize(
    "error,expected",
    [
        (RateLimited("slow down"), RETRYABLE),
        (InvocationTimeout("late"), RETRYABLE),
        (BackendUnavailable("down"), RETRYABLE),
        (TerminalGenerationError("bad key"), TERMINAL),
        (asyncio.TimeoutError(), RETRYABLE),
        (RuntimeError("Rate limit exceeded"), RETRYABLE),
        (RuntimeError("request timed out"), RETRYABLE),
        (RuntimeError("All AI providers failed"), RETRYABLE),
        (RuntimeError("invalid api key"), TERMINAL),
    ],
)
def test_classify(error, expected):
    assert classify(error) == expected


@pytest.mark.unit
def test_as_generation_error_keeps_taxonomy_errors():
    error = RateLimited("x")
    assert as_generation_error(error) is error


# ============================================================================
# Local path
# ============================================================================

@pytest.mark.unit
async def test_success_on_first_attempt(make_invoker, stub_backend, unit, fake_sleep):
    backend = stub_backend(["export default function LoginForm() {}"])
    invoker = make_invoker(backend)

    result = await invoker.invoke(unit, {})

    assert result.content.startswith("export default")
    assert backend.calls == ["LoginForm"]
    assert fake_sleep.delays == []
    assert invoker.history == []


@pytest.mark.unit
async def test_retry_then_success(make_invoker, stub_backend, unit, fake_sleep):
    backend = stub_backend([RateLimited("429"), BackendUnavailable("503"), "ok"])
    invoker = make_invoker(backend)

    result = await invoker.invoke(unit, {})

    assert result.content == "ok"
    assert len(backend.calls) == 3
    assert fake_sleep.delays == [2.0, 4.0]
    assert [a.attempt_number for a in invoker.history] == [1, 2]


@pytest.mark.unit
async def test_retry_bound(make_invoker, stub_backend, unit, fake_sleep):
    """An always-retryable failure makes exactly max_attempts attempts."""
    backend = stub_backend([RateLimited("429")])
    invoker = make_invoker(backend)

    with pytest.raises(RetriesExhausted) as exc_info:
        await invoker.invoke(unit, {})

    assert len(backend.calls) == 4
    assert fake_sleep.delays == [2.0, 4.0, 8.0]
    error = exc_info.value
    assert error.attempts == 4
    assert error.unit == "LoginForm"
    assert error.group == "Auth"
    assert isinstance(error.last_error, RateLimited)


@pytest.mark.unit
async def test_terminal_short_circuit(make_invoker, stub_backend, unit, fake_sleep):
    """A non-retryable failure stops after one attempt."""
    backend = stub_backend([TerminalGenerationError("invalid credentials")])
    invoker = make_invoker(backend)

    with pytest.raises(TerminalGenerationError) as exc_info:
        await invoker.invoke(unit, {})

    assert len(backend.calls) == 1
    assert fake_sleep.delays == []
    assert exc_info.value.attempts == 1
    assert exc_info.value.unit == "LoginForm"
    assert invoker.history[0].classification == TERMINAL


@pytest.mark.unit
async def test_foreign_error_classified_by_message(make_invoker, stub_backend, unit):
    backend = stub_backend([ValueError("malformed request"), "never"])
    invoker = make_invoker(backend)

    with pytest.raises(TerminalGenerationError, match="malformed request"):
        await invoker.invoke(unit, {})

    assert len(backend.calls) == 1


@pytest.mark.unit
async def test_timeout_counts_as_retryable(make_invoker, stub_backend, unit, fake_sleep):
    async def hang(unit, context):
        await asyncio.sleep(10)

    async def quick(unit, context):
        return GeneratedContent(content="late but fine", backend="stub")

    backend = stub_backend([hang, quick])
    invoker = make_invoker(backend, timeout_ms=20)

    result = await invoker.invoke(unit, {})

    assert result.content == "late but fine"
    assert "timeout" in invoker.history[0].error.lower()
    assert fake_sleep.delays == [2.0]


@pytest.mark.unit
async def test_timeout_exhaustion(make_invoker, stub_backend, unit):
    async def hang(unit, context):
        await asyncio.sleep(10)

    invoker = make_invoker(stub_backend([hang]), policy=RetryPolicy(max_attempts=2, base_delay_ms=0), timeout_ms=10)

    with pytest.raises(RetriesExhausted) as exc_info:
        await invoker.invoke(unit, {})

    assert isinstance(exc_info.value.last_error, InvocationTimeout)
    assert exc_info.value.attempts == 2


# ============================================================================
# Path selection
# ============================================================================

@pytest.mark.unit
def test_path_follows_credentials(local_config, hosted_config):
    assert RetryingInvoker(local_config).path == "local"
    assert RetryingInvoker(hosted_config).path == "hosted"


@pytest.mark.unit
async def test_hosted_path_single_attempt_with_guidance(hosted_config, stub_backend, unit, fake_sleep):
    hosted = stub_backend([BackendUnavailable("502 bad gateway")], name="hosted")
    invoker = RetryingInvoker(hosted_config, hosted=hosted, sleep=fake_sleep)

    with pytest.raises(HostedGenerationError) as exc_info:
        await invoker.invoke(unit, {})

    assert len(hosted.calls) == 1
    assert fake_sleep.delays == []
    error = exc_info.value
    assert error.attempts == 1
    assert error.unit == "LoginForm"
    assert any("FORGE_HOSTED_API_TOKEN" in line for line in error.guidance)
    assert any("GEMINI_API_KEY" in line for line in error.guidance)


@pytest.mark.unit
async def test_hosted_path_success(hosted_config, stub_backend, unit):
    hosted = stub_backend(["hosted code"], name="hosted")
    invoker = RetryingInvoker(hosted_config, hosted=hosted)

    result = await invoker.invoke(unit)

    assert result.content == "hosted code"
    assert result.backend == "hosted"
