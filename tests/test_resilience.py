"""
Unit tests for the retry/error core: RetryPolicy, retry, with_error_handling and the validation helpers.
"""

import pytest

from spot_assistant.core.errors import (
    AgentError,
    ExtractionError,
    QueryError,
    TransientServiceError,
    ValidationError,
)
from spot_assistant.core.resilience import (
    FallbackPolicy,
    RetryPolicy,
    retry,
    validate_required,
    validate_text,
    with_error_handling,
)


class Flaky:
    """Fails the first `failures` calls, then returns `value`."""

    def __init__(self, failures: int, error: Exception, value: str = "ok") -> None:
        self.failures = failures
        self.error = error
        self.value = value
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


class TestRetryPolicy:
    def test_linear_delays(self) -> None:
        policy = RetryPolicy(max_attempts=4, base_delay=2.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]

    def test_rejects_invalid_values(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=-1)

    def test_fallback_policy_defaults(self) -> None:
        policy = FallbackPolicy()
        assert policy.max_attempts == 3
        assert policy.retry_delay == 1.0
        assert policy.enabled is True
        assert policy.timeout_seconds == 30.0
        assert policy.retry_policy == RetryPolicy(max_attempts=3, base_delay=1.0)


class TestRetry:
    def test_success_first_try_does_not_sleep(self, sleep) -> None:
        op = Flaky(failures=0, error=RuntimeError("x"))
        assert retry(op, RetryPolicy(3, 1.0), sleep=sleep) == "ok"
        assert op.calls == 1
        assert sleep.delays == []

    def test_recovers_after_transient_failures(self, sleep) -> None:
        op = Flaky(failures=2, error=TransientServiceError("down"))
        assert retry(op, RetryPolicy(3, 1.0), sleep=sleep) == "ok"
        assert op.calls == 3
        assert sleep.delays == [1.0, 2.0]

    def test_always_failing_is_invoked_exactly_max_attempts(self, sleep) -> None:
        error = TransientServiceError("down")
        op = Flaky(failures=100, error=error)
        with pytest.raises(TransientServiceError) as exc_info:
            retry(op, RetryPolicy(max_attempts=3, base_delay=0.5), sleep=sleep)
        assert op.calls == 3
        # No sleep after the final attempt.
        assert sleep.delays == [0.5, 1.0]
        assert exc_info.value is error

    def test_validation_error_is_not_retried(self, sleep) -> None:
        op = Flaky(failures=100, error=ValidationError("bad input"))
        with pytest.raises(ValidationError):
            retry(op, RetryPolicy(3, 1.0), sleep=sleep)
        assert op.calls == 1
        assert sleep.delays == []

    def test_generic_exceptions_are_retried(self, sleep) -> None:
        op = Flaky(failures=100, error=KeyError("missing"))
        with pytest.raises(KeyError):
            retry(op, RetryPolicy(2, 1.0), sleep=sleep)
        assert op.calls == 2


class TestWithErrorHandling:
    def test_returns_result(self) -> None:
        assert with_error_handling(lambda: 42, "Answer") == 42

    def test_domain_errors_pass_through_unchanged(self) -> None:
        error = QueryError("search failed")

        def op() -> None:
            raise error

        with pytest.raises(QueryError) as exc_info:
            with_error_handling(op, "Search", lambda e: ExtractionError(str(e)))
        assert exc_info.value is error

    def test_raw_failures_use_mapper(self) -> None:
        def op() -> None:
            raise RuntimeError("boom")

        with pytest.raises(ExtractionError) as exc_info:
            with_error_handling(op, "Extract", lambda e: ExtractionError(f"wrapped: {e}", cause=e))
        assert str(exc_info.value) == "wrapped: boom"
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_raw_failures_without_mapper_carry_operation_name(self) -> None:
        def op() -> None:
            raise RuntimeError("boom")

        with pytest.raises(AgentError) as exc_info:
            with_error_handling(op, "RankSpots")
        assert "RankSpots" in str(exc_info.value)
        assert exc_info.value.code == "AGENT_ERROR"


class TestValidationHelpers:
    def test_validate_required(self) -> None:
        validate_required("x", "field")
        with pytest.raises(ValidationError):
            validate_required(None, "field")

    @pytest.mark.parametrize("value", [None, "", "   ", "\n"])
    def test_validate_text_rejects_blank(self, value) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_text(value, "message")
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_validate_text_accepts_content(self) -> None:
        validate_text("amala", "message")
