# Role: Shared failure-handling primitives used by every stage:
# - with_error_handling: log start/success and convert raw failures into tagged AgentErrors
# - retry: bounded retry with linear backoff (ValidationError is never retried)
# - validate_required / validate_text: fail-fast input checks

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from spot_assistant.core.errors import AgentError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorMapper = Callable[[Exception], AgentError]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, attempt: int) -> float:
        # Key line: linear backoff, attempt is 1-based.
        return self.base_delay * attempt


@dataclass(frozen=True)
class FallbackPolicy:
    max_attempts: int = 3
    retry_delay: float = 1.0
    enabled: bool = True
    # Declared for configuration parity; nothing compares it against elapsed time.
    timeout_seconds: float = 30.0

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, base_delay=self.retry_delay)


def with_error_handling(
    operation: Callable[[], T],
    name: str,
    error_mapper: Optional[ErrorMapper] = None,
) -> T:
    # 1) Log start
    # 2) Run the operation; log success
    # 3) AgentErrors pass through untouched; anything else is mapped (custom mapper or generic AgentError)
    logger.info("Starting %s", name)
    try:
        result = operation()
    except AgentError:
        logger.error("Agent error occurred in %s", name)
        raise
    except Exception as e:
        logger.exception("Unexpected error in %s", name)
        if error_mapper is not None:
            raise error_mapper(e) from e
        raise AgentError(f"Unexpected error in {name}: {e}", cause=e) from e

    logger.info("Completed %s successfully", name)
    return result


def retry(
    operation: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    *,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    policy = policy or RetryPolicy()
    last_error: Optional[Exception] = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return operation()
        except ValidationError:
            # Bad input will not get better by asking again.
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "Attempt %d of %d failed: %s", attempt, policy.max_attempts, e
            )
            if attempt < policy.max_attempts:
                sleep(policy.delay_for(attempt))

    if last_error is None:
        raise AgentError("Operation failed after retries", code="RETRY_EXHAUSTED")
    raise last_error


def validate_required(value: Any, name: str) -> None:
    if value is None:
        raise ValidationError(f"{name} is required")


def validate_text(value: Optional[str], name: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} cannot be null or empty")
