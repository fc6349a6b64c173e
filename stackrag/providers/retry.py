"""
Retry policy for provider calls.

Exponential backoff (base delay doubled per attempt, capped) plus random
jitter, or the server's ``Retry-After`` value when the error carries one,
clamped to ``max_retry_after``.
Which errors are retried is decided by a classifier, so the policy knows
nothing about HTTP status codes.
"""

import random
import threading
import time
from typing import Any, Callable, Optional, TypeVar

from loguru import logger
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from stackrag.errors import OperationCancelled, ProviderError, TransientProviderError

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransientProviderError)


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        jitter: float = 0.2,
        max_retry_after: float = 30.0,
        is_retryable: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.max_retry_after = max_retry_after
        self.is_retryable = is_retryable
        self._sleep = sleep

    def backoff_delay(
        self, attempt_number: int, error: Optional[BaseException] = None
    ) -> float:
        """Delay before the attempt following ``attempt_number`` (1-based)."""
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            return min(max(0.0, float(retry_after)), self.max_retry_after)
        delay = min(self.base_delay * (2 ** (attempt_number - 1)), self.max_delay)
        return delay + random.uniform(0, self.jitter)

    def _wait(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return self.backoff_delay(retry_state.attempt_number, error)

    def _sleeper(self, cancel: Optional[threading.Event]) -> Callable[[float], None]:
        if cancel is None:
            return self._sleep

        def sleep(seconds: float) -> None:
            if cancel.wait(seconds):
                raise OperationCancelled("Operation cancelled during retry backoff")

        return sleep

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            "Attempt {} failed ({}); retrying in {:.2f}s",
            retry_state.attempt_number,
            error,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )

    def call(
        self,
        fn: Callable[..., T],
        *args: Any,
        cancel: Optional[threading.Event] = None,
        **kwargs: Any,
    ) -> T:
        def attempt() -> T:
            if cancel is not None and cancel.is_set():
                raise OperationCancelled("Operation cancelled")
            return fn(*args, **kwargs)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.is_retryable),
            sleep=self._sleeper(cancel),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            return retrying(attempt)
        except OperationCancelled:
            raise
        except Exception as e:
            if not self.is_retryable(e):
                raise
            raise ProviderError(
                f"Provider call failed after {self.max_attempts} attempts: {e}",
                status_code=getattr(e, "status_code", None),
                provider=getattr(e, "provider", None),
            ) from e
