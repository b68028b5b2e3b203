"""
Reusable retry-with-backoff policy for provider calls.

One policy object is parameterized by attempt ceiling, base delay and a
predicate deciding which errors are retryable, and is applied the same way
to search, generation and speech calls.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential

from .errors import ProviderUnavailable, RateLimited

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Default predicate: retry rate limits, 5xx and network failures."""
    return isinstance(exc, ProviderUnavailable) and exc.transient


def is_provider_error(exc: BaseException) -> bool:
    """Retry every provider failure, including 4xx."""
    return isinstance(exc, ProviderUnavailable)


class RetryPolicy:
    """
    Exponential backoff around an async callable.

    Args:
        max_attempts: Total attempts including the first one
        base_delay: Seconds to wait before the second attempt (doubles after)
        max_delay: Upper bound for a single wait
        retryable: Predicate deciding whether an exception is retried
        sleep: Optional async sleep override (tests)
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        retryable: Callable[[BaseException], bool] = is_transient,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retryable = retryable
        self.sleep = sleep

    def _retrying(self, description: str) -> AsyncRetrying:
        kwargs = {}
        if self.sleep is not None:
            kwargs["sleep"] = self.sleep

        def log_before_sleep(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception()
            wait = retry_state.next_action.sleep if retry_state.next_action else 0
            attempt = retry_state.attempt_number
            if isinstance(exc, RateLimited):
                logger.warning(
                    f"⏳ {description} rate limited (attempt {attempt}/{self.max_attempts}), "
                    f"waiting {wait:.1f}s"
                )
            else:
                logger.warning(
                    f"🔄 {description} failed (attempt {attempt}/{self.max_attempts}): {exc}. "
                    f"Retrying in {wait:.1f}s"
                )

        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(self.retryable),
            before_sleep=log_before_sleep,
            reraise=True,
            **kwargs
        )

    async def run(
        self,
        fn: Callable[..., Awaitable[Any]],
        *args: Any,
        description: str = "provider call",
        **kwargs: Any
    ) -> Any:
        """
        Call fn until it succeeds, the error is not retryable, or attempts run out.

        The last exception is re-raised unchanged.
        """
        async for attempt in self._retrying(description):
            with attempt:
                result = await fn(*args, **kwargs)
        return result
