"""Retry policy for transport attempts using tenacity.

Only attempts that raise one of the retryable exception types are retried
(requests transport failures by default). A response with an error status is
a completed attempt and is handed back to the caller.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from portal_client.domain.config.retry import RetryConfig
from portal_client.domain.models.request import AttemptState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Bounded retries with linear backoff (initial_delay * attempt)"""

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        retry_on: Tuple[Type[BaseException], ...] = (requests.exceptions.RequestException,),
    ):
        """Initialize retry policy

        Args:
            retry_config: Attempt count and backoff step
            sleep: Called with the delay in seconds between attempts
            retry_on: Exception types that make an attempt retryable; anything
                else propagates immediately
        """
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self.retry_on = retry_on

    def attempt_state(self, attempt_number: int) -> AttemptState:
        """Build the state reported after a failed attempt"""
        return AttemptState(
            attempt_number=attempt_number,
            max_attempts=self.retry_config.max_attempts,
            delay_ms=int(self.retry_config.initial_delay * attempt_number * 1000),
        )

    def _log_failed_attempt(self, retry_state: RetryCallState) -> None:
        if retry_state.outcome is None or not retry_state.outcome.failed:
            return
        state = self.attempt_state(retry_state.attempt_number)
        exception = retry_state.outcome.exception()
        if state.is_last:
            logger.warning(
                f"Request attempt {state.attempt_number}/{state.max_attempts} failed: {exception}"
            )
        else:
            logger.warning(
                f"Request attempt {state.attempt_number}/{state.max_attempts} failed: {exception}. "
                f"Retrying in {state.delay_ms}ms..."
            )

    def call(self, operation: Callable[[], T]) -> T:
        """Run operation until it returns, or re-raise the last retryable failure

        Args:
            operation: Zero-argument callable performing one attempt

        Returns:
            The first successful result
        """
        delay = self.retry_config.initial_delay
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_config.max_attempts),
            wait=wait_incrementing(start=delay, increment=delay),
            retry=retry_if_exception_type(self.retry_on),
            after=self._log_failed_attempt,
            sleep=self._sleep,
            reraise=True,
        )
        return retrying(operation)
