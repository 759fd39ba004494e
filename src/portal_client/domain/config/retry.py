"""Retry configuration model."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Backoff is linear: the wait after attempt N is ``initial_delay * N``.

    Attributes:
        max_attempts: Maximum number of attempts per logical call
        initial_delay: Base delay in seconds
    """

    max_attempts: int = Field(3, gt=0, le=10)
    initial_delay: float = Field(1.0, ge=0.0)  # Allow 0 for tests
