"""Request models - one logical call and its retry attempts"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union


@dataclass
class RequestDescriptor:
    """A single outbound HTTP request"""

    method: str
    url: str  # Absolute URL the attempt is sent to
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None  # Already serialized payload
    timeout: float = 10.0  # Seconds

    def __post_init__(self):
        """Normalize method name"""
        self.method = self.method.upper()
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout * 1000)


@dataclass(frozen=True)
class AttemptState:
    """State of the retry loop after a failed attempt"""

    attempt_number: int
    max_attempts: int
    delay_ms: int  # Wait before the next attempt (base * attempt_number)

    @property
    def is_last(self) -> bool:
        """Check if no further attempt will be made"""
        return self.attempt_number >= self.max_attempts
