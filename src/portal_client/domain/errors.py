"""Errors raised by the request client"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Where a failed logical call broke down"""

    TRANSPORT = "transport"  # No response received
    TIMEOUT = "timeout"  # Attempt aborted after its deadline
    HTTP = "http"  # Server answered with a non-2xx status


class ApiRequestError(Exception):
    """A logical call failed.

    Attributes:
        message: Human-readable message, safe to show to the user
        kind: Failure classification
        url: URL of the failed request
        status_code: HTTP status (only for ErrorKind.HTTP)
        payload: Decoded error body, if the server sent JSON
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.url = url
        self.status_code = status_code
        self.payload = payload

    @property
    def is_timeout(self) -> bool:
        return self.kind == ErrorKind.TIMEOUT
