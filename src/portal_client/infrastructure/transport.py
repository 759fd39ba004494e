"""Transport guard around the requests primitives.

The unmodified ``requests.Session.request`` and ``requests.Session.send`` are
captured at import time, so instrumentation libraries that patch the
``Session`` class later cannot change what the client actually sends.
Patches applied below the session (``HTTPAdapter.send``, urllib3) are still
reached: requests dispatches to whatever adapter is mounted.
"""

from __future__ import annotations

import functools
import logging
from typing import Callable, Optional

import requests

from portal_client.domain.models.request import RequestDescriptor

logger = logging.getLogger(__name__)

_NATIVE_REQUEST = requests.Session.request
_NATIVE_SEND = requests.Session.send

SendFn = Callable[..., requests.Response]


class Transport:
    """Sends one attempt through the captured request primitive"""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        send: Optional[SendFn] = None,
    ):
        """Initialize transport

        Args:
            session: Session to send through (a new one is created if None)
            send: Replacement for the captured primitive (tests)
        """
        self.session = session or requests.Session()
        # Session.request dispatches through self.send; pin it on the instance
        self.session.send = functools.partial(_NATIVE_SEND, self.session)
        self._send: SendFn = send or functools.partial(_NATIVE_REQUEST, self.session)

    def raw_fetch(self, request: RequestDescriptor, stream: bool = False) -> requests.Response:
        """Send a single attempt. Exceptions propagate untouched.

        Args:
            request: Request to send
            stream: Leave the body unread on the returned response
        """
        return self._send(
            request.method,
            request.url,
            headers=request.headers,
            data=request.body,
            timeout=request.timeout,
            stream=stream,
        )

    @staticmethod
    def is_intact() -> bool:
        """Check that requests.Session was not patched after import"""
        intact = (
            requests.Session.request is _NATIVE_REQUEST
            and requests.Session.send is _NATIVE_SEND
        )
        if not intact:
            logger.warning(
                "requests.Session has been modified by another library. "
                "The client keeps using the original implementation."
            )
        return intact

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Transport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
