from __future__ import annotations

import io
import json
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests

from portal_client.domain.config import ApiConfig, RetryConfig
from portal_client.infrastructure.http_client import ApiClient
from portal_client.infrastructure.retry import RetryPolicy
from portal_client.infrastructure.transport import Transport


@pytest.fixture(autouse=True)
def _clean_portal_env(monkeypatch):
    for name in ("PORTAL_API_BASE_URL", "PORTAL_MODE", "PORTAL_API_ORIGIN", "PORTAL_API_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def make_response(
    status_code: int,
    payload: Any = None,
    *,
    text: Optional[str] = None,
    content_type: str = "application/json",
    reason: Optional[str] = None,
    url: str = "http://example.test",
) -> requests.Response:
    r = requests.Response()
    r.status_code = status_code
    r.url = url
    r.reason = reason
    if text is None:
        text = json.dumps(payload if payload is not None else {})
    r.headers["Content-Type"] = content_type
    # Unread body, decoded the way requests would pick the charset
    r.raw = io.BytesIO(text.encode("utf-8"))
    r.encoding = requests.utils.get_encoding_from_headers(r.headers)
    return r


class FakeSend:
    """Stands in for the captured request primitive.

    Each item of ``outcomes`` is either a Response (returned) or an exception
    (raised). The last outcome repeats once the list is exhausted.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        index = min(len(self.calls), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_client(sleeps) -> Callable[..., ApiClient]:
    def _make(send: FakeSend, **api_kwargs) -> ApiClient:
        return ApiClient(
            api_config=ApiConfig(**api_kwargs),
            transport=Transport(send=send),
            retry_policy=RetryPolicy(RetryConfig(), sleep=sleeps.append),
        )

    return _make
