"""Tests for the transport guard"""

from __future__ import annotations

import pytest
import requests
from requests.adapters import BaseAdapter

from conftest import FakeSend, make_response
from portal_client.domain.models.request import RequestDescriptor
from portal_client.infrastructure.transport import Transport


class RecordingAdapter(BaseAdapter):
    """Adapter answering every request locally"""

    def __init__(self):
        super().__init__()
        self.requests = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        response = make_response(200, {"pong": True}, url=request.url)
        response.request = request
        return response

    def close(self):
        pass


@pytest.fixture
def session_with_adapter():
    adapter = RecordingAdapter()
    session = requests.Session()
    session.mount("http://", adapter)
    return session, adapter


def test_raw_fetch_passes_descriptor_fields():
    send = FakeSend(make_response(200))
    transport = Transport(send=send)
    descriptor = RequestDescriptor(
        method="post",
        url="http://example.test/api/tickets",
        headers={"Content-Type": "application/json"},
        body='{"title": "Bug"}',
        timeout=5,
    )

    transport.raw_fetch(descriptor)

    assert send.calls == [
        {
            "method": "POST",
            "url": "http://example.test/api/tickets",
            "headers": {"Content-Type": "application/json"},
            "data": '{"title": "Bug"}',
            "timeout": 5,
            "stream": False,
        }
    ]


def test_raw_fetch_can_leave_body_unread():
    send = FakeSend(make_response(200))
    transport = Transport(send=send)

    transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test"), stream=True)

    assert send.calls[0]["stream"] is True


def test_raw_fetch_propagates_errors():
    error = requests.exceptions.ConnectionError("refused")
    transport = Transport(send=FakeSend(error))

    with pytest.raises(requests.exceptions.ConnectionError) as exc_info:
        transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test"))
    assert exc_info.value is error


def test_raw_fetch_sends_through_session(session_with_adapter):
    session, adapter = session_with_adapter
    transport = Transport(session=session)

    response = transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test/api/ping"))

    assert response.json() == {"pong": True}
    assert adapter.requests[0].url == "http://example.test/api/ping"


def test_raw_fetch_ignores_patched_session_request(monkeypatch, session_with_adapter):
    session, adapter = session_with_adapter
    transport = Transport(session=session)

    def patched(*args, **kwargs):
        raise AssertionError("patched request must not be used")

    monkeypatch.setattr(requests.Session, "request", patched)

    response = transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test/api/ping"))
    assert response.status_code == 200
    assert len(adapter.requests) == 1


def test_raw_fetch_ignores_patched_session_send(monkeypatch, session_with_adapter):
    session, adapter = session_with_adapter
    transport = Transport(session=session)

    def patched(*args, **kwargs):
        raise AssertionError("patched send must not be used")

    monkeypatch.setattr(requests.Session, "send", patched)

    response = transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test/api/ping"))
    assert response.json() == {"pong": True}
    assert len(adapter.requests) == 1


def test_adapter_level_patches_still_apply(monkeypatch, session_with_adapter):
    session, adapter = session_with_adapter
    transport = Transport(session=session)
    original = RecordingAdapter.send
    seen = []

    def wrapped(self, request, **kwargs):
        seen.append(request.url)
        return original(self, request, **kwargs)

    monkeypatch.setattr(RecordingAdapter, "send", wrapped)

    transport.raw_fetch(RequestDescriptor(method="GET", url="http://example.test/api/ping"))
    assert seen == ["http://example.test/api/ping"]


def test_is_intact(monkeypatch):
    assert Transport.is_intact() is True

    monkeypatch.setattr(requests.Session, "request", lambda *a, **k: None)
    assert Transport.is_intact() is False


def test_is_intact_detects_patched_send(monkeypatch):
    monkeypatch.setattr(requests.Session, "send", lambda *a, **k: None)
    assert Transport.is_intact() is False


def test_context_manager_closes_session():
    session = requests.Session()
    closed = {"n": 0}
    session.close = lambda: closed.__setitem__("n", closed["n"] + 1)

    with Transport(session=session):
        pass

    assert closed["n"] == 1


def test_descriptor_rejects_non_positive_timeout():
    with pytest.raises(ValueError):
        RequestDescriptor(method="GET", url="http://example.test", timeout=0)


def test_descriptor_timeout_ms():
    assert RequestDescriptor(method="GET", url="http://example.test", timeout=8).timeout_ms == 8000
