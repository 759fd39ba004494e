"""Tests for ApiClient against a real local HTTP server"""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from portal_client.domain.config import ApiConfig, RetryConfig
from portal_client.domain.errors import ApiRequestError, ErrorKind
from portal_client.infrastructure.http_client import ApiClient
from portal_client.infrastructure.retry import RetryPolicy
from portal_client.infrastructure.transport import Transport

NOTE_TEXT = "Fixed naïve bug — 名前"


class PortalHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path == "/slow":
            body = b"abcdefgh"
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            try:
                # Every byte lands well inside the socket timeout
                for i in range(len(body)):
                    self.wfile.write(body[i : i + 1])
                    self.wfile.flush()
                    time.sleep(0.25)
            except OSError:
                pass
            return

        body = NOTE_TEXT.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def server_url():
    server = ThreadingHTTPServer(("127.0.0.1", 0), PortalHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def client(server_url):
    session = requests.Session()
    session.trust_env = False
    api_client = ApiClient(
        api_config=ApiConfig(base_url=server_url),
        transport=Transport(session=session),
        retry_policy=RetryPolicy(RetryConfig(max_attempts=1)),
    )
    yield api_client
    api_client.close()


def test_slow_body_times_out_at_attempt_deadline(client):
    start = time.monotonic()

    with pytest.raises(ApiRequestError) as exc_info:
        client.get("/slow", timeout=0.5)

    elapsed = time.monotonic() - start
    assert exc_info.value.kind == ErrorKind.TIMEOUT
    assert exc_info.value.is_timeout
    assert elapsed < 1.5


def test_body_within_deadline_is_returned(client):
    assert client.get("/slow", timeout=5) == "abcdefgh"


def test_text_body_without_charset_decoded_as_utf8(client):
    assert client.get("/note") == NOTE_TEXT
