"""API client for the portal backend (requests + retry/backoff).

All outbound calls go through ApiClient.request, which resolves the URL,
applies default headers and the timeout, retries transport failures and
turns the response into a decoded value or an ApiRequestError.
"""

from __future__ import annotations

import json as jsonlib
import logging
import re
import time
from typing import Any, Dict, Iterator, Optional, Union
from urllib.parse import urljoin, urlsplit

import requests
import urllib3
from requests.structures import CaseInsensitiveDict

from portal_client.domain.config.api import ApiConfig
from portal_client.domain.errors import ApiRequestError, ErrorKind
from portal_client.domain.models.request import RequestDescriptor
from portal_client.infrastructure.retry import RetryPolicy
from portal_client.infrastructure.transport import Transport

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1", "0.0.0.0")

DEFAULT_HEADERS = {"Content-Type": "application/json"}
SENSITIVE_HEADERS = ("authorization", "proxy-authorization", "cookie")

_BODY_CHUNK_SIZE = 8192


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of headers safe to write to logs"""
    return {
        name: "***" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


def _iter_body(response: requests.Response) -> Iterator[bytes]:
    """Yield body chunks as they arrive from the socket"""
    raw = response.raw
    if isinstance(raw, urllib3.HTTPResponse) and hasattr(raw, "read1"):
        while True:
            chunk = raw.read1(_BODY_CHUNK_SIZE, decode_content=True)
            if not chunk:
                return
            yield chunk
    else:
        yield from response.iter_content(_BODY_CHUNK_SIZE)


def _check_deadline(deadline: float, descriptor: RequestDescriptor, response: requests.Response) -> None:
    if time.monotonic() > deadline:
        raise requests.exceptions.ReadTimeout(
            f"Attempt exceeded {descriptor.timeout:g}s deadline: {descriptor.url}",
            response=response,
        )


def has_scheme(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


def is_local_url(url: str) -> bool:
    """Check if URL points at a local development server"""
    host = urlsplit(url).hostname or ""
    return host in LOCAL_HOSTS


def status_line(response: requests.Response) -> str:
    if response.reason:
        return f"HTTP {response.status_code}: {response.reason}"
    return f"HTTP {response.status_code}"


def _is_json(response: requests.Response) -> bool:
    content_type = response.headers.get("Content-Type", "")
    return "application/json" in content_type.lower()


def _error_message(response: requests.Response) -> tuple[str, Any]:
    """Extract a human-readable message from an error response

    Returns:
        (message, decoded payload or None)
    """
    try:
        payload = response.json()
    except ValueError:
        return status_line(response), None

    if isinstance(payload, dict):
        message = payload.get("error") or payload.get("message")
        if isinstance(message, str) and message:
            return message, payload
    return status_line(response), payload


class ApiClient:
    """Client for the portal REST API"""

    def __init__(
        self,
        api_config: Optional[ApiConfig] = None,
        transport: Optional[Transport] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize API client

        Args:
            api_config: Base URL, mode, origin and timeout
            transport: Transport to send attempts through (new one if None)
            retry_policy: Retry policy (3 attempts, linear backoff if None)
        """
        self.api_config = api_config or ApiConfig()
        self.transport = transport or Transport()
        self.retry_policy = retry_policy or RetryPolicy()
        self.base_url = self.api_config.resolved_base_url

    def resolve_url(self, path: str) -> str:
        """Resolve an endpoint path against the base URL

        Absolute URLs are returned verbatim. With an empty base URL the result
        is a same-origin relative URL with exactly one leading slash.
        """
        if has_scheme(path):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def absolute_url(self, path: str) -> str:
        """URL the request is actually sent to"""
        url = self.resolve_url(path)
        if has_scheme(url):
            return url
        return urljoin(self.api_config.origin, url)

    def build_request(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> RequestDescriptor:
        merged = CaseInsensitiveDict(DEFAULT_HEADERS)
        if headers:
            merged.update(headers)
        if json is not None:
            body = jsonlib.dumps(json)
        return RequestDescriptor(
            method=method,
            url=self.absolute_url(path),
            headers=dict(merged),
            body=body,
            timeout=timeout or self.api_config.timeout,
        )

    def request(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Execute one logical call

        Args:
            path: Endpoint path or absolute URL
            method: HTTP method
            headers: Extra headers (override defaults)
            body: Pre-serialized request body
            json: Payload to serialize as JSON (takes precedence over body)
            timeout: Per-attempt timeout in seconds

        Returns:
            Decoded JSON body, or text for non-JSON responses

        Raises:
            ApiRequestError: On transport failure, timeout or non-2xx status
        """
        descriptor = self.build_request(path, method, headers, body, json, timeout)

        if not self.api_config.is_production:
            logger.debug(
                f"API request: {descriptor.method} {path} -> {descriptor.url} "
                f"(base_url={self.base_url!r})"
            )

        try:
            response = self.retry_policy.call(lambda: self._fetch(descriptor))
        except requests.exceptions.RequestException as e:
            error = self._classify(e, descriptor)
            logger.error(f"API request failed: {error.message}")
            logger.error(
                f"Request details: {descriptor.method} {descriptor.url} "
                f"headers={redact_headers(descriptor.headers)}"
            )
            raise error from e

        return self._handle_response(response, descriptor)

    def _fetch(self, descriptor: RequestDescriptor) -> requests.Response:
        """Send one attempt and read its body before the attempt deadline

        The socket timeout only bounds each individual read, so a body that
        trickles in is also checked against a wall-clock deadline.

        Raises:
            requests.exceptions.ReadTimeout: If the deadline passes first
        """
        deadline = time.monotonic() + descriptor.timeout
        response = self.transport.raw_fetch(descriptor, stream=True)
        try:
            chunks = []
            for chunk in _iter_body(response):
                _check_deadline(deadline, descriptor, response)
                chunks.append(chunk)
            _check_deadline(deadline, descriptor, response)
            # Same attributes requests fills when it reads the body itself
            response._content = b"".join(chunks)
            response._content_consumed = True
        finally:
            response.close()
        return response

    def _classify(
        self, exc: requests.exceptions.RequestException, descriptor: RequestDescriptor
    ) -> ApiRequestError:
        """Turn a transport exception into a typed ApiRequestError"""
        url = descriptor.url
        if isinstance(exc, requests.exceptions.Timeout):
            return ApiRequestError(
                f"Request timed out after {descriptor.timeout:g}s: {url}",
                kind=ErrorKind.TIMEOUT,
                url=url,
            )
        if isinstance(exc, requests.exceptions.ConnectionError):
            if is_local_url(url):
                message = (
                    "Network error: Unable to connect to local server. "
                    f"Please ensure the dev server is running at {self.api_config.origin}."
                )
            else:
                message = (
                    "Network error: Unable to connect to the server. "
                    "Please check your internet connection."
                )
            return ApiRequestError(message, kind=ErrorKind.TRANSPORT, url=url)
        return ApiRequestError(
            f"Network error: Request blocked or server unavailable ({exc})",
            kind=ErrorKind.TRANSPORT,
            url=url,
        )

    def _handle_response(self, response: requests.Response, descriptor: RequestDescriptor) -> Any:
        if not 200 <= response.status_code < 300:
            message, payload = _error_message(response)
            logger.debug(f"API error response {response.status_code} from {descriptor.url}: {message}")
            raise ApiRequestError(
                message,
                kind=ErrorKind.HTTP,
                url=descriptor.url,
                status_code=response.status_code,
                payload=payload,
            )

        if "charset" not in response.headers.get("Content-Type", "").lower():
            # requests falls back to ISO-8859-1 for text/*; the API speaks UTF-8
            response.encoding = "utf-8"

        if _is_json(response):
            try:
                return response.json()
            except ValueError as e:
                logger.warning(f"Response from {descriptor.url} declared JSON but could not be decoded: {e}")
        return response.text

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request(path, "GET", **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request(path, "POST", **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request(path, "PUT", **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Any:
        return self.request(path, "PATCH", **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request(path, "DELETE", **kwargs)

    def close(self) -> None:
        self.transport.close()
