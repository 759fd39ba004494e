"""Network and API diagnostics.

Runs a fixed battery of troubleshooting checks against the backend. Checks
never raise: every failure is reported as an unsuccessful DiagnosticResult.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from portal_client.domain.config.diagnostics import DiagnosticsConfig
from portal_client.domain.models.diagnostic_result import DiagnosticResult
from portal_client.domain.models.request import RequestDescriptor
from portal_client.infrastructure.http_client import ApiClient, status_line

logger = logging.getLogger(__name__)

# Address only used for a route lookup; connect() on a UDP socket sends nothing.
_ROUTE_LOOKUP_ADDRESS = ("8.8.8.8", 53)


def detect_network_status() -> Dict[str, Any]:
    """Report local network conditions without sending any traffic"""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_ROUTE_LOOKUP_ADDRESS)
        online = True
    except OSError:
        online = False
    return {
        "online": online,
        "connection_type": "unknown",
        "downlink": "unknown",
        "rtt": "unknown",
        "user_agent": requests.utils.default_user_agent(),
    }


def _decode_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class NetworkDiagnostics:
    """Connectivity, configuration and CORS checks for the portal backend"""

    def __init__(
        self,
        client: ApiClient,
        config: Optional[DiagnosticsConfig] = None,
        network_status: Callable[[], Dict[str, Any]] = detect_network_status,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """Initialize diagnostics

        Args:
            client: API client providing configuration, URL resolution and transport
            config: Check endpoints and timeout
            network_status: Source of local network conditions
            clock: Monotonic clock in seconds
        """
        self.client = client
        self.config = config or DiagnosticsConfig()
        self._network_status = network_status
        self._clock = clock

    def run_all(self) -> List[DiagnosticResult]:
        """Run every check in order and collect the results"""
        checks = [
            self.test_basic_connectivity,
            self.test_configuration,
            self.test_cors,
            self.test_auth_endpoint,
            self.test_network_conditions,
        ]
        results = []
        for check in checks:
            result = check()
            logger.info(result.to_text())
            results.append(result)
        return results

    def _send(self, method: str, path: str, headers: Dict[str, str], body: Optional[str] = None):
        request = RequestDescriptor(
            method=method,
            url=self.client.absolute_url(path),
            headers=headers,
            body=body,
            timeout=self.config.timeout,
        )
        return self.client.transport.raw_fetch(request)

    def _elapsed_ms(self, start: float) -> float:
        return (self._clock() - start) * 1000

    def test_basic_connectivity(self) -> DiagnosticResult:
        name = "Basic Connectivity"
        start = self._clock()
        try:
            response = self._send(
                "GET", self.config.health_path, {"Content-Type": "application/json"}
            )
            duration = self._elapsed_ms(start)
            if 200 <= response.status_code < 300:
                return DiagnosticResult(
                    test=name,
                    success=True,
                    message=f"Connected successfully ({round(duration)}ms)",
                    duration_ms=duration,
                    details=_decode_body(response),
                )
            return DiagnosticResult(
                test=name,
                success=False,
                message=status_line(response),
                duration_ms=duration,
            )
        except Exception as e:
            return DiagnosticResult(
                test=name, success=False, message=str(e), duration_ms=self._elapsed_ms(start)
            )

    def test_configuration(self) -> DiagnosticResult:
        name = "Configuration"
        try:
            api_config = self.client.api_config
            base_url = api_config.resolved_base_url
            details = {
                "api_base_url": base_url or "relative URLs (development)",
                "mode": api_config.mode,
                "is_development": not api_config.is_production,
                "is_production": api_config.is_production,
                "env_var": os.getenv("PORTAL_API_BASE_URL"),
                "using_relative_urls": not base_url,
                "origin": api_config.origin,
            }
            valid = not api_config.is_production or (
                bool(base_url) and base_url.startswith(("http://", "https://"))
            )
            return DiagnosticResult(
                test=name,
                success=valid,
                message="Configuration looks good" if valid else "Invalid API configuration for production",
                details=details,
            )
        except Exception as e:
            return DiagnosticResult(test=name, success=False, message=str(e))

    def test_cors(self) -> DiagnosticResult:
        name = "CORS Preflight"
        start = self._clock()
        try:
            response = self._send(
                "OPTIONS",
                self.config.health_path,
                {
                    "Origin": self.client.api_config.origin,
                    "Access-Control-Request-Method": "GET",
                    "Access-Control-Request-Headers": "Content-Type",
                },
            )
            ok = 200 <= response.status_code < 300
            return DiagnosticResult(
                test=name,
                success=ok,
                message="CORS configured correctly" if ok else f"CORS issue: {response.status_code}",
                duration_ms=self._elapsed_ms(start),
                details={"status": response.status_code, "headers": dict(response.headers)},
            )
        except Exception as e:
            return DiagnosticResult(
                test=name, success=False, message=str(e), duration_ms=self._elapsed_ms(start)
            )

    def test_auth_endpoint(self) -> DiagnosticResult:
        name = "Auth Endpoint"
        start = self._clock()
        try:
            response = self._send(
                "POST",
                self.config.login_path,
                {"Content-Type": "application/json"},
                body=json.dumps({"email": "test", "password": "test"}),
            )
            # Rejected credentials still prove the endpoint is reachable
            reachable = response.status_code in (400, 401) or 200 <= response.status_code < 300
            return DiagnosticResult(
                test=name,
                success=reachable,
                message="Auth endpoint reachable" if reachable else f"Unexpected status: {response.status_code}",
                duration_ms=self._elapsed_ms(start),
                details={"status": response.status_code, "status_text": response.reason},
            )
        except Exception as e:
            return DiagnosticResult(
                test=name, success=False, message=str(e), duration_ms=self._elapsed_ms(start)
            )

    def test_network_conditions(self) -> DiagnosticResult:
        name = "Network Conditions"
        try:
            details = self._network_status()
            online = bool(details.get("online"))
            return DiagnosticResult(
                test=name,
                success=online,
                message="Network appears online" if online else "Network appears offline",
                details=details,
            )
        except Exception as e:
            return DiagnosticResult(test=name, success=False, message=str(e))
