"""Configuration models with Pydantic validation."""

from portal_client.domain.config.api import ApiConfig
from portal_client.domain.config.app import AppConfig
from portal_client.domain.config.diagnostics import DiagnosticsConfig
from portal_client.domain.config.retry import RetryConfig

__all__ = [
    "AppConfig",
    "ApiConfig",
    "RetryConfig",
    "DiagnosticsConfig",
]
