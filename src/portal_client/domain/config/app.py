"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from portal_client.domain.config.api import ApiConfig
from portal_client.domain.config.diagnostics import DiagnosticsConfig
from portal_client.domain.config.retry import RetryConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        api: Backend API configuration
        retry: Retry logic configuration
        diagnostics: Diagnostics battery configuration
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "api": {
                    "base_url": None,
                    "mode": "development",
                    "origin": "http://localhost:8080",
                    "timeout": 10.0,
                },
                "retry": {
                    "max_attempts": 3,
                    "initial_delay": 1.0,
                },
                "diagnostics": {
                    "health_path": "/api/ping",
                    "login_path": "/api/auth/login",
                    "timeout": 8.0,
                },
            }
        },
    )
