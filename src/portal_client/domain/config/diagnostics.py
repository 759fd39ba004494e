"""Diagnostics configuration model."""

from pydantic import BaseModel, Field


class DiagnosticsConfig(BaseModel):
    """Configuration for the diagnostics battery."""

    health_path: str = "/api/ping"
    login_path: str = "/api/auth/login"
    timeout: float = Field(8.0, gt=0.0, le=60.0)
