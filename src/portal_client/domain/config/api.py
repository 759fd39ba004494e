"""API endpoint configuration model."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

PRODUCTION_BASE_URL = "https://your-render-app.onrender.com"


class ApiConfig(BaseModel):
    """Configuration for the backend API.

    Attributes:
        base_url: Origin prefix for relative paths (None = derive from mode)
        mode: Deployment profile (development allows same-origin relative URLs)
        origin: Where same-origin relative URLs are sent
        timeout: Per-attempt timeout in seconds
    """

    base_url: Optional[str] = None
    mode: Literal["development", "production"] = "development"
    origin: str = "http://localhost:8080"
    timeout: float = Field(10.0, gt=0.0, le=60.0)

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @property
    def resolved_base_url(self) -> str:
        """Base URL after applying the mode default ("" means relative URLs)"""
        if self.base_url:
            return self.base_url
        return PRODUCTION_BASE_URL if self.is_production else ""
