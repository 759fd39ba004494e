"""Application startup: builds the client stack from configuration"""

import logging
from typing import Optional

from portal_client.domain.config import AppConfig
from portal_client.infrastructure.diagnostics import NetworkDiagnostics
from portal_client.infrastructure.http_client import ApiClient
from portal_client.infrastructure.retry import RetryPolicy
from portal_client.infrastructure.transport import Transport

logger = logging.getLogger(__name__)


def create_api_client(config: AppConfig, transport: Optional[Transport] = None) -> ApiClient:
    """Create the API client owned by the application

    Args:
        config: Validated application configuration
        transport: Transport to use (a new one if None)

    Returns:
        ApiClient instance
    """
    transport = transport or Transport()
    transport.is_intact()

    api_config = config.api
    client = ApiClient(
        api_config=api_config,
        transport=transport,
        retry_policy=RetryPolicy(config.retry),
    )
    logger.debug(
        f"API configuration: base_url={client.base_url!r}, mode={api_config.mode}, "
        f"origin={api_config.origin}"
    )
    return client


def create_diagnostics(config: AppConfig, client: ApiClient) -> NetworkDiagnostics:
    return NetworkDiagnostics(client, config.diagnostics)
