"""Domain models"""

from portal_client.domain.models.diagnostic_result import DiagnosticResult
from portal_client.domain.models.request import AttemptState, RequestDescriptor

__all__ = ["AttemptState", "DiagnosticResult", "RequestDescriptor"]
