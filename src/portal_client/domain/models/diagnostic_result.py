"""DiagnosticResult model - outcome of a single diagnostics check"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class DiagnosticResult:
    """Result of one diagnostics check"""

    test: str  # Check label, e.g. "Basic Connectivity"
    success: bool
    message: str
    duration_ms: Optional[float] = None
    details: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_text(self) -> str:
        """Format result as a single console line"""
        status = "PASS" if self.success else "FAIL"
        timing = f" ({round(self.duration_ms)}ms)" if self.duration_ms is not None else ""
        return f"[{status}] {self.test}: {self.message}{timing}"
