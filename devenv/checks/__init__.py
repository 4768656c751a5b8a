"""Host and configuration checks."""

from .host import HostCheckEntry, HostCheckReport, HostCheckStatus, check_host_deps
from .validator import RECOMMENDATIONS, CheckResult, ConfigValidator, ValidationReport

__all__ = [
    "CheckResult",
    "ConfigValidator",
    "HostCheckEntry",
    "HostCheckReport",
    "HostCheckStatus",
    "RECOMMENDATIONS",
    "ValidationReport",
    "check_host_deps",
]
