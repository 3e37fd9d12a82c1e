"""Audit package: dirty tracking, manual log building and event logging."""

from financial_plan.audit.logger import PlanEventLogger, configure_logging
from financial_plan.audit.tracker import DirtyTracker, build_audit_log, dirty_key

__all__ = [
    "DirtyTracker",
    "PlanEventLogger",
    "build_audit_log",
    "configure_logging",
    "dirty_key",
]
