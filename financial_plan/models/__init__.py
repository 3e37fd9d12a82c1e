"""
Data Models Package

This package contains all Pydantic models used by the financial plan engine.
All data flowing through the engine must conform to these schemas.
"""

from financial_plan.models.plan import (
    MONTHS_PER_YEAR,
    CausaleCategory,
    CausaleGroup,
    DetailRow,
    EditMode,
    MacroBlock,
    MacroTotals,
    MonthValue,
    RawMonthValue,
    RawPlanRow,
    StatsRow,
    Track,
    YearData,
    build_month_key,
    normalize_label,
    parse_month_key,
)
from financial_plan.models.audit import (
    AuditEntry,
    AuditEntryBuilder,
    PlanEventType,
)
from financial_plan.models.metrics import (
    BusinessPlanDraft,
    BusinessPlanTargets,
    Overview,
    OverviewPoint,
    ProfitBreakdown,
    YearMetrics,
)
from financial_plan.models.state import (
    PlanContext,
    PlanOverrides,
    PlanStatePayload,
    StatsOverride,
    StatsOverrides,
    WriteResult,
)
from financial_plan.models.validation import (
    ValidationIssue,
    ValidationReport,
)

__all__ = [
    # Plan models
    "MONTHS_PER_YEAR",
    "CausaleCategory",
    "CausaleGroup",
    "DetailRow",
    "EditMode",
    "MacroBlock",
    "MacroTotals",
    "MonthValue",
    "RawMonthValue",
    "RawPlanRow",
    "StatsRow",
    "Track",
    "YearData",
    "build_month_key",
    "normalize_label",
    "parse_month_key",
    # Audit models
    "AuditEntry",
    "AuditEntryBuilder",
    "PlanEventType",
    # Metric models
    "BusinessPlanDraft",
    "BusinessPlanTargets",
    "Overview",
    "OverviewPoint",
    "ProfitBreakdown",
    "YearMetrics",
    # State models
    "PlanContext",
    "PlanOverrides",
    "PlanStatePayload",
    "StatsOverride",
    "StatsOverrides",
    "WriteResult",
    # Validation models
    "ValidationIssue",
    "ValidationReport",
]
