"""Hierarchy building package."""

from financial_plan.hierarchy.builder import (
    DetailAccumulator,
    assemble_year,
    build_plan_data,
    compute_totals,
    resolve_month_values,
)
from financial_plan.hierarchy.months import (
    MONTH_NAMES,
    MONTH_SHORT,
    parse_plan_month_label,
    parse_stats_month_label,
    short_month_label,
)

__all__ = [
    "DetailAccumulator",
    "MONTH_NAMES",
    "MONTH_SHORT",
    "assemble_year",
    "build_plan_data",
    "compute_totals",
    "parse_plan_month_label",
    "parse_stats_month_label",
    "resolve_month_values",
    "short_month_label",
]
