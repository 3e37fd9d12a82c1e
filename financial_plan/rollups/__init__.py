"""Roll-up calculation package."""

from financial_plan.rollups.calculator import (
    COSTI_FISSI,
    COSTI_VARIABILI,
    INCASSATO,
    build_overview,
    business_plan_from_draft,
    business_plan_from_metrics,
    calc_ratios,
    category_subtotals,
    compute_year_metrics,
    derive_profit,
    distribute_annual,
    fixed_cost_percent,
    percent_of,
    round2,
    totals,
    year_total,
)

__all__ = [
    "COSTI_FISSI",
    "COSTI_VARIABILI",
    "INCASSATO",
    "build_overview",
    "business_plan_from_draft",
    "business_plan_from_metrics",
    "calc_ratios",
    "category_subtotals",
    "compute_year_metrics",
    "derive_profit",
    "distribute_annual",
    "fixed_cost_percent",
    "percent_of",
    "round2",
    "totals",
    "year_total",
]
