"""
Rollup Calculator

Derives category subtotals, macro totals and year-level metrics purely by
summation over a YearData.

DESIGN DECISIONS:
1. Nothing here is cached. Overlay-aware figures come from running the
   same functions over an "effective" YearData that the session
   materializes from base + overlay on every call, so a roll-up can never
   go stale relative to an override.
2. Ratios never raise and never return NaN: a zero base yields 0.
3. Macro names are fixed semantic keys (INCASSATO, COSTI FISSI,
   COSTI VARIABILI) that the catalog must map into. They can be renamed
   through EngineSettings; every function takes them as parameters.
"""

import math
from typing import Iterable, Optional

from financial_plan.hierarchy.months import parse_stats_month_label, short_month_label
from financial_plan.models.metrics import (
    BusinessPlanDraft,
    BusinessPlanTargets,
    Overview,
    OverviewPoint,
    ProfitBreakdown,
    YearMetrics,
)
from financial_plan.models.plan import MONTHS_PER_YEAR, StatsRow, Track, YearData


INCASSATO = "INCASSATO"
COSTI_FISSI = "COSTI FISSI"
COSTI_VARIABILI = "COSTI VARIABILI"


def round2(value: float) -> float:
    """Round half up to cents."""
    return math.floor(value * 100 + 0.5) / 100


def percent_of(part: float, base: float) -> float:
    """part as a percentage of base; 0 when base is 0."""
    if base == 0:
        return 0.0
    return part / base * 100


def totals(year_data: Optional[YearData], macro: str, track: Track) -> list[float]:
    """Monthly totals of a macro for one track (12 zeros if absent)."""
    if year_data is None:
        return [0.0] * MONTHS_PER_YEAR
    macro_totals = year_data.totals_for(macro)
    if macro_totals is None:
        return [0.0] * MONTHS_PER_YEAR
    return list(macro_totals.values(track))


def year_total(year_data: Optional[YearData], macro: str, track: Track) -> float:
    return sum(totals(year_data, macro, track))


def category_subtotals(
    year_data: Optional[YearData],
    macro: str,
    category: str,
    track: Track,
) -> list[float]:
    """Monthly sum of the detail rows of one category."""
    result = [0.0] * MONTHS_PER_YEAR
    block = year_data.find_macro(macro) if year_data is not None else None
    if block is None:
        return result
    for detail in block.details_in(category):
        for month in detail.months:
            result[month.month_index] += month.value(track)
    return result


def derive_profit(
    year_data: Optional[YearData],
    track: Track = Track.CONSUNTIVO,
    income_macro: str = INCASSATO,
    fixed_costs_macro: str = COSTI_FISSI,
    variable_costs_macro: str = COSTI_VARIABILI,
) -> ProfitBreakdown:
    """
    Profit = collected - fixed costs - variable costs, monthly and annual.
    """
    incassato = totals(year_data, income_macro, track)
    costi_fissi = totals(year_data, fixed_costs_macro, track)
    costi_variabili = totals(year_data, variable_costs_macro, track)

    monthly = [
        incassato[idx] - costi_fissi[idx] - costi_variabili[idx]
        for idx in range(MONTHS_PER_YEAR)
    ]
    return ProfitBreakdown(monthly=monthly, annual=sum(monthly))


def fixed_cost_percent(
    year_data: Optional[YearData],
    track: Track = Track.CONSUNTIVO,
    income_macro: str = INCASSATO,
    fixed_costs_macro: str = COSTI_FISSI,
) -> float:
    """Fixed costs as a percentage of collected cash (0 when nothing was collected)."""
    return percent_of(
        year_total(year_data, fixed_costs_macro, track),
        year_total(year_data, income_macro, track),
    )


def calc_ratios(values: list[float]) -> list[float]:
    """
    Share of each value in the total.

    A zero total splits evenly, so distributing across an empty
    base year still covers every month.
    """
    if not values:
        return []
    total = sum(values)
    if total == 0:
        return [1 / len(values)] * len(values)
    return [value / total for value in values]


def distribute_annual(total: float, weights: list[float]) -> list[float]:
    """Spread an annual figure across months proportionally to weights."""
    return [round2(total * ratio) for ratio in calc_ratios(weights)]


# =============================================================================
# YEAR METRICS & BUSINESS PLAN
# =============================================================================

def compute_year_metrics(
    plan_by_year: dict[int, YearData],
    stats_rows: Iterable[StatsRow] = (),
    income_macro: str = INCASSATO,
    fixed_costs_macro: str = COSTI_FISSI,
    variable_costs_macro: str = COSTI_VARIABILI,
) -> dict[int, YearMetrics]:
    """
    Headline figures per year.

    Collected cash and costs come from the consuntivo track of the plan;
    revenue (fatturato) comes from the stats rows, which may cover years
    the plan doesn't.
    """
    metrics: dict[int, YearMetrics] = {}

    for year, year_data in plan_by_year.items():
        incassato = totals(year_data, income_macro, Track.CONSUNTIVO)
        costi_fissi = totals(year_data, fixed_costs_macro, Track.CONSUNTIVO)
        costi_variabili = totals(year_data, variable_costs_macro, Track.CONSUNTIVO)
        metrics[year] = YearMetrics(
            year=year,
            incassato=sum(incassato),
            monthly_incassato=incassato,
            costi_fissi=sum(costi_fissi),
            monthly_costi_fissi=costi_fissi,
            costi_variabili=sum(costi_variabili),
            monthly_costi_variabili=costi_variabili,
        )

    for row in stats_rows:
        parsed = parse_stats_month_label(row.month)
        if parsed is None:
            continue
        year, month_index = parsed
        entry = metrics.get(year)
        if entry is None:
            entry = YearMetrics(year=year)
            metrics[year] = entry
        fatturato = row.fatturato_totale or 0.0
        entry.fatturato_totale += fatturato
        entry.monthly_fatturato[month_index] += fatturato

    return dict(sorted(metrics.items()))


def business_plan_from_metrics(
    metrics: Optional[YearMetrics],
    base_year: int,
    target_year: int,
) -> BusinessPlanTargets:
    """
    Seed a business plan for target_year from the actuals of base_year.

    Without metrics every figure is 0.
    """
    if metrics is None:
        return BusinessPlanTargets(base_year=base_year, target_year=target_year)

    fatturato = metrics.fatturato_totale
    incassato = metrics.incassato
    costi_fissi = metrics.costi_fissi
    costi_variabili = metrics.costi_variabili
    utile = incassato - costi_fissi - costi_variabili

    return BusinessPlanTargets(
        base_year=base_year,
        target_year=target_year,
        fatturato_previsionale=round2(fatturato),
        incassato_percent=round2(percent_of(incassato, fatturato)),
        incassato_previsionale=round2(incassato),
        costi_fissi_percent=round2(percent_of(costi_fissi, incassato)),
        costi_fissi_previsionale=round2(costi_fissi),
        costi_variabili_percent=round2(percent_of(costi_variabili, incassato)),
        costi_variabili_previsionale=round2(costi_variabili),
        utile_previsionale=round2(utile),
        utile_percent=round2(percent_of(utile, incassato)),
    )


def business_plan_from_draft(draft: BusinessPlanDraft) -> BusinessPlanTargets:
    """Targets of a saved draft; profit is derived, never stored."""
    utile = (
        draft.incassato_previsionale
        - draft.costi_fissi_previsionale
        - draft.costi_variabili_previsionale
    )
    return BusinessPlanTargets(
        base_year=draft.base_year,
        target_year=draft.target_year,
        fatturato_increment=round2(draft.fatturato_increment),
        fatturato_previsionale=round2(draft.fatturato_previsionale),
        incassato_percent=round2(draft.incassato_percent),
        incassato_previsionale=round2(draft.incassato_previsionale),
        costi_fissi_percent=round2(draft.costi_fissi_percent),
        costi_fissi_previsionale=round2(draft.costi_fissi_previsionale),
        costi_variabili_percent=round2(draft.costi_variabili_percent),
        costi_variabili_previsionale=round2(draft.costi_variabili_previsionale),
        utile_previsionale=round2(utile),
        utile_percent=round2(percent_of(utile, draft.incassato_previsionale)),
    )


def build_overview(
    year_data: Optional[YearData],
    year: int,
    income_macro: str = INCASSATO,
    fixed_costs_macro: str = COSTI_FISSI,
    variable_costs_macro: str = COSTI_VARIABILI,
) -> Overview:
    """Annual consuntivo totals and the 12-point chart series of one year."""
    incassato = totals(year_data, income_macro, Track.CONSUNTIVO)
    costi_fissi = totals(year_data, fixed_costs_macro, Track.CONSUNTIVO)
    costi_variabili = totals(year_data, variable_costs_macro, Track.CONSUNTIVO)

    points = [
        OverviewPoint(
            month=short_month_label(year, idx),
            incassato=incassato[idx],
            costi_fissi=costi_fissi[idx],
            costi_variabili=costi_variabili[idx],
            utile=incassato[idx] - costi_fissi[idx] - costi_variabili[idx],
        )
        for idx in range(MONTHS_PER_YEAR)
    ]
    total_incassato = sum(incassato)
    total_fissi = sum(costi_fissi)
    total_variabili = sum(costi_variabili)
    return Overview(
        year=year,
        incassato=total_incassato,
        costi_fissi=total_fissi,
        costi_variabili=total_variabili,
        utile=total_incassato - total_fissi - total_variabili,
        points=points,
    )
