"""
Hierarchy Builder

Folds raw per-month rows into year -> macro -> (category, causale) ->
12 month slots.

DESIGN DECISIONS:
1. Rows whose month label can't be parsed are skipped and logged as a
   data-quality signal. The build always continues.
2. Two causali mapped to the same category stay distinct detail rows.
   Repeated occurrences of the same (macro, category, causale) fold into
   one 12-slot array, and at the same month slot the LAST row wins:
   values are replaced, never summed. Well-formed input carries each
   causale once per month, so a collision means duplicated source data.
3. A missing preventivo defaults to the row's consuntivo (or 0). The
   dataset is allowed to carry actuals without a plan figure, and that
   default flows into every downstream roll-up.
4. The result is frozen. To "update" it, build it again.
"""

from typing import Iterable, Optional, Union

import structlog

from financial_plan.catalog.resolver import FALLBACK_CATEGORY, CatalogIndex
from financial_plan.hierarchy.months import parse_plan_month_label
from financial_plan.models.audit import PlanEventType
from financial_plan.models.plan import (
    MONTHS_PER_YEAR,
    CausaleGroup,
    DetailRow,
    MacroBlock,
    MacroTotals,
    MonthValue,
    RawMonthValue,
    RawPlanRow,
    Track,
    YearData,
    normalize_label,
)


logger = structlog.get_logger(__name__)


def resolve_month_values(month: RawMonthValue) -> tuple[float, float]:
    """
    Apply the default-propagation rule to one raw month.

    Returns (preventivo, consuntivo).
    """
    consuntivo = month.consuntivo if month.consuntivo is not None else 0.0
    if month.preventivo is not None:
        preventivo = month.preventivo
    elif month.consuntivo is not None:
        preventivo = month.consuntivo
    else:
        preventivo = 0.0
    return preventivo, consuntivo


class DetailAccumulator:
    """Mutable 12-slot buffer used only while building a YearData."""

    def __init__(self, macro: str, category: str, detail: str):
        self.macro = macro
        self.category = category
        self.detail = detail
        self.preventivo = [0.0] * MONTHS_PER_YEAR
        self.consuntivo = [0.0] * MONTHS_PER_YEAR

    @classmethod
    def from_detail(cls, row: DetailRow) -> "DetailAccumulator":
        entry = cls(row.macro, row.category, row.detail)
        entry.preventivo = row.values(Track.PREVENTIVO)
        entry.consuntivo = row.values(Track.CONSUNTIVO)
        return entry

    def set(self, track: Track, month_index: int, value: float) -> None:
        if track == Track.PREVENTIVO:
            self.preventivo[month_index] = value
        else:
            self.consuntivo[month_index] = value

    def freeze(self) -> DetailRow:
        return DetailRow(
            macro=self.macro,
            category=self.category,
            detail=self.detail,
            months=tuple(
                MonthValue(
                    month_index=idx,
                    preventivo=self.preventivo[idx],
                    consuntivo=self.consuntivo[idx],
                )
                for idx in range(MONTHS_PER_YEAR)
            ),
        )


def compute_totals(details: Iterable[DetailRow]) -> MacroTotals:
    """Elementwise monthly sum of detail rows, both tracks."""
    consuntivo = [0.0] * MONTHS_PER_YEAR
    preventivo = [0.0] * MONTHS_PER_YEAR
    for detail in details:
        for month in detail.months:
            consuntivo[month.month_index] += month.consuntivo
            preventivo[month.month_index] += month.preventivo
    return MacroTotals(consuntivo=tuple(consuntivo), preventivo=tuple(preventivo))


def assemble_year(year: int, macros: Iterable[MacroBlock]) -> YearData:
    """Wrap macro blocks into a YearData with freshly derived totals."""
    blocks = tuple(macros)
    return YearData(
        year=year,
        macros=blocks,
        totals={block.macro: compute_totals(block.details) for block in blocks},
    )


def build_plan_data(
    rows: Iterable[RawPlanRow],
    catalog: Union[CatalogIndex, Iterable[CausaleGroup]],
    year_filter: Optional[int] = None,
    fallback_category: str = FALLBACK_CATEGORY,
) -> dict[int, YearData]:
    """
    Build the per-year hierarchy from raw rows.

    Args:
        rows: Raw source rows
        catalog: Causali catalog (or a prebuilt index over it)
        year_filter: If set, only this year is built
        fallback_category: Category for causali missing from the catalog

    Returns:
        Map of year -> YearData, ordered by year
    """
    index = catalog if isinstance(catalog, CatalogIndex) else CatalogIndex(catalog)

    # year -> normalized macro -> (category, detail) -> accumulator
    year_map: dict[int, dict[str, dict[tuple[str, str], DetailAccumulator]]] = {}
    macro_names: dict[str, str] = {}
    skipped = 0

    for row in rows:
        meta = index.classify(row.detail, row.macro_category, fallback_category)
        macro_key = normalize_label(meta.macro)
        macro_names.setdefault(macro_key, meta.macro)

        for month in row.months:
            parsed = parse_plan_month_label(month.month)
            if parsed is None:
                skipped += 1
                logger.warning(
                    PlanEventType.ROW_SKIPPED.value,
                    reason="unparseable_month_label",
                    month_label=month.month,
                    detail=row.detail,
                    macro=row.macro_category,
                )
                continue

            year, month_index = parsed
            if year_filter is not None and year != year_filter:
                continue

            detail_map = year_map.setdefault(year, {}).setdefault(macro_key, {})
            detail_key = (meta.category, row.detail)
            entry = detail_map.get(detail_key)
            if entry is None:
                entry = DetailAccumulator(macro_names[macro_key], meta.category, row.detail)
                detail_map[detail_key] = entry

            # Last write wins per month slot
            preventivo, consuntivo = resolve_month_values(month)
            entry.preventivo[month_index] = preventivo
            entry.consuntivo[month_index] = consuntivo

    plan_by_year: dict[int, YearData] = {}
    for year in sorted(year_map):
        blocks = [
            MacroBlock(
                macro=macro_names[macro_key],
                details=tuple(entry.freeze() for entry in detail_map.values()),
            )
            for macro_key, detail_map in year_map[year].items()
        ]
        plan_by_year[year] = assemble_year(year, blocks)

    logger.debug(
        PlanEventType.PLAN_REBUILT.value,
        years=list(plan_by_year),
        skipped_months=skipped,
    )
    return plan_by_year
