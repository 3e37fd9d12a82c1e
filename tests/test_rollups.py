"""Tests for the rollup calculator."""

import pytest

from financial_plan.hierarchy import build_plan_data
from financial_plan.models import BusinessPlanDraft, Track
from financial_plan.rollups import (
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

from conftest import CAT_FISSI


@pytest.fixture
def plan(raw_rows, catalog):
    return build_plan_data(raw_rows, catalog)


class TestTotals:
    """Tests for macro totals."""

    def test_monthly_totals(self, plan):
        """Test monthly totals of a macro."""
        incassato = totals(plan[2025], "INCASSATO", Track.CONSUNTIVO)
        assert incassato[:2] == [4800, 5200]
        assert incassato[2:] == [0.0] * 10

    def test_missing_macro_or_year_is_zero(self, plan):
        """Test absent data reads as 12 zeros."""
        assert totals(plan[2024], "COSTI VARIABILI", Track.CONSUNTIVO) == [0.0] * 12
        assert totals(None, "INCASSATO", Track.CONSUNTIVO) == [0.0] * 12

    def test_year_total(self, plan):
        """Test annual sum per track."""
        assert year_total(plan[2025], "COSTI FISSI", Track.CONSUNTIVO) == 2150
        assert year_total(plan[2025], "COSTI FISSI", Track.PREVENTIVO) == 2200

    def test_category_subtotals(self, plan):
        """Test category subtotal sums its detail rows."""
        subtotal = category_subtotals(plan[2025], "COSTI FISSI", CAT_FISSI, Track.PREVENTIVO)
        assert subtotal[0] == 1200
        assert subtotal[1] == 1000


class TestProfit:
    """Tests for derived profit."""

    def test_derive_profit(self, plan):
        """Test profit = collected - fixed - variable, monthly and annual."""
        profit = derive_profit(plan[2025])
        assert profit.monthly[0] == 2450
        assert profit.monthly[1] == 4200
        assert profit.annual == 6650

    def test_derive_profit_preventivo(self, plan):
        """Test the planned track is used when asked for."""
        profit = derive_profit(plan[2025], Track.PREVENTIVO)
        assert profit.monthly[0] == 5000 - 1200 - 1500

    def test_profit_without_data(self):
        """Test an absent year has zero profit."""
        assert derive_profit(None).annual == 0

    def test_fixed_cost_percent(self, plan):
        """Test fixed costs as a share of collected cash."""
        assert fixed_cost_percent(plan[2025]) == pytest.approx(21.5)
        assert fixed_cost_percent(None) == 0


class TestRatios:
    """Tests for zero-guarded ratio helpers."""

    def test_percent_of_zero_base(self):
        """Test a zero base yields 0, not NaN or an error."""
        assert percent_of(10, 0) == 0

    def test_round2_half_up(self):
        """Test cents round half up."""
        assert round2(0.125) == 0.13
        assert round2(2.5) == 2.5

    def test_calc_ratios(self):
        """Test shares sum to 1."""
        assert calc_ratios([1, 3]) == [0.25, 0.75]

    def test_calc_ratios_zero_total_splits_evenly(self):
        """Test a zero total distributes equally."""
        assert calc_ratios([0, 0, 0, 0]) == [0.25] * 4
        assert calc_ratios([]) == []

    def test_distribute_annual(self):
        """Test an annual target spreads by weights."""
        assert distribute_annual(1200, [0] * 12) == [100.0] * 12
        assert distribute_annual(1000, [1, 1, 2, 0]) == [250.0, 250.0, 500.0, 0.0]


class TestYearMetrics:
    """Tests for year metrics and the business plan."""

    def test_compute_year_metrics(self, plan, stats_rows):
        """Test plan figures and stats revenue combine per year."""
        metrics = compute_year_metrics(plan, stats_rows)
        assert list(metrics) == [2024, 2025]

        m2025 = metrics[2025]
        assert m2025.fatturato_totale == 12500
        assert m2025.monthly_fatturato[:2] == [6000, 6500]
        assert m2025.incassato == 10000
        assert m2025.costi_fissi == 2150
        assert m2025.costi_variabili == 1200
        assert m2025.utile == 6650
        assert m2025.is_complete

        assert metrics[2024].fatturato_totale == 0
        assert metrics[2024].incassato == 4000

    def test_stats_only_year(self, plan):
        """Test a year present only in the stats still gets metrics."""
        from financial_plan.models import StatsRow
        metrics = compute_year_metrics(plan, [StatsRow(month="Mar. 23", fatturato_totale=50)])
        assert metrics[2023].fatturato_totale == 50
        assert metrics[2023].incassato == 0

    def test_business_plan_from_metrics(self, plan, stats_rows):
        """Test targets seeded from actuals with percentages."""
        metrics = compute_year_metrics(plan, stats_rows)
        targets = business_plan_from_metrics(metrics[2025], 2025, 2026)
        assert targets.fatturato_previsionale == 12500
        assert targets.incassato_percent == 80.0
        assert targets.costi_fissi_percent == 21.5
        assert targets.costi_variabili_percent == 12.0
        assert targets.utile_previsionale == 6650
        assert targets.utile_percent == 66.5

    def test_business_plan_without_metrics(self):
        """Test missing metrics give all-zero targets."""
        targets = business_plan_from_metrics(None, 2025, 2026)
        assert targets.fatturato_previsionale == 0
        assert targets.utile_percent == 0

    def test_business_plan_from_draft(self):
        """Test profit is derived from the draft, with a zero guard."""
        draft = BusinessPlanDraft(
            base_year=2025,
            target_year=2026,
            incassato_previsionale=1000,
            costi_fissi_previsionale=300,
            costi_variabili_previsionale=200,
        )
        targets = business_plan_from_draft(draft)
        assert targets.utile_previsionale == 500
        assert targets.utile_percent == 50.0

        empty = business_plan_from_draft(BusinessPlanDraft(base_year=2025, target_year=2026))
        assert empty.utile_percent == 0


class TestOverview:
    """Tests for the year overview."""

    def test_overview(self, plan):
        """Test annual totals and chart points."""
        overview = build_overview(plan[2025], 2025)
        assert overview.incassato == 10000
        assert overview.utile == 6650
        assert len(overview.points) == 12
        assert overview.points[0].month == "Gen 25"
        assert overview.points[0].utile == 2450
        assert overview.points[11].month == "Dic 25"

    def test_overview_of_empty_year(self):
        """Test an absent year still yields 12 zero points."""
        overview = build_overview(None, 2030)
        assert overview.utile == 0
        assert [p.incassato for p in overview.points] == [0.0] * 12
