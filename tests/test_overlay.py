"""Tests for the override overlay."""

import pytest

from financial_plan.hierarchy import build_plan_data
from financial_plan.models import RawMonthValue, RawPlanRow, Track
from financial_plan.overlay import OverrideMap, PlanOverlay
from financial_plan.rollups import derive_profit, totals

from conftest import CAT_FISSI


@pytest.fixture
def overlay(raw_rows, catalog):
    return PlanOverlay(build_plan_data(raw_rows, catalog))


class TestOverrideMap:
    """Tests for the persistent override map."""

    def test_with_value_leaves_original_untouched(self):
        """Test a write returns a new map and never mutates the old one."""
        empty = OverrideMap()
        one = empty.with_value("COSTI FISSI", CAT_FISSI, "Affitto", "2025-01", 900)
        assert len(empty) == 0
        assert one.get("COSTI FISSI", CAT_FISSI, "Affitto", "2025-01") == 900

    def test_untouched_branches_are_shared(self):
        """Test only the written path is copied."""
        base = (
            OverrideMap()
            .with_value("INCASSATO", "Incassato", "Incassato", "2025-01", 1)
            .with_value("COSTI FISSI", CAT_FISSI, "Affitto", "2025-01", 2)
        )
        updated = base.with_value("COSTI FISSI", CAT_FISSI, "Affitto", "2025-02", 3)
        assert updated._data["INCASSATO"] is base._data["INCASSATO"]
        assert updated._data["COSTI FISSI"] is not base._data["COSTI FISSI"]

    def test_delete_prunes_empty_branches(self):
        """Test removing the last cell removes the whole path."""
        one = OverrideMap().with_value("A", "B", "C", "2025-01", 5)
        assert one.with_value("A", "B", "C", "2025-01", None).to_dict() == {}

    def test_zero_is_a_value(self):
        """Test 0 is stored, not treated as a deletion."""
        zero = OverrideMap().with_value("A", "B", "C", "2025-01", 0)
        assert ("A", "B", "C", "2025-01") in zero
        assert zero.get("A", "B", "C", "2025-01") == 0

    def test_from_dict_copies_input(self):
        """Test loaded data is copied so later writes can't alias it."""
        raw = {"A": {"B": {"C": {"2025-01": 1.0}}}}
        overrides = OverrideMap.from_dict(raw)
        raw["A"]["B"]["C"]["2025-01"] = 99.0
        assert overrides.get("A", "B", "C", "2025-01") == 1.0

    def test_entries_for_year_and_years(self):
        """Test year filtering skips other years and malformed keys."""
        overrides = OverrideMap.from_dict({
            "A": {"B": {"C": {"2025-01": 1.0, "2024-12": 2.0, "bad": 3.0}}},
        })
        assert list(overrides.entries_for_year(2025)) == [("A", "B", "C", 0, 1.0)]
        assert overrides.years() == {2024, 2025}
        assert len(overrides) == 3


class TestPlanOverlay:
    """Tests for reads and writes over the base hierarchy."""

    def test_read_falls_back_to_base(self, overlay):
        """Test a cell without override reads the base value."""
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 1000

    def test_read_missing_cell_is_zero(self, overlay):
        """Test unknown rows and years read 0."""
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Utenze", 2025, 0) == 0
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2030, 0) == 0

    def test_write_then_read(self, overlay):
        """Test a written value wins over the base."""
        key = overlay.write(Track.PREVENTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, 900)
        assert key == "2025-01"
        assert overlay.read(Track.PREVENTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 900
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 1000

    def test_write_none_restores_base(self, overlay):
        """Test deleting an override brings the base value back."""
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, 0)
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 0
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, None)
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 1000

    def test_write_does_not_touch_base(self, overlay):
        """Test the base hierarchy is never mutated."""
        before = overlay.base[2025]
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, 1)
        assert overlay.base[2025] is before
        assert before.find_detail("COSTI FISSI", CAT_FISSI, "Affitto").months[0].consuntivo == 1000

    def test_write_rejects_bad_month(self, overlay):
        """Test month_index outside 0-11 is refused."""
        with pytest.raises(ValueError):
            overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 12, 1)

    def test_overrides_survive_rebase(self, overlay, raw_rows, catalog):
        """Test rebuilding the base keeps in-flight edits."""
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, 777)
        overlay.rebase(build_plan_data(raw_rows, catalog))
        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0) == 777


class TestEffectiveYear:
    """Tests for overlay-aware roll-ups."""

    def test_untouched_year_is_the_base(self, overlay):
        """Test no overrides means no rebuild."""
        assert overlay.effective_year(2024) is overlay.base[2024]

    def test_unknown_year(self, overlay):
        """Test a year without data or overrides is None."""
        assert overlay.effective_year(2030) is None

    def test_rollups_follow_overrides(self, overlay):
        """Test totals over the effective year agree with cell reads."""
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Affitto", 2025, 0, 900)
        effective = overlay.effective_year(2025)

        fissi = totals(effective, "COSTI FISSI", Track.CONSUNTIVO)
        assert fissi[0] == 900 + 150
        assert derive_profit(effective).monthly[0] == 4800 - 1050 - 1200

        for track in Track:
            for idx in range(12):
                expected = sum(
                    overlay.read(track, "COSTI FISSI", CAT_FISSI, detail, 2025, idx)
                    for detail in ("Affitto", "Enasarco")
                )
                assert totals(effective, "COSTI FISSI", track)[idx] == expected

    def test_orphan_override_becomes_row(self, overlay):
        """Test an override on a triple missing from the base still counts."""
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "Utenze", 2025, 3, 80)
        effective = overlay.effective_year(2025)
        assert effective.find_detail("COSTI FISSI", CAT_FISSI, "Utenze") is not None
        assert totals(effective, "COSTI FISSI", Track.CONSUNTIVO)[3] == 80

    def test_override_only_year(self, overlay):
        """Test overrides alone can materialize a year."""
        overlay.write(Track.PREVENTIVO, "INCASSATO", "Incassato", "Incassato", 2026, 0, 10)
        effective = overlay.effective_year(2026)
        assert totals(effective, "INCASSATO", Track.PREVENTIVO)[0] == 10

    def test_case_variant_rows_survive_unrelated_override(self, catalog):
        """Test rows differing only by case stay separate once a year is overridden."""
        rows = [
            RawPlanRow(
                macro_category="COSTI FISSI",
                detail=label,
                months=[RawMonthValue(month="GENNAIO 2025", consuntivo=value)],
            )
            for label, value in (("Affitto", 1000), ("AFFITTO", 500))
        ]
        overlay = PlanOverlay(build_plan_data(rows, catalog))
        base_total = totals(overlay.base[2025], "COSTI FISSI", Track.CONSUNTIVO)[0]
        assert base_total == 1500

        overlay.write(Track.CONSUNTIVO, "INCASSATO", "Incassato", "Incassato", 2025, 5, 1.0)
        effective = overlay.effective_year(2025)
        assert totals(effective, "COSTI FISSI", Track.CONSUNTIVO)[0] == base_total

    def test_override_lands_on_the_row_reads_resolve(self, catalog):
        """Test an override on case-variant labels replaces the first matching row only."""
        rows = [
            RawPlanRow(
                macro_category="COSTI FISSI",
                detail=label,
                months=[RawMonthValue(month="GENNAIO 2025", consuntivo=value)],
            )
            for label, value in (("Affitto", 1000), ("AFFITTO", 500))
        ]
        overlay = PlanOverlay(build_plan_data(rows, catalog))
        overlay.write(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "affitto", 2025, 0, 900)

        assert overlay.read(Track.CONSUNTIVO, "COSTI FISSI", CAT_FISSI, "affitto", 2025, 0) == 900
        effective = overlay.effective_year(2025)
        assert totals(effective, "COSTI FISSI", Track.CONSUNTIVO)[0] == 900 + 500
        assert len(effective.find_macro("COSTI FISSI").details) == 2
