"""Tests for dataset validation."""

from financial_plan.models import RawMonthValue, RawPlanRow
from financial_plan.overlay import OverrideMap
from financial_plan.validation import DatasetValidator

from conftest import CAT_FISSI


def _row(macro, detail, *labels):
    return RawPlanRow(
        macro_category=macro,
        detail=detail,
        months=[RawMonthValue(month=label, consuntivo=1) for label in labels],
    )


class TestDatasetValidator:
    """Tests for DatasetValidator."""

    def test_clean_dataset(self, raw_rows, catalog):
        """Test the sample dataset has no issues."""
        report = DatasetValidator().validate(raw_rows, catalog)
        assert report.rows_checked == 4
        assert report.issues == []

    def test_unparseable_month(self, catalog):
        """Test bad month labels are reported as warnings."""
        report = DatasetValidator().validate([_row("COSTI FISSI", "Affitto", "GENNAIO 2025", "13/2025")], catalog)
        issues = report.issues_of_type("unparseable_month")
        assert len(issues) == 1
        assert issues[0].severity == "warning"
        assert issues[0].field == "rows[0].months[1].month"

    def test_unclassified_reported_once(self, catalog):
        """Test an unknown causale is reported once however often it appears."""
        rows = [
            _row("COSTI FISSI", "Cancelleria", "GENNAIO 2025"),
            _row("COSTI FISSI", "cancelleria", "FEBBRAIO 2025"),
        ]
        report = DatasetValidator().validate(rows, catalog)
        issues = report.issues_of_type("unclassified")
        assert len(issues) == 1
        assert issues[0].severity == "info"
        assert "Altro" in issues[0].message

    def test_duplicate_cell(self, catalog):
        """Test a repeated cell is flagged as resolved by the later row."""
        rows = [
            _row("COSTI FISSI", "Affitto", "GENNAIO 2025"),
            _row("COSTI FISSI", "Affitto", "GENNAIO 2025", "FEBBRAIO 2025"),
        ]
        report = DatasetValidator().validate(rows, catalog)
        issues = report.issues_of_type("duplicate_cell")
        assert len(issues) == 1
        assert issues[0].field == "rows[1].months[0]"
        assert report.warning_count == 1

    def test_overrides(self, raw_rows, catalog):
        """Test orphaned triples and malformed month keys in the overlay."""
        preventivo = OverrideMap.from_dict({
            "COSTI FISSI": {
                CAT_FISSI: {"Affitto": {"2025-01": 1.0, "2025-1x": 2.0}},
                "Vecchia categoria": {"Affitto": {"2025-02": 3.0, "2025-03": 4.0}},
            },
        })
        report = DatasetValidator().validate(raw_rows, catalog, preventivo=preventivo)
        assert report.overrides_checked == 4
        assert len(report.issues_of_type("malformed_month_key")) == 1
        orphans = report.issues_of_type("orphaned_override")
        assert len(orphans) == 1
        assert orphans[0].field.startswith("preventivoOverrides[COSTI FISSI][Vecchia categoria]")
        assert not report.has_errors

    def test_summary(self, catalog):
        """Test the summary lists issue types by severity."""
        validator = DatasetValidator()
        report = validator.validate([_row("COSTI FISSI", "Cancelleria", "???")], catalog)
        summary = validator.get_summary(report)
        assert "[warning] unparseable_month: 1" in summary
        assert "[info] unclassified: 1" in summary
        assert summary.index("[warning]") < summary.index("[info]")

    def test_summary_clean(self, raw_rows, catalog):
        """Test a clean report says so."""
        validator = DatasetValidator()
        assert "passed" in validator.get_summary(validator.validate(raw_rows, catalog))
