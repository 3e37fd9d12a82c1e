"""
Tests for the Financial Plan models

Test strategy:
1. Unit tests for individual components (models, pure functions)
2. Session tests over in-memory storage
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from financial_plan.models import (
    MONTHS_PER_YEAR,
    AuditEntry,
    AuditEntryBuilder,
    DetailRow,
    MonthValue,
    PlanContext,
    PlanStatePayload,
    RawPlanRow,
    StatsOverride,
    Track,
    ValidationIssue,
    ValidationReport,
    build_month_key,
    normalize_label,
    parse_month_key,
)


def _months(preventivo: float = 0.0, consuntivo: float = 0.0) -> tuple[MonthValue, ...]:
    return tuple(
        MonthValue(month_index=idx, preventivo=preventivo, consuntivo=consuntivo)
        for idx in range(MONTHS_PER_YEAR)
    )


class TestMonthKeys:
    """Tests for the "YYYY-MM" storage key."""

    def test_build_month_key_zero_pads(self):
        """Test month keys carry the zero-padded calendar month."""
        assert build_month_key(2025, 0) == "2025-01"
        assert build_month_key(2025, 11) == "2025-12"

    def test_parse_month_key(self):
        """Test keys parse back into (year, month_index)."""
        assert parse_month_key("2025-03") == (2025, 2)

    @pytest.mark.parametrize("key", ["2025-13", "2025-00", "2025", "abc-01", "2025-01-01"])
    def test_parse_month_key_rejects_malformed(self, key):
        """Test malformed keys yield None instead of raising."""
        assert parse_month_key(key) is None

    def test_normalize_label(self):
        """Test labels compare trimmed and upper-cased."""
        assert normalize_label("  Affitto ") == "AFFITTO"


class TestPlanModels:
    """Tests for hierarchy models."""

    def test_raw_row_accepts_camel_case(self):
        """Test raw rows parse the dataset's camelCase keys."""
        row = RawPlanRow.model_validate({
            "macroCategory": "COSTI FISSI",
            "detail": " Affitto ",
            "months": [{"month": "GENNAIO 2025", "preventivo": None, "consuntivo": 1000}],
        })
        assert row.macro_category == "COSTI FISSI"
        assert row.detail == "Affitto"
        assert row.months[0].preventivo is None

    def test_detail_row_requires_twelve_months(self):
        """Test a detail row with fewer than 12 slots is rejected."""
        with pytest.raises(ValidationError):
            DetailRow(
                macro="COSTI FISSI",
                category="Immobili",
                detail="Affitto",
                months=_months()[:11],
            )

    def test_detail_row_requires_ordered_months(self):
        """Test slot i must hold month_index i."""
        months = list(_months())
        months[0], months[1] = months[1], months[0]
        with pytest.raises(ValidationError):
            DetailRow(macro="X", category="Y", detail="Z", months=tuple(months))

    def test_detail_row_is_frozen(self):
        """Test detail rows can't be patched in place."""
        row = DetailRow(macro="X", category="Y", detail="Z", months=_months())
        with pytest.raises(ValidationError):
            row.detail = "W"

    def test_detail_row_values_per_track(self):
        """Test values() picks the requested track."""
        row = DetailRow(macro="X", category="Y", detail="Z", months=_months(2.0, 3.0))
        assert row.values(Track.PREVENTIVO) == [2.0] * 12
        assert row.values(Track.CONSUNTIVO) == [3.0] * 12

    def test_month_index_bounds(self):
        """Test month_index must be 0-11."""
        with pytest.raises(ValidationError):
            MonthValue(month_index=12)


class TestStateModels:
    """Tests for persisted state models."""

    def test_payload_serializes_with_storage_keys(self):
        """Test the payload uses the camelCase keys of the storage contract."""
        payload = PlanStatePayload(
            preventivo_overrides={"COSTI FISSI": {"Immobili": {"Affitto": {"2025-01": 900.0}}}},
        )
        data = payload.to_storage_dict()
        assert set(data) == {
            "preventivoOverrides",
            "consuntivoOverrides",
            "manualLog",
            "monthlyMetrics",
            "statsOverrides",
            "causaliCatalog",
            "causaliVersion",
        }
        assert data["preventivoOverrides"]["COSTI FISSI"]["Immobili"]["Affitto"]["2025-01"] == 900.0
        assert data["monthlyMetrics"] == []
        assert data["causaliVersion"] is None

    def test_payload_parses_storage_keys(self):
        """Test a stored dict parses back into a payload."""
        payload = PlanStatePayload.model_validate({
            "consuntivoOverrides": {"INCASSATO": {"Incassato": {"Incassato": {"2025-02": 0}}}},
            "statsOverrides": {"2025-02": {"fatturatoPrevisionale": 100}},
        })
        assert payload.consuntivo_overrides["INCASSATO"]["Incassato"]["Incassato"]["2025-02"] == 0
        assert payload.stats_overrides["2025-02"].fatturato_previsionale == 100
        assert payload.causali_catalog == []

    def test_stats_override_is_empty(self):
        """Test an override with no figures is empty."""
        assert StatsOverride().is_empty()
        assert not StatsOverride(utile_previsionale=0).is_empty()

    def test_context_storage_key(self):
        """Test company and location compose the storage key."""
        assert PlanContext(company_id="acme").storage_key == "acme"
        assert PlanContext(company_id="acme", location_id="milano").storage_key == "acme__milano"

    def test_context_requires_company(self):
        """Test an empty company id is rejected."""
        with pytest.raises(ValidationError):
            PlanContext(company_id="")

    @pytest.mark.parametrize("company_id", ["../x", "a/b", "a\\b", "..", "a__b"])
    def test_context_rejects_path_unsafe_ids(self, company_id):
        """Test ids that would escape the state directory or collide are rejected."""
        with pytest.raises(ValidationError):
            PlanContext(company_id=company_id)

    def test_context_rejects_path_unsafe_location(self):
        """Test the location id is checked too."""
        with pytest.raises(ValidationError):
            PlanContext(company_id="acme", location_id="../../etc")


class TestAuditModels:
    """Tests for audit entry models."""

    def test_builder_creates_entry(self):
        """Test AuditEntryBuilder fills every field from an override."""
        created = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
        entry = AuditEntryBuilder.from_override(
            "preventivo", "COSTI FISSI", "Immobili", "Affitto", 2025, 0, 900.0, created
        )
        assert entry.id == "preventivo-COSTI FISSI-Immobili-Affitto-2025-01"
        assert entry.year == 2025
        assert entry.month == 1
        assert entry.causale == "Affitto"
        assert entry.value == 900.0
        assert entry.created_at == created

    def test_entry_serializes_camel_case(self):
        """Test audit entries serialize with camelCase keys."""
        entry = AuditEntryBuilder.from_override(
            "consuntivo", "INCASSATO", "Incassato", "Incassato", 2025, 11, 10.0
        )
        data = entry.model_dump(by_alias=True)
        assert data["macroCategory"] == "INCASSATO"
        assert "createdAt" in data
        assert data["month"] == 12

    def test_entry_month_bounds(self):
        """Test month must be 1-12."""
        with pytest.raises(ValidationError):
            AuditEntry(
                id="x", year=2025, month=0, macro_category="A",
                category="B", causale="C", value=1.0,
            )

    def test_to_sheets_row_order(self):
        """Test the sheets row follows the documented column order."""
        entry = AuditEntryBuilder.from_override(
            "preventivo", "A", "B", "C", 2025, 4, 5.0
        )
        row = entry.to_sheets_row()
        assert row[0] == entry.id
        assert row[2:] == [2025, 5, "A", "B", "C", 5.0]


class TestValidationModels:
    """Tests for validation report models."""

    def test_report_counts(self):
        """Test severity helpers on the report."""
        report = ValidationReport(
            rows_checked=2,
            issues=[
                ValidationIssue(field="a", issue_type="unclassified", message="m", severity="info"),
                ValidationIssue(field="b", issue_type="duplicate_cell", message="m", severity="warning"),
            ],
        )
        assert not report.has_errors
        assert report.warning_count == 1
        assert len(report.issues_of_type("unclassified")) == 1

    def test_issue_severity_pattern(self):
        """Test unknown severities are rejected."""
        with pytest.raises(ValidationError):
            ValidationIssue(field="a", issue_type="x", message="m", severity="fatal")
