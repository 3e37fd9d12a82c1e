"""
Dataset Validation

DESIGN DECISION: The engine degrades silently on imperfect data - rows with
unparseable months are skipped, unknown causali land in "Altro", duplicate
cells resolve last-write-wins. The validator walks the same input and
reports each of those degradations, so a data owner can see them.

Checks:
- ROWS: unparseable month labels, unclassified causali, duplicate cells
- OVERRIDES: malformed month keys, triples the catalog doesn't know

IMPORTANT: Validation NEVER fixes anything.
It reports issues for human review.
"""

from typing import Iterable, Optional

from financial_plan.catalog.resolver import FALLBACK_CATEGORY, CatalogIndex
from financial_plan.hierarchy.months import parse_plan_month_label
from financial_plan.models.plan import (
    CausaleGroup,
    RawPlanRow,
    Track,
    normalize_label,
    parse_month_key,
)
from financial_plan.models.validation import ValidationIssue, ValidationReport
from financial_plan.overlay.overrides import OverrideMap


class DatasetValidator:
    """
    Validates raw rows and override maps against a catalog.

    Stateless apart from the fallback category; one instance can check
    any number of datasets.
    """

    def __init__(self, fallback_category: str = FALLBACK_CATEGORY):
        self._fallback_category = fallback_category

    def _validate_rows(
        self,
        rows: list[RawPlanRow],
        index: CatalogIndex,
    ) -> list[ValidationIssue]:
        issues = []
        unclassified: set[str] = set()
        seen_cells: dict[tuple, int] = {}

        for row_idx, row in enumerate(rows):
            meta = index.classify(row.detail, row.macro_category, self._fallback_category)

            if not meta.from_catalog and normalize_label(row.detail) not in unclassified:
                unclassified.add(normalize_label(row.detail))
                issues.append(ValidationIssue(
                    field=f"rows[{row_idx}].detail",
                    issue_type="unclassified",
                    message=(
                        f"Causale '{row.detail}' is not in the catalog and will be "
                        f"filed under '{meta.macro} / {meta.category}'"
                    ),
                    severity="info",
                    suggested_fix="Add the causale to the catalog",
                ))

            for month_idx, month in enumerate(row.months):
                parsed = parse_plan_month_label(month.month)
                if parsed is None:
                    issues.append(ValidationIssue(
                        field=f"rows[{row_idx}].months[{month_idx}].month",
                        issue_type="unparseable_month",
                        message=f"Month label '{month.month}' can't be parsed; the value is skipped",
                        severity="warning",
                        suggested_fix="Use the form 'GENNAIO 2025'",
                    ))
                    continue

                cell = (
                    normalize_label(meta.macro),
                    meta.category,
                    row.detail,
                    parsed[0],
                    parsed[1],
                )
                if cell in seen_cells:
                    issues.append(ValidationIssue(
                        field=f"rows[{row_idx}].months[{month_idx}]",
                        issue_type="duplicate_cell",
                        message=(
                            f"'{row.detail}' {month.month} also appears in "
                            f"rows[{seen_cells[cell]}]; the later row wins"
                        ),
                        severity="warning",
                        suggested_fix="Remove the duplicated source row",
                    ))
                seen_cells[cell] = row_idx

        return issues

    def _validate_overrides(
        self,
        track: Track,
        overrides: OverrideMap,
        index: CatalogIndex,
    ) -> list[ValidationIssue]:
        issues = []
        orphans: set[tuple[str, str, str]] = set()

        for macro, category, detail, month_key, _ in overrides.entries():
            path = f"{track.value}Overrides[{macro}][{category}][{detail}][{month_key}]"

            if parse_month_key(month_key) is None:
                issues.append(ValidationIssue(
                    field=path,
                    issue_type="malformed_month_key",
                    message=f"Override month key '{month_key}' is not YYYY-MM; it is never read",
                    severity="warning",
                ))

            found = index.lookup(detail)
            known = (
                found is not None
                and normalize_label(found.macro) == normalize_label(macro)
                and normalize_label(found.category) == normalize_label(category)
            )
            if not known and (macro, category, detail) not in orphans:
                orphans.add((macro, category, detail))
                issues.append(ValidationIssue(
                    field=path,
                    issue_type="orphaned_override",
                    message=(
                        f"Override for '{macro} / {category} / {detail}' has no "
                        "matching catalog entry; it is kept and still read back"
                    ),
                    severity="info",
                ))

        return issues

    def validate(
        self,
        rows: Iterable[RawPlanRow],
        catalog: Iterable[CausaleGroup],
        preventivo: Optional[OverrideMap] = None,
        consuntivo: Optional[OverrideMap] = None,
    ) -> ValidationReport:
        """
        Check a dataset and, optionally, the override maps laid over it.

        Args:
            rows: Raw source rows
            catalog: Causali catalog the rows are classified with
            preventivo: Planned-track overrides to check
            consuntivo: Actual-track overrides to check

        Returns:
            ValidationReport with every issue found
        """
        row_list = list(rows)
        index = CatalogIndex(catalog)

        issues = self._validate_rows(row_list, index)
        overrides_checked = 0
        for track, overrides in ((Track.PREVENTIVO, preventivo), (Track.CONSUNTIVO, consuntivo)):
            if overrides is None:
                continue
            overrides_checked += len(overrides)
            issues.extend(self._validate_overrides(track, overrides, index))

        return ValidationReport(
            rows_checked=len(row_list),
            overrides_checked=overrides_checked,
            issues=issues,
        )

    def get_summary(self, report: ValidationReport) -> str:
        """One line per issue type, most severe first."""
        if not report.issues:
            return f"All {report.rows_checked} rows passed validation."

        order = {"error": 0, "warning": 1, "info": 2}
        counts: dict[tuple[str, str], int] = {}
        for issue in report.issues:
            key = (issue.severity, issue.issue_type)
            counts[key] = counts.get(key, 0) + 1

        lines = [f"{report.rows_checked} rows, {report.overrides_checked} overrides checked:"]
        for (severity, issue_type), count in sorted(counts.items(), key=lambda kv: (order[kv[0][0]], kv[0][1])):
            lines.append(f"  [{severity}] {issue_type}: {count}")
        return "\n".join(lines)
