"""Validation result models for dataset and overlay checks."""

from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single data-quality issue found."""

    field: str = Field(
        ...,
        description="Where the issue was found (e.g. 'rows[3].months[1]')"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'unparseable_month', 'unclassified', 'orphaned_override')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationReport(BaseModel):
    """
    Result of validating a dataset (and optionally a loaded overlay).

    Nothing is corrected: the report only lists what the engine will
    silently degrade on.
    """

    rows_checked: int = Field(default=0, ge=0)
    overrides_checked: int = Field(default=0, ge=0)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "warning")

    def issues_of_type(self, issue_type: str) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.issue_type == issue_type]
