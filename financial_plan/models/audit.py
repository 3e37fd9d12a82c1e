"""
Audit Models for the Financial Plan

Two kinds of records live here:
1. AuditEntry - one overridden cell, produced at save time and handed to
   storage as the "manual log". The log is regenerated from the overlay on
   every save; storage decides whether to append or replace.
2. PlanEventType - the structured log events the engine emits.

DESIGN DECISION: Audit entries are immutable. Once built for a save they
are never edited - the next save builds a fresh list.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from financial_plan.models.plan import build_month_key


class PlanEventType(str, Enum):
    """Types of engine events we log."""
    # Loading
    STATE_LOADED = "state_loaded"
    STATE_DEFAULTED = "state_defaulted"
    DATASET_LOADED = "dataset_loaded"
    DATASET_VALIDATED = "dataset_validated"

    # Hierarchy
    ROW_SKIPPED = "row_skipped"
    PLAN_REBUILT = "plan_rebuilt"
    CATALOG_UPDATED = "catalog_updated"

    # Editing
    EDIT_STARTED = "edit_started"
    CELL_WRITTEN = "cell_written"
    STATS_OVERRIDE_WRITTEN = "stats_override_written"
    EDITS_CANCELLED = "edits_cancelled"

    # Persistence
    PLAN_SAVED = "plan_saved"
    SAVE_FAILED = "save_failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEntry(BaseModel):
    """
    A single overridden cell as recorded in the manual log.

    `month` is 1-12 (calendar month), unlike the 0-based month_index used
    everywhere else in the engine.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(
        ...,
        description="Stable cell identifier: track-macro-category-causale-YYYY-MM"
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="When the save that produced this entry happened (UTC)"
    )
    year: int
    month: int = Field(..., ge=1, le=12)
    macro_category: str
    category: str
    causale: str
    value: float

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "year": self.year,
            "month": self.month,
            "macro_category": self.macro_category,
            "category": self.category,
            "causale": self.causale,
            "value": self.value,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [id, created_at, year, month, macro_category, category, causale, value]
        """
        return [
            self.id,
            self.created_at.isoformat(),
            self.year,
            self.month,
            self.macro_category,
            self.category,
            self.causale,
            self.value,
        ]


class AuditEntryBuilder:
    """
    Helper class to build audit entries from overlay cells.

    Usage:
        entry = AuditEntryBuilder.from_override(
            "preventivo", "COSTI FISSI", "Rete vendita", "Affitto", 2025, 0, 900.0
        )
    """

    @staticmethod
    def entry_id(track: str, macro: str, category: str, detail: str, month_key: str) -> str:
        return f"{track}-{macro}-{category}-{detail}-{month_key}"

    @staticmethod
    def from_override(
        track: str,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
        value: float,
        created_at: Optional[datetime] = None,
    ) -> AuditEntry:
        month_key = build_month_key(year, month_index)
        return AuditEntry(
            id=AuditEntryBuilder.entry_id(track, macro, category, detail, month_key),
            created_at=created_at or _utcnow(),
            year=year,
            month=month_index + 1,
            macro_category=macro,
            category=category,
            causale=detail,
            value=value,
        )
