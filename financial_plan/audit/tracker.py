"""
Dirty/Audit Tracker

Two related jobs:
1. DirtyTracker remembers which cells were touched since the last load or
   save, to drive the "unsaved changes" affordances.
2. build_audit_log turns the overlay into the manual log entries that go
   out with a save.

DESIGN DECISIONS:
- "Dirty" tracks the user's intent to change, not the net value delta.
  Deleting an override (reverting a cell to its base) still marks the cell
  dirty until the next save, because clearing an override is a decision
  that has to be persisted.
- The audit log is rebuilt from the overlay on every save and only covers
  the selected year. Overrides for other years stay in the overlay and are
  persisted, but they are not audited by this save.
- The session clears the dirty set globally on a successful save, even
  though the audit log is year-scoped. That asymmetry is inherited and
  deliberately preserved; `keys_for_year` exists so a caller can see what
  a year-scoped save would leave behind.
"""

from datetime import datetime, timezone
from typing import Optional

from financial_plan.models.audit import AuditEntry, AuditEntryBuilder
from financial_plan.models.plan import Track, parse_month_key
from financial_plan.overlay.overrides import OverrideMap


DIRTY_KEY_SEPARATOR = "|"


def dirty_key(track: Track, macro: str, category: str, detail: str, month_key: str) -> str:
    """Composite key "<track>|<macro>|<category>|<detail>|<monthKey>"."""
    return DIRTY_KEY_SEPARATOR.join(
        [Track(track).value, macro, category, detail, month_key]
    )


class DirtyTracker:
    """Set of cells with pending edits."""

    def __init__(self):
        self._keys: set[str] = set()

    def mark_dirty(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        month_key: str,
    ) -> str:
        """Idempotent insert. Returns the composite key."""
        key = dirty_key(track, macro, category, detail, month_key)
        self._keys.add(key)
        return key

    def is_dirty(self, key: str) -> bool:
        return key in self._keys

    def dirty_count(self) -> int:
        return len(self._keys)

    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    def keys_for_year(self, year: int) -> frozenset[str]:
        prefix = f"{year}-"
        return frozenset(
            key for key in self._keys
            if key.rsplit(DIRTY_KEY_SEPARATOR, 1)[-1].startswith(prefix)
        )

    def clear(self) -> None:
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)


def build_audit_log(
    preventivo: OverrideMap,
    consuntivo: OverrideMap,
    selected_year: int,
    created_at: Optional[datetime] = None,
) -> list[AuditEntry]:
    """
    Audit entries for every override of the selected year, both tracks.

    Preventivo entries come first, then consuntivo, each in map order.
    All entries of one save share the same timestamp. Month keys that
    can't be parsed are skipped.
    """
    timestamp = created_at or datetime.now(timezone.utc)
    entries: list[AuditEntry] = []

    for track, overrides in ((Track.PREVENTIVO, preventivo), (Track.CONSUNTIVO, consuntivo)):
        for macro, category, detail, month_key, value in overrides.entries():
            parsed = parse_month_key(month_key)
            if parsed is None:
                continue
            year, month_index = parsed
            if year != selected_year:
                continue
            entries.append(
                AuditEntryBuilder.from_override(
                    track=track.value,
                    macro=macro,
                    category=category,
                    detail=detail,
                    year=year,
                    month_index=month_index,
                    value=value,
                    created_at=timestamp,
                )
            )

    return entries
