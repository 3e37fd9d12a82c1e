"""
Override Overlay

A sparse patch layered over the base hierarchy, one map per track:

    macro -> category -> detail -> "YYYY-MM" -> value

DESIGN DECISIONS:
1. The base hierarchy is never touched. A read merges the base value with
   the override when one is present; a write only changes the overlay.
2. A present key overrides the base, an absent key means "use the base".
   Deleting a key (not writing 0) restores the base value - 0 is a
   perfectly valid override.
3. OverrideMap is persistent: a write returns a new map that copies only
   the dicts on the path to the cell and shares every other branch. The
   old map is never mutated, so any map handed out (a saved snapshot,
   a payload being persisted) stays a stable read-only view.
4. Keys are opaque strings. Triples that the catalog no longer knows
   about are kept and still read back - they are never validated against
   the live catalog.
"""

import copy
from typing import Iterator, Optional

from financial_plan.hierarchy.builder import DetailAccumulator, assemble_year
from financial_plan.models.plan import (
    MONTHS_PER_YEAR,
    MacroBlock,
    Track,
    YearData,
    build_month_key,
    normalize_label,
    parse_month_key,
)
from financial_plan.models.state import PlanOverrides


class OverrideMap:
    """Immutable nested override map for one track."""

    def __init__(self, data: Optional[PlanOverrides] = None):
        self._data: PlanOverrides = data if data is not None else {}

    @classmethod
    def from_dict(cls, data: Optional[PlanOverrides]) -> "OverrideMap":
        """Take a private copy of externally owned data (e.g. a loaded payload)."""
        return cls(copy.deepcopy(data) if data else {})

    def get(self, macro: str, category: str, detail: str, month_key: str) -> Optional[float]:
        return (
            self._data.get(macro, {})
            .get(category, {})
            .get(detail, {})
            .get(month_key)
        )

    def __contains__(self, key: tuple[str, str, str, str]) -> bool:
        macro, category, detail, month_key = key
        return self.get(macro, category, detail, month_key) is not None

    def with_value(
        self,
        macro: str,
        category: str,
        detail: str,
        month_key: str,
        value: Optional[float],
    ) -> "OverrideMap":
        """
        Return a new map with the cell set (or removed when value is None).

        Only the four dicts along the path are copied. Emptied branches
        are pruned on removal.
        """
        root = dict(self._data)
        categories = dict(root.get(macro, {}))
        details = dict(categories.get(category, {}))
        months = dict(details.get(detail, {}))

        if value is None:
            months.pop(month_key, None)
        else:
            months[month_key] = float(value)

        if months:
            details[detail] = months
        else:
            details.pop(detail, None)
        if details:
            categories[category] = details
        else:
            categories.pop(category, None)
        if categories:
            root[macro] = categories
        else:
            root.pop(macro, None)

        return OverrideMap(root)

    def entries(self) -> Iterator[tuple[str, str, str, str, float]]:
        """Yield (macro, category, detail, month_key, value) for every override."""
        for macro, categories in self._data.items():
            for category, details in categories.items():
                for detail, months in details.items():
                    for month_key, value in months.items():
                        yield macro, category, detail, month_key, value

    def entries_for_year(self, year: int) -> Iterator[tuple[str, str, str, int, float]]:
        """Yield (macro, category, detail, month_index, value) for one year."""
        for macro, category, detail, month_key, value in self.entries():
            parsed = parse_month_key(month_key)
            if parsed is None or parsed[0] != year:
                continue
            yield macro, category, detail, parsed[1], value

    def years(self) -> set[int]:
        found = set()
        for _, _, _, month_key, _ in self.entries():
            parsed = parse_month_key(month_key)
            if parsed is not None:
                found.add(parsed[0])
        return found

    def to_dict(self) -> PlanOverrides:
        """A deep copy safe to hand to serializers."""
        return copy.deepcopy(self._data)

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OverrideMap):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"OverrideMap({len(self)} overrides)"


class PlanOverlay:
    """
    Base hierarchy plus the two override maps.

    The base can be swapped (`rebase`) when the hierarchy is rebuilt;
    overrides survive because they are keyed by stable strings, not by
    references into the base.
    """

    def __init__(
        self,
        base: dict[int, YearData],
        preventivo: Optional[OverrideMap] = None,
        consuntivo: Optional[OverrideMap] = None,
    ):
        self._base = base
        self._maps: dict[Track, OverrideMap] = {
            Track.PREVENTIVO: preventivo if preventivo is not None else OverrideMap(),
            Track.CONSUNTIVO: consuntivo if consuntivo is not None else OverrideMap(),
        }

    @property
    def base(self) -> dict[int, YearData]:
        return self._base

    def rebase(self, base: dict[int, YearData]) -> None:
        self._base = base

    def overrides(self, track: Track) -> OverrideMap:
        return self._maps[Track(track)]

    def replace_overrides(self, preventivo: OverrideMap, consuntivo: OverrideMap) -> None:
        self._maps = {Track.PREVENTIVO: preventivo, Track.CONSUNTIVO: consuntivo}

    def base_value(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
    ) -> float:
        """The base cell, or 0 when the year or the detail row doesn't exist."""
        year_data = self._base.get(year)
        if year_data is None:
            return 0.0
        row = year_data.find_detail(macro, category, detail)
        if row is None:
            return 0.0
        return row.months[month_index].value(Track(track))

    def override_value(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
    ) -> Optional[float]:
        return self._maps[Track(track)].get(
            macro, category, detail, build_month_key(year, month_index)
        )

    def read(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
    ) -> float:
        """Override if present, else base, else 0."""
        override = self.override_value(track, macro, category, detail, year, month_index)
        if override is not None:
            return override
        return self.base_value(track, macro, category, detail, year, month_index)

    def write(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
        value: Optional[float],
    ) -> str:
        """
        Set (value) or delete (None) one override. Returns the month key.

        This is the only way the overlay changes.
        """
        if not 0 <= month_index < MONTHS_PER_YEAR:
            raise ValueError(f"month_index must be 0-11, got {month_index}")
        track = Track(track)
        month_key = build_month_key(year, month_index)
        self._maps[track] = self._maps[track].with_value(
            macro, category, detail, month_key, value
        )
        return month_key

    def effective_year(self, year: int) -> Optional[YearData]:
        """
        Materialize the year with every override applied.

        Totals are recomputed from scratch. Overrides on triples missing
        from the base become extra detail rows so roll-ups agree with read().
        Returns None when the year has neither base data nor overrides.
        """
        base_year = self._base.get(year)

        # normalized macro -> exact (category, detail) -> accumulator
        blocks: dict[str, dict[tuple[str, str], DetailAccumulator]] = {}
        # normalized macro -> normalized (category, detail) -> exact key
        resolved: dict[str, dict[tuple[str, str], tuple[str, str]]] = {}
        macro_names: dict[str, str] = {}
        if base_year is not None:
            for block in base_year.macros:
                macro_key = normalize_label(block.macro)
                macro_names.setdefault(macro_key, block.macro)
                details = blocks.setdefault(macro_key, {})
                lookup = resolved.setdefault(macro_key, {})
                for row in block.details:
                    key = (row.category, row.detail)
                    details[key] = DetailAccumulator.from_detail(row)
                    # First match wins, as in YearData.find_detail
                    lookup.setdefault(
                        (normalize_label(row.category), normalize_label(row.detail)), key
                    )

        touched = False
        for track, overrides in self._maps.items():
            for macro, category, detail, month_index, value in overrides.entries_for_year(year):
                touched = True
                macro_key = normalize_label(macro)
                macro_names.setdefault(macro_key, macro)
                details = blocks.setdefault(macro_key, {})
                lookup = resolved.setdefault(macro_key, {})
                key = lookup.setdefault(
                    (normalize_label(category), normalize_label(detail)), (category, detail)
                )
                entry = details.get(key)
                if entry is None:
                    entry = DetailAccumulator(macro_names[macro_key], category, detail)
                    details[key] = entry
                entry.set(track, month_index, value)

        if base_year is None and not touched:
            return None
        if not touched:
            return base_year

        return assemble_year(
            year,
            (
                MacroBlock(
                    macro=macro_names[macro_key],
                    details=tuple(entry.freeze() for entry in details.values()),
                )
                for macro_key, details in blocks.items()
            ),
        )
