"""
Core Data Models for the Financial Plan

These models define the schemas for everything the engine reads and builds:
1. Raw input rows and the causali catalog (static, versioned data)
2. The per-year hierarchy the builder produces from them
3. Small value types shared by the overlay and the session

DESIGN DECISION: Everything the hierarchy builder produces is frozen.
Recomputation is the only supported form of "update" - nobody patches a
YearData in place. Months are stored as tuples so a frozen model is
actually immutable all the way down.

Input models accept the camelCase keys of the JSON dataset
(`macroCategory`, `fatturatoTotale`, ...) as well as snake_case names.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


MONTHS_PER_YEAR = 12


def normalize_label(value: str) -> str:
    """Case/whitespace normalization used for every label comparison."""
    return value.strip().upper()


def build_month_key(year: int, month_index: int) -> str:
    """
    Build the "YYYY-MM" key identifying a month across the storage boundary.

    month_index is 0-based; the key carries the zero-padded calendar month.
    """
    return f"{year}-{month_index + 1:02d}"


def parse_month_key(key: str) -> Optional[tuple[int, int]]:
    """
    Parse a "YYYY-MM" key back into (year, month_index).

    Returns None for anything that is not a valid key.
    """
    parts = key.split("-")
    if len(parts) != 2:
        return None
    try:
        year = int(parts[0])
        month_index = int(parts[1]) - 1
    except ValueError:
        return None
    if not 0 <= month_index < MONTHS_PER_YEAR:
        return None
    return year, month_index


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Track(str, Enum):
    """
    The two parallel value tracks of every cell.

    PREVENTIVO is the planned/budgeted figure, CONSUNTIVO the realized one.
    """
    PREVENTIVO = "preventivo"
    CONSUNTIVO = "consuntivo"


class EditMode(str, Enum):
    """
    Editing state of a plan session.

    LOCKED -> EDITING on the first write (or an explicit unlock).
    EDITING -> LOCKED on a successful save or a cancel.
    """
    LOCKED = "locked"
    EDITING = "editing"


# =============================================================================
# INPUT MODELS - raw rows, catalog, stats
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RawMonthValue(_CamelModel):
    """One month of a raw source row. Both figures may be missing."""

    month: str = Field(
        ...,
        description="Free-text month label, e.g. 'GENNAIO 2025'"
    )
    preventivo: Optional[float] = None
    consuntivo: Optional[float] = None


class RawPlanRow(_CamelModel):
    """
    A raw row of the generated dataset.

    The macro category on the row is only a hint: the catalog decides
    where the causale is classified, the row's macro is the fallback.
    """

    macro_category: str = Field(
        ...,
        description="Macro category declared by the source spreadsheet"
    )
    detail: str = Field(
        ...,
        min_length=1,
        description="Causale label"
    )
    months: list[RawMonthValue] = Field(default_factory=list)


class CausaleCategory(_CamelModel):
    """A category of the catalog with the causali it contains."""

    name: str = Field(..., min_length=1)
    items: list[str] = Field(default_factory=list)


class CausaleGroup(_CamelModel):
    """A macro category of the catalog."""

    macro_category: str = Field(..., min_length=1)
    categories: list[CausaleCategory] = Field(default_factory=list)


class StatsRow(_CamelModel):
    """
    Monthly statistics row (revenue, cash, balances).

    Month labels come in the short form 'Gen. 24' or the long
    form 'Gennaio 2024'.
    """

    month: str
    fatturato_imponibile: Optional[float] = None
    fatturato_totale: Optional[float] = None
    fatturato_previsionale: Optional[float] = None
    utile_cassa: Optional[float] = None
    utile_previsionale: Optional[float] = None
    incassato: Optional[float] = None
    incassato_previsionale: Optional[float] = None
    saldo_conto: Optional[float] = None
    saldo_secondo_conto: Optional[float] = None
    saldo_totale: Optional[float] = None
    crediti_pendenti: Optional[float] = None
    crediti_scaduti: Optional[float] = None
    debiti_fornitore: Optional[float] = None
    debiti_bancari: Optional[float] = None


# =============================================================================
# HIERARCHY MODELS - built, never mutated
# =============================================================================

class MonthValue(BaseModel):
    """Both tracks of a single month slot."""

    model_config = ConfigDict(frozen=True)

    month_index: int = Field(..., ge=0, le=MONTHS_PER_YEAR - 1)
    preventivo: float = 0.0
    consuntivo: float = 0.0

    def value(self, track: Track) -> float:
        return self.preventivo if track == Track.PREVENTIVO else self.consuntivo


class DetailRow(BaseModel):
    """
    One causale within a year, with its 12 month slots.

    Identity is (normalized macro, category, detail).
    """

    model_config = ConfigDict(frozen=True)

    macro: str
    category: str
    detail: str
    months: tuple[MonthValue, ...]

    @field_validator('months')
    @classmethod
    def validate_months(cls, v: tuple[MonthValue, ...]) -> tuple[MonthValue, ...]:
        """Exactly 12 slots, index i holding calendar month i+1."""
        if len(v) != MONTHS_PER_YEAR:
            raise ValueError(f"A detail row needs {MONTHS_PER_YEAR} months, got {len(v)}")
        for idx, month in enumerate(v):
            if month.month_index != idx:
                raise ValueError(f"Month slot {idx} holds month_index {month.month_index}")
        return v

    @property
    def key(self) -> tuple[str, str, str]:
        return (normalize_label(self.macro), self.category, self.detail)

    def values(self, track: Track) -> list[float]:
        return [month.value(track) for month in self.months]

    def matches(self, category: str, detail: str) -> bool:
        return (
            normalize_label(self.category) == normalize_label(category)
            and normalize_label(self.detail) == normalize_label(detail)
        )


class MacroBlock(BaseModel):
    """Detail rows of one macro category for a given year."""

    model_config = ConfigDict(frozen=True)

    macro: str
    details: tuple[DetailRow, ...] = ()

    def categories(self) -> list[str]:
        """Category names in first-seen order."""
        seen: dict[str, None] = {}
        for detail in self.details:
            seen.setdefault(detail.category, None)
        return list(seen)

    def details_in(self, category: str) -> list[DetailRow]:
        wanted = normalize_label(category)
        return [d for d in self.details if normalize_label(d.category) == wanted]


class MacroTotals(BaseModel):
    """Elementwise monthly sums of a macro's detail rows."""

    model_config = ConfigDict(frozen=True)

    consuntivo: tuple[float, ...] = (0.0,) * MONTHS_PER_YEAR
    preventivo: tuple[float, ...] = (0.0,) * MONTHS_PER_YEAR

    def values(self, track: Track) -> tuple[float, ...]:
        return self.preventivo if track == Track.PREVENTIVO else self.consuntivo


class YearData(BaseModel):
    """
    The hierarchy of one year.

    `totals` is derived from `macros` at build time and must always equal
    the elementwise sum of each macro's detail rows.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    macros: tuple[MacroBlock, ...] = ()
    totals: dict[str, MacroTotals] = Field(default_factory=dict)

    def find_macro(self, macro: str) -> Optional[MacroBlock]:
        wanted = normalize_label(macro)
        for block in self.macros:
            if normalize_label(block.macro) == wanted:
                return block
        return None

    def find_detail(self, macro: str, category: str, detail: str) -> Optional[DetailRow]:
        block = self.find_macro(macro)
        if block is None:
            return None
        for row in block.details:
            if row.matches(category, detail):
                return row
        return None

    def totals_for(self, macro: str) -> Optional[MacroTotals]:
        wanted = normalize_label(macro)
        for name, totals in self.totals.items():
            if normalize_label(name) == wanted:
                return totals
        return None
