"""
Month label parsing.

Source rows label months as free text ("GENNAIO 2025", "gennaio   2025");
the stats table uses a short form ("Gen. 24"). Everything inside the
engine works with (year, month_index) pairs, and everything crossing the
storage boundary with "YYYY-MM" keys.
"""

from typing import Optional

from financial_plan.models.plan import build_month_key, normalize_label, parse_month_key


MONTH_NAMES = [
    "Gennaio",
    "Febbraio",
    "Marzo",
    "Aprile",
    "Maggio",
    "Giugno",
    "Luglio",
    "Agosto",
    "Settembre",
    "Ottobre",
    "Novembre",
    "Dicembre",
]

MONTH_SHORT = [name[:3] for name in MONTH_NAMES]

MONTH_MAP: dict[str, int] = {
    normalize_label(name): idx for idx, name in enumerate(MONTH_NAMES)
}

MONTH_SHORT_MAP: dict[str, int] = {
    normalize_label(name): idx for idx, name in enumerate(MONTH_SHORT)
}


def parse_plan_month_label(label: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse a "MONTH YEAR" label into (year, month_index).

    The last whitespace-separated token is the year, everything before it
    the full Italian month name. Returns None when the label can't be parsed.
    """
    if not label:
        return None
    parts = label.split()
    if len(parts) < 2:
        return None
    try:
        year = int(parts[-1])
    except ValueError:
        return None
    month_index = MONTH_MAP.get(normalize_label(" ".join(parts[:-1])))
    if month_index is None:
        return None
    return year, month_index


def parse_stats_month_label(label: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse a stats table label: "Gen. 24", "GEN 2024" or "Gennaio 2024".

    Two-digit years are read as 20YY.
    """
    parsed = parse_plan_month_label(label)
    if parsed is not None:
        return parsed
    if not label:
        return None
    parts = label.replace(".", " ").split()
    if len(parts) != 2:
        return None
    month_index = MONTH_SHORT_MAP.get(normalize_label(parts[0]))
    if month_index is None:
        return None
    try:
        year = int(parts[1])
    except ValueError:
        return None
    if year < 100:
        year += 2000
    return year, month_index


def short_month_label(year: int, month_index: int) -> str:
    """Chart label, e.g. 'Gen 25'."""
    return f"{MONTH_SHORT[month_index]} {str(year)[-2:]}"


__all__ = [
    "MONTH_MAP",
    "MONTH_NAMES",
    "MONTH_SHORT",
    "build_month_key",
    "parse_month_key",
    "parse_plan_month_label",
    "parse_stats_month_label",
    "short_month_label",
]
