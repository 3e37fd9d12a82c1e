"""
Label Catalog Resolver

Maps a causale label to its (macro category, category) classification
using the user-editable causali catalog.

DESIGN DECISION: Classification never fails. A label missing from the
catalog degrades to the macro declared on the raw row and the sentinel
category "Altro" - an unclassified causale is a data-quality signal,
not an error.

Resolution is a pure function of (label, catalog). The lookup index built
from a catalog is memoized by catalog version, so rebuilding the hierarchy
with an unchanged catalog does not rebuild the index.
"""

import hashlib
import json
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from financial_plan.models.plan import CausaleGroup, normalize_label


FALLBACK_CATEGORY = "Altro"


@dataclass(frozen=True)
class Classification:
    """Where a causale lives in the hierarchy."""
    macro: str
    category: str
    from_catalog: bool = True


class CatalogIndex:
    """
    Normalized-label lookup over a catalog.

    When a label appears more than once in the catalog, the last
    occurrence wins.
    """

    def __init__(self, catalog: Iterable[CausaleGroup]):
        self._entries: dict[str, Classification] = {}
        for group in catalog:
            for category in group.categories:
                for item in category.items:
                    self._entries[normalize_label(item)] = Classification(
                        macro=group.macro_category,
                        category=category.name,
                    )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, label: str) -> bool:
        return normalize_label(label) in self._entries

    def lookup(self, label: str) -> Optional[Classification]:
        return self._entries.get(normalize_label(label))

    def classify(
        self,
        label: str,
        fallback_macro: str,
        fallback_category: str = FALLBACK_CATEGORY,
    ) -> Classification:
        found = self.lookup(label)
        if found is not None:
            return found
        return Classification(
            macro=fallback_macro,
            category=fallback_category,
            from_catalog=False,
        )


def classify(
    label: str,
    catalog: Union[CatalogIndex, Iterable[CausaleGroup]],
    fallback_macro: str,
    fallback_category: str = FALLBACK_CATEGORY,
) -> Classification:
    """
    Classify a causale label against a catalog.

    Args:
        label: The causale as written on the raw row
        catalog: A prebuilt CatalogIndex or the raw catalog groups
        fallback_macro: Macro declared on the raw row, used when unclassified
        fallback_category: Sentinel category for unclassified labels

    Returns:
        The catalog classification, or (fallback_macro, fallback_category)
    """
    index = catalog if isinstance(catalog, CatalogIndex) else CatalogIndex(catalog)
    return index.classify(label, fallback_macro, fallback_category)


def catalog_fingerprint(catalog: Iterable[CausaleGroup]) -> str:
    """Content hash of a catalog, used as its version when none is supplied."""
    canonical = json.dumps(
        [group.model_dump(by_alias=True) for group in catalog],
        sort_keys=True,
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


class CatalogResolver:
    """
    Memoizing factory for catalog indexes.

    Indexes are cached by catalog version; a catalog without an explicit
    version is identified by its content fingerprint.
    """

    def __init__(self, max_entries: int = 8):
        self._max_entries = max_entries
        self._cache: dict[str, CatalogIndex] = {}

    def version_of(self, catalog: list[CausaleGroup], version: Optional[str] = None) -> str:
        return version or catalog_fingerprint(catalog)

    def index_for(
        self,
        catalog: list[CausaleGroup],
        version: Optional[str] = None,
    ) -> CatalogIndex:
        key = self.version_of(catalog, version)
        index = self._cache.get(key)
        if index is None:
            if len(self._cache) >= self._max_entries:
                # Evict the oldest entry
                self._cache.pop(next(iter(self._cache)))
            index = CatalogIndex(catalog)
            self._cache[key] = index
        return index

    def clear(self) -> None:
        self._cache.clear()
