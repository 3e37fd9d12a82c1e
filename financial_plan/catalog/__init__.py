"""Causali catalog package: label classification and catalog edits."""

from financial_plan.catalog.editor import (
    CatalogEditError,
    add_category,
    add_causale,
    add_macro_group,
    remove_causale,
)
from financial_plan.catalog.resolver import (
    FALLBACK_CATEGORY,
    CatalogIndex,
    CatalogResolver,
    Classification,
    catalog_fingerprint,
    classify,
)

__all__ = [
    "FALLBACK_CATEGORY",
    "CatalogEditError",
    "CatalogIndex",
    "CatalogResolver",
    "Classification",
    "add_category",
    "add_causale",
    "add_macro_group",
    "catalog_fingerprint",
    "classify",
    "remove_causale",
]
