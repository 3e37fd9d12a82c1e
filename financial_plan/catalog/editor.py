"""
Catalog editing helpers.

Every function returns a new catalog; the input list and its groups are
left untouched, so a catalog already handed to the resolver (and cached
under its version) never changes behind its back.
"""

from typing import Optional

from financial_plan.models.plan import CausaleCategory, CausaleGroup, normalize_label


class CatalogEditError(ValueError):
    """Raised when a catalog edit refers to something that doesn't exist."""
    pass


def _copy(catalog: list[CausaleGroup]) -> list[CausaleGroup]:
    return [group.model_copy(deep=True) for group in catalog]


def _find_group(catalog: list[CausaleGroup], macro: str) -> Optional[CausaleGroup]:
    wanted = normalize_label(macro)
    for group in catalog:
        if normalize_label(group.macro_category) == wanted:
            return group
    return None


def _find_category(group: CausaleGroup, name: str) -> Optional[CausaleCategory]:
    wanted = normalize_label(name)
    for category in group.categories:
        if normalize_label(category.name) == wanted:
            return category
    return None


def add_macro_group(catalog: list[CausaleGroup], macro: str) -> list[CausaleGroup]:
    """Append an empty macro category. Adding an existing macro is a no-op."""
    updated = _copy(catalog)
    if _find_group(updated, macro) is None:
        updated.append(CausaleGroup(macro_category=macro.strip(), categories=[]))
    return updated


def add_category(catalog: list[CausaleGroup], macro: str, name: str) -> list[CausaleGroup]:
    updated = _copy(catalog)
    group = _find_group(updated, macro)
    if group is None:
        raise CatalogEditError(f"Unknown macro category: {macro}")
    if _find_category(group, name) is None:
        group.categories.append(CausaleCategory(name=name.strip(), items=[]))
    return updated


def add_causale(
    catalog: list[CausaleGroup],
    macro: str,
    category: str,
    causale: str,
) -> list[CausaleGroup]:
    """Add a causale to a category, ignoring case-insensitive duplicates."""
    updated = _copy(catalog)
    group = _find_group(updated, macro)
    if group is None:
        raise CatalogEditError(f"Unknown macro category: {macro}")
    target = _find_category(group, category)
    if target is None:
        raise CatalogEditError(f"Unknown category '{category}' in {macro}")
    if normalize_label(causale) not in {normalize_label(item) for item in target.items}:
        target.items.append(causale.strip())
    return updated


def remove_causale(
    catalog: list[CausaleGroup],
    macro: str,
    category: str,
    causale: str,
) -> list[CausaleGroup]:
    """
    Remove a causale from a category.

    Overrides already entered for it stay in the overlay as orphaned keys.
    """
    updated = _copy(catalog)
    group = _find_group(updated, macro)
    target = _find_category(group, category) if group is not None else None
    if target is None:
        raise CatalogEditError(f"Unknown category '{category}' in {macro}")
    wanted = normalize_label(causale)
    target.items = [item for item in target.items if normalize_label(item) != wanted]
    return updated
