"""
Compiled-in defaults.

DEFAULT_CAUSALI is the catalog a plan starts from when storage holds no
catalog (first load, or a saved state with an empty catalog).
"""

from financial_plan.models.plan import CausaleCategory, CausaleGroup


DEFAULT_CAUSALI: tuple[CausaleGroup, ...] = (
    CausaleGroup(
        macro_category="INCASSATO",
        categories=[
            CausaleCategory(name="Incassato", items=["Incassato"]),
        ],
    ),
    CausaleGroup(
        macro_category="COSTI FISSI",
        categories=[
            CausaleCategory(
                name="Rete vendita, Amministratori, Immobili",
                items=["Rimborsi spese", "Affitto", "Enasarco"],
            ),
        ],
    ),
    CausaleGroup(
        macro_category="COSTI VARIABILI",
        categories=[
            CausaleCategory(
                name="Fornitori Materiali",
                items=[
                    "nome fornitore",
                    "Merce in Acquisto",
                    "Freelance",
                    "Noleggio Attrezzature",
                    "Sub-Appaltatori",
                ],
            ),
        ],
    ),
)


def default_catalog() -> list[CausaleGroup]:
    """A fresh, independently mutable copy of the default catalog."""
    return [group.model_copy(deep=True) for group in DEFAULT_CAUSALI]
