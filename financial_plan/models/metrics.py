"""
Derived Metric Models

Results of the roll-up calculator. None of these are stored: they are
recomputed from the hierarchy (and the overlay) every time they are asked for.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from financial_plan.models.plan import MONTHS_PER_YEAR


def _zeros() -> list[float]:
    return [0.0] * MONTHS_PER_YEAR


class ProfitBreakdown(BaseModel):
    """Profit = collected - fixed costs - variable costs."""

    monthly: list[float] = Field(default_factory=_zeros)
    annual: float = 0.0


class YearMetrics(BaseModel):
    """Annual and monthly headline figures of one year."""

    year: int
    fatturato_totale: float = 0.0
    monthly_fatturato: list[float] = Field(default_factory=_zeros)
    incassato: float = 0.0
    monthly_incassato: list[float] = Field(default_factory=_zeros)
    costi_fissi: float = 0.0
    monthly_costi_fissi: list[float] = Field(default_factory=_zeros)
    costi_variabili: float = 0.0
    monthly_costi_variabili: list[float] = Field(default_factory=_zeros)

    @property
    def utile(self) -> float:
        return self.incassato - self.costi_fissi - self.costi_variabili

    @property
    def is_complete(self) -> bool:
        """All monthly series cover the full year."""
        return all(
            len(series) == MONTHS_PER_YEAR
            for series in (
                self.monthly_incassato,
                self.monthly_costi_fissi,
                self.monthly_costi_variabili,
            )
        )


class BusinessPlanDraft(BaseModel):
    """
    A saved business-plan scenario for a target year.

    Percentages are expressed as 0-100 values.
    """

    base_year: int
    target_year: int
    fatturato_increment: float = 0.0
    fatturato_previsionale: float = 0.0
    incassato_percent: float = 0.0
    incassato_previsionale: float = 0.0
    costi_fissi_percent: float = 0.0
    costi_fissi_previsionale: float = 0.0
    costi_variabili_percent: float = 0.0
    costi_variabili_previsionale: float = 0.0


class BusinessPlanTargets(BaseModel):
    """
    Business-plan figures ready to show, rounded to 2 decimals.

    Every percentage falls back to 0 when its base is 0.
    """

    model_config = ConfigDict(frozen=True)

    base_year: Optional[int] = None
    target_year: int
    fatturato_increment: float = 0.0
    fatturato_previsionale: float = 0.0
    incassato_percent: float = 0.0
    incassato_previsionale: float = 0.0
    costi_fissi_percent: float = 0.0
    costi_fissi_previsionale: float = 0.0
    costi_variabili_percent: float = 0.0
    costi_variabili_previsionale: float = 0.0
    utile_previsionale: float = 0.0
    utile_percent: float = 0.0


class OverviewPoint(BaseModel):
    """One month of the overview chart."""

    month: str = Field(..., description="Short label, e.g. 'Gen 25'")
    incassato: float = 0.0
    costi_fissi: float = 0.0
    costi_variabili: float = 0.0
    utile: float = 0.0


class Overview(BaseModel):
    """Year overview: annual totals plus the monthly chart series."""

    year: int
    incassato: float = 0.0
    costi_fissi: float = 0.0
    costi_variabili: float = 0.0
    utile: float = 0.0
    points: list[OverviewPoint] = Field(default_factory=list)
