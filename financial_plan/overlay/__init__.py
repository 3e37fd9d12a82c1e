"""Override overlay package."""

from financial_plan.overlay.overrides import OverrideMap, PlanOverlay

__all__ = ["OverrideMap", "PlanOverlay"]
