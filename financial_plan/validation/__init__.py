"""Validation package."""

from financial_plan.validation.dataset_validator import DatasetValidator

__all__ = ["DatasetValidator"]
