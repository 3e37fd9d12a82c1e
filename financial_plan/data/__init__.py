"""Static input data: the bundled dataset and compiled-in defaults."""

from financial_plan.data.dataset import (
    BUNDLED_DATASET,
    DatasetError,
    PlanDataset,
    load_dataset,
)
from financial_plan.data.defaults import DEFAULT_CAUSALI, default_catalog

__all__ = [
    "BUNDLED_DATASET",
    "DEFAULT_CAUSALI",
    "DatasetError",
    "PlanDataset",
    "default_catalog",
    "load_dataset",
]
