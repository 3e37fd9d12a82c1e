"""
Dataset Loading

The static input of the engine: raw plan rows, the causali catalog and the
monthly statistics, generated offline from the source spreadsheets and
shipped as one JSON document:

    {
        "version": "2025-10",
        "rows": [{"macroCategory": ..., "detail": ..., "months": [...]}],
        "causali": [{"macroCategory": ..., "categories": [...]}],
        "stats": [{"month": "Gen. 24", "fatturatoTotale": ...}]
    }
"""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from financial_plan.models.plan import CausaleGroup, RawPlanRow, StatsRow


BUNDLED_DATASET = Path(__file__).parent / "financial_plan.json"


class DatasetError(Exception):
    """The dataset file is missing or doesn't match the expected shape."""
    pass


class PlanDataset(BaseModel):
    """Rows, catalog and stats of one dataset version."""

    model_config = ConfigDict(frozen=True)

    version: Optional[str] = None
    rows: tuple[RawPlanRow, ...] = ()
    causali: tuple[CausaleGroup, ...] = ()
    stats: tuple[StatsRow, ...] = Field(default=())


def load_dataset(path: Optional[str] = None) -> PlanDataset:
    """
    Load and validate a dataset file.

    Args:
        path: JSON file to read. Defaults to the dataset bundled with the
            package.

    Raises:
        DatasetError: If the file can't be read or parsed
    """
    source = Path(path) if path else BUNDLED_DATASET
    try:
        with source.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetError(f"Cannot read dataset {source}: {e}")

    try:
        return PlanDataset.model_validate(data)
    except ValidationError as e:
        raise DatasetError(f"Invalid dataset {source}: {e}")
