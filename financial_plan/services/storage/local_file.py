"""
Local JSON File Storage

One JSON file per company/location under a state directory:

    <state_dir>/<company_id>[__<location_id>].json

Writes go to a temporary file first and are moved into place, so a crash
mid-save never leaves a half-written state behind.
"""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from financial_plan.models.state import PlanContext, PlanStatePayload
from financial_plan.services.storage.interface import (
    PlanStateStorageInterface,
    StorageError,
)


class JsonFilePlanStateStorage(PlanStateStorageInterface):
    """File-per-context storage on local disk."""

    def __init__(self, state_dir: str):
        self._state_dir = Path(state_dir)

    def path_for(self, context: PlanContext) -> Path:
        return self._state_dir / f"{context.storage_key}.json"

    async def fetch_state(self, context: PlanContext) -> Optional[PlanStatePayload]:
        path = self.path_for(context)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            return PlanStatePayload.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to read plan state from {path}: {e}")

    async def persist_state(self, context: PlanContext, payload: PlanStatePayload) -> None:
        path = self.path_for(context)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(payload.to_storage_dict(), fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageError(f"Failed to write plan state to {path}: {e}")
