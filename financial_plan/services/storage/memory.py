"""
In-Memory Storage Implementation

Keeps one serialized payload per context. Payloads are stored in their
storage-dict form and re-validated on fetch, so a fetched payload never
shares objects with the one that was persisted.
"""

from typing import Optional

from financial_plan.models.state import PlanContext, PlanStatePayload
from financial_plan.services.storage.interface import PlanStateStorageInterface


class InMemoryPlanStateStorage(PlanStateStorageInterface):
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, dict]] = None):
        self._states: dict[str, dict] = dict(initial or {})
        self.persist_calls = 0

    async def fetch_state(self, context: PlanContext) -> Optional[PlanStatePayload]:
        stored = self._states.get(context.storage_key)
        if stored is None:
            return None
        return PlanStatePayload.model_validate(stored)

    async def persist_state(self, context: PlanContext, payload: PlanStatePayload) -> None:
        self.persist_calls += 1
        self._states[context.storage_key] = payload.to_storage_dict()

    def raw_state(self, context: PlanContext) -> Optional[dict]:
        """The stored camelCase dict, as a backend would see it."""
        return self._states.get(context.storage_key)
