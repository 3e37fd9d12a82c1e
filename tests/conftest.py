"""
Shared fixtures.

The sample plan covers two years:

2025 (consuntivo / preventivo)
    INCASSATO        Incassato   Jan 4800/5000   Feb 5200/5000
    COSTI FISSI      Affitto     Jan 1000/(none -> 1000)   Feb 1000/1000
    COSTI FISSI      Enasarco    Jan  150/200
    COSTI VARIABILI  Freelance   Jan 1200/1500
2024
    INCASSATO        Incassato   Jan 4000/(none -> 4000)
    COSTI FISSI      Affitto     Jan  900/900
"""

import asyncio
from typing import Optional

import pytest

from financial_plan.config import EngineSettings
from financial_plan.data import PlanDataset, default_catalog
from financial_plan.models import PlanContext, PlanStatePayload, RawPlanRow, StatsRow
from financial_plan.orchestrator import PlanEditingSession
from financial_plan.services.storage import (
    InMemoryPlanStateStorage,
    PlanStateStorageInterface,
    StorageError,
)


CAT_FISSI = "Rete vendita, Amministratori, Immobili"
CAT_VARIABILI = "Fornitori Materiali"


class FailingStorage(PlanStateStorageInterface):
    """Fetches nothing, refuses every save."""

    def __init__(self):
        self.persist_calls = 0

    async def fetch_state(self, context: PlanContext) -> Optional[PlanStatePayload]:
        return None

    async def persist_state(self, context: PlanContext, payload: PlanStatePayload) -> None:
        self.persist_calls += 1
        raise StorageError("backend unavailable")


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def raw_rows():
    return [
        RawPlanRow.model_validate({
            "macroCategory": "INCASSATO",
            "detail": "Incassato",
            "months": [
                {"month": "GENNAIO 2025", "preventivo": 5000, "consuntivo": 4800},
                {"month": "FEBBRAIO 2025", "preventivo": 5000, "consuntivo": 5200},
                {"month": "GENNAIO 2024", "preventivo": None, "consuntivo": 4000},
            ],
        }),
        RawPlanRow.model_validate({
            "macroCategory": "COSTI FISSI",
            "detail": "Affitto",
            "months": [
                {"month": "GENNAIO 2025", "preventivo": None, "consuntivo": 1000},
                {"month": "FEBBRAIO 2025", "preventivo": 1000, "consuntivo": 1000},
                {"month": "GENNAIO 2024", "preventivo": 900, "consuntivo": 900},
            ],
        }),
        RawPlanRow.model_validate({
            "macroCategory": "COSTI FISSI",
            "detail": "Enasarco",
            "months": [
                {"month": "GENNAIO 2025", "preventivo": 200, "consuntivo": 150},
            ],
        }),
        RawPlanRow.model_validate({
            "macroCategory": "COSTI VARIABILI",
            "detail": "Freelance",
            "months": [
                {"month": "GENNAIO 2025", "preventivo": 1500, "consuntivo": 1200},
            ],
        }),
    ]


@pytest.fixture
def stats_rows():
    return [
        StatsRow(month="Gen. 25", fatturato_totale=6000),
        StatsRow(month="Feb. 25", fatturato_totale=6500),
        StatsRow(month="Gen. 24", utile_cassa=0.0),
    ]


@pytest.fixture
def dataset(raw_rows, catalog, stats_rows):
    return PlanDataset(
        version="test-v1",
        rows=tuple(raw_rows),
        causali=tuple(catalog),
        stats=tuple(stats_rows),
    )


@pytest.fixture
def engine_settings():
    return EngineSettings()


@pytest.fixture
def context():
    return PlanContext(company_id="acme")


@pytest.fixture
def storage():
    return InMemoryPlanStateStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def session(dataset, storage, context, engine_settings):
    """A loaded session over empty in-memory storage."""
    plan_session = PlanEditingSession(
        dataset=dataset,
        storage=storage,
        context=context,
        settings=engine_settings,
    )
    asyncio.run(plan_session.load())
    return plan_session
