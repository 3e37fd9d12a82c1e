"""
Storage Services Package

Provides the abstract interface and concrete implementations of the plan
state collaborators: in-memory, local JSON files and Google Sheets.
"""

from financial_plan.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    PersistenceError,
    PlanStateStorageInterface,
    StorageError,
)
from financial_plan.services.storage.memory import InMemoryPlanStateStorage
from financial_plan.services.storage.local_file import JsonFilePlanStateStorage
from financial_plan.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsPlanStateStorage,
)

__all__ = [
    # Interface
    "PlanStateStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsPlanStateStorage",
    "InMemoryPlanStateStorage",
    "JsonFilePlanStateStorage",
]
