"""
Abstract Storage Interface

DESIGN DECISION: The engine only ever talks to storage through this
interface. This allows us to:
1. Keep state in memory for tests and single-use sessions
2. Keep one JSON file per company/location on local disk
3. Use Google Sheets where the plan has to be visible to non-technical users

The interface is intentionally small - a plan session needs exactly two
operations: fetch the saved state once, and persist it on save.
"""

from abc import ABC, abstractmethod
from typing import Optional

from financial_plan.models.state import PlanContext, PlanStatePayload


class PlanStateStorageInterface(ABC):
    """
    Abstract interface for plan state storage.

    Implementations are keyed by PlanContext; the engine passes the
    context explicitly on every call.
    """

    @abstractmethod
    async def fetch_state(self, context: PlanContext) -> Optional[PlanStatePayload]:
        """
        Fetch the saved state for a company/location.

        Args:
            context: Which plan to load

        Returns:
            The saved payload, or None when nothing was ever saved for
            this context. None is not an error: callers fall back to
            the compiled-in defaults.

        Raises:
            StorageError: If the backend can't be read
        """
        pass

    @abstractmethod
    async def persist_state(self, context: PlanContext, payload: PlanStatePayload) -> None:
        """
        Persist the full plan state.

        Args:
            context: Which plan to save
            payload: The complete state, including the manual log of
                this save

        Raises:
            StorageError: If the save fails. Nothing is retried by the
                caller.
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class PersistenceError(StorageError):
    """
    A save could not be completed.

    Raised by the editing session; the session state (overlay, dirty set,
    edit mode) is left exactly as it was before the save was attempted.
    """
    pass
