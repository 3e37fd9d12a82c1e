"""
Plan Event Logger

DESIGN DECISION: Every state transition of an editing session is logged.
This provides:
1. Traceability of loads, edits, saves and cancels
2. Debugging capability when a save fails
3. A data-quality trail (skipped rows, catalog changes)

The logger never raises: logging is a side channel and must not break
an edit or a save.
"""

import logging
from typing import Optional

import structlog

from financial_plan.models.audit import AuditEntry, PlanEventType
from financial_plan.models.state import PlanContext
from financial_plan.models.validation import ValidationReport


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's JSON lines through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))


class PlanEventLogger:
    """
    Structured logger for plan session events.

    Every event carries the plan context so logs from several companies
    can be told apart.
    """

    def __init__(self, context: Optional[PlanContext] = None):
        self._logger = structlog.get_logger("financial_plan").bind(
            company_id=context.company_id if context else None,
            location_id=context.location_id if context else None,
        )

    def log_dataset_loaded(self, source: str, rows: int, version: Optional[str]) -> None:
        self._logger.info(
            PlanEventType.DATASET_LOADED.value,
            source=source,
            rows=rows,
            dataset_version=version,
        )

    def log_dataset_validated(self, report: ValidationReport, summary: str) -> None:
        log = self._logger.warning if report.issues else self._logger.info
        log(
            PlanEventType.DATASET_VALIDATED.value,
            rows_checked=report.rows_checked,
            overrides_checked=report.overrides_checked,
            issues=len(report.issues),
            warnings=report.warning_count,
            has_errors=report.has_errors,
            summary=summary,
        )

    def log_state_loaded(
        self,
        preventivo_overrides: int,
        consuntivo_overrides: int,
        catalog_version: Optional[str],
    ) -> None:
        self._logger.info(
            PlanEventType.STATE_LOADED.value,
            preventivo_overrides=preventivo_overrides,
            consuntivo_overrides=consuntivo_overrides,
            catalog_version=catalog_version,
        )

    def log_state_defaulted(self) -> None:
        """Storage had nothing for this context - compiled-in defaults apply."""
        self._logger.info(PlanEventType.STATE_DEFAULTED.value)

    def log_catalog_updated(self, catalog_version: str, years: list[int]) -> None:
        self._logger.info(
            PlanEventType.CATALOG_UPDATED.value,
            catalog_version=catalog_version,
            years=years,
        )

    def log_edit_started(self) -> None:
        self._logger.info(PlanEventType.EDIT_STARTED.value)

    def log_cell_written(self, key: str, value: Optional[float]) -> None:
        self._logger.debug(
            PlanEventType.CELL_WRITTEN.value,
            cell=key,
            value=value,
            cleared=value is None,
        )

    def log_stats_override_written(self, month_key: str, field: str, value: Optional[float]) -> None:
        self._logger.debug(
            PlanEventType.STATS_OVERRIDE_WRITTEN.value,
            month_key=month_key,
            field=field,
            value=value,
        )

    def log_edits_cancelled(self, discarded: int) -> None:
        self._logger.info(PlanEventType.EDITS_CANCELLED.value, discarded_cells=discarded)

    def log_plan_saved(
        self,
        year: int,
        entries: list[AuditEntry],
        cleared_dirty: int,
    ) -> None:
        self._logger.info(
            PlanEventType.PLAN_SAVED.value,
            year=year,
            audit_entries=len(entries),
            cleared_dirty=cleared_dirty,
        )
        for entry in entries:
            self._logger.debug("manual_log_entry", **entry.to_log_dict())

    def log_save_failed(self, year: int, error: Exception) -> None:
        self._logger.error(
            PlanEventType.SAVE_FAILED.value,
            year=year,
            error=str(error),
            error_type=type(error).__name__,
        )
