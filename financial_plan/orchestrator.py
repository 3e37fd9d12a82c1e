"""
Plan Editing Session

This module ties the engine components together into the one stateful
object a UI talks to:
1. Load (fetch saved state -> overlay, stats overrides, catalog)
2. Read/Write cells (base hierarchy + overlay, dirty tracking)
3. Save (audit log for the selected year -> persisted payload)
4. Cancel (back to the last loaded/saved snapshot)

DESIGN DECISION: The session enforces the boundaries:
- The base hierarchy is never written to; every edit goes to the overlay
- A failed save changes nothing, so the user can retry without losing edits
- Every state transition is logged

All state lives on the session instance. Company/location is an explicit
PlanContext handed to storage on every call; nothing is read from ambient
globals once the session exists.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from financial_plan.audit import DirtyTracker, PlanEventLogger, build_audit_log, configure_logging
from financial_plan.catalog import CatalogResolver
from financial_plan.config import EngineSettings, Settings, get_settings
from financial_plan.data import PlanDataset, default_catalog, load_dataset
from financial_plan.hierarchy import build_plan_data
from financial_plan.models import (
    MONTHS_PER_YEAR,
    AuditEntry,
    BusinessPlanDraft,
    BusinessPlanTargets,
    CausaleGroup,
    EditMode,
    Overview,
    PlanContext,
    PlanStatePayload,
    ProfitBreakdown,
    StatsOverride,
    Track,
    WriteResult,
    YearData,
    ValidationReport,
    YearMetrics,
    build_month_key,
)
from financial_plan.overlay import OverrideMap, PlanOverlay
from financial_plan.rollups import (
    build_overview,
    business_plan_from_draft,
    business_plan_from_metrics,
    category_subtotals,
    compute_year_metrics,
    derive_profit,
)
from financial_plan.services.storage import (
    GoogleSheetsPlanStateStorage,
    InMemoryPlanStateStorage,
    JsonFilePlanStateStorage,
    PersistenceError,
    PlanStateStorageInterface,
)
from financial_plan.validation import DatasetValidator


STATS_OVERRIDE_FIELDS = frozenset(StatsOverride.model_fields)


@dataclass(frozen=True)
class _Snapshot:
    """Last successfully loaded or saved state. Cancel replays it."""
    preventivo: OverrideMap
    consuntivo: OverrideMap
    stats_overrides: dict[str, StatsOverride]
    catalog: tuple[CausaleGroup, ...]
    catalog_version: Optional[str]


class PlanEditingSession:
    """
    A single editor's session over one company's plan.

    Usage:
        session = PlanEditingSession(dataset, storage, context)
        await session.load()
        session.write(Track.PREVENTIVO, "COSTI FISSI", cat, "Affitto", 2025, 0, 900)
        entries = await session.save(selected_year=2025)
    """

    def __init__(
        self,
        dataset: PlanDataset,
        storage: PlanStateStorageInterface,
        context: Optional[PlanContext] = None,
        settings: Optional[EngineSettings] = None,
        event_logger: Optional[PlanEventLogger] = None,
        resolver: Optional[CatalogResolver] = None,
    ):
        self._dataset = dataset
        self._storage = storage
        self._context = context or PlanContext()
        self._settings = settings or EngineSettings()
        self._events = event_logger or PlanEventLogger(self._context)
        self._resolver = resolver or CatalogResolver()

        self._catalog: list[CausaleGroup] = self._fallback_catalog()
        self._catalog_version: Optional[str] = dataset.version
        self._plan_cache: Optional[tuple[str, dict[int, YearData]]] = None

        self._overlay = PlanOverlay(base={})
        self._stats_overrides: dict[str, StatsOverride] = {}
        self._dirty = DirtyTracker()
        self._mode = EditMode.LOCKED
        self._snapshot = self._take_snapshot()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def context(self) -> PlanContext:
        return self._context

    @property
    def mode(self) -> EditMode:
        return self._mode

    @property
    def catalog(self) -> list[CausaleGroup]:
        return [group.model_copy(deep=True) for group in self._catalog]

    @property
    def catalog_version(self) -> Optional[str]:
        return self._catalog_version

    @property
    def stats_overrides(self) -> dict[str, StatsOverride]:
        return {key: value.model_copy() for key, value in self._stats_overrides.items()}

    def overrides(self, track: Track) -> OverrideMap:
        return self._overlay.overrides(track)

    def dirty_count(self) -> int:
        return self._dirty.dirty_count()

    def is_dirty(self, key: str) -> bool:
        return self._dirty.is_dirty(key)

    def dirty_keys(self) -> frozenset[str]:
        return self._dirty.keys()

    def _fallback_catalog(self) -> list[CausaleGroup]:
        if self._dataset.causali:
            return [group.model_copy(deep=True) for group in self._dataset.causali]
        return default_catalog()

    def _take_snapshot(self) -> _Snapshot:
        return _Snapshot(
            preventivo=self._overlay.overrides(Track.PREVENTIVO),
            consuntivo=self._overlay.overrides(Track.CONSUNTIVO),
            stats_overrides=self.stats_overrides,
            catalog=tuple(self.catalog),
            catalog_version=self._catalog_version,
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        self._overlay.replace_overrides(snapshot.preventivo, snapshot.consuntivo)
        self._stats_overrides = {
            key: value.model_copy() for key, value in snapshot.stats_overrides.items()
        }
        self._catalog = [group.model_copy(deep=True) for group in snapshot.catalog]
        self._catalog_version = snapshot.catalog_version
        self._dirty.clear()
        self._mode = EditMode.LOCKED

    # =========================================================================
    # HIERARCHY
    # =========================================================================

    @property
    def plan_by_year(self) -> dict[int, YearData]:
        """Base hierarchy, rebuilt only when the catalog version changes."""
        version = self._resolver.version_of(self._catalog, self._catalog_version)
        if self._plan_cache is None or self._plan_cache[0] != version:
            index = self._resolver.index_for(self._catalog, version)
            plan = build_plan_data(
                self._dataset.rows,
                index,
                fallback_category=self._settings.fallback_category,
            )
            self._plan_cache = (version, plan)
        return self._plan_cache[1]

    def _synced_overlay(self) -> PlanOverlay:
        self._overlay.rebase(self.plan_by_year)
        return self._overlay

    def available_years(self) -> list[int]:
        return sorted(self.plan_by_year)

    def latest_year(self) -> int:
        """Most recent year with data, or the current calendar year."""
        years = self.available_years()
        return years[-1] if years else datetime.now().year

    def update_catalog(self, catalog: list[CausaleGroup], version: Optional[str] = None) -> None:
        """
        Swap the catalog and rebuild the hierarchy. Overlays are kept.

        The new catalog is persisted with the next save and reverted by
        cancel.
        """
        self._catalog = [group.model_copy(deep=True) for group in catalog]
        self._catalog_version = version
        self._events.log_catalog_updated(
            catalog_version=self._resolver.version_of(self._catalog, version),
            years=self.available_years(),
        )

    # =========================================================================
    # LOAD / RELOAD
    # =========================================================================

    async def load(self) -> None:
        """
        Fetch the saved state for this context and make it the snapshot.

        A missing payload means "start from defaults". A payload without a
        catalog falls back to the dataset's catalog (or the compiled-in one).
        """
        payload = await self._storage.fetch_state(self._context)

        if payload is None:
            self._events.log_state_defaulted()
            payload = PlanStatePayload()

        preventivo = OverrideMap.from_dict(payload.preventivo_overrides)
        consuntivo = OverrideMap.from_dict(payload.consuntivo_overrides)
        self._overlay.replace_overrides(preventivo, consuntivo)
        self._stats_overrides = {
            key: value.model_copy() for key, value in payload.stats_overrides.items()
        }

        if payload.causali_catalog:
            self._catalog = [group.model_copy(deep=True) for group in payload.causali_catalog]
            self._catalog_version = payload.causali_version
        else:
            self._catalog = self._fallback_catalog()
            self._catalog_version = self._dataset.version

        self._dirty.clear()
        self._mode = EditMode.LOCKED
        self._snapshot = self._take_snapshot()

        self._events.log_state_loaded(
            preventivo_overrides=len(preventivo),
            consuntivo_overrides=len(consuntivo),
            catalog_version=self._catalog_version,
        )

    async def reload(self) -> None:
        """Re-fetch from storage, discarding any unsaved edits."""
        discarded = self._dirty.dirty_count()
        await self.load()
        if discarded:
            self._events.log_edits_cancelled(discarded)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate_dataset(self) -> ValidationReport:
        """
        Check the raw rows and the current overrides against the catalog.

        Reports and logs; never changes the session.
        """
        validator = DatasetValidator(self._settings.fallback_category)
        report = validator.validate(
            self._dataset.rows,
            self._catalog,
            preventivo=self._overlay.overrides(Track.PREVENTIVO),
            consuntivo=self._overlay.overrides(Track.CONSUNTIVO),
        )
        self._events.log_dataset_validated(report, validator.get_summary(report))
        return report

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    def read(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
    ) -> float:
        """Effective cell value: override, else base, else 0."""
        return self._synced_overlay().read(track, macro, category, detail, year, month_index)

    def begin_editing(self) -> bool:
        """Unlock without writing. Returns True if the mode changed."""
        if self._mode == EditMode.EDITING:
            return False
        self._mode = EditMode.EDITING
        self._events.log_edit_started()
        return True

    def write(
        self,
        track: Track,
        macro: str,
        category: str,
        detail: str,
        year: int,
        month_index: int,
        value: Optional[float],
    ) -> WriteResult:
        """
        Set (value) or clear (None) one override and mark the cell dirty.

        Raises:
            ValueError: If month_index is outside 0-11
        """
        track = Track(track)
        overlay = self._synced_overlay()
        month_key = overlay.write(track, macro, category, detail, year, month_index, value)

        key = self._dirty.mark_dirty(track, macro, category, detail, month_key)
        entered = self.begin_editing()
        self._events.log_cell_written(key, value)

        return WriteResult(
            value=overlay.read(track, macro, category, detail, year, month_index),
            dirty_key=key,
            mode=self._mode,
            entered_edit_mode=entered,
        )

    def set_stats_override(
        self,
        year: int,
        month_index: int,
        field: str,
        value: Optional[float],
    ) -> StatsOverride:
        """
        Set or clear one forecast figure of the stats table.

        Stats overrides put the session in edit mode and travel with the
        next save, but they are not cells: no dirty key, no audit entry.
        """
        if field not in STATS_OVERRIDE_FIELDS:
            raise ValueError(
                f"Unknown stats field '{field}', expected one of {sorted(STATS_OVERRIDE_FIELDS)}"
            )
        if not 0 <= month_index < MONTHS_PER_YEAR:
            raise ValueError(f"month_index must be 0-11, got {month_index}")

        month_key = build_month_key(year, month_index)
        current = self._stats_overrides.get(month_key, StatsOverride())
        updated = current.model_copy(
            update={field: float(value) if value is not None else None}
        )
        if updated.is_empty():
            self._stats_overrides.pop(month_key, None)
        else:
            self._stats_overrides[month_key] = updated

        self.begin_editing()
        self._events.log_stats_override_written(month_key, field, value)
        return updated

    # =========================================================================
    # SAVE / CANCEL
    # =========================================================================

    def build_payload(self, manual_log: list[AuditEntry]) -> PlanStatePayload:
        return PlanStatePayload(
            preventivo_overrides=self._overlay.overrides(Track.PREVENTIVO).to_dict(),
            consuntivo_overrides=self._overlay.overrides(Track.CONSUNTIVO).to_dict(),
            manual_log=manual_log,
            monthly_metrics=[],
            stats_overrides=self.stats_overrides,
            causali_catalog=self.catalog,
            causali_version=self._catalog_version,
        )

    async def save(
        self,
        selected_year: int,
        created_at: Optional[datetime] = None,
    ) -> list[AuditEntry]:
        """
        Persist the full state with the manual log of the selected year.

        On success the dirty set is cleared (for every year, not only the
        selected one), the mode returns to LOCKED and the saved state
        becomes the cancel snapshot.

        Raises:
            PersistenceError: If storage fails. Session state is unchanged.
        """
        entries = build_audit_log(
            self._overlay.overrides(Track.PREVENTIVO),
            self._overlay.overrides(Track.CONSUNTIVO),
            selected_year,
            created_at=created_at,
        )
        payload = self.build_payload(entries)
        saved_snapshot = self._take_snapshot()

        try:
            await self._storage.persist_state(self._context, payload)
        except Exception as e:
            self._events.log_save_failed(selected_year, e)
            raise PersistenceError(f"Failed to save plan for {selected_year}: {e}") from e

        cleared = self._dirty.dirty_count()
        self._dirty.clear()
        self._mode = EditMode.LOCKED
        self._snapshot = saved_snapshot
        self._events.log_plan_saved(selected_year, entries, cleared)
        return entries

    def cancel(self) -> None:
        """Discard unsaved edits and go back to the last loaded/saved state."""
        discarded = self._dirty.dirty_count()
        self._restore(self._snapshot)
        self._events.log_edits_cancelled(discarded)

    # =========================================================================
    # ROLL-UPS (overlay-aware)
    # =========================================================================

    def effective_year(self, year: int) -> Optional[YearData]:
        """The year with every override applied, totals recomputed."""
        return self._synced_overlay().effective_year(year)

    def effective_plan(self) -> dict[int, YearData]:
        years = set(self.plan_by_year)
        years.update(self._overlay.overrides(Track.PREVENTIVO).years())
        years.update(self._overlay.overrides(Track.CONSUNTIVO).years())
        plan = {}
        for year in sorted(years):
            year_data = self.effective_year(year)
            if year_data is not None:
                plan[year] = year_data
        return plan

    def category_subtotal(
        self,
        track: Track,
        macro: str,
        category: str,
        year: int,
        month_index: int,
    ) -> float:
        return category_subtotals(self.effective_year(year), macro, category, Track(track))[month_index]

    def row_has_any_value(self, macro: str, category: str, detail: str, year: int) -> bool:
        """True if any month of either track reads non-zero."""
        overlay = self._synced_overlay()
        for month_index in range(MONTHS_PER_YEAR):
            for track in Track:
                if overlay.read(track, macro, category, detail, year, month_index) != 0:
                    return True
        return False

    def derive_profit(self, year: int, track: Track = Track.CONSUNTIVO) -> ProfitBreakdown:
        return derive_profit(
            self.effective_year(year),
            Track(track),
            income_macro=self._settings.income_macro,
            fixed_costs_macro=self._settings.fixed_costs_macro,
            variable_costs_macro=self._settings.variable_costs_macro,
        )

    def overview(self, year: int) -> Overview:
        return build_overview(
            self.effective_year(year),
            year,
            income_macro=self._settings.income_macro,
            fixed_costs_macro=self._settings.fixed_costs_macro,
            variable_costs_macro=self._settings.variable_costs_macro,
        )

    def year_metrics(self) -> dict[int, YearMetrics]:
        return compute_year_metrics(
            self.effective_plan(),
            self._dataset.stats,
            income_macro=self._settings.income_macro,
            fixed_costs_macro=self._settings.fixed_costs_macro,
            variable_costs_macro=self._settings.variable_costs_macro,
        )

    def business_plan(
        self,
        target_year: int,
        base_year: Optional[int] = None,
        draft: Optional[BusinessPlanDraft] = None,
    ) -> BusinessPlanTargets:
        """
        Targets for target_year: from a saved draft if given, otherwise
        seeded from the actuals of base_year (default: the year before).
        """
        if draft is not None:
            return business_plan_from_draft(draft)
        base = base_year if base_year is not None else target_year - 1
        return business_plan_from_metrics(self.year_metrics().get(base), base, target_year)


def create_session(
    context: Optional[PlanContext] = None,
    backend: str = "local",
    dataset: Optional[PlanDataset] = None,
    settings: Optional[Settings] = None,
) -> PlanEditingSession:
    """
    Factory function to create a session with its collaborators.

    Args:
        context: Company/location of the plan
        backend: "memory", "local" (JSON files) or "google_sheets".
                 If Google Sheets isn't configured, local files are used.
        dataset: Preloaded dataset; loaded from settings when omitted
        settings: Root settings; the cached settings when omitted

    Returns:
        A session ready for `await session.load()`
    """
    settings = settings or get_settings()
    engine = settings.engine
    configure_logging(settings.app.effective_log_level)

    context = context or PlanContext()
    event_logger = PlanEventLogger(context)

    if dataset is None:
        dataset = load_dataset(engine.dataset_path)
        event_logger.log_dataset_loaded(
            source=engine.dataset_path or "bundled",
            rows=len(dataset.rows),
            version=dataset.version,
        )

    storage: PlanStateStorageInterface
    if backend == "memory":
        storage = InMemoryPlanStateStorage()
    elif backend == "google_sheets":
        try:
            storage = GoogleSheetsPlanStateStorage()
        except Exception as e:
            # Storage not configured - continue with local files
            structlog.get_logger(__name__).warning(
                "google_sheets_unavailable", error=str(e), fallback="local"
            )
            storage = JsonFilePlanStateStorage(engine.state_dir)
    elif backend == "local":
        storage = JsonFilePlanStateStorage(engine.state_dir)
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    session = PlanEditingSession(
        dataset=dataset,
        storage=storage,
        context=context,
        settings=engine,
        event_logger=event_logger,
    )
    session.validate_dataset()
    return session
