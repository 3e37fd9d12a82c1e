"""
Persisted State Models

The shapes exchanged with the storage collaborators at load and save time.
Field aliases are the camelCase keys of the storage contract and must not
change: existing saved states are read back with them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from financial_plan.models.audit import AuditEntry
from financial_plan.models.plan import CausaleGroup, EditMode


# macro -> category -> detail -> "YYYY-MM" -> value
PlanOverrides = dict[str, dict[str, dict[str, dict[str, float]]]]


class StatsOverride(BaseModel):
    """User-entered forecast figures for one month of the stats table."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fatturato_previsionale: Optional[float] = None
    incassato_previsionale: Optional[float] = None
    utile_previsionale: Optional[float] = None

    def is_empty(self) -> bool:
        return (
            self.fatturato_previsionale is None
            and self.incassato_previsionale is None
            and self.utile_previsionale is None
        )


# "YYYY-MM" -> StatsOverride
StatsOverrides = dict[str, StatsOverride]


class PlanStatePayload(BaseModel):
    """
    The full plan state as fetched from and persisted to storage.

    On load only the override maps, stats overrides and catalog matter;
    `manual_log` and `monthly_metrics` are write-side fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    preventivo_overrides: PlanOverrides = Field(default_factory=dict)
    consuntivo_overrides: PlanOverrides = Field(default_factory=dict)
    manual_log: list[AuditEntry] = Field(default_factory=list)
    monthly_metrics: list[dict] = Field(default_factory=list)
    stats_overrides: StatsOverrides = Field(default_factory=dict)
    causali_catalog: list[CausaleGroup] = Field(default_factory=list)
    causali_version: Optional[str] = None

    def to_storage_dict(self) -> dict:
        """Serialize with the camelCase keys of the storage contract."""
        return self.model_dump(mode="json", by_alias=True)


class PlanContext(BaseModel):
    """
    Which company (and optionally location) a plan state belongs to.

    DESIGN DECISION: The context is an explicit object handed to the storage
    backends, never ambient state read by the engine.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    company_id: str = Field(default="default", min_length=1)
    location_id: Optional[str] = None

    @field_validator("company_id", "location_id")
    @classmethod
    def validate_path_safe(cls, v: Optional[str]) -> Optional[str]:
        """Ids become file and sheet keys: no path separators or dot segments."""
        if v is None:
            return v
        if "/" in v or "\\" in v or v in (".", "..") or "__" in v:
            raise ValueError(f"Invalid context id: {v!r}")
        return v

    @property
    def storage_key(self) -> str:
        if self.location_id:
            return f"{self.company_id}__{self.location_id}"
        return self.company_id


class WriteResult(BaseModel):
    """
    Outcome of a cell write.

    `entered_edit_mode` is True only for the write that moved the session
    from LOCKED to EDITING.
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., description="Value read back after the write")
    dirty_key: str
    mode: EditMode
    entered_edit_mode: bool = False
