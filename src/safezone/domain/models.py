"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- catalog entities (`IncidentReport`, `AffairTaxonomy`)
- geocoding outcomes (`Resolved` / `Failed`)
- discovery inputs (`DiscoveryConfig`) and outputs (`ReportMarker`, `DiscoveryResult`)
- the pass event stream consumed by map renderers

Reports and markers are frozen: a discovery pass reads a catalog snapshot and
publishes a brand-new marker list, it never edits either in place.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinate(BaseModel):
    """A geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class IncidentReport(BaseModel):
    """One user-submitted incident report as fetched from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str | None = None
    free_text_address: str | None = None
    affair_id: int | None = None
    created_at: datetime
    media_url: str | None = None
    reporter_display_name: str | None = None
    status_id: int | None = None


class AffairTaxonomy(BaseModel):
    """Lookup of affair (incident category) id to its human-readable name."""

    model_config = ConfigDict(frozen=True)

    names: dict[int, str] = Field(default_factory=dict)

    def name_for(self, affair_id: int | None) -> str | None:
        if affair_id is None:
            return None
        return self.names.get(affair_id)


FailureKind = Literal["empty_address", "not_found", "provider_error"]


class Resolved(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["resolved"] = "resolved"
    coordinate: Coordinate


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    reason: str
    failure: FailureKind = "provider_error"
    retryable: bool = False
    retry_after_seconds: float | None = None


GeocodeResult = Annotated[Union[Resolved, Failed], Field(discriminator="kind")]


class ReportMarker(BaseModel):
    """A display-ready record for one report's position and summary."""

    model_config = ConfigDict(frozen=True)

    report_id: str
    coordinate: Coordinate
    title: str
    description_snippet: str
    distance_km: float | None = None
    category_name: str | None = None
    media_url: str | None = None
    created_at: datetime


class DiscoveryConfig(BaseModel):
    """Inclusion/ordering policy and map framing for one discovery pass."""

    include_user_location: bool = True
    show_all_reports: bool = False
    max_distance_km: float = 10.0
    initial_zoom: float = Field(12.0, ge=1, le=21)

    @model_validator(mode="after")
    def _validate_radius(self) -> "DiscoveryConfig":
        if not self.show_all_reports and not self.max_distance_km > 0:
            raise ValueError("max_distance_km must be > 0 when show_all_reports is false")
        return self


DiagnosticKind = Literal["ADDRESS_EMPTY", "GEOCODE_FAILED", "FILTERED_OUT"]


class DiagnosticEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    report_id: str
    kind: DiagnosticKind
    reason: str
    distance_km: float | None = None


class DiscoveryDiagnostics(BaseModel):
    """Non-fatal per-report outcomes accumulated during one pass."""

    entries: list[DiagnosticEntry] = Field(default_factory=list)

    def of_kind(self, kind: DiagnosticKind) -> list[DiagnosticEntry]:
        return [e for e in self.entries if e.kind == kind]

    @property
    def geocode_failures(self) -> list[DiagnosticEntry]:
        return self.of_kind("GEOCODE_FAILED")

    @property
    def filtered_out(self) -> list[DiagnosticEntry]:
        return self.of_kind("FILTERED_OUT")

    @property
    def unplaced_count(self) -> int:
        """Reports that could not be placed on the map (empty or failed address)."""
        return len(self.of_kind("ADDRESS_EMPTY")) + len(self.geocode_failures)


class MapView(BaseModel):
    center: Coordinate
    zoom: float


class DiscoveryResult(BaseModel):
    """The published outcome of a successful discovery pass."""

    pass_id: int
    generated_at: datetime
    user_coordinate: Coordinate | None = None
    markers: list[ReportMarker]
    diagnostics: DiscoveryDiagnostics = Field(default_factory=DiscoveryDiagnostics)
    map_view: MapView
    meta: dict[str, Any] = Field(default_factory=dict)


class PassState(str, Enum):
    IDLE = "idle"
    ACQUIRING_LOCATION = "acquiring_location"
    FETCHING_CATALOG = "fetching_catalog"
    BUILDING_INDEX = "building_index"
    FILTERING_SORTING = "filtering_sorting"
    PUBLISHED = "published"
    ERRORED = "errored"


class Loading(BaseModel):
    type: Literal["loading"] = "loading"
    pass_id: int
    state: PassState


class PartialDiagnostics(BaseModel):
    type: Literal["partial"] = "partial"
    pass_id: int
    diagnostics: DiscoveryDiagnostics


class Published(BaseModel):
    type: Literal["published"] = "published"
    pass_id: int
    result: DiscoveryResult


class Errored(BaseModel):
    type: Literal["errored"] = "errored"
    pass_id: int
    reason: str


DiscoveryEvent = Union[Loading, PartialDiagnostics, Published, Errored]
