"""
location.py — Pydantic models for viewer-scoped location aggregation.

Separation of concerns:
  UserLocationRecord  — one profile's geographic footprint (read from Mongo)
  ViewerContext       — the authenticated viewer, passed explicitly everywhere
  RegionAggregate     — one region's count + representative coordinate
  RegionAggregation   — the full result of one aggregation pass
  LocationScope       — ?state= / ?country= query scope
  LocationsResponse   — wire shape of GET /api/v1/locations
  CountsOnly / CountsWithCoordinates — client-side tagged variant of the
                        response, resolved once at the HTTP boundary
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

# (longitude, latitude) — GeoJSON order
LonLat = tuple[float, float]


class GroupKey(str, Enum):
    """Which record field an aggregation pass groups by."""

    COUNTRY = "country"
    STATE = "state"
    CITY = "city"


class _Located(BaseModel):
    """Shared coordinate fields + the both-or-neither invariant."""

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def _coordinates_are_atomic(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class UserLocationRecord(_Located):
    """A candidate profile as far as the map is concerned."""

    user_id: str
    institution_id: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None  # abbreviation ("CA") or full name
    country: str = "United States"


class ViewerContext(_Located):
    """The profile requesting map data."""

    user_id: str
    institution_id: Optional[str] = None


class RegionAggregate(BaseModel):
    region_key: str
    count: int = Field(ge=1)
    representative_coordinate: Optional[LonLat] = None


class RegionAggregation(BaseModel):
    """
    Counts per region plus first-seen coordinates.

    Built fresh for every request; never persisted.
    """

    counts: dict[str, int] = Field(default_factory=dict)
    coordinates: dict[str, LonLat] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.counts

    @property
    def max_count(self) -> int:
        return max(self.counts.values(), default=0)

    def aggregates(self) -> list[RegionAggregate]:
        return [
            RegionAggregate(
                region_key=key,
                count=count,
                representative_coordinate=self.coordinates.get(key),
            )
            for key, count in self.counts.items()
        ]


class LocationScope(BaseModel):
    """At most one of state / country is set; neither means the world view."""

    state: Optional[str] = None
    country: Optional[str] = None

    @model_validator(mode="after")
    def _one_scope_at_most(self):
        if self.state and self.country:
            raise ValueError("state and country cannot both be set")
        return self

    def as_params(self) -> dict[str, str]:
        if self.state:
            return {"state": self.state}
        if self.country:
            return {"country": self.country}
        return {}


class LocationsResponse(BaseModel):
    """
    Response body for GET /api/v1/locations.

    `coordinates` is only populated for city-level responses and is
    dropped from the JSON otherwise (route uses response_model_exclude_none).
    """

    locations: dict[str, int] = Field(default_factory=dict)
    coordinates: Optional[dict[str, LonLat]] = None
    error: Optional[str] = None


# ── Client-side tagged variant ────────────────────────────────────────────────

class CountsOnly(BaseModel):
    kind: Literal["counts"] = "counts"
    locations: dict[str, int] = Field(default_factory=dict)


class CountsWithCoordinates(BaseModel):
    kind: Literal["counts_with_coordinates"] = "counts_with_coordinates"
    locations: dict[str, int] = Field(default_factory=dict)
    coordinates: dict[str, LonLat] = Field(default_factory=dict)


RegionResponse = Union[CountsOnly, CountsWithCoordinates]


def region_response_from_payload(payload: dict) -> RegionResponse:
    """Resolve the loosely-shaped JSON body into one of the two variants."""
    locations = payload.get("locations") or {}
    if "coordinates" in payload:
        return CountsWithCoordinates(
            locations=locations,
            coordinates=payload.get("coordinates") or {},
        )
    return CountsOnly(locations=locations)


def aggregation_from_response(response: RegionResponse) -> RegionAggregation:
    if isinstance(response, CountsWithCoordinates):
        return RegionAggregation(counts=response.locations, coordinates=response.coordinates)
    return RegionAggregation(counts=response.locations)
