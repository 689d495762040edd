"""
map_view.py — Drill-down state and render payloads for the alumni map.

  ViewLevel     — WORLD | COUNTRY | STATE
  MapViewState  — current level + selected country / state
  MapCamera     — fly-to target emitted on each transition
  BubbleMarker  — one city bubble
  RenderedMap   — everything the map surface needs for one frame
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from flock.geo.buckets import NO_DATA_COLOR, LegendItem
from flock.geo.regions import UNITED_STATES, state_abbreviation


class ViewLevel(str, Enum):
    WORLD = "world"
    COUNTRY = "country"
    STATE = "state"


class MapViewState(BaseModel):
    """
    Where the viewer is in the drill-down.

    Initial state is the US states overview.
    """

    level: ViewLevel = ViewLevel.COUNTRY
    selected_country: Optional[str] = UNITED_STATES
    selected_state: Optional[str] = None  # full state name

    @property
    def shows_us_states(self) -> bool:
        return self.level == ViewLevel.COUNTRY and self.selected_country == UNITED_STATES

    @property
    def shows_cities(self) -> bool:
        """City bubbles: a state is selected, or a non-US country is."""
        return self.level == ViewLevel.STATE or (
            self.level == ViewLevel.COUNTRY and self.selected_country != UNITED_STATES
        )

    @property
    def region_label(self) -> str:
        """Second half of the location-selected callback: state abbreviation or country."""
        if self.selected_state:
            return state_abbreviation(self.selected_state) or self.selected_state
        return self.selected_country or ""


class MapCamera(BaseModel):
    longitude: float
    latitude: float
    zoom: float
    pitch: float = 0.0


WORLD_CAMERA = MapCamera(longitude=0, latitude=20, zoom=1.5)
US_CAMERA = MapCamera(longitude=-97, latitude=38, zoom=3.5)
COUNTRY_ZOOM = 5.0
STATE_ZOOM = 6.0
STATE_PITCH = 30.0


class BubbleMarker(BaseModel):
    city: str
    longitude: float
    latitude: float
    count: int
    diameter: float  # pixels
    color: str
    tooltip: str


class RenderedMap(BaseModel):
    """One frame of map output."""

    state: MapViewState
    counts: dict[str, int] = Field(default_factory=dict)
    max_count: int = 0
    # MapLibre paint expression, or a plain colour when nothing is highlighted
    fill_color: Any = NO_DATA_COLOR
    bubbles: list[BubbleMarker] = Field(default_factory=list)
    legend: list[LegendItem] = Field(default_factory=list)
    legend_title: str = ""
    legend_subtitle: str = ""
    camera: Optional[MapCamera] = None
    failed: bool = False  # upstream query failed; rendered as the empty map

    @property
    def highlighted_regions(self) -> list[str]:
        if not isinstance(self.fill_color, list):
            return []
        # ["match", ["get", "name"], k1, c1, k2, c2, ..., fallback]
        return list(self.fill_color[2:-1:2])
