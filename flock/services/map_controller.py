"""
map_controller.py — Drill-down state machine for the alumni map.

STATES
──────
  WORLD                         country polygons, institution-only counts
  COUNTRY("United States")      US state polygons (initial state)
  COUNTRY(<other>)              city bubbles for that country
  STATE(<state name>)           city bubbles for that US state

TRANSITIONS
───────────
  WORLD   --select_country("United States of America")--> COUNTRY("United States")
  WORLD   --select_country(<other>)-------------------->  COUNTRY(<other>)
  COUNTRY("United States") --select_state(<name>)------>  STATE(<name>)
  STATE   --back-->  COUNTRY("United States")
  COUNTRY --back-->  WORLD

Every transition issues a fresh query; nothing is cached. Each one bumps
a generation counter, and a response that comes back after a newer
transition has started is dropped (last request wins). The HTTP call
itself is not cancelled.

If the query fails, the frame is rendered from an empty aggregation and
flagged `failed`; the next interaction (or retry()) queries again.

The location-selected callback receives (city, state_abbrev_or_country)
so the surrounding page can re-filter its classmate list.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from flock.clients.locations_client import LocationQueryError, LocationsClient
from flock.core.config import settings
from flock.geo.geometry import GeometryCatalog
from flock.geo.regions import UNITED_STATES, is_united_states, normalize_state, state_abbreviation
from flock.models.location import LocationScope, RegionAggregation, aggregation_from_response
from flock.models.map_view import (
    COUNTRY_ZOOM,
    STATE_PITCH,
    STATE_ZOOM,
    US_CAMERA,
    WORLD_CAMERA,
    MapCamera,
    MapViewState,
    RenderedMap,
    ViewLevel,
)
from flock.services.map_render import render_map

logger = logging.getLogger(__name__)

LocationSelectCallback = Callable[[str, str], Any]


class MapViewController:
    """
    Owns the view state for one viewer's map.

    Args:
        client:             Source of region counts (LocationsClient or compatible).
        on_location_select: Called with (city, state_abbrev_or_country) on selection changes.
        countries:          World polygon catalog (join check + fly-to centres).
        states:             US state polygon catalog.
    """

    def __init__(
        self,
        client: LocationsClient,
        on_location_select: Optional[LocationSelectCallback] = None,
        countries: Optional[GeometryCatalog] = None,
        states: Optional[GeometryCatalog] = None,
    ) -> None:
        self.client = client
        self.on_location_select = on_location_select
        self.countries = countries
        self.states = states

        self.state = MapViewState()
        self.rendered: Optional[RenderedMap] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    # ── Public transitions ────────────────────────────────────────────────────

    async def load(self) -> Optional[RenderedMap]:
        """Initial load of the US states overview."""
        return await self._transition(MapViewState(), US_CAMERA)

    async def retry(self) -> Optional[RenderedMap]:
        """Re-query the current view (e.g. after a failed load)."""
        camera = self.rendered.camera if self.rendered else None
        return await self._transition(self.state.model_copy(), camera)

    async def select_country(self, feature_name: str) -> Optional[RenderedMap]:
        """Country polygon clicked in the world view."""
        if self.state.level != ViewLevel.WORLD or not feature_name:
            logger.debug("Ignoring country click %r at level %s", feature_name, self.state.level.value)
            return self.rendered

        if is_united_states(feature_name):
            new_state = MapViewState(level=ViewLevel.COUNTRY, selected_country=UNITED_STATES)
            return await self._transition(new_state, US_CAMERA)

        new_state = MapViewState(level=ViewLevel.COUNTRY, selected_country=feature_name)
        camera = self._camera_for(self.countries, feature_name, COUNTRY_ZOOM)
        return await self._transition(new_state, camera, notify=("", feature_name))

    async def select_state(self, feature_name: str) -> Optional[RenderedMap]:
        """US state polygon clicked in the US overview."""
        abbrev = state_abbreviation(feature_name)
        if not self.state.shows_us_states or abbrev is None:
            logger.debug("Ignoring state click %r at level %s", feature_name, self.state.level.value)
            return self.rendered

        name = normalize_state(feature_name)
        new_state = MapViewState(
            level=ViewLevel.STATE,
            selected_country=UNITED_STATES,
            selected_state=name,
        )
        camera = self._camera_for(self.states, name, STATE_ZOOM, STATE_PITCH)
        return await self._transition(new_state, camera, notify=("", abbrev))

    def select_city(self, city: str) -> None:
        """City bubble clicked; no level change, only the page filter."""
        if not self.state.shows_cities:
            logger.debug("Ignoring city click %r at level %s", city, self.state.level.value)
            return
        self._notify(city, self.state.region_label)

    async def back(self) -> Optional[RenderedMap]:
        if self.state.level == ViewLevel.STATE:
            new_state = MapViewState(level=ViewLevel.COUNTRY, selected_country=UNITED_STATES)
            return await self._transition(new_state, US_CAMERA, notify=("", ""))

        if self.state.level == ViewLevel.COUNTRY:
            new_state = MapViewState(level=ViewLevel.WORLD, selected_country=None)
            return await self._transition(new_state, WORLD_CAMERA, notify=("", ""))

        return self.rendered

    # ── Internals ─────────────────────────────────────────────────────────────

    @staticmethod
    def scope_for(state: MapViewState) -> LocationScope:
        if state.level == ViewLevel.STATE and state.selected_state:
            return LocationScope(state=state_abbreviation(state.selected_state) or state.selected_state)
        if state.level == ViewLevel.COUNTRY and state.selected_country:
            return LocationScope(country=state.selected_country)
        return LocationScope()

    def _geometry_for(self, state: MapViewState) -> Optional[GeometryCatalog]:
        if state.level == ViewLevel.WORLD:
            return self.countries
        if state.shows_us_states:
            return self.states
        return None

    @staticmethod
    def _camera_for(
        catalog: Optional[GeometryCatalog],
        name: str,
        zoom: float,
        pitch: float = 0.0,
    ) -> Optional[MapCamera]:
        center = catalog.center(name) if catalog is not None else None
        if center is None:
            return None
        return MapCamera(longitude=center[0], latitude=center[1], zoom=zoom, pitch=pitch)

    def _notify(self, city: str, region: str) -> None:
        if self.on_location_select is None:
            return
        try:
            self.on_location_select(city, region)
        except Exception:
            logger.exception("location-select callback failed")

    async def _transition(
        self,
        new_state: MapViewState,
        camera: Optional[MapCamera],
        notify: Optional[tuple[str, str]] = None,
    ) -> Optional[RenderedMap]:
        self.state = new_state
        self._generation += 1
        generation = self._generation

        if notify is not None:
            self._notify(*notify)

        return await self._refresh(generation, new_state, camera)

    async def _refresh(
        self,
        generation: int,
        state: MapViewState,
        camera: Optional[MapCamera],
    ) -> Optional[RenderedMap]:
        failed = False
        try:
            response = await self.client.fetch_region_counts(self.scope_for(state))
            aggregation = aggregation_from_response(response)
        except LocationQueryError as exc:
            logger.warning("Region query failed for %s: %s", self.scope_for(state).as_params() or "world", exc)
            aggregation = RegionAggregation()
            failed = True
        except Exception:
            logger.exception("Unexpected error querying regions")
            aggregation = RegionAggregation()
            failed = True

        if generation != self._generation:
            logger.debug("Discarding stale region response (gen %d, current %d)", generation, self._generation)
            return None

        self.rendered = render_map(
            state,
            aggregation,
            geometry=self._geometry_for(state),
            camera=camera,
            failed=failed,
        )
        return self.rendered


# ── Construction ──────────────────────────────────────────────────────────────

async def _load_catalog(url: str, transport: Optional[httpx.AsyncBaseTransport]) -> Optional[GeometryCatalog]:
    try:
        return await GeometryCatalog.fetch(url, transport=transport)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Polygon layer unavailable (%s): %s. Cameras fall back and joins go unchecked.", url, exc)
        return None


async def create_map_controller(
    token: Optional[str] = None,
    on_location_select: Optional[LocationSelectCallback] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> MapViewController:
    """
    Build a controller wired to the configured API and polygon layers.

    Both GeoJSON layers (settings.countries_geojson_url and
    settings.states_geojson_url) are fetched concurrently. A layer that
    fails to load is left as None; the map still works without it.
    """
    countries, states = await asyncio.gather(
        _load_catalog(settings.countries_geojson_url, transport),
        _load_catalog(settings.states_geojson_url, transport),
    )
    client = LocationsClient(token=token, transport=transport)
    return MapViewController(client, on_location_select=on_location_select, countries=countries, states=states)
