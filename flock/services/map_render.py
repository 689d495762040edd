"""
map_render.py — Turn a RegionAggregation into map surface output.

Produces, for the current MapViewState:
  • fill_color  — MapLibre `match` expression on the polygon `name`
                  property (countries or US states), "#cccccc" fallback
  • bubbles     — one marker per city, diameter ∝ sqrt(count) so bubble
                  area tracks the count, clamped to [20, 50] px
  • legend      — colour + "{lo}-{hi}" / "{last+1}+" rows
  • title / subtitle for the legend panel

Polygon keys with no matching feature are not errors: they render with
the fallback colour and are logged as a data-quality warning.
"""

import logging
import math
from typing import Optional

from flock.geo.buckets import NO_DATA_COLOR, ThresholdScale, buckets
from flock.geo.geometry import GeometryCatalog
from flock.models.location import RegionAggregation
from flock.models.map_view import BubbleMarker, MapCamera, MapViewState, RenderedMap, ViewLevel

logger = logging.getLogger(__name__)

MIN_BUBBLE_DIAMETER = 20.0
MAX_BUBBLE_DIAMETER = 50.0
_BUBBLE_GROWTH = 40.0


def people_label(count: int) -> str:
    return f"{count} {'person' if count == 1 else 'people'}"


def bubble_diameter(count: int, max_count: int) -> float:
    """sqrt-scaled marker diameter in pixels, clamped to [20, 50]."""
    if max_count <= 0 or count <= 0:
        return MIN_BUBBLE_DIAMETER
    normalized = math.sqrt(count) / math.sqrt(max_count)
    size = MIN_BUBBLE_DIAMETER + normalized * _BUBBLE_GROWTH
    return max(MIN_BUBBLE_DIAMETER, min(MAX_BUBBLE_DIAMETER, size))


def fill_color_expression(counts: dict[str, int], scale: ThresholdScale):
    """`["match", ["get", "name"], key, colour, ..., fallback]`, or the fallback alone when empty."""
    if not counts:
        return NO_DATA_COLOR

    pairs: list = []
    for name, value in counts.items():
        pairs.extend([name, scale.color(value)])
    return ["match", ["get", "name"], *pairs, NO_DATA_COLOR]


def legend_heading(state: MapViewState) -> tuple[str, str]:
    if state.selected_state:
        title = f"{state.selected_state} Cities"
    elif state.level == ViewLevel.WORLD:
        title = "Classmates by Country"
    elif state.shows_us_states:
        title = "USA States"
    else:
        title = f"{state.selected_country} Cities"

    subtitle = "From your institution" if state.level == ViewLevel.WORLD else "Institution + 50mi radius"
    return title, subtitle


def _log_geometry_misses(counts: dict[str, int], geometry: GeometryCatalog) -> None:
    missing = sorted(key for key in counts if key not in geometry)
    if missing:
        logger.warning(
            "%d region key(s) have no polygon feature and will render as no-data: %s",
            len(missing),
            ", ".join(missing),
        )


def render_map(
    state: MapViewState,
    aggregation: RegionAggregation,
    geometry: Optional[GeometryCatalog] = None,
    camera: Optional[MapCamera] = None,
    failed: bool = False,
) -> RenderedMap:
    """
    Build the frame for *state* from *aggregation*.

    *geometry* is the polygon catalog for the current choropleth layer
    (countries at WORLD, US states at the US overview); pass None to skip
    the join check.
    """
    counts = dict(aggregation.counts)
    max_value = aggregation.max_count or 1
    scale = ThresholdScale(buckets(max_value))

    fill_color = NO_DATA_COLOR
    bubbles: list[BubbleMarker] = []

    if state.shows_cities:
        for city, value in counts.items():
            coords = aggregation.coordinates.get(city)
            if coords is None:
                continue
            bubbles.append(
                BubbleMarker(
                    city=city,
                    longitude=coords[0],
                    latitude=coords[1],
                    count=value,
                    diameter=bubble_diameter(value, max_value),
                    color=scale.color(value),
                    tooltip=people_label(value),
                )
            )
    else:
        fill_color = fill_color_expression(counts, scale)
        if geometry is not None and counts:
            _log_geometry_misses(counts, geometry)

    title, subtitle = legend_heading(state)
    return RenderedMap(
        state=state,
        counts=counts,
        max_count=aggregation.max_count,
        fill_color=fill_color,
        bubbles=bubbles,
        legend=scale.legend(),
        legend_title=title,
        legend_subtitle=subtitle,
        camera=camera,
        failed=failed,
    )
