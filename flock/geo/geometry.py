"""
geometry.py — Read-only polygon catalogs for the choropleth layers.

Two GeoJSON FeatureCollections back the map:
  • world countries  (settings.countries_geojson_url)
  • US states        (settings.states_geojson_url)

Both key features by `properties.name`, which is what region keys from
the aggregator are joined against. The catalog also gives the camera a
fly-to target: the centre of a feature's bounding box (shapely bounds).
"""

import json
import logging
from pathlib import Path
from typing import Optional

import httpx
from shapely.errors import ShapelyError
from shapely.geometry import shape

from flock.models.location import LonLat

logger = logging.getLogger(__name__)


def bbox_center(geometry: dict) -> Optional[LonLat]:
    """Centre of the geometry's bounding box, or None for empty or unreadable geometries."""
    if not geometry or not geometry.get("coordinates"):
        return None
    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, IndexError, KeyError) as exc:
        logger.debug("Unreadable %s geometry: %s", geometry.get("type"), exc)
        return None
    if geom.is_empty:
        return None
    minx, miny, maxx, maxy = geom.bounds
    return ((minx + maxx) / 2, (miny + maxy) / 2)


class GeometryCatalog:
    """Features of one FeatureCollection, indexed by their `name` property."""

    def __init__(self, feature_collection: dict) -> None:
        self._features: dict[str, dict] = {}
        for feature in feature_collection.get("features", []):
            name = (feature.get("properties") or {}).get("name")
            if name:
                self._features[name] = feature

    def __contains__(self, name: str) -> bool:
        return name in self._features

    def __len__(self) -> int:
        return len(self._features)

    def names(self) -> set[str]:
        return set(self._features)

    def feature(self, name: str) -> Optional[dict]:
        return self._features.get(name)

    def center(self, name: str) -> Optional[LonLat]:
        feature = self._features.get(name)
        if feature is None or not feature.get("geometry"):
            return None
        return bbox_center(feature["geometry"])

    @classmethod
    def from_file(cls, path: str | Path) -> "GeometryCatalog":
        with open(path, encoding="utf-8") as fh:
            return cls(json.load(fh))

    @classmethod
    async def fetch(
        cls,
        url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "GeometryCatalog":
        """
        Download a FeatureCollection.

        Raises httpx.HTTPError on failure and ValueError on a non-JSON
        body; the caller decides whether to run without geometry (joins
        then can't be checked).
        """
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            catalog = cls(response.json())
        logger.info("Loaded %d features from %s", len(catalog), url)
        return catalog
