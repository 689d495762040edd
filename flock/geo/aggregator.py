"""
aggregator.py — Group visible profiles by region.

One pass over the candidates:
  • resolve the grouping key (country / state / city), normalized so it
    matches the polygon feature names (see regions.py)
  • skip records with no value for that key
  • count per key
  • remember the first (longitude, latitude) seen for each key

The representative coordinate is first-seen-wins, not a centroid: the
first record with coordinates places the city bubble and later records
never move it.
"""

import logging
from typing import Callable, Iterable, Optional

from flock.geo.regions import normalize_country, normalize_state
from flock.models.location import GroupKey, LonLat, RegionAggregation, UserLocationRecord

logger = logging.getLogger(__name__)


def _city_key(record: UserLocationRecord) -> Optional[str]:
    if record.city is None:
        return None
    return record.city.strip() or None


_KEY_RESOLVERS: dict[GroupKey, Callable[[UserLocationRecord], Optional[str]]] = {
    GroupKey.COUNTRY: lambda r: normalize_country(r.country),
    GroupKey.STATE:   lambda r: normalize_state(r.state),
    GroupKey.CITY:    _city_key,
}


def region_key(record: UserLocationRecord, level: GroupKey) -> Optional[str]:
    """The normalized region key for *record* at *level*, or None if the field is empty."""
    return _KEY_RESOLVERS[level](record)


def aggregate(candidates: Iterable[UserLocationRecord], level: GroupKey) -> RegionAggregation:
    """
    Count *candidates* per region at *level*.

    Returns empty maps (not an error) when nothing can be grouped.
    """
    counts: dict[str, int] = {}
    coordinates: dict[str, LonLat] = {}
    skipped = 0

    for record in candidates:
        key = region_key(record, level)
        if key is None:
            skipped += 1
            continue

        counts[key] = counts.get(key, 0) + 1
        if key not in coordinates and record.has_coordinates:
            coordinates[key] = (record.longitude, record.latitude)

    if skipped:
        logger.debug("Skipped %d record(s) with no %s", skipped, level.value)

    return RegionAggregation(counts=counts, coordinates=coordinates)
