"""
visibility.py — Which candidate profiles a viewer may see on the map.

A candidate is visible when either:
  (a) they belong to the viewer's institution, or
  (b) both profiles have coordinates and are within the proximity radius
      (50 miles = 80,467 m by default).

The predicate is pairwise and side-effect free. The viewer never appears
in their own candidate set; the storage query excludes them and
filter_visible() drops them again by identity.
"""

from enum import Enum
from typing import Iterable, Optional

from flock.core.config import settings
from flock.geo.distance import distance_meters
from flock.models.location import UserLocationRecord, ViewerContext


class VisibilityPolicy(str, Enum):
    INSTITUTION = "institution"                       # rule (a) only
    INSTITUTION_OR_NEARBY = "institution_or_nearby"   # (a) or (b)


def same_institution(viewer: ViewerContext, candidate: UserLocationRecord) -> bool:
    return candidate.institution_id is not None and candidate.institution_id == viewer.institution_id


def _radius(radius_meters: Optional[float]) -> float:
    return settings.proximity_radius_meters if radius_meters is None else radius_meters


def within_radius(
    viewer: ViewerContext,
    candidate: UserLocationRecord,
    radius_meters: Optional[float] = None,
) -> bool:
    if not (viewer.has_coordinates and candidate.has_coordinates):
        return False
    distance = distance_meters(viewer.latitude, viewer.longitude, candidate.latitude, candidate.longitude)
    return distance <= _radius(radius_meters)


def is_visible(
    viewer: ViewerContext,
    candidate: UserLocationRecord,
    radius_meters: Optional[float] = None,
) -> bool:
    """
    True when *candidate* shares the viewer's institution or lives within
    *radius_meters* (settings.proximity_radius_meters when omitted).
    """
    return same_institution(viewer, candidate) or within_radius(viewer, candidate, radius_meters)


def filter_visible(
    viewer: ViewerContext,
    candidates: Iterable[UserLocationRecord],
    policy: VisibilityPolicy = VisibilityPolicy.INSTITUTION_OR_NEARBY,
    radius_meters: Optional[float] = None,
) -> list[UserLocationRecord]:
    """Return the candidates visible to *viewer* under *policy*, in input order."""
    radius = _radius(radius_meters)
    visible = []
    for candidate in candidates:
        if candidate.user_id == viewer.user_id:
            continue
        if policy is VisibilityPolicy.INSTITUTION:
            keep = same_institution(viewer, candidate)
        else:
            keep = is_visible(viewer, candidate, radius)
        if keep:
            visible.append(candidate)
    return visible
