"""
location_service.py — Viewer-scoped regional counts from the users collection.

This is the server side of GET /api/v1/locations. For one viewer and one
scope it:

  1. picks the aggregation level and visibility policy for the scope
  2. loads candidate profiles from Mongo (onboarded, visible, not the viewer)
  3. converts documents → UserLocationRecord, skipping malformed ones
  4. filters by visibility, then aggregates by region

SCOPE → LEVEL
─────────────
  (no params)               country level, same institution only   (world view)
  country=United States     state level,   institution + 50 mi     (US overview)
  country=<other>           city level,    institution + 50 mi     (+ coordinates)
  state=<abbrev or name>    city level,    institution + 50 mi     (+ coordinates)

Nothing here writes to the database.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from bson import ObjectId
from pydantic import ValidationError

from flock.core.config import settings
from flock.geo.aggregator import aggregate
from flock.geo.regions import country_aliases, is_united_states, state_aliases
from flock.geo.visibility import VisibilityPolicy, filter_visible
from flock.models.location import (
    GroupKey,
    LocationScope,
    LocationsResponse,
    UserLocationRecord,
    ViewerContext,
)

logger = logging.getLogger(__name__)

NO_INSTITUTION_MESSAGE = "No institution found. Please complete onboarding."

_CANDIDATE_PROJECTION = {
    "_id": 1,
    "institution_id": 1,
    "city": 1,
    "state": 1,
    "country": 1,
    "latitude": 1,
    "longitude": 1,
}


@dataclass(frozen=True)
class ScopePlan:
    level: GroupKey
    policy: VisibilityPolicy
    query: dict[str, Any]
    with_coordinates: bool
    us_only: bool = False


# ── Document conversion ───────────────────────────────────────────────────────

def id_variants(value: Any) -> list[Any]:
    """A stored id may be an ObjectId or its string form; match either."""
    text = str(value)
    variants: list[Any] = [text]
    if ObjectId.is_valid(text):
        variants.append(ObjectId(text))
    return variants


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def record_from_document(doc: dict) -> Optional[UserLocationRecord]:
    """
    Build a record from a users document, or None if it is malformed.

    Half-present or out-of-range coordinates make the whole record
    invalid; it is skipped rather than failing the request.
    """
    try:
        return UserLocationRecord(
            user_id=str(doc["_id"]),
            institution_id=_optional_str(doc.get("institution_id")),
            city=doc.get("city"),
            state=doc.get("state"),
            country=doc.get("country") or "United States",
            latitude=doc.get("latitude"),
            longitude=doc.get("longitude"),
        )
    except (KeyError, ValidationError) as exc:
        logger.debug("Skipping malformed profile %s: %s", doc.get("_id"), exc)
        return None


def viewer_from_document(doc: dict) -> ViewerContext:
    """
    Build the viewer context. Bad coordinates on the viewer's own profile
    only disable the proximity rule; they don't lock the viewer out.
    """
    user_id = str(doc["_id"])
    institution_id = _optional_str(doc.get("institution_id"))
    try:
        return ViewerContext(
            user_id=user_id,
            institution_id=institution_id,
            latitude=doc.get("latitude"),
            longitude=doc.get("longitude"),
        )
    except ValidationError:
        logger.warning("Viewer %s has malformed coordinates; proximity disabled", user_id)
        return ViewerContext(user_id=user_id, institution_id=institution_id)


# ── Scope planning ────────────────────────────────────────────────────────────

def plan_scope(viewer: ViewerContext, scope: LocationScope) -> ScopePlan:
    if scope.state:
        return ScopePlan(
            level=GroupKey.CITY,
            policy=VisibilityPolicy.INSTITUTION_OR_NEARBY,
            query={"state": {"$in": state_aliases(scope.state)}},
            with_coordinates=True,
        )

    if scope.country and is_united_states(scope.country):
        return ScopePlan(
            level=GroupKey.STATE,
            policy=VisibilityPolicy.INSTITUTION_OR_NEARBY,
            query={"state": {"$ne": None}},
            with_coordinates=False,
            us_only=True,
        )

    if scope.country:
        return ScopePlan(
            level=GroupKey.CITY,
            policy=VisibilityPolicy.INSTITUTION_OR_NEARBY,
            query={"country": {"$in": country_aliases(scope.country)}},
            with_coordinates=True,
        )

    return ScopePlan(
        level=GroupKey.COUNTRY,
        policy=VisibilityPolicy.INSTITUTION,
        query={"institution_id": {"$in": id_variants(viewer.institution_id)}},
        with_coordinates=False,
    )


# ── Queries ───────────────────────────────────────────────────────────────────

async def candidate_documents(
    db,
    viewer: ViewerContext,
    query: dict[str, Any],
    projection: Optional[dict[str, int]] = None,
) -> list[dict]:
    """Raw users documents: onboarded, visible, matching *query*, excluding the viewer."""
    full_query = {
        "onboarding_completed": True,
        "profile_visible": True,
        "_id": {"$nin": id_variants(viewer.user_id)},
        **query,
    }
    cursor = db[settings.users_collection].find(full_query, projection or _CANDIDATE_PROJECTION)
    return await cursor.to_list(length=None)


async def load_candidates(db, viewer: ViewerContext, query: dict[str, Any]) -> list[UserLocationRecord]:
    """Onboarded, visible profiles matching *query*, excluding the viewer."""
    docs = await candidate_documents(db, viewer, query)

    records = []
    for doc in docs:
        record = record_from_document(doc)
        if record is not None:
            records.append(record)

    if len(records) != len(docs):
        logger.info("Skipped %d malformed profile(s)", len(docs) - len(records))
    return records


async def fetch_region_counts(db, viewer: ViewerContext, scope: LocationScope) -> LocationsResponse:
    """Aggregate the profiles visible to *viewer* at the level implied by *scope*."""
    plan = plan_scope(viewer, scope)

    if plan.level == GroupKey.COUNTRY and not viewer.institution_id:
        return LocationsResponse(locations={}, error=NO_INSTITUTION_MESSAGE)

    candidates = await load_candidates(db, viewer, plan.query)
    if plan.us_only:
        candidates = [c for c in candidates if is_united_states(c.country)]

    visible = filter_visible(viewer, candidates, plan.policy)
    result = aggregate(visible, plan.level)

    logger.debug(
        "Viewer %s scope=%s: %d candidates, %d visible, %d regions",
        viewer.user_id,
        scope.as_params() or "world",
        len(candidates),
        len(visible),
        len(result.counts),
    )

    if plan.with_coordinates:
        return LocationsResponse(locations=result.counts, coordinates=result.coordinates)
    return LocationsResponse(locations=result.counts)
