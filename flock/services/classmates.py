"""
classmates.py — The searchable classmate directory beside the map.

Candidates come from the same query as the map counts (onboarded,
visible, viewer excluded) and pass the same visibility rule as the city
levels: same institution, or within the proximity radius of the viewer.
A place picked on the map narrows the query; the text, status,
grad-year and roommate filters then run over the visible profiles.

Newest profiles first, capped at settings.classmates_page_limit.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from flock.core.config import settings
from flock.geo.regions import country_aliases, state_abbreviation, state_aliases
from flock.geo.visibility import VisibilityPolicy, filter_visible
from flock.models.classmates import ClassmateCard, ClassmateFilters, ClassmatesResponse
from flock.models.location import ViewerContext
from flock.services.location_service import candidate_documents, record_from_document

logger = logging.getLogger(__name__)

_DIRECTORY_PROJECTION = {
    "_id": 1,
    "full_name": 1,
    "institution_id": 1,
    "grad_year": 1,
    "city": 1,
    "state": 1,
    "country": 1,
    "latitude": 1,
    "longitude": 1,
    "status": 1,
    "job_title": 1,
    "employer": 1,
    "grad_school": 1,
    "show_employer": 1,
    "show_school": 1,
    "looking_for_roommate": 1,
    "created_at": 1,
}


def region_query(region: Optional[str]) -> dict[str, Any]:
    """Mongo filter for a map region: a US state if it names one, else a country."""
    if not region or not region.strip():
        return {}
    if state_abbreviation(region):
        return {"state": {"$in": state_aliases(region)}}
    return {"country": {"$in": country_aliases(region)}}


def _contains(value: Any, needle: Optional[str]) -> bool:
    if not needle:
        return True
    return isinstance(value, str) and needle.strip().lower() in value.lower()


def matches_filters(doc: dict, filters: ClassmateFilters) -> bool:
    if not _contains(doc.get("full_name"), filters.name):
        return False
    if not _contains(doc.get("city"), filters.city):
        return False
    if not _contains(doc.get("job_title"), filters.job_title):
        return False
    if not _contains(doc.get("employer"), filters.company):
        return False

    if filters.statuses and doc.get("status") not in {s.value for s in filters.statuses}:
        return False

    grad_year = doc.get("grad_year")
    if filters.min_grad_year is not None and (grad_year is None or grad_year < filters.min_grad_year):
        return False
    if filters.max_grad_year is not None and (grad_year is None or grad_year > filters.max_grad_year):
        return False

    if filters.roommates_only and not doc.get("looking_for_roommate"):
        return False

    if filters.selected_city:
        city = doc.get("city")
        if not isinstance(city, str) or city.strip().lower() != filters.selected_city.strip().lower():
            return False
    return True


def _newest_first(doc: dict) -> float:
    created = doc.get("created_at")
    if isinstance(created, datetime):
        return -created.timestamp()
    return float("inf")


def card_from_document(doc: dict) -> ClassmateCard:
    grad_year = doc.get("grad_year")
    return ClassmateCard(
        user_id=str(doc["_id"]),
        full_name=doc.get("full_name"),
        institution_id=None if doc.get("institution_id") is None else str(doc["institution_id"]),
        grad_year=grad_year if isinstance(grad_year, int) else None,
        city=doc.get("city"),
        state=doc.get("state"),
        country=doc.get("country") or "United States",
        status=doc.get("status"),
        job_title=doc.get("job_title"),
        employer=doc.get("employer") if doc.get("show_employer", True) is not False else None,
        grad_school=doc.get("grad_school") if doc.get("show_school", True) is not False else None,
        looking_for_roommate=bool(doc.get("looking_for_roommate")),
    )


async def list_classmates(db, viewer: ViewerContext, filters: ClassmateFilters) -> ClassmatesResponse:
    """Visible profiles matching *filters*, newest first."""
    docs = await candidate_documents(db, viewer, region_query(filters.selected_region), _DIRECTORY_PROJECTION)

    by_id = {}
    records = []
    for doc in docs:
        record = record_from_document(doc)
        if record is not None:
            by_id[record.user_id] = doc
            records.append(record)

    visible = filter_visible(viewer, records, VisibilityPolicy.INSTITUTION_OR_NEARBY)
    matches = [by_id[r.user_id] for r in visible if matches_filters(by_id[r.user_id], filters)]
    matches.sort(key=_newest_first)

    logger.debug(
        "Directory for %s: %d candidates, %d visible, %d matching",
        viewer.user_id,
        len(docs),
        len(visible),
        len(matches),
    )
    page = matches[: settings.classmates_page_limit]
    return ClassmatesResponse(total=len(matches), classmates=[card_from_document(d) for d in page])
