"""
insights.py — "Network Insights" panel: top cities, employers and grad
schools among the viewer's same-institution classmates.

Counts are over onboarded, visible profiles (viewer excluded), capped at
settings.insights_sample_limit documents per request.
"""

import logging
from collections import Counter
from typing import Iterable

from flock.core.config import settings
from flock.models.insights import InsightsResponse, RankedItem
from flock.models.location import ViewerContext
from flock.services.location_service import id_variants

logger = logging.getLogger(__name__)

_EMPLOYED_STATUSES = {"employed", "internship"}
_GRAD_SCHOOL_STATUS = "grad_school"


def rank(counter: Counter) -> list[RankedItem]:
    """Most common first; ties alphabetical."""
    ordered = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [RankedItem(name=name, count=count) for name, count in ordered]


def _present(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def summarize_classmates(docs: Iterable[dict]) -> InsightsResponse:
    cities: Counter = Counter()
    companies: Counter = Counter()
    grad_schools: Counter = Counter()
    total = 0

    for doc in docs:
        total += 1
        status = doc.get("status")

        if _present(doc.get("city")) and _present(doc.get("state")):
            cities[f"{doc['city'].strip()}, {doc['state'].strip()}"] += 1

        if status in _EMPLOYED_STATUSES and _present(doc.get("employer")):
            companies[doc["employer"].strip()] += 1

        if status == _GRAD_SCHOOL_STATUS and _present(doc.get("grad_school")):
            grad_schools[doc["grad_school"].strip()] += 1

    return InsightsResponse(
        total_classmates=total,
        cities=rank(cities),
        companies=rank(companies),
        grad_schools=rank(grad_schools),
    )


async def classmate_insights(db, viewer: ViewerContext) -> InsightsResponse:
    if not viewer.institution_id:
        return InsightsResponse()

    query = {
        "onboarding_completed": True,
        "profile_visible": True,
        "_id": {"$nin": id_variants(viewer.user_id)},
        "institution_id": {"$in": id_variants(viewer.institution_id)},
    }
    projection = {"city": 1, "state": 1, "status": 1, "employer": 1, "grad_school": 1}
    cursor = db[settings.users_collection].find(query, projection)
    docs = await cursor.to_list(length=settings.insights_sample_limit)

    logger.debug("Insights for %s over %d classmates", viewer.user_id, len(docs))
    return summarize_classmates(docs)
