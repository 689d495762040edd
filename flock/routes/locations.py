"""
locations.py — Regional counts for the alumni map.

Routes:
  GET /api/v1/locations            — country counts, viewer's institution (world view)
  GET /api/v1/locations?country=X  — US → state counts; other → city counts + coordinates
  GET /api/v1/locations?state=XX   — city counts + coordinates for a US state

Visibility: world view counts same-institution classmates only; every
other level counts classmates plus anyone within 50 miles of the viewer.

Response:
  { "locations": { "<region>": <count> }, "coordinates": { "<city>": [lon, lat] } }
  `coordinates` only appears on city-level responses.

TESTING
───────
  pytest tests/test_locations_api.py -v

  curl -H "Authorization: Bearer $TOKEN" http://localhost:8000/api/v1/locations
  curl -H "Authorization: Bearer $TOKEN" "http://localhost:8000/api/v1/locations?state=CA"
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from flock.core.config import settings
from flock.core.database import get_db
from flock.core.rate_limit import limiter
from flock.models.location import LocationScope, LocationsResponse
from flock.routes.auth import CurrentViewer
from flock.services.location_service import fetch_region_counts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/locations", tags=["locations"])


@router.get("", response_model=LocationsResponse, response_model_exclude_none=True)
@limiter.limit(settings.locations_rate_limit)
async def get_locations(
    request: Request,
    viewer: CurrentViewer,
    state: Optional[str] = Query(default=None, max_length=64, description="US state abbreviation or name"),
    country: Optional[str] = Query(default=None, max_length=128, description="Country name"),
    db=Depends(get_db),
):
    """Return viewer-scoped region counts for the requested drill-down level."""
    try:
        scope = LocationScope(state=state or None, country=country or None)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Pass at most one of 'state' or 'country'")

    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    try:
        return await fetch_region_counts(db, viewer, scope)
    except Exception:
        logger.exception("Error in /api/v1/locations (scope=%s)", scope.as_params() or "world")
        raise HTTPException(status_code=500, detail="Internal server error")
