"""
classmates.py — Classmate directory.

Routes:
  GET /api/v1/classmates — visible profiles, newest first, filtered by
                           any of the query parameters below

Query parameters:
  name, city, job_title, company   case-insensitive "contains"
  status                           repeatable; any listed status matches
  min_grad_year, max_grad_year     inclusive range
  roommates                        only people looking for a roommate
  selected_city, selected_region   the place picked on the map

TESTING
───────
  pytest tests/test_classmates.py -v

  curl -H "Authorization: Bearer $TOKEN" \
       "http://localhost:8000/api/v1/classmates?selected_region=MA&status=employed"
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from flock.core.config import settings
from flock.core.database import get_db
from flock.core.rate_limit import limiter
from flock.models.classmates import ClassmateFilters, ClassmatesResponse, ClassmateStatus
from flock.routes.auth import CurrentViewer
from flock.services.classmates import list_classmates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/classmates", tags=["classmates"])


@router.get("", response_model=ClassmatesResponse)
@limiter.limit(settings.locations_rate_limit)
async def get_classmates(
    request: Request,
    viewer: CurrentViewer,
    name: Optional[str] = Query(default=None, max_length=128),
    city: Optional[str] = Query(default=None, max_length=128),
    job_title: Optional[str] = Query(default=None, max_length=128),
    company: Optional[str] = Query(default=None, max_length=128),
    status: list[ClassmateStatus] = Query(default=[]),
    min_grad_year: Optional[int] = Query(default=None, ge=1900, le=2200),
    max_grad_year: Optional[int] = Query(default=None, ge=1900, le=2200),
    roommates: bool = False,
    selected_city: Optional[str] = Query(default=None, max_length=128),
    selected_region: Optional[str] = Query(default=None, max_length=128),
    db=Depends(get_db),
):
    """Return the classmates the viewer may see, filtered like the dashboard search panel."""
    try:
        filters = ClassmateFilters(
            name=name or None,
            city=city or None,
            job_title=job_title or None,
            company=company or None,
            statuses=status,
            min_grad_year=min_grad_year,
            max_grad_year=max_grad_year,
            roommates_only=roommates,
            selected_city=selected_city or None,
            selected_region=selected_region or None,
        )
    except ValidationError:
        raise HTTPException(status_code=422, detail="min_grad_year must not exceed max_grad_year")

    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    try:
        return await list_classmates(db, viewer, filters)
    except Exception:
        logger.exception("Error in /api/v1/classmates")
        raise HTTPException(status_code=500, detail="Internal server error")
