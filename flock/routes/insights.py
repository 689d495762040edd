"""
insights.py — Network Insights panel.

Routes:
  GET /api/v1/insights — top cities, employers and grad schools among the
                         viewer's same-institution classmates
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from flock.core.config import settings
from flock.core.database import get_db
from flock.core.rate_limit import limiter
from flock.models.insights import InsightsResponse
from flock.routes.auth import CurrentViewer
from flock.services.insights import classmate_insights

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


@router.get("", response_model=InsightsResponse)
@limiter.limit(settings.locations_rate_limit)
async def get_insights(request: Request, viewer: CurrentViewer, db=Depends(get_db)):
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    try:
        return await classmate_insights(db, viewer)
    except Exception:
        logger.exception("Error in /api/v1/insights")
        raise HTTPException(status_code=500, detail="Internal server error")
