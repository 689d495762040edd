"""
Health check endpoint.

Used by:
  - Docker HEALTHCHECK instruction
  - Load balancers / orchestrators
  - Dashboard front end, to check API connectivity

Returns status + DB connectivity so callers can distinguish between
"API down" and "API up but DB unreachable". A connected DB whose users
collection fails a read usually means a wrong database name or grants.
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from flock.core import database as db_module
from flock.core.config import APP_VERSION, settings

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    database: str  # "connected" | "disconnected"
    users_collection: str  # "reachable" | "unreachable" | "unknown"
    environment: str


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    """
    Returns the liveness status of the API and its database connection.

    The API is considered healthy (HTTP 200) even when the database is
    disconnected.
    """
    db_status = "disconnected"
    try:
        # Access via module reference so tests can patch db_module.db_client
        if db_module.db_client.client is not None:
            await db_module.db_client.client.admin.command("ping")
            db_status = "connected"
    except Exception as exc:
        logger.warning("DB ping failed: %s", exc)

    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        database=db_status,
        users_collection=await _users_collection_status(db_status),
        environment=settings.environment,
    )


async def _users_collection_status(db_status: str) -> str:
    """Read one _id from the profiles collection the map routes query."""
    if db_status != "connected" or db_module.db_client.db is None:
        return "unknown"
    try:
        await db_module.db_client.db[settings.users_collection].find_one({}, {"_id": 1})
        return "reachable"
    except Exception as exc:
        logger.warning("Cannot read %s collection: %s", settings.users_collection, exc)
        return "unreachable"
