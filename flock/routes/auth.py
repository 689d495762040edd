"""
auth.py — Viewer resolution for map routes.

Routes:
  GET /auth/me  — return the resolved viewer context (requires valid JWT)

Tokens are issued by the main Flock app; sign-up, login and sessions
live there. This module only verifies the Bearer token and loads the
viewer's profile from MongoDB via the get_db() dependency.

Errors use HTTPException so FastAPI serialises them as:
  { "detail": "..." }
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from flock.core.config import settings
from flock.core.database import get_db
from flock.core.security import decode_access_token
from flock.models.location import ViewerContext
from flock.services.location_service import id_variants, viewer_from_document

router = APIRouter(prefix="/auth", tags=["auth"])

# Reusable bearer extractor (does NOT auto-raise on missing token)
_bearer = HTTPBearer(auto_error=False)
CredDep = Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)]


async def _get_current_viewer(credentials: CredDep, db=Depends(get_db)) -> ViewerContext:
    """
    FastAPI dependency — validate the Bearer token, then load the viewer's
    profile from MongoDB.

    Raises 401 if the token is missing or invalid, 404 if the profile
    does not exist, 503 if the database is down.
    """
    cred_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise cred_error

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise cred_error

    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    doc = await db[settings.users_collection].find_one(
        {"_id": {"$in": id_variants(user_id)}},
        {"institution_id": 1, "latitude": 1, "longitude": 1},
    )
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return viewer_from_document(doc)


# Re-export so other routes can depend on it
CurrentViewer = Annotated[ViewerContext, Depends(_get_current_viewer)]


@router.get("/me", response_model=ViewerContext)
async def me(viewer: CurrentViewer):
    """Return the viewer context the map routes will use."""
    return viewer
