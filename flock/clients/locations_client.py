"""
LocationsClient — async HTTP client for GET /api/v1/locations.

Used by the MapViewController. The endpoint answers with one of two
shapes depending on level:

    {"locations": {...}}                         world / US-state level
    {"locations": {...}, "coordinates": {...}}   city level

The body is resolved once, here, into CountsOnly or CountsWithCoordinates
so nothing downstream has to check for keys.

Failure handling: any non-200 (401 unauthenticated, 404 no profile,
5xx) or transport error raises LocationQueryError. The controller turns
that into an empty map.
"""

import logging
from typing import Optional

import httpx

from flock.core.config import settings
from flock.models.location import LocationScope, RegionResponse, region_response_from_payload

logger = logging.getLogger(__name__)

LOCATIONS_PATH = "/api/v1/locations"


class LocationQueryError(Exception):
    """The region query did not produce usable data."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LocationsClient:
    """
    Thin async wrapper around the locations endpoint.

    Args:
        base_url:  API root; defaults to settings.api_base_url.
        token:     Viewer's bearer token.
        timeout:   Per-request timeout in seconds.
        transport: Optional httpx transport (ASGITransport / MockTransport in tests).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def fetch_region_counts(self, scope: LocationScope) -> RegionResponse:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                response = await client.get(
                    LOCATIONS_PATH,
                    params=scope.as_params(),
                    headers=self._headers(),
                )
            except httpx.HTTPError as exc:
                logger.error("Location query failed: %s", exc)
                raise LocationQueryError(f"request failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "Location query error: %s — %s",
                response.status_code,
                response.text[:200],
            )
            raise LocationQueryError(
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise LocationQueryError("response was not JSON", status_code=200) from exc
        if not isinstance(payload, dict):
            raise LocationQueryError("response was not a JSON object", status_code=200)

        try:
            return region_response_from_payload(payload)
        except ValueError as exc:
            # pydantic ValidationError is a ValueError subclass
            raise LocationQueryError(f"malformed response: {exc}", status_code=200) from exc
