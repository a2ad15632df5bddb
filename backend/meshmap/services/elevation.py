"""Elevation lookup against an OpenTopoData-compatible API."""

import logging

import httpx

from meshmap.exceptions import ElevationLookupFailure

logger = logging.getLogger(__name__)


class ElevationClient:
    """Best-effort, time-bounded ground elevation lookup."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def lookup(self, lat: float, lon: float) -> float:
        """Return elevation in metres or raise ElevationLookupFailure."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.url, params={"locations": f"{lat},{lon}"})
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise ElevationLookupFailure(f"Timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ElevationLookupFailure(f"Request failed: {e}") from e
        except ValueError as e:
            raise ElevationLookupFailure("Response was not JSON") from e

        try:
            elevation = data["results"][0]["elevation"]
        except (KeyError, IndexError, TypeError) as e:
            raise ElevationLookupFailure(f"Unexpected response: {data!r}") from e
        if elevation is None:
            raise ElevationLookupFailure(f"No elevation for [{lat},{lon}]")
        try:
            return float(elevation)
        except (TypeError, ValueError) as e:
            raise ElevationLookupFailure(f"Non-numeric elevation: {elevation!r}") from e
