import logging
from typing import Any

import httpx

from pantry.errors import PlacesUnavailable


logger = logging.getLogger(__name__)


BASE_URL = "https://api.foursquare.com/v3/"


def places_client_factory(token: str, *, timeout: float = 20) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=BASE_URL,
        headers={"Authorization": token, "Accept": "application/json"},
        timeout=timeout,
    )


class PlacesService:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        radius: int = 5000,
        limit: int = 5,
    ) -> None:
        self.client = client
        self.radius = radius
        self.limit = limit

    async def search(self, *, lat: float, lng: float, query: str) -> list[dict[str, Any]]:
        try:
            resp = await self.client.get(
                "places/search",
                params={
                    "ll": f"{lat},{lng}",
                    "query": query,
                    "radius": self.radius,
                    "limit": self.limit,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Places search failed: %r", e)
            raise PlacesUnavailable("Failed to fetch places.") from e
        return data.get("results", [])

    async def close(self) -> None:
        await self.client.aclose()
