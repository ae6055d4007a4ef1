import logging

import httpx

from chef.config import Config
from chef.errors import MalformedPayload, UpstreamRequestFailed


logger = logging.getLogger(__name__)


SERVICE = "image"


def unsplash_client_factory(config: Config) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=config.unsplash_base_url,
        headers={"Authorization": f"Client-ID {config.unsplash_access_key}"},
        timeout=config.timeout,
    )


class ImageClient:
    def __init__(
        self,
        config: Config | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        config = Config() if config is None else config
        self.http_client = (
            unsplash_client_factory(config) if http_client is None else http_client
        )

    async def search(self, dish_name: str) -> str | None:
        try:
            resp = await self.http_client.get(
                "search/photos",
                params={"page": 1, "query": dish_name},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise UpstreamRequestFailed(SERVICE, str(e)) from e
        except ValueError as e:
            raise MalformedPayload(SERVICE, resp.text) from e

        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            return None
        try:
            return results[0]["urls"]["small"]
        except (KeyError, TypeError) as e:
            raise MalformedPayload(SERVICE, results[0]) from e

    async def aclose(self) -> None:
        await self.http_client.aclose()
