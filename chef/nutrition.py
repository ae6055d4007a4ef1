import asyncio
import logging
import re
from typing import Any, TypeAlias

import httpx

from chef.config import Config
from chef.errors import MalformedPayload, UpstreamRequestFailed
from chef.models import NutrientVector
from chef.retry import with_retry


logger = logging.getLogger(__name__)


SERVICE = "nutrition"

NutritionRecord: TypeAlias = dict[str, Any]

# Commas, newlines, " - " and leading list dashes all separate ingredients.
DELIMITERS = re.compile(r"[,\n]|\s-\s|^\s*-\s", re.MULTILINE)
QUALIFIERS = re.compile(r"\b(?:to taste|as needed|as required|optional)\b", re.IGNORECASE)


def clean_ingredients(text: str) -> str:
    """Ingredient text as a nutrition query, e.g.
    "salt (to taste) - tomato - onion" -> "tomato,onion".
    """
    fragments = (f.strip().lstrip("-•*").strip() for f in DELIMITERS.split(text))
    return ",".join(f for f in fragments if f and not QUALIFIERS.search(f))


def nutrition_client_factory(config: Config) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=config.nutrition_base_url,
        headers={"X-Api-Key": config.nutrition_api_key or ""},
        timeout=config.timeout,
    )


class NutritionClient:
    def __init__(
        self,
        config: Config | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        config = Config() if config is None else config
        self.http_client = (
            nutrition_client_factory(config) if http_client is None else http_client
        )

    async def lookup(self, query: str) -> NutritionRecord | None:
        """First nutrition record for `query`, `None` if there is no match."""
        try:
            resp = await self.http_client.get("nutrition", params={"query": query})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamRequestFailed(SERVICE, str(e)) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedPayload(SERVICE, resp.text) from e

        # Some deployments wrap the records.
        if isinstance(data, dict) and "items" in data:
            data = data["items"]
        if not isinstance(data, list):
            raise MalformedPayload(SERVICE, data)
        if not data:
            return None
        if not isinstance(data[0], dict):
            raise MalformedPayload(SERVICE, data[0])
        return data[0]

    async def aclose(self) -> None:
        await self.http_client.aclose()


class NutritionCache:
    """Cleaned ingredient string to nutrition record, for one session.

    Append only. The first value written for a key wins. `None` records a
    lookup that found nothing.
    """

    def __init__(self) -> None:
        self._records: dict[str, NutritionRecord | None] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, key: str) -> NutritionRecord | None:
        return self._records.get(key)

    def add(self, key: str, record: NutritionRecord | None) -> NutritionRecord | None:
        return self._records.setdefault(key, record)


class NutritionEnricher:
    def __init__(
        self,
        client: NutritionClient,
        cache: NutritionCache,
        *,
        retries: int = 3,
        base_delay: float = 0.5,
    ) -> None:
        self.client = client
        self.cache = cache
        self.retries = retries
        self.base_delay = base_delay
        self._pending: dict[str, asyncio.Task[NutritionRecord | None]] = {}

    async def record(self, query: str) -> NutritionRecord | None:
        """Cached record for `query`. Concurrent callers with the same query
        share one lookup, and its failure."""
        if query in self.cache:
            logger.debug("Nutrition cache hit for %r", query)
            return self.cache.get(query)

        task = self._pending.get(query)
        if task is None:
            task = asyncio.ensure_future(self._lookup(query))
            self._pending[query] = task
            task.add_done_callback(lambda _: self._pending.pop(query, None))
        else:
            logger.debug("Joining in-flight nutrition lookup for %r", query)
        # One caller being cancelled must not cancel the others.
        return await asyncio.shield(task)

    async def _lookup(self, query: str) -> NutritionRecord | None:
        logger.info("Looking up nutrition for %r", query)
        record = await with_retry(
            lambda: self.client.lookup(query),
            retries=self.retries,
            initial_delay=self.base_delay,
            retry_on=UpstreamRequestFailed,
        )
        return self.cache.add(query, record)

    async def enrich(self, raw_ingredients: str) -> NutrientVector | None:
        """Nutrients for the dish's ingredients, `None` when there is no usable
        match. Raises `UpstreamRequestFailed` once the retries are spent."""
        query = clean_ingredients(raw_ingredients)
        if not query:
            return None

        try:
            record = await self.record(query)
        except MalformedPayload as e:
            logger.warning("Ignoring nutrition response for %r: %s", query, e)
            return None

        if record is None:
            logger.info("No nutrition match for %r", query)
            return None

        try:
            return NutrientVector.from_payload(record)
        except MalformedPayload as e:
            logger.warning("Ignoring nutrition record for %r: %s", query, e)
            return None
