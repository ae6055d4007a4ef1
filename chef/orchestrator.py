"""End to end: ingredients in, enriched dishes out.

The orchestrator is the only writer of the dish collection. Enrichment tasks get
a copy of their dish and post a `DishUpdate` keyed by submission and position.
The orchestrator applies the updates as they arrive and publishes a `Snapshot`
to its observers after every change.
"""

import asyncio
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from typing import Any, Callable, Protocol, Self, TypeAlias

from chef.aopenai import CompletionService
from chef.config import Config
from chef.errors import (
    ChefError,
    ExtractionEmpty,
    MalformedPayload,
    UpstreamRequestFailed,
)
from chef.extraction import DishExtractor, PatternExtractor
from chef.images import ImageClient
from chef.models import DishDraft, DishRecord, EnrichmentState
from chef.nutrition import NutritionCache, NutritionClient, NutritionEnricher
from chef.retry import with_retry


logger = logging.getLogger(__name__)


TRY_AGAIN = "Could not get dish recommendations. Please try again."


class Phase(Enum):
    idle = "idle"
    requesting = "requesting"
    extracting = "extracting"
    retrying = "retrying"
    enriching = "enriching"
    settled = "settled"


@dataclass(frozen=True)
class Snapshot:
    phase: Phase
    dishes: tuple[DishRecord, ...]
    in_progress: bool
    fallback_text: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class DishUpdate:
    submission: int
    index: int
    changes: dict[str, Any] = field(default_factory=dict)


Observer: TypeAlias = Callable[[Snapshot], None]


class Completion(Protocol):
    async def complete(self, ingredients: str) -> str:
        ...

    async def aclose(self) -> None:
        ...


class RecommendationOrchestrator:
    def __init__(
        self,
        config: Config | None = None,
        *,
        completion: Completion | None = None,
        extractor: DishExtractor | None = None,
        nutrition_client: NutritionClient | None = None,
        image_client: ImageClient | None = None,
        cache: NutritionCache | None = None,
    ) -> None:
        self.config = Config() if config is None else config
        self.completion = (
            CompletionService(self.config) if completion is None else completion
        )
        self.extractor = PatternExtractor() if extractor is None else extractor
        self.cache = NutritionCache() if cache is None else cache
        self.enricher = NutritionEnricher(
            NutritionClient(self.config) if nutrition_client is None else nutrition_client,
            self.cache,
            retries=self.config.nutrition_retries,
            base_delay=self.config.retry_base_delay,
        )
        if image_client is None and self.config.unsplash_access_key:
            image_client = ImageClient(self.config)
        self.image_client = image_client

        self.phase = Phase.idle
        self.in_progress = False
        self.fallback_text: str | None = None
        self.error: str | None = None
        self._dishes: list[DishRecord] = []
        self._submission = 0
        self._observers: list[Observer] = []

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any, **kwargs: Any) -> None:
        await self.aclose()

    @property
    def dishes(self) -> tuple[DishRecord, ...]:
        return tuple(self._dishes)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            phase=self.phase,
            dishes=self.dishes,
            in_progress=self.in_progress,
            fallback_text=self.fallback_text,
            error=self.error,
        )

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for observer in self._observers:
            observer(snapshot)

    def _set_phase(self, phase: Phase) -> None:
        logger.debug("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase
        self._publish()

    async def submit(self, ingredient_text: str) -> Snapshot:
        """Recommend dishes for `ingredient_text` and enrich them.

        Blank text, or a call while a submission is still running, does nothing.
        Never raises for upstream failures; they end up in the snapshot.
        """
        if not ingredient_text.strip():
            logger.info("Ignoring blank submission.")
            return self.snapshot()
        if self.in_progress:
            logger.warning("Submission in progress, ignoring %r", ingredient_text)
            return self.snapshot()

        self._submission += 1
        self.in_progress = True
        self._dishes = []
        self.fallback_text = None
        self.error = None
        try:
            await self._run(self._submission, ingredient_text)
        finally:
            self.in_progress = False
            self._set_phase(Phase.settled)
        return self.snapshot()

    async def _run(self, submission: int, ingredients: str) -> None:
        try:
            drafts = await self.recommend(ingredients)
        except ExtractionEmpty as e:
            logger.warning("%s Showing the raw reply.", e)
            self.fallback_text = e.raw_text
            return
        except (UpstreamRequestFailed, MalformedPayload) as e:
            logger.error("Recommendation failed: %s", e)
            self.error = TRY_AGAIN
            return

        self._dishes = [
            DishRecord.from_draft(d, state=EnrichmentState.loading) for d in drafts
        ]
        self._set_phase(Phase.enriching)
        await self._enrich_all(submission)

    async def recommend(self, ingredients: str) -> list[DishDraft]:
        """Dish drafts from the completion service. Re-asks the model from
        scratch when its reply has no parseable dishes."""
        attempts = 0

        async def attempt() -> list[DishDraft]:
            nonlocal attempts
            attempts += 1
            self._set_phase(Phase.requesting if attempts == 1 else Phase.retrying)
            text = await with_retry(
                lambda: self.completion.complete(ingredients),
                retries=self.config.completion_retries,
                initial_delay=self.config.retry_base_delay,
                retry_on=UpstreamRequestFailed,
            )
            self._set_phase(Phase.extracting)
            drafts = self.extractor.extract(text)
            if not drafts:
                raise ExtractionEmpty(text, attempts)
            return drafts

        return await with_retry(
            attempt,
            retries=max(self.config.extraction_attempts - 1, 0),
            retry_on=ExtractionEmpty,
        )

    async def _enrich_all(self, submission: int) -> None:
        updates: asyncio.Queue[DishUpdate] = asyncio.Queue()
        tasks: list[asyncio.Task[None]] = []
        for index, dish in enumerate(self._dishes):
            tasks.append(
                asyncio.create_task(self._nutrition(submission, index, dish, updates))
            )
            if self.image_client is not None:
                tasks.append(
                    asyncio.create_task(
                        self._image(self.image_client, submission, index, dish, updates)
                    )
                )

        # Every task posts exactly one update.
        for _ in tasks:
            self.merge(await updates.get())
        await asyncio.gather(*tasks)

    async def _nutrition(
        self,
        submission: int,
        index: int,
        dish: DishRecord,
        updates: asyncio.Queue[DishUpdate],
    ) -> None:
        try:
            nutrients = await self.enricher.enrich(dish.raw_ingredients)
        except UpstreamRequestFailed as e:
            logger.error("No nutrition for %r: %s", dish.name, e)
            changes: dict[str, Any] = {"state": EnrichmentState.failed}
        except Exception:
            logger.exception("Nutrition task for %r crashed", dish.name)
            changes = {"state": EnrichmentState.failed}
        else:
            changes = {"nutrients": nutrients, "state": EnrichmentState.done}
        await updates.put(DishUpdate(submission, index, changes))

    async def _image(
        self,
        image_client: ImageClient,
        submission: int,
        index: int,
        dish: DishRecord,
        updates: asyncio.Queue[DishUpdate],
    ) -> None:
        changes: dict[str, Any] = {}
        try:
            url = await image_client.search(dish.name)
        except ChefError as e:
            logger.warning("No image for %r: %s", dish.name, e)
        except Exception:
            logger.exception("Image task for %r crashed", dish.name)
        else:
            if url:
                changes["image_url"] = url
        await updates.put(DishUpdate(submission, index, changes))

    def merge(self, update: DishUpdate) -> None:
        """Apply one task's result to its own dish. Last writer wins."""
        if update.submission != self._submission:
            logger.debug("Dropping update for stale submission %d", update.submission)
            return
        if not update.changes:
            return
        dish = self._dishes[update.index]
        self._dishes[update.index] = replace(dish, **update.changes)
        self._publish()

    async def aclose(self) -> None:
        await self.completion.aclose()
        await self.enricher.client.aclose()
        if self.image_client is not None:
            await self.image_client.aclose()
