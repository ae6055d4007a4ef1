from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Self

from chef.errors import MalformedPayload


# Nutrition api field for each NutrientVector position.
PAYLOAD_FIELDS = ("calories", "protein_g", "fat_total_g", "carbohydrates_total_g")


class EnrichmentState(Enum):
    pending = "pending"
    loading = "loading"
    done = "done"
    failed = "failed"

    @property
    def settled(self) -> bool:
        return self in (EnrichmentState.done, EnrichmentState.failed)


class NutrientVector(NamedTuple):
    calorie: float
    protein_g: float
    fat_total_g: float
    carbohydrate_g: float

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        try:
            return cls(*(float(payload[f]) for f in PAYLOAD_FIELDS))
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPayload("nutrition", payload) from e

    @property
    def total(self) -> float:
        return sum(self)

    def normalized(self) -> "NutrientVector | None":
        """Each component as a share of the total. `None` unless the total is
        strictly positive."""
        total = self.total
        if total <= 0:
            return None
        return NutrientVector(*(v / total for v in self))


@dataclass(frozen=True)
class DishDraft:
    name: str
    raw_ingredients: str
    preparation: str
    calories_text: str
    ordinal: str | None = None


def preparation_steps(preparation: str) -> list[str]:
    return [line.strip() for line in preparation.splitlines() if line.strip()]


@dataclass(frozen=True)
class DishRecord:
    name: str
    raw_ingredients: str
    preparation: str
    calories_text: str
    ordinal: str | None = None
    nutrients: NutrientVector | None = None
    state: EnrichmentState = EnrichmentState.pending
    image_url: str | None = None
    preparation_steps: list[str] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "preparation_steps", preparation_steps(self.preparation))

    @classmethod
    def from_draft(
        cls,
        draft: DishDraft,
        *,
        state: EnrichmentState = EnrichmentState.pending,
    ) -> Self:
        return cls(
            name=draft.name,
            raw_ingredients=draft.raw_ingredients,
            preparation=draft.preparation,
            calories_text=draft.calories_text,
            ordinal=draft.ordinal,
            state=state,
        )

    @property
    def normalized_nutrients(self) -> NutrientVector | None:
        return None if self.nutrients is None else self.nutrients.normalized()
