from dataclasses import replace

import pytest

from chef import chart
from chef.errors import MalformedPayload
from chef.models import DishRecord, EnrichmentState, NutrientVector


PAYLOAD = {
    "name": "tomato",
    "calories": 200,
    "protein_g": 10,
    "fat_total_g": 5,
    "carbohydrates_total_g": 25,
}


def test_nutrients_from_payload() -> None:
    got = NutrientVector.from_payload(PAYLOAD)
    assert got == NutrientVector(200, 10, 5, 25)
    assert got.total == 240


def test_normalized() -> None:
    got = NutrientVector(200, 10, 5, 25).normalized()
    assert got is not None
    assert list(got) == pytest.approx([0.833, 0.042, 0.021, 0.104], abs=1e-3)
    assert sum(got) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "vector",
    (
        NutrientVector(1, 2, 3, 4),
        NutrientVector(0.1, 0, 0, 0),
        NutrientVector(981.5, 12.25, 40.1, 0.3),
    ),
)
def test_normalized_sums_to_one(vector: NutrientVector) -> None:
    got = vector.normalized()
    assert got is not None
    assert len(got) == 4
    assert sum(got) == pytest.approx(1.0)


def test_normalized_zero_sum_is_unset() -> None:
    assert NutrientVector(0, 0, 0, 0).normalized() is None


@pytest.mark.parametrize(
    "payload",
    (
        {},
        {"calories": 200, "protein_g": 10, "fat_total_g": 5},
        {**PAYLOAD, "protein_g": "Only available for premium subscribers."},
        {**PAYLOAD, "fat_total_g": None},
    ),
)
def test_malformed_payload(payload: dict[str, object]) -> None:
    with pytest.raises(MalformedPayload):
        NutrientVector.from_payload(payload)


def test_dish_record_steps() -> None:
    dish = DishRecord(
        name="Soup",
        raw_ingredients="tomato",
        preparation="Chop.\n\n  Boil.  \n\n",
        calories_text="100",
    )
    assert dish.preparation_steps == ["Chop.", "Boil."]
    assert dish.state == EnrichmentState.pending
    assert dish.normalized_nutrients is None


def test_replace_keeps_steps_in_sync() -> None:
    dish = DishRecord(
        name="Soup", raw_ingredients="tomato", preparation="Chop.", calories_text="100"
    )
    done = replace(
        dish, nutrients=NutrientVector(200, 10, 5, 25), state=EnrichmentState.done
    )
    assert done.preparation_steps == ["Chop."]
    assert done.normalized_nutrients is not None
    assert done.state.settled
    assert not dish.state.settled
    assert list(done.normalized_nutrients) == pytest.approx(
        [200 / 240, 10 / 240, 5 / 240, 25 / 240]
    )


def test_chart_breakdown() -> None:
    normalized = NutrientVector(200, 10, 5, 25).normalized()
    assert normalized is not None
    assert chart.breakdown(normalized) == [
        "Calories: 83.33%",
        "Protein: 4.17%",
        "Fat: 2.08%",
        "Carbs: 10.42%",
    ]
    assert chart.title(normalized).startswith("Nutritional Breakdown (Calories: 83.33%")
    assert chart.percentages(normalized) == [83.33, 4.17, 2.08, 10.42]


def test_chart_bars() -> None:
    normalized = NutrientVector(1, 1, 1, 1).normalized()
    assert normalized is not None
    rows = chart.bars(normalized, width=20)
    assert len(rows) == 4
    assert all(row.count("█") == 5 for row in rows)
    assert rows[0].endswith("25.00%")
