"""Tests for provider payload normalization."""

import json

import pytest

from food_log.domain.errors import (
    IncompleteNutritionData,
    InvalidSource,
    NoServingsAvailable,
)
from food_log.services.normalization import (
    normalize,
    normalize_product,
    normalize_recipe,
    normalize_search_results,
    normalize_structured,
    parse_nutrient_summary,
)
from tests.conftest import FOOD_DETAIL_PAYLOAD, RECIPE_TEXT


def test_structured_payload_uses_selected_serving_and_brand() -> None:
    record = normalize_structured(FOOD_DETAIL_PAYLOAD)

    assert record.id == "33691"
    assert record.name == "Fage Greek Yogurt"
    assert record.calories == 66.0
    assert record.protein_g == pytest.approx(8.8)
    assert record.carbs_g == pytest.approx(3.5)
    assert record.fat_g == 2.0
    assert record.serving_description == "100 g"
    assert record.serving_weight_g == 100.0
    assert record.logged_at is None


def test_structured_payload_accepts_single_serving_object() -> None:
    payload = {
        "food": {
            "food_id": 4321,
            "food_name": "Banana",
            "brand_name": "",
            "servings": {
                "serving": {
                    "calories": "105",
                    "protein": "1,3",
                    "carbohydrate": "27",
                    "fat": "0.4",
                    "serving_description": "1 medium",
                    "metric_serving_amount": "118.000",
                    "metric_serving_unit": "g",
                }
            },
        }
    }

    record = normalize_structured(payload)

    assert record.id == "4321"
    assert record.name == "Banana"
    assert record.calories == 105.0
    assert record.protein_g == pytest.approx(1.3)
    assert record.serving_weight_g == 118.0

    servings = payload["food"]["servings"]  # type: ignore[index]
    as_list = {
        "food": {
            **payload["food"],  # type: ignore[dict-item]
            "servings": {"serving": [servings["serving"]]},
        }
    }
    assert normalize_structured(as_list) == record


def test_structured_payload_without_servings_raises() -> None:
    payload = {"food": {"food_id": "9", "food_name": "Mystery", "servings": {}}}

    with pytest.raises(NoServingsAvailable):
        normalize_structured(payload)


def test_structured_payload_missing_food_id_is_invalid() -> None:
    with pytest.raises(InvalidSource):
        normalize_structured({"food": {"food_name": "No id"}})


def test_product_payload_reads_per_100g_values() -> None:
    payload = {
        "code": "3017620422003",
        "product": {
            "product_name": "Nutella",
            "nutriments": {
                "energy-kcal_100g": 539,
                "proteins_100g": "6.3",
                "carbohydrates_100g": 57.5,
                "fat_100g": 30.9,
            },
        },
    }

    record = normalize_product(payload, barcode="0000000000001")

    assert record.id == "0000000000001"
    assert record.name == "Nutella"
    assert record.calories == 539.0
    assert record.protein_g == pytest.approx(6.3)
    assert record.carbs_g == pytest.approx(57.5)
    assert record.fat_g == pytest.approx(30.9)
    assert record.serving_description == "100g"
    assert record.serving_weight_g == 100.0


def test_product_payload_defaults_missing_fields() -> None:
    record = normalize_product({"code": "42", "product": {}})

    assert record.id == "42"
    assert record.name == "Unknown"
    assert record.calories == 0.0
    assert record.fat_g == 0.0


@pytest.mark.parametrize("serving_size", [0, -5, "-12.5"])
def test_product_payload_non_positive_serving_size_defaults_to_100g(
    serving_size: object,
) -> None:
    payload = {
        "code": "42",
        "product": {"nutriments": {"serving_size": serving_size}},
    }

    assert normalize_product(payload).serving_weight_g == 100.0


def test_structured_negative_serving_weight_defaults_to_100g() -> None:
    payload = json.loads(json.dumps(FOOD_DETAIL_PAYLOAD))
    payload["food"]["servings"]["serving"] = [
        {
            "calories": "20",
            "serving_description": "1 packet",
            "metric_serving_amount": "-5",
            "metric_serving_unit": "g",
        }
    ]

    assert normalize_structured(payload).serving_weight_g == 100.0


def test_product_payload_without_product_is_invalid() -> None:
    with pytest.raises(InvalidSource):
        normalize_product({"status": 0})


def test_recipe_text_is_parsed_from_breakdown() -> None:
    record = normalize_recipe(RECIPE_TEXT, record_id="recipe-1")

    assert record.id == "recipe-1"
    assert record.name == "Grilled Chicken Quinoa Bowl"
    assert record.calories == 350.0
    assert record.protein_g == 20.0
    assert record.fat_g == 10.0
    assert record.carbs_g == 40.0
    assert record.serving_description == "1 serving"


def test_recipe_text_missing_a_nutrient_raises() -> None:
    text = RECIPE_TEXT.replace("Carbs: 40 g", "")

    with pytest.raises(IncompleteNutritionData) as excinfo:
        normalize_recipe(text)

    assert excinfo.value.missing == ["carbs"]
    assert excinfo.value.user_message == (
        "Unable to log recipe: Missing nutritional information."
    )


def test_recipe_without_breakdown_reports_everything_missing() -> None:
    with pytest.raises(IncompleteNutritionData) as excinfo:
        normalize_recipe("Just a nice salad.")

    assert excinfo.value.missing == ["calories", "protein", "fats", "carbs"]


def test_recipe_with_blank_first_line_uses_fallback_name() -> None:
    record = normalize_recipe("\n" + RECIPE_TEXT)

    assert record.name == "Custom Recipe"


def test_summary_uses_upper_bound_of_calorie_range() -> None:
    summary = parse_nutrient_summary(
        "Calories: 180-200 kcal | Fat: 5g | Carbs: 20g | Protein: 8g"
    )

    assert summary.calories == 200.0
    assert summary.fat_g == 5.0
    assert summary.carbs_g == 20.0
    assert summary.protein_g == 8.0


def test_summary_with_per_portion_prefix() -> None:
    summary = parse_nutrient_summary(
        "Per 100g - Calories: 52kcal | Fat: 0.17g | Carbs: 13.81g | Protein: 0.26g"
    )

    assert summary.calories == 52.0
    assert summary.fat_g == pytest.approx(0.17)
    assert summary.carbs_g == pytest.approx(13.81)
    assert summary.protein_g == pytest.approx(0.26)


def test_summary_of_nothing_is_zero() -> None:
    summary = parse_nutrient_summary(None)

    assert summary.calories == 0.0
    assert summary.protein_g == 0.0


def test_search_results_accept_single_hit_and_skip_bad_ones() -> None:
    single = {
        "foods": {
            "food": {
                "food_id": "1",
                "food_name": "Oats",
                "brand_name": "Quaker",
                "food_description": "Calories: 150kcal | Fat: 3g",
            }
        }
    }
    many = {"foods": {"food": [{"food_name": "no id"}, single["foods"]["food"]]}}

    assert [record.name for record in normalize_search_results(single)] == [
        "Quaker Oats"
    ]
    records = normalize_search_results(many)
    assert len(records) == 1
    assert records[0].calories == 150.0
    assert records[0].serving_weight_g == 100.0


def test_search_results_without_foods_are_empty() -> None:
    assert normalize_search_results({"foods": None}) == []


def test_normalize_dispatches_on_top_level_key() -> None:
    structured = normalize(json.dumps(FOOD_DETAIL_PAYLOAD))
    product = normalize(
        json.dumps({"product": {"product_name": "Milk"}}).encode(), barcode="123"
    )
    recipe = normalize(RECIPE_TEXT)

    assert structured.id == "33691"
    assert product.id == "123"
    assert product.name == "Milk"
    assert recipe.calories == 350.0


@pytest.mark.parametrize(
    "payload",
    [{"items": []}, "{not json", b"\xff\xfe", b"[1, 2]"],
)
def test_normalize_rejects_unknown_payloads(payload: object) -> None:
    with pytest.raises(InvalidSource):
        normalize(payload)  # type: ignore[arg-type]
