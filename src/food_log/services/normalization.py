"""Normalization of provider payloads into canonical food records."""

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from uuid import uuid4

from pydantic import ValidationError

from food_log.domain.errors import (
    IncompleteNutritionData,
    InvalidSource,
    NoServingsAvailable,
)
from food_log.domain.foods import FoodRecord
from food_log.domain.providers import (
    ProductResponse,
    ProviderFoodResponse,
    ProviderSearchItem,
)
from food_log.services.parsing import (
    DEFAULT_SERVING_WEIGHT_G,
    normalize_serving_weight,
    parse_decimal,
)
from food_log.services.servings import select_serving

BREAKDOWN_MARKER = "Nutritional Breakdown:"
RECIPE_FALLBACK_NAME = "Custom Recipe"
RECIPE_SERVING_DESCRIPTION = "1 serving"
PRODUCT_SERVING_DESCRIPTION = "100g"
UNKNOWN_SERVING_DESCRIPTION = "N/A"
UNKNOWN_NAME = "Unknown"

# Order matters: the first label fragment found routes the value.
_BREAKDOWN_LABELS = ("calories", "protein", "fats", "carbs")

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NutrientSummary:
    """Nutrients parsed from a one-line search description."""

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0


def normalize(
    payload: Mapping[str, object] | str | bytes, *, barcode: str | None = None
) -> FoodRecord:
    """Normalize any supported provider payload.

    Plain text is treated as a recipe reply; JSON text or bytes are decoded
    and dispatched on their top-level key.
    """
    if isinstance(payload, bytes | bytearray):
        payload = _decode_json(bytes(payload))
    elif isinstance(payload, str):
        if not payload.lstrip().startswith("{"):
            return normalize_recipe(payload)
        payload = _decode_json(payload)

    if not isinstance(payload, Mapping):
        raise InvalidSource(f"Unsupported payload type: {type(payload).__name__}")
    if "food" in payload:
        return normalize_structured(payload)
    if "product" in payload:
        return normalize_product(payload, barcode=barcode)
    raise InvalidSource("Payload matches no known provider shape")


def normalize_structured(payload: Mapping[str, object]) -> FoodRecord:
    """Normalize a detailed lookup from the structured-serving provider."""
    try:
        response = ProviderFoodResponse.model_validate(payload)
    except ValidationError as exc:
        raise InvalidSource("Malformed food detail payload") from exc
    food = response.food
    if food is None:
        raise InvalidSource("Food detail payload has no food object")
    if not food.servings.serving:
        raise NoServingsAvailable(f"No servings for food {food.food_id}")

    serving = select_serving(food.servings.serving)
    _logger.debug(
        "Selected serving %r for food %s out of %s",
        serving.serving_description,
        food.food_id,
        len(food.servings.serving),
    )
    return FoodRecord(
        id=food.food_id,
        name=_branded_name(food.brand_name, food.food_name),
        calories=parse_decimal(serving.calories),
        protein_g=parse_decimal(serving.protein),
        carbs_g=parse_decimal(serving.carbohydrate),
        fat_g=parse_decimal(serving.fat),
        serving_description=serving.serving_description or UNKNOWN_SERVING_DESCRIPTION,
        serving_weight_g=normalize_serving_weight(serving.metric_serving_amount),
    )


def normalize_product(
    payload: Mapping[str, object], *, barcode: str | None = None
) -> FoodRecord:
    """Normalize a per-100 g product lookup."""
    try:
        response = ProductResponse.model_validate(payload)
    except ValidationError as exc:
        raise InvalidSource("Malformed product payload") from exc
    product = response.product
    if product is None:
        raise InvalidSource("Product payload has no product object")

    nutriments = product.nutriments
    record_id = barcode or str(payload.get("code") or "") or uuid4().hex
    serving_weight = DEFAULT_SERVING_WEIGHT_G
    if nutriments and nutriments.serving_size and nutriments.serving_size > 0:
        serving_weight = nutriments.serving_size
    return FoodRecord(
        id=record_id,
        name=product.product_name or UNKNOWN_NAME,
        calories=(nutriments.energy_kcal or 0.0) if nutriments else 0.0,
        protein_g=(nutriments.proteins or 0.0) if nutriments else 0.0,
        carbs_g=(nutriments.carbohydrates or 0.0) if nutriments else 0.0,
        fat_g=(nutriments.fat or 0.0) if nutriments else 0.0,
        serving_description=PRODUCT_SERVING_DESCRIPTION,
        serving_weight_g=serving_weight,
    )


def parse_breakdown(text: str) -> dict[str, float]:
    """Read the ``Nutritional Breakdown:`` section of a recipe reply."""
    breakdown: dict[str, float] = {}
    started = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped == BREAKDOWN_MARKER:
            started = True
            continue
        if not started:
            continue
        label, separator, value_part = stripped.partition(": ")
        if not separator:
            continue
        tokens = value_part.split()
        if not tokens:
            continue
        value = _strict_float(tokens[0])
        if value is None:
            continue
        lowered = label.lower()
        for name in _BREAKDOWN_LABELS:
            if name in lowered:
                breakdown[name] = value
                break
    return breakdown


def normalize_recipe(text: str, *, record_id: str | None = None) -> FoodRecord:
    """Turn a recipe reply into a record ready to be logged.

    Every nutrient in the breakdown is required; the result is committed to a
    log so missing values are an error rather than zero.
    """
    breakdown = parse_breakdown(text)
    missing = [name for name in _BREAKDOWN_LABELS if name not in breakdown]
    if missing:
        raise IncompleteNutritionData(missing)
    lines = text.splitlines()
    name = lines[0].strip() if lines else ""
    return FoodRecord(
        id=record_id or uuid4().hex,
        name=name or RECIPE_FALLBACK_NAME,
        calories=breakdown["calories"],
        protein_g=breakdown["protein"],
        carbs_g=breakdown["carbs"],
        fat_g=breakdown["fats"],
        serving_description=RECIPE_SERVING_DESCRIPTION,
        serving_weight_g=DEFAULT_SERVING_WEIGHT_G,
    )


def parse_nutrient_summary(description: str | None) -> NutrientSummary:
    """Parse ``"Calories: 180-200 kcal | Fat: 5g | Carbs: 20g | Protein: 8g"``.

    For calories the text after the last dash is used, which covers both the
    range form and the ``"Per 100g - Calories: 52kcal"`` prefix. This is a
    heuristic; anything unparseable stays 0.0.
    """
    if not description:
        return NutrientSummary()
    values = {"calories": 0.0, "fat": 0.0, "carbs": 0.0, "protein": 0.0}
    for component in (part.strip() for part in description.split("|")):
        lowered = component.lower()
        if "calories:" in lowered:
            tail = component.split("-")[-1]
            values["calories"] = parse_decimal(_strip_tokens(tail, "calories:", "kcal"))
        elif "fat:" in lowered:
            values["fat"] = parse_decimal(_strip_tokens(component, "fat:", "g"))
        elif "carbs:" in lowered:
            values["carbs"] = parse_decimal(_strip_tokens(component, "carbs:", "g"))
        elif "protein:" in lowered:
            values["protein"] = parse_decimal(_strip_tokens(component, "protein:", "g"))
    return NutrientSummary(
        calories=values["calories"],
        protein_g=values["protein"],
        carbs_g=values["carbs"],
        fat_g=values["fat"],
    )


def normalize_search_item(item: Mapping[str, object]) -> FoodRecord:
    """Normalize one search hit using its description line."""
    try:
        hit = ProviderSearchItem.model_validate(item)
    except ValidationError as exc:
        raise InvalidSource("Malformed search item") from exc
    nutrients = parse_nutrient_summary(hit.food_description)
    if hit.brand_name:
        name = _branded_name(hit.brand_name, hit.food_name or "")
    else:
        name = hit.food_name or UNKNOWN_NAME
    return FoodRecord(
        id=hit.food_id,
        name=name,
        calories=nutrients.calories,
        protein_g=nutrients.protein_g,
        carbs_g=nutrients.carbs_g,
        fat_g=nutrients.fat_g,
        serving_description=hit.serving_size or UNKNOWN_SERVING_DESCRIPTION,
        serving_weight_g=hit.serving_weight or DEFAULT_SERVING_WEIGHT_G,
    )


def normalize_search_results(payload: Mapping[str, object]) -> list[FoodRecord]:
    """Normalize a search response, skipping hits that cannot be read."""
    foods = payload.get("foods")
    if not isinstance(foods, Mapping):
        return []
    hits = foods.get("food")
    if isinstance(hits, Mapping):
        hits = [hits]
    if not isinstance(hits, list):
        return []
    records: list[FoodRecord] = []
    for hit in hits:
        if not isinstance(hit, Mapping):
            continue
        try:
            records.append(normalize_search_item(hit))
        except InvalidSource:
            _logger.warning("Skipping unreadable search hit: %s", hit)
    return records


def _branded_name(brand: str | None, food_name: str) -> str:
    if brand and brand.strip():
        return f"{brand} {food_name}"
    return food_name


def _strip_tokens(text: str, *tokens: str) -> str:
    for token in tokens:
        text = re.sub(re.escape(token), "", text, flags=re.IGNORECASE)
    return text.strip()


def _strict_float(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or "_" in raw:
        return None
    return value


def _decode_json(raw: str | bytes) -> object:
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidSource("Payload is not valid JSON") from exc
