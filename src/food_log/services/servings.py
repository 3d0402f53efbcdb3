"""Default serving selection for structured provider foods."""

from collections.abc import Sequence

from food_log.domain.errors import NoServingsAvailable
from food_log.domain.providers import ProviderServing
from food_log.services.parsing import KILO_SCALE_THRESHOLD_G, normalize_serving_weight

BASELINE_WEIGHT_G = 100.0
GRAM_UNIT = "g"


def select_serving(candidates: Sequence[ProviderServing]) -> ProviderServing:
    """Pick the most comparable serving; the first match wins.

    1. exactly 100 g in grams
    2. any gram serving up to 1000 g
    3. any serving up to 1000 g
    4. the first candidate
    """
    if not candidates:
        raise NoServingsAvailable("No servings to choose from")
    weighted = [
        (serving, normalize_serving_weight(serving.metric_serving_amount))
        for serving in candidates
    ]
    for serving, weight in weighted:
        if weight == BASELINE_WEIGHT_G and serving.metric_serving_unit == GRAM_UNIT:
            return serving
    for serving, weight in weighted:
        if (
            serving.metric_serving_unit == GRAM_UNIT
            and weight <= KILO_SCALE_THRESHOLD_G
        ):
            return serving
    for serving, weight in weighted:
        if weight <= KILO_SCALE_THRESHOLD_G:
            return serving
    return candidates[0]
