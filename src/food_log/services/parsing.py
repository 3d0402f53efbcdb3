"""Locale-tolerant number parsing and serving weight normalization."""

import logging
import math

from food_log.domain.foods import DEFAULT_SERVING_WEIGHT_G

KILO_SCALE_THRESHOLD_G = 1000.0

_logger = logging.getLogger(__name__)


def parse_decimal(raw: str | None) -> float:
    """Parse a provider number, accepting ``,`` as the decimal separator.

    Missing or non-numeric input yields 0.0; providers omit fields routinely.
    """
    if raw is None:
        return 0.0
    cleaned = str(raw).strip().replace(",", ".")
    if not cleaned or "_" in cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        _logger.debug("Could not parse %r as a number, using 0.0", raw)
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def normalize_serving_weight(raw: str | None) -> float:
    """Return a serving weight in grams.

    Values above 1000 are treated as mis-scaled and divided by 1000; a weight of
    zero or less means unknown and becomes 100 g. Historical data depends on this
    exact rule.
    """
    value = parse_decimal(raw)
    if value > KILO_SCALE_THRESHOLD_G:
        return value / KILO_SCALE_THRESHOLD_G
    if value <= 0.0:
        return DEFAULT_SERVING_WEIGHT_G
    return value
