"""Canonical food record model."""

from dataclasses import dataclass, replace
from datetime import datetime

DEFAULT_SERVING_WEIGHT_G = 100.0


@dataclass(frozen=True)
class FoodRecord:
    """Source-agnostic nutrition and serving data for one food."""

    id: str
    name: str
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    serving_description: str
    serving_weight_g: float
    logged_at: datetime | None = None

    def __post_init__(self) -> None:
        for attr in ("calories", "protein_g", "carbs_g", "fat_g"):
            if getattr(self, attr) < 0:
                object.__setattr__(self, attr, 0.0)
        # a weight of zero or less means unknown
        if self.serving_weight_g <= 0:
            object.__setattr__(self, "serving_weight_g", DEFAULT_SERVING_WEIGHT_G)

    def stamped(self, logged_at: datetime) -> "FoodRecord":
        """Return a copy attached to a log entry at ``logged_at``."""
        return replace(self, logged_at=logged_at)
