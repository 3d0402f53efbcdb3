"""Models for raw provider payloads."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ProviderServing(BaseModel):
    """One candidate serving reported by the structured provider.

    Numeric fields arrive as strings and are parsed lazily.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    calories: str | None = None
    protein: str | None = None
    carbohydrate: str | None = None
    fat: str | None = None
    serving_description: str | None = None
    metric_serving_amount: str | None = None
    metric_serving_unit: str | None = None


class ProviderServings(BaseModel):
    """Servings container that accepts a single object or a list."""

    model_config = ConfigDict(extra="ignore")

    serving: list[ProviderServing] = Field(default_factory=list)

    @field_validator("serving", mode="before")
    @classmethod
    def _wrap_single(cls, value: object) -> list[object]:
        if isinstance(value, list):
            try:
                return [ProviderServing.model_validate(item) for item in value]
            except ValidationError:
                pass
        try:
            return [ProviderServing.model_validate(value)]
        except ValidationError:
            return []


class ProviderFood(BaseModel):
    """Detailed food from the structured provider."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    food_id: str
    food_name: str
    brand_name: str | None = None
    servings: ProviderServings = Field(default_factory=ProviderServings)


class ProviderFoodResponse(BaseModel):
    """Envelope of a detail lookup."""

    model_config = ConfigDict(extra="ignore")

    food: ProviderFood | None = None


class ProviderSearchItem(BaseModel):
    """One search hit with a one-line nutrient description."""

    model_config = ConfigDict(
        extra="ignore", coerce_numbers_to_str=True, populate_by_name=True
    )

    food_id: str
    food_name: str | None = None
    brand_name: str | None = None
    food_description: str | None = None
    serving_size: str | None = Field(default=None, alias="servingSize")
    serving_weight: float | None = Field(default=None, alias="servingWeight")


class ProductNutriments(BaseModel):
    """Per-100 g nutrient values from the product database."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    energy_kcal: float | None = Field(default=None, alias="energy-kcal_100g")
    proteins: float | None = Field(default=None, alias="proteins_100g")
    carbohydrates: float | None = Field(default=None, alias="carbohydrates_100g")
    fat: float | None = Field(default=None, alias="fat_100g")
    serving_size: float | None = None

    @field_validator(
        "energy_kcal", "proteins", "carbohydrates", "fat", "serving_size", mode="before"
    )
    @classmethod
    def _lenient_number(cls, value: object) -> float | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int | float):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return None
        return None


class Product(BaseModel):
    """Product entry from the per-100 g product database."""

    model_config = ConfigDict(extra="ignore")

    product_name: str | None = None
    nutriments: ProductNutriments | None = None


class ProductResponse(BaseModel):
    """Envelope of a product lookup."""

    model_config = ConfigDict(extra="ignore")

    product: Product | None = None
