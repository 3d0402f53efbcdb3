"""Error taxonomy for normalization and log storage."""


class FoodLogError(Exception):
    """Base class for recoverable food log errors."""

    user_message = "Something went wrong."


class NormalizationError(FoodLogError):
    """A provider payload could not be turned into a food record."""


class InvalidSource(NormalizationError):
    """The top-level provider payload is malformed."""

    user_message = "The food data could not be read."


class NoServingsAvailable(NormalizationError):
    """A structured provider payload has no usable servings."""

    user_message = "No serving information is available for this food."


class IncompleteNutritionData(NormalizationError):
    """Free text is missing one of the required nutrients."""

    user_message = "Unable to log recipe: Missing nutritional information."

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing nutrients: {', '.join(missing)}")


class RemoteUnavailable(FoodLogError):
    """The backing store or a provider failed or timed out."""

    user_message = "The service is temporarily unavailable. Please try again."


class NotAuthenticated(FoodLogError):
    """An operation needs a user identity and none was supplied."""

    user_message = "You need to be signed in to do that."


def require_user(user_id: str | None) -> str:
    """Return a cleaned user id or raise NotAuthenticated."""
    cleaned = (user_id or "").strip()
    if not cleaned:
        raise NotAuthenticated("No active user identity")
    return cleaned
