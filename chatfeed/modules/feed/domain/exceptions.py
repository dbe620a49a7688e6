"""Feed domain exceptions."""

from chatfeed.core.domain.exceptions import (
    EntityNotFoundError,
    LimitExceededError,
    ValidationError,
)


class FilterPresetNotFoundError(EntityNotFoundError):
    """Raised when filter preset is not found."""

    def __init__(self, filter_id: str | None = None):
        super().__init__("FilterPreset", filter_id)


class InvalidFilterNameError(ValidationError):
    """Raised when filter name is empty after trimming."""

    error_code = "INVALID_FILTER_NAME"

    def __init__(self, message: str = "Filter name must not be empty"):
        super().__init__(message)


class FilterLimitReachedError(LimitExceededError):
    """Raised when the maximum number of saved filters is reached."""

    error_code = "FILTER_LIMIT_REACHED"

    def __init__(self, limit: int):
        super().__init__(f"Maximum number of filters reached ({limit})")
        self.limit = limit
