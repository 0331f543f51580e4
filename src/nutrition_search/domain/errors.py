"""Error taxonomy for food search operations."""


class NutritionSearchError(Exception):
    """Base error carrying a user-safe message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(NutritionSearchError, ValueError):
    """Raised for malformed client input before any I/O happens."""

    status_code = 400


class ProviderNotConfiguredError(NutritionSearchError):
    """Raised when a provider's credential is not set."""

    status_code = 500

    def __init__(self, source: str) -> None:
        super().__init__(f"{source} API is not configured")
        self.source = source


class ProviderError(NutritionSearchError):
    """Raised when an upstream provider call fails."""

    status_code = 502

    def __init__(
        self, source: str, message: str, upstream_status: int | None = None
    ) -> None:
        super().__init__(message)
        self.source = source
        self.upstream_status = upstream_status
        if upstream_status is not None and upstream_status >= 400:  # noqa: PLR2004
            self.status_code = upstream_status


class DataLoadError(NutritionSearchError):
    """Raised when the flat-file nutrient dataset cannot be loaded."""

    status_code = 500


class FoodNotFoundError(NutritionSearchError):
    """Raised when a provider does not know the requested food."""

    status_code = 404

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)
