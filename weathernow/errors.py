"""Error taxonomy for weather resolution, storage and image analysis."""


class WeatherNowError(Exception):
    """Base class for all errors raised by this package."""


class NotFoundError(WeatherNowError):
    """A city name did not resolve to any location."""

    def __init__(self, city: str):
        self.city = city
        super().__init__(f"Could not find location: {city}")


class UpstreamError(WeatherNowError):
    """Geocoding or forecast endpoint failed or returned an unusable payload."""


class SummaryError(WeatherNowError):
    """The narrative summary could not be generated."""


class StorageError(WeatherNowError):
    """Persisted state is unreadable, corrupt, or could not be written."""


class InvalidImageError(WeatherNowError):
    """The supplied upload is not an image data URI."""


class ImageAnalysisError(WeatherNowError):
    """The remote image classifier failed or returned an unusable answer."""
