from __future__ import annotations


class WeatherError(Exception):
    """Base for failures that end a weather request with an error body."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputError(WeatherError):
    status_code = 400


class UpstreamError(WeatherError):
    """The weather provider answered with a non-success status."""


class UpstreamNotFoundError(UpstreamError):
    """The provider could not resolve the requested city."""


class UpstreamProtocolError(UpstreamError):
    """The provider payload did not have the expected shape."""


class UpstreamUnavailableError(UpstreamError):
    """Transport failure or timeout while talking to the provider."""


class CacheUnavailableError(WeatherError):
    """The cache store could not be read or written.

    Never raised to the request boundary; carried inside cache results.
    """
