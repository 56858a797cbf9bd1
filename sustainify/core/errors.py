from __future__ import annotations


class SustainifyError(Exception):
    """Base class for errors raised by the identify workflow."""


class MissingImageError(SustainifyError):
    """No image, or a payload too short to be a real image."""


class InvalidImageError(SustainifyError):
    """The image payload is not valid base64."""


class IdentifyTimeoutError(SustainifyError):
    """The provider did not answer before the deadline."""


class IdentifyError(SustainifyError):
    """Unexpected upstream or network failure."""


class ProviderError(SustainifyError):
    """Raised by adapters with a readable description of the API failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
