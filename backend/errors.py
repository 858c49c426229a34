"""Exception types shared by the converter modules."""

from __future__ import annotations


class ConverterError(Exception):
    """Base class for all errors raised by the link converter."""


class ConfigError(ConverterError):
    """Raised when an environment setting cannot be parsed."""


class ExtractionError(ConverterError):
    """The source link could not be turned into track metadata.

    ``client_error`` is True when the link itself is malformed (the caller
    should fix the input) and False when an upstream lookup failed.
    """

    def __init__(self, message: str, client_error: bool = False) -> None:
        super().__init__(message)
        self.client_error = client_error


class UnsupportedLinkError(ExtractionError):
    def __init__(self, link: str) -> None:
        super().__init__(f"Unsupported link provider: {link}", client_error=True)
        self.link = link


class ProviderError(ConverterError):
    """A single search-provider call failed."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
