"""
Exception types raised by the listings pipeline.

- ExtractionError: the listings page could not be read (hard failure)
- StoreReadError: the cache could not be read (treated as a cache miss)
- StorePersistError: a snapshot could not be written (logged, non-fatal)
"""
from typing import Optional


class NowScreeningError(Exception):
    """Base class for all pipeline errors."""


class ExtractionError(NowScreeningError):
    """Raised when listings for a city could not be extracted.

    This means "unknown", never "no movies": callers must not turn it
    into an empty result.
    """

    def __init__(self, city: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{city}: {message}")
        self.city = city
        self.message = message
        self.cause = cause


class StoreError(NowScreeningError):
    """Base class for cache store failures."""

    def __init__(self, city: Optional[str], message: str):
        super().__init__(f"{city}: {message}" if city else message)
        self.city = city
        self.message = message


class StoreReadError(StoreError):
    """Raised when the cache could not be queried."""


class StorePersistError(StoreError):
    """Raised when a snapshot replace was rolled back."""
