"""Exception hierarchy for the search engine."""

from __future__ import annotations


class CollectrError(Exception):
    """Base class for all collectr errors."""


class InvalidInputError(CollectrError, ValueError):
    """Caller supplied a query, barcode or paging value we refuse to search with."""


class ProviderError(CollectrError):
    """A metadata provider could not serve a request."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class AuthenticationError(ProviderError):
    """Credential exchange was rejected or the token endpoint was unreachable."""


class ProviderUnavailableError(ProviderError):
    """Timeout, network failure, non-2xx response or unparsable payload."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(provider, message)
        self.status_code = status_code
