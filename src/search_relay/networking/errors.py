"""Exception taxonomy for the search request layer."""

from __future__ import annotations


class SearchClientError(Exception):
    """Base exception for the search request layer."""


class ConfigurationError(SearchClientError, ValueError):
    """Required settings are absent or invalid.

    Raised before any network attempt is made.
    """


class SigningError(SearchClientError, ValueError):
    """The signer received a request it cannot canonicalize."""


class TransportFailure(SearchClientError):
    """No HTTP response was received.

    Never raised out of ``SearchRequestClient``; the client records it on a
    synthetic ``Response`` instead.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause

    @property
    def kind(self) -> str:
        """Class name of the underlying transport exception."""
        if self.cause is None:
            return type(self).__name__
        return type(self.cause).__name__
