"""Failures raised while talking to the metadata providers."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for provider and aggregation failures."""


class NetworkFailure(CatalogError):
    """The request could not complete or the provider answered with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(CatalogError):
    """The provider answered, but the payload was malformed or had an unexpected shape."""


class DetailLoadError(CatalogError):
    """The mandatory primary details for a selected item could not be loaded."""
