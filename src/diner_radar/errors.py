"""Exceptions raised by the provider adapters."""

from __future__ import annotations


class DinerRadarError(Exception):
    """Base class for every error raised by this package."""


class ProviderUnavailable(DinerRadarError):
    """The provider handle could not be created (missing key, load failure)."""


class QueryFailed(DinerRadarError):
    """Both response shapes failed, or the provider returned a non-OK status."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
