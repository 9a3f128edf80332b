"""
OPTCG Price Lookup — Error Taxonomy

Every failure the sync and search layers raise derives from CatalogError.
Each class carries the HTTP status the route layer answers with, so the
API maps errors by type rather than by parsing messages.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for catalog mirror failures. Maps to HTTP 500."""

    status_code: int = 500


class SetNotFoundError(CatalogError):
    """A set abbreviation matched no group, upstream or local."""

    status_code = 404

    def __init__(self, abbreviation: str):
        self.abbreviation = abbreviation
        super().__init__(f"Set not found: {abbreviation}")


class UpstreamFetchError(CatalogError):
    """A tcgcsv request failed (transport error, non-2xx, or bad payload)."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Upstream fetch failed: {path}: {reason}")


class StoreWriteError(CatalogError):
    """A database write failed. ``step`` names the write (e.g. 'Prices insert')."""

    def __init__(self, step: str, reason: str):
        self.step = step
        super().__init__(f"{step} failed: {reason}")


class InvalidRequestError(CatalogError):
    """A required request parameter is missing."""

    status_code = 400
