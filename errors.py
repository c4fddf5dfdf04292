"""
Error kinds raised by the catalog store.

The HTTP layer maps each kind to a status code; nothing here knows about HTTP.
"""
from typing import Optional


class CatalogError(Exception):
    """Base class for every error the store reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """A field violates a declared constraint (range, enum, length, uniqueness)."""

    def __init__(self, field: str, message: str, record: Optional[int] = None):
        self.field = field
        self.record = record
        where = f"record {record}: " if record is not None else ""
        super().__init__(f"{where}{field}: {message}")


class NotFoundError(CatalogError):
    def __init__(self, message: str, resource: str = "Product"):
        super().__init__(message)
        self.resource = resource


class StorageUnavailableError(CatalogError):
    """The database could not be reached or timed out."""
