from __future__ import annotations


class GovGuardError(Exception):
    """Base error for govguard."""


class SnapshotValidationError(GovGuardError, ValueError):
    """Configuration snapshot is missing fields or carries values of the wrong type."""


class CatalogDefinitionError(GovGuardError, ValueError):
    """Catalog entry references an unknown category, result kind or risk tier."""
