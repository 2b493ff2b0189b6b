"""Error taxonomy shared by the catalog, selection, pricing and cart layers."""
from __future__ import annotations
from typing import Optional


class ValidationError(ValueError):
    """Input rejected before any state was touched (guests <= 0, unknown dish, bad payload)."""


class PersistenceFailure(RuntimeError):
    """A local or remote cart store write/read failed. In-memory state has been rolled back."""

    def __init__(self, message: str, *, line_id: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.line_id = line_id
        self.cause = cause


class ConfigurationError(Exception):
    """Catalog misconfiguration that is reported, never raised by the engine.

    Currently the only case is a FIXED_WITH_LIMITS package without any
    CategorySelection rows; selection degrades to unrestricted.
    """

    def __init__(self, package_id: str, message: str):
        super().__init__(message)
        self.package_id = package_id

    def to_dict(self):
        return {"package_id": self.package_id, "message": str(self)}
