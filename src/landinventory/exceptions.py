"""
Land Inventory Exceptions

Error taxonomy surfaced to callers of the inventory engine. Every error carries
a machine-readable ``kind`` and a human-readable message; optional ``detail``
holds internal diagnostics (constraint names, driver messages) and is only
rendered for debug callers.
"""
from typing import Any, Dict, Optional


class LandInventoryError(Exception):
    """Base exception for all land inventory errors."""

    kind = "land_inventory_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self, debug: bool = False) -> Dict[str, Any]:
        """
        Build the structured error object returned to callers.

        Args:
            debug: Include internal diagnostic detail

        Returns:
            Dict with kind, message and (debug only) detail
        """
        payload = {"kind": self.kind, "message": self.message}
        if debug and self.detail:
            payload["detail"] = self.detail
        return payload


class ValidationError(LandInventoryError):
    """Raised for invalid area, unknown status, malformed payloads or duplicate names/numbers."""

    kind = "validation_error"


class NotFoundError(LandInventoryError):
    """Raised when a referenced property, block, plot or configuration does not exist."""

    kind = "not_found"


class ConflictError(LandInventoryError):
    """Raised when a concurrent allocation or apply collides; the caller should retry."""

    kind = "conflict"


class AuditDegraded(LandInventoryError):
    """
    Status history could not be written.

    Logged by the status tracker and never propagated to callers.
    """

    kind = "audit_degraded"
