"""Error types for the Stockroom permission model.

Validation errors come from the identifier, slug and name factories.
Immutability errors come from mutating a system permission.
Access checks never raise; malformed requests simply do not match.
"""

from typing import Optional
from uuid import UUID


class RBACError(Exception):
    """Base error for permission model operations."""
    pass


class ValidationError(RBACError, ValueError):
    """Raised when raw input cannot become a valid identifier or label."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class PermissionImmutableError(RBACError):
    """Raised when a system permission is deactivated or modified."""

    def __init__(self, operation: str, permission_id: Optional[UUID] = None):
        self.operation = operation
        self.permission_id = permission_id
        super().__init__(f"System permissions cannot be {operation}")
