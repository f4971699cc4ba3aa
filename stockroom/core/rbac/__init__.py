"""RBAC (Role-Based Access Control) module for Stockroom.

This module defines the permission model (actions, resources, slugs,
the Permission entity) and the access resolution functions.
"""

from .actions import ActionIdentifier
from .resources import ResourceIdentifier
from .naming import PermissionName, PermissionSlug, ResourceAction
from .errors import PermissionImmutableError, RBACError, ValidationError
from .events import (
    DescriptionChanged,
    DomainEvent,
    NameChanged,
    PermissionCreated,
    PermissionStatus,
    PermissionUpdated,
    StatusChanged,
)
from .entity import Permission, PermissionScope
from .resolver import check_access, find_effective_permissions, find_granting_permission
from .provider import InMemoryPermissionProvider, PermissionProvider

__all__ = [
    "ActionIdentifier",
    "ResourceIdentifier",
    "PermissionName",
    "PermissionSlug",
    "ResourceAction",
    "RBACError",
    "ValidationError",
    "PermissionImmutableError",
    "DomainEvent",
    "PermissionCreated",
    "PermissionUpdated",
    "PermissionStatus",
    "NameChanged",
    "DescriptionChanged",
    "StatusChanged",
    "Permission",
    "PermissionScope",
    "check_access",
    "find_effective_permissions",
    "find_granting_permission",
    "PermissionProvider",
    "InMemoryPermissionProvider",
]
