"""Default role definitions for Stockroom.

Roles and their permission slugs come from the bundled catalog.yaml (or
the file named by STOCKROOM_ROLE_CATALOG_PATH):

1. Super Admin - Full system access ("*:*")
2. Admin - Everything except system configuration
3. Manager - User editing, product/warehouse management, reports
4. Warehouse Staff - Products, inventory and warehouses
5. Sales Representative - Orders, user lookup, reports
6. Inventory Clerk - Products and inventory
7. Viewer - Read-only inventory, orders and reports
8. Customer - No back-office permissions
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from stockroom.common.config import RoleCatalog, load_role_catalog
from stockroom.core.config import get_settings

from .entity import Permission
from .naming import PermissionSlug
from .provider import InMemoryPermissionProvider

logger = logging.getLogger(__name__)

BUNDLED_CATALOG_PATH = Path(__file__).with_name("catalog.yaml")


@lru_cache
def get_role_catalog() -> RoleCatalog:
    """Load the configured role catalog once per process."""
    path = get_settings().role_catalog_path or str(BUNDLED_CATALOG_PATH)
    catalog = load_role_catalog(path)
    logger.info(
        f"Loaded role catalog from {path}: "
        f"{len(catalog.permissions)} permissions, {len(catalog.roles)} roles"
    )
    return catalog


def get_all_default_roles(catalog: Optional[RoleCatalog] = None) -> Dict[str, dict]:
    """Get all default role definitions keyed by role key."""
    catalog = catalog or get_role_catalog()
    return {
        key: {
            "name": role.name,
            "description": role.description,
            "permissions": list(role.permissions),
            "is_system": role.is_system,
        }
        for key, role in catalog.roles.items()
    }


def get_default_role_permissions(
    role_key: str, catalog: Optional[RoleCatalog] = None
) -> List[str]:
    """Get the permission slugs of a default role."""
    catalog = catalog or get_role_catalog()
    role = catalog.roles.get(role_key)
    if not role:
        raise ValueError(f"Unknown default role: {role_key}")
    return list(role.permissions)


def build_catalog_permissions(catalog: Optional[RoleCatalog] = None) -> Dict[str, Permission]:
    """Create one Permission entity per catalog entry, keyed by slug.

    Raises:
        ValidationError: If a catalog slug is not a valid resource:action pair
    """
    catalog = catalog or get_role_catalog()
    permissions: Dict[str, Permission] = {}
    for spec in catalog.permissions.values():
        pair = PermissionSlug.create(spec.slug).to_permission_object()
        permission = Permission.create_from_resource_action(
            pair.resource,
            pair.action,
            description=spec.description,
            is_system_permission=spec.system,
        )
        permissions[permission.slug.value] = permission
    return permissions


def build_default_provider(catalog: Optional[RoleCatalog] = None) -> InMemoryPermissionProvider:
    """In-memory provider whose role ids are the catalog's role keys."""
    catalog = catalog or get_role_catalog()
    permissions = build_catalog_permissions(catalog)
    role_permissions = {
        key: [permissions[PermissionSlug.create(slug).value] for slug in role.permissions]
        for key, role in catalog.roles.items()
    }
    return InMemoryPermissionProvider(role_permissions=role_permissions)
