"""Permission checking utilities for Stockroom.

Provides a checker over a principal's permissions and FastAPI
dependencies for enforcing them on endpoints.

The authentication layer is expected to put the principal's role ids on
`request.state.role_ids` and the application to expose a permission
provider on `app.state.permission_provider`.
"""

import logging
from typing import Iterable, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .actions import ActionIdentifier
from .entity import Permission, coerce_resource
from .errors import PermissionImmutableError, ValidationError
from .naming import PermissionSlug
from .resolver import check_access, find_effective_permissions
from .resources import SYSTEM_RESOURCES, ResourceIdentifier

logger = logging.getLogger(__name__)

PermissionRef = Union[str, PermissionSlug]


def parse_permission_ref(
    permission: PermissionRef,
) -> Optional[tuple[ResourceIdentifier, str]]:
    """Decode a slug the same way stored slugs are decoded.

    A missing action means every action and a bare "*" resource means every
    resource. Returns None for anything that is not a valid slug.
    """
    try:
        pair = PermissionSlug.create(str(permission)).to_permission_object()
        resource = coerce_resource(pair.resource)
    except ValidationError as e:
        logger.debug(f"Malformed permission reference {permission!r} denied: {e}")
        return None
    return resource, pair.action


class PermissionChecker:
    """Checks if a principal has specific permissions."""

    def __init__(self, permissions: Iterable[Permission]):
        """
        Initialize with the principal's permissions.

        Args:
            permissions: Permissions gathered from all of the principal's roles
        """
        self.permissions = tuple(permissions)

    def has_permission(self, permission: PermissionRef) -> bool:
        """Check a "resource:action" slug; malformed slugs are denied."""
        parsed = parse_permission_ref(permission)
        if parsed is None:
            return False
        resource, action = parsed
        return check_access(self.permissions, resource, action)

    def has_any_permission(self, permissions: List[PermissionRef]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List[PermissionRef]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    def can_access_resource(
        self,
        resource: Union[ResourceIdentifier, str],
        action: Union[ActionIdentifier, str],
    ) -> bool:
        return check_access(self.permissions, resource, action)

    def get_accessible_resources(
        self,
        action: Union[ActionIdentifier, str],
        candidates: Optional[Iterable[str]] = None,
    ) -> List[str]:
        """Get the candidate resources the principal can perform `action` on."""
        candidates = SYSTEM_RESOURCES if candidates is None else candidates
        return [
            resource for resource in candidates
            if self.can_access_resource(resource, action)
        ]

    def effective_permissions(self) -> List[Permission]:
        return find_effective_permissions(self.permissions)


def get_principal_permissions(request: Request) -> List[Permission]:
    """FastAPI dependency returning the permissions of the calling principal."""
    role_ids = getattr(request.state, "role_ids", None)
    if role_ids is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    provider = getattr(request.app.state, "permission_provider", None)
    if provider is None:
        logger.error("No permission provider configured; denying request")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )

    return provider.load_permissions_for_roles(role_ids)


class PermissionDependency:
    """
    FastAPI dependency for permission checking.

    Usage:
        @router.get("/products", dependencies=[Depends(PermissionDependency("products:list"))])
        async def list_products():
            ...

        @router.delete("/products/{id}", dependencies=[
            Depends(PermissionDependency("products:delete", "products:manage"))
        ])
        async def delete_product(id: UUID):
            ...
    """

    def __init__(self, *permissions: PermissionRef, require_all: bool = False):
        if not permissions:
            raise ValueError("At least one permission is required")
        self.permissions = [str(p) for p in permissions]
        self.require_all = require_all

    def __call__(
        self, principal_permissions: List[Permission] = Depends(get_principal_permissions)
    ) -> bool:
        checker = PermissionChecker(principal_permissions)

        if self.require_all:
            has_access = checker.has_all_permissions(self.permissions)
        else:
            has_access = checker.has_any_permission(self.permissions)

        if not has_access:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {', '.join(self.permissions)}",
            )

        return True


def require_resource_access(
    resource: Union[ResourceIdentifier, str],
    action: Union[ActionIdentifier, str],
) -> PermissionDependency:
    """
    Shorthand for a single resource/action requirement.

    Usage:
        @router.get("/inventory_counts", dependencies=[
            Depends(require_resource_access("inventory_counts", "list"))
        ])
        async def list_counts():
            ...
    """
    return PermissionDependency(f"{resource}:{action}")


async def permission_immutable_handler(
    request: Request, exc: PermissionImmutableError
) -> JSONResponse:
    """Report attempts to change a system permission as 403."""
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"error": "permission_immutable", "detail": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PermissionImmutableError, permission_immutable_handler)
