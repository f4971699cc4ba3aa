"""Access resolution over a caller-supplied permission collection.

The model is allow-only: a request is granted when at least one active
permission covers it, so the order of the collection never changes the
answer. Requests whose resource or action cannot be parsed are denied
rather than raised.

Nothing here performs I/O, caches, or mutates the permissions passed in.
"""

import logging
from typing import Iterable, List, Optional, Union

from .actions import ActionIdentifier
from .entity import Permission
from .errors import ValidationError
from .resources import ResourceIdentifier

logger = logging.getLogger(__name__)


def parse_request(
    resource: Union[ResourceIdentifier, str],
    action: Union[ActionIdentifier, str],
) -> Optional[tuple[ResourceIdentifier, ActionIdentifier]]:
    """Parse a requested pair, returning None when either half is malformed."""
    try:
        if not isinstance(resource, ResourceIdentifier):
            resource = ResourceIdentifier.create(resource)
        if not isinstance(action, ActionIdentifier):
            action = ActionIdentifier.create(action)
    except ValidationError as e:
        logger.debug(f"Malformed access request {resource!r}:{action!r} denied: {e}")
        return None
    return resource, action


def find_granting_permission(
    permissions: Iterable[Permission],
    resource: Union[ResourceIdentifier, str],
    action: Union[ActionIdentifier, str],
) -> Optional[Permission]:
    """Return the first active permission that covers the request, if any."""
    request = parse_request(resource, action)
    if request is None:
        return None

    requested_resource, requested_action = request
    for permission in permissions:
        if not permission.is_active:
            continue
        if permission.grants(requested_resource, requested_action):
            return permission
    return None


def check_access(
    permissions: Iterable[Permission],
    resource: Union[ResourceIdentifier, str],
    action: Union[ActionIdentifier, str],
) -> bool:
    """Check whether the collection grants `action` on `resource`.

    Args:
        permissions: Permissions reachable by the principal through its roles
        resource: Requested resource, e.g. "inventory_counts"
        action: Requested action, e.g. "read"

    Returns:
        True if some active permission's resource matches and its action
        equals or implies the requested one. Never raises.
    """
    granted = find_granting_permission(permissions, resource, action) is not None
    if not granted:
        logger.debug(f"Access denied for {resource}:{action}")
    return granted


def effective_priority_key(permission: Permission) -> tuple[int, str]:
    """Sort key: higher priority first, then slug ascending."""
    return (-permission.priority(), permission.slug.value)


def find_effective_permissions(
    permissions: Iterable[Permission],
    *,
    include_inactive: bool = False,
) -> List[Permission]:
    """De-duplicate by slug and order by priority.

    Permissions gathered from several roles often repeat; the first
    occurrence of each slug is kept. Inactive permissions grant nothing
    and are left out unless `include_inactive` is set.

    The ordering is for display and audit; check_access() does not use it.
    """
    by_slug: dict[str, Permission] = {}
    for permission in permissions:
        if not include_inactive and not permission.is_active:
            continue
        by_slug.setdefault(permission.slug.value, permission)

    return sorted(by_slug.values(), key=effective_priority_key)
