"""Permission providers.

A provider hands the resolver the permissions reachable through a set of
roles. Storage-backed providers live in stockroom.db; the in-memory one
here serves bootstrap code and tests.
"""

from typing import Hashable, Iterable, List, Mapping, Optional, Protocol

from .entity import Permission


class PermissionProvider(Protocol):
    def load_permissions_for_roles(self, role_ids: Iterable[Hashable]) -> List[Permission]:
        ...

    def load_permissions_for_user(self, user_id: Hashable) -> List[Permission]:
        ...


class InMemoryPermissionProvider:
    """
    Deterministic in-memory provider used for bootstrap/tests.

    Permissions are returned in role order, then in the order each role
    lists them. Duplicates across roles are kept; the resolver collapses
    them.
    """

    def __init__(
        self,
        role_permissions: Optional[Mapping[Hashable, Iterable[Permission]]] = None,
        user_roles: Optional[Mapping[Hashable, Iterable[Hashable]]] = None,
    ):
        self._role_permissions: dict[Hashable, tuple[Permission, ...]] = {
            role_id: tuple(permissions)
            for role_id, permissions in (role_permissions or {}).items()
        }
        self._user_roles: dict[Hashable, tuple[Hashable, ...]] = {
            user_id: tuple(roles) for user_id, roles in (user_roles or {}).items()
        }

    def load_permissions_for_roles(self, role_ids: Iterable[Hashable]) -> List[Permission]:
        permissions: List[Permission] = []
        for role_id in role_ids:
            permissions.extend(self._role_permissions.get(role_id, ()))
        return permissions

    def load_permissions_for_user(self, user_id: Hashable) -> List[Permission]:
        return self.load_permissions_for_roles(self._user_roles.get(user_id, ()))
