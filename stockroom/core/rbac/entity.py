"""Permission entity for Stockroom RBAC.

A Permission binds one resource to one action and carries lifecycle
metadata: active flag, system flag and audit fields. Resource and action
never change after construction; name, description and the active flag
may, and every such change appends a domain event.

System permissions are platform-defined: they can be activated but never
deactivated, renamed or deleted through the entity.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

from .actions import ActionIdentifier, WILDCARD
from .errors import PermissionImmutableError, ValidationError
from .events import (
    DescriptionChanged,
    DomainEvent,
    FieldChange,
    NameChanged,
    PermissionCreated,
    PermissionStatus,
    PermissionUpdated,
    StatusChanged,
)
from .naming import ADMIN_RESOURCES, PermissionName, PermissionSlug
from .resources import ResourceIdentifier

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_LENGTH = 255
SPECIFIC_RESOURCE_BONUS = 10


class PermissionScope(str, Enum):
    """Who a permission is meant for."""

    SYSTEM = "system"
    ADMIN = "admin"
    USER = "user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_uuid(value: Union[UUID, str, None]) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _check_description(description: Optional[str]) -> None:
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            "description", f"cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
        )


def coerce_resource(resource: Union[ResourceIdentifier, str]) -> ResourceIdentifier:
    """Accept an identifier or a raw string; a bare "*" means every resource."""
    if isinstance(resource, ResourceIdentifier):
        return resource
    if isinstance(resource, str) and resource.strip() == WILDCARD:
        return ResourceIdentifier.create_wildcard()
    return ResourceIdentifier.create(resource)


def coerce_action(action: Union[ActionIdentifier, str]) -> ActionIdentifier:
    if isinstance(action, ActionIdentifier):
        return action
    return ActionIdentifier.create(action)


class Permission:
    """A grant of one action on one resource."""

    def __init__(
        self,
        *,
        id: UUID,
        name: PermissionName,
        slug: PermissionSlug,
        resource: ResourceIdentifier,
        action: ActionIdentifier,
        description: Optional[str] = None,
        is_active: bool = True,
        is_system_permission: bool = False,
        created_at: datetime,
        updated_at: datetime,
        created_by: Optional[UUID] = None,
        updated_by: Optional[UUID] = None,
        deleted_at: Optional[datetime] = None,
        deleted_by: Optional[UUID] = None,
    ):
        self._id = id
        self._name = name
        self._slug = slug
        self._resource = resource
        self._action = action
        self._description = description
        self._is_active = is_active
        self._is_system_permission = is_system_permission
        self._created_at = created_at
        self._updated_at = updated_at
        self._created_by = created_by
        self._updated_by = updated_by
        self._deleted_at = deleted_at
        self._deleted_by = deleted_by
        self._domain_events: List[DomainEvent] = []

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        name: PermissionName,
        slug: PermissionSlug,
        resource: ResourceIdentifier,
        action: ActionIdentifier,
        description: Optional[str] = None,
        is_system_permission: bool = False,
        created_by: Optional[UUID] = None,
    ) -> "Permission":
        """Create a new, active permission and record a PermissionCreated event."""
        _check_description(description)
        now = _utcnow()
        permission = cls(
            id=uuid.uuid4(),
            name=name,
            slug=slug,
            resource=resource,
            action=action,
            description=description,
            is_active=True,
            is_system_permission=is_system_permission,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            updated_by=created_by,
        )
        permission._record(PermissionCreated(
            permission_id=permission.id,
            permission_name=name.value,
            resource=resource.value,
            action=action.value,
        ))
        logger.debug(f"Created permission {slug.value}")
        return permission

    @classmethod
    def create_from_resource_action(
        cls,
        resource: Union[ResourceIdentifier, str],
        action: Union[ActionIdentifier, str],
        description: Optional[str] = None,
        is_system_permission: bool = False,
        created_by: Optional[UUID] = None,
    ) -> "Permission":
        """Create a permission whose name and slug derive from resource and action."""
        resource = coerce_resource(resource)
        action = coerce_action(action)
        return cls.create(
            PermissionName.from_resource_action(resource, action),
            PermissionSlug.from_resource_action(resource, action),
            resource,
            action,
            description=description,
            is_system_permission=is_system_permission,
            created_by=created_by,
        )

    @classmethod
    def reconstitute(cls, **props: Any) -> "Permission":
        """Rebuild from already-validated parts. Records no event."""
        return cls(**props)

    @classmethod
    def from_persistence(cls, row: Mapping[str, Any]) -> "Permission":
        """Rebuild from a storage row as produced by to_persistence().

        Records no event. Stored values are checked for canonical form, so a
        corrupt row raises ValidationError instead of yielding an entity.
        """
        return cls.reconstitute(
            id=_as_uuid(row["id"]),
            name=PermissionName(row["name"]),
            slug=PermissionSlug(row["slug"]),
            resource=ResourceIdentifier.from_stored(row["resource"]),
            action=ActionIdentifier(row["action"]),
            description=row.get("description"),
            is_active=bool(row.get("is_active", True)),
            is_system_permission=bool(row.get("is_system_permission", False)),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            created_by=_as_uuid(row.get("created_by")),
            updated_by=_as_uuid(row.get("updated_by")),
            deleted_at=row.get("deleted_at"),
            deleted_by=_as_uuid(row.get("deleted_by")),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def name(self) -> PermissionName:
        return self._name

    @property
    def slug(self) -> PermissionSlug:
        return self._slug

    @property
    def resource(self) -> ResourceIdentifier:
        return self._resource

    @property
    def action(self) -> ActionIdentifier:
        return self._action

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def is_system_permission(self) -> bool:
        return self._is_system_permission

    @property
    def status(self) -> PermissionStatus:
        return PermissionStatus.ACTIVE if self._is_active else PermissionStatus.INACTIVE

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def created_by(self) -> Optional[UUID]:
        return self._created_by

    @property
    def updated_by(self) -> Optional[UUID]:
        return self._updated_by

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self._deleted_at

    @property
    def deleted_by(self) -> Optional[UUID]:
        return self._deleted_by

    @property
    def is_deleted(self) -> bool:
        return self._deleted_at is not None

    @property
    def display_name(self) -> str:
        return self._name.display_value

    @property
    def permission_string(self) -> str:
        """Full "resource:action" string."""
        return f"{self._resource.value}:{self._action.value}"

    @property
    def scope(self) -> PermissionScope:
        if self._is_system_permission:
            return PermissionScope.SYSTEM
        if self.is_administrative_permission():
            return PermissionScope.ADMIN
        return PermissionScope.USER

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._domain_events)

    # ------------------------------------------------------------------
    # Business methods
    # ------------------------------------------------------------------

    def update(
        self,
        name: Union[PermissionName, str],
        description: Optional[str] = None,
        updated_by: Optional[UUID] = None,
    ) -> None:
        """Replace name and description.

        Raises:
            PermissionImmutableError: If this is a system permission
            ValidationError: If the name or description is invalid
        """
        if not self.can_be_modified():
            raise PermissionImmutableError("modified", self._id)
        if not isinstance(name, PermissionName):
            name = PermissionName.create(name)
        _check_description(description)

        changes: List[FieldChange] = []
        if name != self._name:
            changes.append(NameChanged(old=self._name.value, new=name.value))
        if description != self._description:
            changes.append(DescriptionChanged(old=self._description, new=description))
        if not changes:
            return

        self._name = name
        self._description = description
        self._touch(updated_by)
        self._record(PermissionUpdated(permission_id=self._id, changes=tuple(changes)))
        logger.info(f"Updated permission {self._slug.value}: {[c.field_name for c in changes]}")

    def activate(self, updated_by: Optional[UUID] = None) -> None:
        """Mark the permission active. No-op if it already is."""
        if self._is_active:
            return

        self._is_active = True
        self._touch(updated_by)
        self._record(PermissionUpdated(
            permission_id=self._id,
            changes=(StatusChanged(old=PermissionStatus.INACTIVE, new=PermissionStatus.ACTIVE),),
        ))
        logger.info(f"Activated permission {self._slug.value}")

    def deactivate(self, updated_by: Optional[UUID] = None) -> None:
        """Mark the permission inactive. No-op if it already is.

        Raises:
            PermissionImmutableError: If this is a system permission
        """
        if not self._is_active:
            return

        if self._is_system_permission:
            raise PermissionImmutableError("deactivated", self._id)

        self._is_active = False
        self._touch(updated_by)
        self._record(PermissionUpdated(
            permission_id=self._id,
            changes=(StatusChanged(old=PermissionStatus.ACTIVE, new=PermissionStatus.INACTIVE),),
        ))
        logger.info(f"Deactivated permission {self._slug.value}")

    def can_be_deleted(self) -> bool:
        return not self._is_system_permission

    def can_be_modified(self) -> bool:
        return not self._is_system_permission

    def matches(self, resource: ResourceIdentifier, action: ActionIdentifier) -> bool:
        """Exact resource and action equality, no wildcards or implication."""
        return self._resource == resource and self._action == action

    def grants(self, resource: ResourceIdentifier, action: ActionIdentifier) -> bool:
        """Check if this permission covers the pair, ignoring the active flag."""
        return self._resource.matches(resource) and self._action.implies(action)

    def is_wildcard_permission(self) -> bool:
        return self._action.is_wildcard()

    def is_administrative_permission(self) -> bool:
        return self._resource.value in ADMIN_RESOURCES

    def priority(self) -> int:
        """Action rank plus a bonus for naming a concrete resource."""
        bonus = 0 if self._resource.is_wildcard() else SPECIFIC_RESOURCE_BONUS
        return self._action.priority() + bonus

    def validate(self) -> None:
        """Re-check every component, raising ValidationError on the first failure."""
        for field_name, component in (
            ("name", self._name),
            ("slug", self._slug),
            ("resource", self._resource),
            ("action", self._action),
        ):
            if not component.is_valid():
                raise ValidationError(field_name, "is not valid")
        _check_description(self._description)

    def to_persistence(self) -> Dict[str, Any]:
        """Export to a plain snake_case row for storage."""
        return {
            "id": self._id,
            "name": self._name.value,
            "slug": self._slug.value,
            "resource": self._resource.value,
            "action": self._action.value,
            "description": self._description,
            "is_active": self._is_active,
            "is_system_permission": self._is_system_permission,
            "created_at": self._created_at,
            "updated_at": self._updated_at,
            "created_by": self._created_by,
            "updated_by": self._updated_by,
            "deleted_at": self._deleted_at,
            "deleted_by": self._deleted_by,
        }

    # ------------------------------------------------------------------
    # Domain events
    # ------------------------------------------------------------------

    def pull_domain_events(self) -> List[DomainEvent]:
        """Return recorded events and clear them."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def _record(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def _touch(self, updated_by: Optional[UUID]) -> None:
        self._updated_at = _utcnow()
        if updated_by is not None:
            self._updated_by = updated_by

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        state = "active" if self._is_active else "inactive"
        return f"<Permission {self._slug.value} ({state})>"
