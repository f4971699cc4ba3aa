"""Domain events emitted by Permission entities.

Events are appended to the entity and handed to whatever dispatches them;
nothing here publishes anything.

Update events carry a closed set of change records instead of a free-form
dict, so consumers can match on the record type:

    for change in event.changes:
        if isinstance(change, StatusChanged):
            ...
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union
from uuid import UUID


class PermissionStatus(str, Enum):
    """Activation state of a permission."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class NameChanged:
    field_name: ClassVar[str] = "name"
    old: str
    new: str


@dataclass(frozen=True)
class DescriptionChanged:
    field_name: ClassVar[str] = "description"
    old: Optional[str]
    new: Optional[str]


@dataclass(frozen=True)
class StatusChanged:
    field_name: ClassVar[str] = "status"
    old: PermissionStatus
    new: PermissionStatus


FieldChange = Union[NameChanged, DescriptionChanged, StatusChanged]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base for permission events."""

    event_name: ClassVar[str] = "DomainEvent"

    event_id: UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)

    @property
    def aggregate_id(self) -> UUID:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": str(self.event_id),
            "event_name": self.event_name,
            "aggregate_id": str(self.aggregate_id),
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class PermissionCreated(DomainEvent):
    """Fired when a new permission is created (not on reconstitution)."""

    event_name: ClassVar[str] = "PermissionCreated"

    permission_id: UUID
    permission_name: str
    resource: str
    action: str

    @property
    def aggregate_id(self) -> UUID:
        return self.permission_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "permission_name": self.permission_name,
            "resource": self.resource,
            "action": self.action,
        })
        return data


@dataclass(frozen=True)
class PermissionUpdated(DomainEvent):
    """Fired when a permission's name, description or status changes."""

    event_name: ClassVar[str] = "PermissionUpdated"

    permission_id: UUID
    changes: tuple[FieldChange, ...]

    @property
    def aggregate_id(self) -> UUID:
        return self.permission_id

    def changed_fields(self) -> list[str]:
        return [change.field_name for change in self.changes]

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["changes"] = {
            change.field_name: {"old": _plain(change.old), "new": _plain(change.new)}
            for change in self.changes
        }
        return data
