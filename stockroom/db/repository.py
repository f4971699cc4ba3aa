"""SQLAlchemy-backed permission storage.

Maps Permission entities to rows of the permissions table and serves
them to the resolver through the PermissionProvider interface.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Hashable, Iterable, List, Optional

from sqlalchemy.orm import Session

from stockroom.core.rbac.entity import Permission
from stockroom.core.rbac.errors import PermissionImmutableError, ValidationError
from stockroom.db.models import PermissionRecord, RoleRecord, role_permissions, user_roles

logger = logging.getLogger(__name__)

COLUMNS = (
    "id",
    "name",
    "slug",
    "resource",
    "action",
    "description",
    "is_active",
    "is_system_permission",
    "created_at",
    "updated_at",
    "created_by",
    "updated_by",
    "deleted_at",
    "deleted_by",
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back; stored values are always UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _as_uuid(value: Hashable) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def record_to_row(record: PermissionRecord) -> Dict[str, Any]:
    row = {column: getattr(record, column) for column in COLUMNS}
    for column in ("created_at", "updated_at", "deleted_at"):
        row[column] = _as_utc(row[column])
    return row


def record_to_permission(record: PermissionRecord) -> Permission:
    return Permission.from_persistence(record_to_row(record))


class SqlPermissionProvider:
    """Permission provider and repository over a SQLAlchemy session.

    Soft-deleted rows are never returned to the resolver. Inactive rows
    are returned; the resolver skips them. Rows whose stored values are
    not canonical are logged and left out, so they grant nothing.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_permissions_for_roles(self, role_ids: Iterable[Hashable]) -> List[Permission]:
        ids = [_as_uuid(role_id) for role_id in role_ids]
        if not ids:
            return []

        records = (
            self.db.query(PermissionRecord)
            .join(role_permissions, role_permissions.c.permission_id == PermissionRecord.id)
            .filter(
                role_permissions.c.role_id.in_(ids),
                PermissionRecord.deleted_at.is_(None),
            )
            .distinct()
            .order_by(PermissionRecord.slug)
            .all()
        )
        permissions = []
        for record in records:
            try:
                permissions.append(record_to_permission(record))
            except ValidationError as e:
                logger.error(f"Skipping corrupt permission row {record.id} ({record.slug}): {e}")
        return permissions

    def load_permissions_for_user(self, user_id: Hashable) -> List[Permission]:
        role_ids = [
            row.role_id
            for row in self.db.query(user_roles.c.role_id)
            .filter(user_roles.c.user_id == _as_uuid(user_id))
            .all()
        ]
        return self.load_permissions_for_roles(role_ids)

    def get(self, permission_id: Hashable) -> Optional[Permission]:
        record = self.db.get(PermissionRecord, _as_uuid(permission_id))
        return record_to_permission(record) if record else None

    def get_by_slug(self, slug: str) -> Optional[Permission]:
        record = (
            self.db.query(PermissionRecord)
            .filter(PermissionRecord.slug == slug, PermissionRecord.deleted_at.is_(None))
            .first()
        )
        return record_to_permission(record) if record else None

    def save(self, permission: Permission) -> None:
        """Insert or update the row for `permission` and flush.

        Recorded domain events stay on the entity for the caller to dispatch.
        """
        row = permission.to_persistence()
        record = self.db.get(PermissionRecord, row["id"])
        if record is None:
            self.db.add(PermissionRecord(**row))
        else:
            for column, value in row.items():
                setattr(record, column, value)
        self.db.flush()

    def soft_delete(self, permission: Permission, deleted_by: Optional[uuid.UUID] = None) -> None:
        """Mark the permission's row as deleted.

        Raises:
            PermissionImmutableError: If the permission is a system permission
        """
        if not permission.can_be_deleted():
            raise PermissionImmutableError("deleted", permission.id)

        record = self.db.get(PermissionRecord, permission.id)
        if record is None or record.deleted_at is not None:
            return
        record.deleted_at = datetime.now(timezone.utc)
        record.deleted_by = deleted_by
        self.db.flush()
        logger.info(f"Soft-deleted permission {record.slug}")

    def assign_role(self, user_id: Hashable, role: RoleRecord) -> None:
        """Grant `role` to a user; assigning twice is a no-op."""
        user_id = _as_uuid(user_id)
        exists = (
            self.db.query(user_roles)
            .filter(user_roles.c.user_id == user_id, user_roles.c.role_id == role.id)
            .first()
        )
        if exists:
            return
        self.db.execute(user_roles.insert().values(user_id=user_id, role_id=role.id))
        self.db.flush()
