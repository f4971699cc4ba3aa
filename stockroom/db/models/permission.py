"""Permission model for RBAC."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from stockroom.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PermissionRecord(Base):
    """Stored form of a Permission.

    Column names follow the entity's persistence mapping one to one.
    """

    __tablename__ = "permissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    resource = Column(String(50), nullable=False, index=True)
    action = Column(String(30), nullable=False)
    description = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)
    is_system_permission = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    created_by = Column(Uuid(as_uuid=True))
    updated_by = Column(Uuid(as_uuid=True))
    deleted_at = Column(DateTime(timezone=True))
    deleted_by = Column(Uuid(as_uuid=True))

    def __repr__(self):
        return f"<PermissionRecord(slug={self.slug})>"
