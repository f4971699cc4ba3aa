"""Database models."""

from stockroom.db.models.permission import PermissionRecord
from stockroom.db.models.role import RoleRecord, role_permissions, user_roles

__all__ = ["PermissionRecord", "RoleRecord", "role_permissions", "user_roles"]
