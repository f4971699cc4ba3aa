"""Database seeding for Stockroom.

Creates the catalog permissions and the default roles.
"""

import uuid
from typing import Optional

from sqlalchemy.orm import Session

from stockroom.common.config import RoleCatalog
from stockroom.core.rbac.naming import PermissionSlug
from stockroom.core.rbac.roles import build_catalog_permissions, get_role_catalog
from stockroom.db.models import PermissionRecord, RoleRecord
from stockroom.db.repository import SqlPermissionProvider


def seed_permissions(
    db: Session, catalog: Optional[RoleCatalog] = None
) -> dict[str, PermissionRecord]:
    """
    Create one row per catalog permission.

    Permissions are idempotent - existing slugs are left untouched.

    Args:
        db: Database session
        catalog: Role catalog; the configured one when omitted

    Returns:
        Dict mapping slug to PermissionRecord
    """
    repository = SqlPermissionProvider(db)
    seeded = {}

    for slug, permission in build_catalog_permissions(catalog).items():
        existing = db.query(PermissionRecord).filter(PermissionRecord.slug == slug).first()
        if existing:
            seeded[slug] = existing
            continue

        repository.save(permission)
        seeded[slug] = db.get(PermissionRecord, permission.id)

    return seeded


def seed_default_roles(
    db: Session, catalog: Optional[RoleCatalog] = None
) -> dict[str, RoleRecord]:
    """
    Create the default roles and grant them their catalog permissions.

    Roles are idempotent - if they already exist, returns existing roles.

    Args:
        db: Database session
        catalog: Role catalog; the configured one when omitted

    Returns:
        Dict mapping role key to RoleRecord
    """
    catalog = catalog or get_role_catalog()
    permissions = seed_permissions(db, catalog)
    created_roles = {}

    for role_key, spec in catalog.roles.items():
        existing = db.query(RoleRecord).filter(RoleRecord.key == role_key).first()
        if existing:
            created_roles[role_key] = existing
            continue

        role = RoleRecord(
            id=uuid.uuid4(),
            key=role_key,
            name=spec.name,
            description=spec.description,
            is_system=spec.is_system,
            permissions=[
                permissions[PermissionSlug.create(slug).value] for slug in spec.permissions
            ],
        )
        db.add(role)
        created_roles[role_key] = role

    db.flush()
    return created_roles


def get_role_by_key(db: Session, key: str) -> Optional[RoleRecord]:
    """Get a role by its catalog key."""
    return db.query(RoleRecord).filter(RoleRecord.key == key).first()


# CLI script for seeding
if __name__ == "__main__":
    import sys

    from stockroom.db.base import Base
    from stockroom.db.session import SessionLocal

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=db.get_bind())
        roles = seed_default_roles(db)
        print(f"Seeded {len(roles)} default roles:")
        for role in roles.values():
            slugs = sorted(permission.slug for permission in role.permissions)
            print(f"  - {role.name}: {', '.join(slugs) or 'no permissions'}")

        db.commit()
        print("\nSeeding complete!")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
