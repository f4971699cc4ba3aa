"""Tests for the SQLAlchemy permission provider."""

import uuid
from datetime import timezone

import pytest

from stockroom.core.rbac import (
    Permission,
    PermissionImmutableError,
    PermissionCreated,
    PermissionUpdated,
    ValidationError,
    check_access,
    find_effective_permissions,
)
from stockroom.db.models import PermissionRecord, RoleRecord
from stockroom.db.repository import SqlPermissionProvider

pytestmark = [pytest.mark.integration]


@pytest.fixture
def provider(db_session):
    return SqlPermissionProvider(db_session)


def add_role(db_session, key, permissions):
    role = RoleRecord(
        key=key,
        name=key.title(),
        permissions=[db_session.get(PermissionRecord, p.id) for p in permissions],
    )
    db_session.add(role)
    db_session.flush()
    return role


class TestSaveAndLoad:

    def test_save_new_permission(self, provider, db_session):
        permission = Permission.create_from_resource_action("inventory*", "read", description="Stock")
        provider.save(permission)

        record = db_session.get(PermissionRecord, permission.id)
        assert record.slug == "inventory*:read"
        assert record.name == "Read Inventory All"
        assert record.resource == "inventory*"
        assert record.is_active

    def test_save_keeps_domain_events_for_dispatch(self, provider):
        permission = Permission.create_from_resource_action("orders", "read")
        provider.save(permission)

        events = permission.pull_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], PermissionCreated)
        assert events[0].permission_id == permission.id

    def test_save_keeps_update_events(self, provider):
        permission = Permission.create_from_resource_action("orders", "read")
        provider.save(permission)
        permission.clear_domain_events()

        permission.deactivate()
        provider.save(permission)

        (event,) = permission.domain_events
        assert isinstance(event, PermissionUpdated)
        assert event.changed_fields() == ["status"]

    def test_save_updates_existing_row(self, provider, db_session):
        permission = Permission.create_from_resource_action("orders", "read")
        provider.save(permission)

        permission.update("Browse Orders", description="Order lookup")
        permission.deactivate()
        provider.save(permission)

        record = db_session.get(PermissionRecord, permission.id)
        assert record.name == "Browse Orders"
        assert record.description == "Order lookup"
        assert record.is_active is False
        assert db_session.query(PermissionRecord).count() == 1

    def test_get_round_trip(self, provider):
        permission = Permission.create_from_resource_action("*", "*", is_system_permission=True)
        provider.save(permission)

        loaded = provider.get(permission.id)
        assert loaded == permission
        assert loaded.resource.is_universal()
        assert loaded.is_system_permission
        assert loaded.created_at.tzinfo == timezone.utc
        assert loaded.domain_events == ()

    def test_get_missing(self, provider):
        assert provider.get(uuid.uuid4()) is None

    def test_get_by_slug(self, provider):
        permission = Permission.create_from_resource_action("reports", "export")
        provider.save(permission)

        assert provider.get_by_slug("reports:export") == permission
        assert provider.get_by_slug("reports:view") is None


class TestSoftDelete:

    def test_soft_delete_hides_permission(self, provider, db_session):
        permission = Permission.create_from_resource_action("orders", "read")
        provider.save(permission)
        role = add_role(db_session, "clerk", [permission])
        deleted_by = uuid.uuid4()

        provider.soft_delete(permission, deleted_by=deleted_by)

        record = db_session.get(PermissionRecord, permission.id)
        assert record.deleted_at is not None
        assert record.deleted_by == deleted_by
        assert provider.get(permission.id).is_deleted
        assert provider.get_by_slug("orders:read") is None
        assert provider.load_permissions_for_roles([role.id]) == []

    def test_soft_delete_system_permission_raises(self, provider):
        permission = Permission.create_from_resource_action("system", "configure", is_system_permission=True)
        provider.save(permission)

        with pytest.raises(PermissionImmutableError):
            provider.soft_delete(permission)
        assert not provider.get(permission.id).is_deleted


class TestProviderLoading:

    @pytest.fixture
    def roles(self, provider, db_session):
        manage_products = Permission.create_from_resource_action("products", "manage")
        read_stock = Permission.create_from_resource_action("inventory*", "read")
        read_orders = Permission.create_from_resource_action("orders", "read")
        for permission in (manage_products, read_stock, read_orders):
            provider.save(permission)

        return {
            "clerk": add_role(db_session, "clerk", [manage_products, read_stock]),
            "viewer": add_role(db_session, "viewer", [read_stock, read_orders]),
            "empty": add_role(db_session, "empty", []),
        }

    def test_load_for_roles(self, provider, roles):
        permissions = provider.load_permissions_for_roles([roles["clerk"].id])
        assert sorted(p.slug.value for p in permissions) == ["inventory*:read", "products:manage"]

    def test_load_for_several_roles(self, provider, roles):
        permissions = provider.load_permissions_for_roles([roles["clerk"].id, roles["viewer"].id])
        effective = [p.slug.value for p in find_effective_permissions(permissions)]
        assert effective == ["products:manage", "orders:read", "inventory*:read"]

    def test_accepts_string_role_ids(self, provider, roles):
        permissions = provider.load_permissions_for_roles([str(roles["viewer"].id)])
        assert len(permissions) == 2

    def test_no_roles(self, provider, roles):
        assert provider.load_permissions_for_roles([]) == []
        assert provider.load_permissions_for_roles([roles["empty"].id]) == []

    def test_inactive_rows_are_loaded_but_do_not_grant(self, provider, roles):
        read_orders = provider.get_by_slug("orders:read")
        read_orders.deactivate()
        provider.save(read_orders)

        permissions = provider.load_permissions_for_roles([roles["viewer"].id])
        assert len(permissions) == 2
        assert not check_access(permissions, "orders", "read")
        assert check_access(permissions, "inventory_counts", "read")

    def test_corrupt_row_is_skipped(self, provider, roles, db_session, caplog):
        record = db_session.query(PermissionRecord).filter_by(slug="orders:read").one()
        record.action = "Read"
        db_session.flush()

        permissions = provider.load_permissions_for_roles([roles["viewer"].id])
        assert [p.slug.value for p in permissions] == ["inventory*:read"]
        assert "Skipping corrupt permission row" in caplog.text
        assert not check_access(permissions, "orders", "read")
        assert check_access(permissions, "inventory_counts", "read")

    def test_corrupt_row_raises_on_direct_lookup(self, provider, roles, db_session):
        record = db_session.query(PermissionRecord).filter_by(slug="orders:read").one()
        record.action = "Read"
        db_session.flush()

        with pytest.raises(ValidationError):
            provider.get_by_slug("orders:read")

    def test_load_for_user(self, provider, roles):
        user_id = uuid.uuid4()
        provider.assign_role(user_id, roles["clerk"])
        provider.assign_role(user_id, roles["clerk"])

        permissions = provider.load_permissions_for_user(user_id)
        assert check_access(permissions, "products", "delete")
        assert not check_access(permissions, "orders", "read")

    def test_load_for_unknown_user(self, provider, roles):
        assert provider.load_permissions_for_user(uuid.uuid4()) == []
