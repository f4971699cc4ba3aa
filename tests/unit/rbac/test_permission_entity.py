"""Tests for the Permission entity."""

import uuid
from datetime import datetime, timezone

import pytest

from stockroom.core.rbac import (
    ActionIdentifier,
    DescriptionChanged,
    NameChanged,
    Permission,
    PermissionCreated,
    PermissionImmutableError,
    PermissionName,
    PermissionScope,
    PermissionSlug,
    PermissionStatus,
    PermissionUpdated,
    ResourceIdentifier,
    StatusChanged,
    ValidationError,
)
from tests.factories import make_permission


class TestPermissionCreation:
    """Test permission factories."""

    def test_create_from_resource_action_derives_name_and_slug(self):
        permission = Permission.create_from_resource_action("products", "read")

        assert permission.slug.value == "products:read"
        assert permission.name.value == "Read Products"
        assert permission.permission_string == "products:read"
        assert permission.is_active
        assert not permission.is_system_permission
        assert permission.created_at == permission.updated_at
        assert permission.created_at.tzinfo is not None

    def test_create_records_created_event(self):
        permission = Permission.create_from_resource_action("orders", "approve")

        events = permission.domain_events
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, PermissionCreated)
        assert event.permission_id == permission.id
        assert event.permission_name == "Approve Orders"
        assert event.resource == "orders"
        assert event.action == "approve"

    def test_bare_wildcard_string_means_all_resources(self):
        permission = Permission.create_from_resource_action("*", "*", is_system_permission=True)
        assert permission.resource.is_universal()
        assert permission.slug.value == "*:*"
        assert permission.name.value == "All Actions All Resources"

    def test_create_with_explicit_parts(self):
        created_by = uuid.uuid4()
        resource = ResourceIdentifier.create("warehouses")
        action = ActionIdentifier.create("manage")
        permission = Permission.create(
            PermissionName.create("Run Warehouses"),
            PermissionSlug.from_resource_action(resource, action),
            resource,
            action,
            description="Operate warehouse floors",
            created_by=created_by,
        )
        assert permission.created_by == created_by
        assert permission.updated_by == created_by
        assert permission.description == "Operate warehouse floors"

    def test_description_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            Permission.create_from_resource_action("products", "read", description="x" * 256)
        assert exc_info.value.field == "description"

    def test_invalid_parts_raise(self):
        with pytest.raises(ValidationError):
            Permission.create_from_resource_action("products", "re*d")

    def test_reconstitute_records_no_events(self):
        permission = make_permission()
        assert permission.domain_events == ()


class TestPermissionUpdate:
    """Test name and description changes."""

    def test_update_records_only_changed_fields(self):
        permission = make_permission("products", "read", description="Old")
        permission.update("Browse Products", description="Old")

        (event,) = permission.pull_domain_events()
        assert isinstance(event, PermissionUpdated)
        assert event.changes == (NameChanged(old="Read Products", new="Browse Products"),)
        assert event.changed_fields() == ["name"]

    def test_update_description_keeps_old_value(self):
        permission = make_permission(description="Old")
        permission.update(permission.name, description="New")

        (event,) = permission.pull_domain_events()
        assert event.changes == (DescriptionChanged(old="Old", new="New"),)

    def test_update_without_changes_is_noop(self):
        permission = make_permission(description="Same")
        before = permission.updated_at
        permission.update(permission.name, description="Same")

        assert permission.domain_events == ()
        assert permission.updated_at == before

    def test_update_touches_audit_fields(self):
        editor = uuid.uuid4()
        permission = make_permission()
        before = permission.updated_at
        permission.update("Browse Products", updated_by=editor)

        assert permission.updated_by == editor
        assert permission.updated_at >= before
        assert permission.name.value == "Browse Products"

    def test_update_normalizes_name(self):
        permission = make_permission()
        permission.update("browse PRODUCTS")
        assert permission.name.value == "Browse Products"

    def test_update_system_permission_raises(self):
        permission = make_permission(system=True)
        with pytest.raises(PermissionImmutableError) as exc_info:
            permission.update("Something Else")
        assert exc_info.value.permission_id == permission.id
        assert permission.domain_events == ()

    def test_update_invalid_name_raises_before_change(self):
        permission = make_permission()
        with pytest.raises(ValidationError):
            permission.update("no!")
        assert permission.name.value == "Read Products"


class TestPermissionStatus:
    """Test activation and deactivation."""

    def test_deactivate_records_status_change(self):
        permission = make_permission()
        permission.deactivate()

        assert not permission.is_active
        assert permission.status == PermissionStatus.INACTIVE
        (event,) = permission.pull_domain_events()
        assert event.changes == (
            StatusChanged(old=PermissionStatus.ACTIVE, new=PermissionStatus.INACTIVE),
        )

    def test_deactivate_twice_is_noop(self):
        permission = make_permission(active=False)
        permission.deactivate()
        assert permission.domain_events == ()

    def test_deactivate_system_permission_raises(self):
        permission = make_permission(system=True)
        with pytest.raises(PermissionImmutableError):
            permission.deactivate()
        assert permission.is_active

    def test_deactivate_inactive_system_permission_is_noop(self):
        permission = make_permission(active=False, system=True)
        permission.deactivate()
        assert permission.domain_events == ()

    def test_activate(self):
        permission = make_permission(active=False)
        permission.activate()

        assert permission.is_active
        (event,) = permission.pull_domain_events()
        assert event.changes[0].new == PermissionStatus.ACTIVE

    def test_activate_allowed_for_system_permission(self):
        permission = make_permission(active=False, system=True)
        permission.activate()
        assert permission.is_active

    def test_activate_when_active_is_noop(self):
        permission = make_permission()
        permission.activate()
        assert permission.domain_events == ()


class TestPermissionQueries:
    """Test grants, priority and classification."""

    def test_grants_uses_wildcards_and_implication(self):
        permission = make_permission("inventory*", "manage")
        assert permission.grants(ResourceIdentifier.create("inventory_counts"), ActionIdentifier.create("read"))
        assert not permission.grants(ResourceIdentifier.create("orders"), ActionIdentifier.create("read"))
        assert not permission.grants(ResourceIdentifier.create("inventory"), ActionIdentifier.create("configure"))

    def test_matches_is_exact(self):
        permission = make_permission("inventory*", "manage")
        assert permission.matches(ResourceIdentifier.create("inventory*"), ActionIdentifier.create("manage"))
        assert not permission.matches(ResourceIdentifier.create("inventory"), ActionIdentifier.create("manage"))

    def test_priority_bonus_for_concrete_resource(self):
        assert make_permission("products", "read").priority() == 20
        assert make_permission("products*", "read").priority() == 10
        assert make_permission("*", "*").priority() == 100
        assert make_permission("orders", "*").priority() == 110

    def test_scope(self):
        assert make_permission("system", "configure", system=True).scope == PermissionScope.SYSTEM
        assert make_permission("users", "read").scope == PermissionScope.ADMIN
        assert make_permission("orders", "read").scope == PermissionScope.USER

    def test_wildcard_permission(self):
        assert make_permission("orders", "*").is_wildcard_permission()
        assert not make_permission("orders*", "read").is_wildcard_permission()

    def test_can_be_deleted_and_modified(self):
        assert make_permission().can_be_deleted()
        assert make_permission().can_be_modified()
        assert not make_permission(system=True).can_be_deleted()
        assert not make_permission(system=True).can_be_modified()

    def test_validate_passes_for_valid_permission(self):
        make_permission().validate()

    @pytest.mark.parametrize("component,bad_value", [
        ("name", "Read (Products)"),
        ("slug", "-products:read"),
        ("resource", "Products"),
        ("action", "re*d"),
    ])
    def test_validate_rechecks_every_component(self, component, bad_value):
        permission = make_permission()
        object.__setattr__(getattr(permission, component), "value", bad_value)

        with pytest.raises(ValidationError) as exc_info:
            permission.validate()
        assert exc_info.value.field == component

    def test_identity_is_by_id(self):
        permission_id = uuid.uuid4()
        a = make_permission("orders", "read", permission_id=permission_id)
        b = make_permission("products", "read", permission_id=permission_id)
        assert a == b
        assert len({a, b}) == 1
        assert a != make_permission("orders", "read")

    def test_repr(self):
        assert repr(make_permission(active=False)) == "<Permission products:read (inactive)>"


class TestPermissionPersistence:
    """Test the storage mapping."""

    def test_round_trip(self):
        permission = make_permission("inventory*", "read", description="Stock", system=True)
        row = permission.to_persistence()
        restored = Permission.from_persistence(row)

        assert restored == permission
        assert restored.to_persistence() == row
        assert restored.domain_events == ()

    def test_row_uses_snake_case_columns(self):
        row = make_permission().to_persistence()
        assert set(row) == {
            "id", "name", "slug", "resource", "action", "description",
            "is_active", "is_system_permission", "created_at", "updated_at",
            "created_by", "updated_by", "deleted_at", "deleted_by",
        }

    def test_universal_resource_survives_round_trip(self):
        permission = make_permission("*", "*")
        restored = Permission.from_persistence(permission.to_persistence())
        assert restored.resource.is_universal()

    def test_string_ids_are_parsed(self):
        permission_id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        restored = Permission.from_persistence({
            "id": str(permission_id),
            "name": "Read Orders",
            "slug": "orders:read",
            "resource": "orders",
            "action": "read",
            "created_at": now,
            "updated_at": now,
            "deleted_at": now,
        })
        assert restored.id == permission_id
        assert restored.is_deleted

    def test_corrupt_row_is_rejected(self):
        row = make_permission().to_persistence()
        row["action"] = "Read"
        with pytest.raises(ValidationError):
            Permission.from_persistence(row)


class TestDomainEvents:
    """Test event bookkeeping on the entity."""

    def test_pull_clears_events(self):
        permission = Permission.create_from_resource_action("orders", "read")
        assert len(permission.pull_domain_events()) == 1
        assert permission.pull_domain_events() == []

    def test_clear_domain_events(self):
        permission = Permission.create_from_resource_action("orders", "read")
        permission.deactivate()
        permission.clear_domain_events()
        assert permission.domain_events == ()
