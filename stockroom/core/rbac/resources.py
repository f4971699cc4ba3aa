"""Resource identifiers for Stockroom RBAC.

A resource is the noun half of a permission ("products", "inventory").
A trailing "*" turns a resource into a prefix pattern ("inventory*" covers
"inventory", "inventory_counts", ...). The bare "*" covers every resource
and is only produced by ResourceIdentifier.create_wildcard().
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping

from .errors import ValidationError


WILDCARD = "*"

MIN_LENGTH = 2
MAX_LENGTH = 50
RESOURCE_PATTERN = re.compile(r"^[a-z0-9_-]+\*?$")

DEFAULT_CATEGORY = "custom"

# Standard system resources
SYSTEM_RESOURCES: tuple[str, ...] = (
    "users", "roles", "permissions", "system", "settings",
    "products", "inventory", "warehouses", "orders", "reports",
    "dashboard", "analytics", "logs", "backups", "api",
)

RESOURCE_CATEGORIES: Mapping[str, str] = MappingProxyType({
    "users": "user-management",
    "roles": "user-management",
    "permissions": "user-management",
    "products": "inventory-management",
    "inventory": "inventory-management",
    "warehouses": "warehouse-management",
    "orders": "order-management",
    "reports": "reporting",
    "analytics": "reporting",
    "dashboard": "general",
    "system": "system",
    "settings": "system",
    "logs": "system",
    "backups": "system",
    "api": "system",
})

_VOWEL_Y = re.compile(r"[aeiou]y$")


def _validate(value: str) -> None:
    """Raise ValidationError unless value is a canonical, non-bare resource."""
    if len(value) < MIN_LENGTH:
        raise ValidationError(
            "resource", f"must be at least {MIN_LENGTH} characters long"
        )
    if len(value) > MAX_LENGTH:
        raise ValidationError(
            "resource", f"cannot exceed {MAX_LENGTH} characters"
        )
    if WILDCARD in value[:-1]:
        raise ValidationError(
            "resource", "wildcard (*) can only be used at the end of the resource"
        )
    if not RESOURCE_PATTERN.match(value):
        raise ValidationError(
            "resource",
            "can only contain lowercase letters, numbers, underscores, "
            "hyphens, and an optional trailing wildcard (*)",
        )


@dataclass(frozen=True)
class ResourceIdentifier:
    """Validated, canonical resource token. Equality is by value."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError("resource", "must be a string")
        if self.value != WILDCARD:
            _validate(self.value)

    @classmethod
    def create(cls, raw: str) -> "ResourceIdentifier":
        """Trim, lowercase and validate a raw resource string.

        A bare "*" is rejected here; use create_wildcard() for it.
        """
        if not raw or not isinstance(raw, str):
            raise ValidationError("resource", "cannot be empty")
        normalized = raw.strip().lower()
        if normalized == WILDCARD:
            raise ValidationError(
                "resource", "use create_wildcard() for the all-resources value"
            )
        _validate(normalized)
        return cls(normalized)

    @classmethod
    def create_wildcard(cls) -> "ResourceIdentifier":
        """The resource that stands for every resource."""
        return cls(WILDCARD)

    @classmethod
    def from_stored(cls, value: str) -> "ResourceIdentifier":
        """Rebuild from an already-canonical stored value, including "*"."""
        if value == WILDCARD:
            return cls.create_wildcard()
        return cls(value)

    @staticmethod
    def system_resources() -> List[str]:
        return list(SYSTEM_RESOURCES)

    def __str__(self) -> str:
        return self.value

    @property
    def base(self) -> str:
        """Value with any trailing wildcard stripped."""
        if self.value.endswith(WILDCARD):
            return self.value[:-1]
        return self.value

    def is_wildcard(self) -> bool:
        return self.value == WILDCARD or self.value.endswith(WILDCARD)

    def is_universal(self) -> bool:
        return self.value == WILDCARD

    def is_system_resource(self) -> bool:
        if self.is_wildcard():
            return True
        return self.value in SYSTEM_RESOURCES

    def matches(self, other: "ResourceIdentifier") -> bool:
        """Check if two resources overlap, honouring suffix wildcards.

        Wildcards match by prefix of the other value against the base,
        never by substring: "users*" matches "users_admin" but not
        "admin_users".
        """
        if self.is_universal() or other.is_universal():
            return True
        if self.is_wildcard():
            return other.value.startswith(self.base)
        if other.is_wildcard():
            return self.value.startswith(other.base)
        return self.value == other.value

    def is_more_specific_than(self, other: "ResourceIdentifier") -> bool:
        """Heuristic specificity comparison.

        A concrete resource beats a wildcard. Otherwise the longer value is
        treated as more specific; this is a tie-break, not a partial order.
        """
        if other.is_wildcard() and not self.is_wildcard():
            return True
        if self.is_wildcard() and not other.is_wildcard():
            return False
        return len(self.value) > len(other.value)

    def plural(self) -> str:
        resource = self.base
        if resource.endswith(("s", "sh", "ch")):
            return resource + "es"
        if resource.endswith("y") and not _VOWEL_Y.search(resource):
            return resource[:-1] + "ies"
        return resource + "s"

    def singular(self) -> str:
        resource = self.base
        if resource.endswith("ies"):
            return resource[:-3] + "y"
        if resource.endswith("es"):
            return resource[:-2]
        if resource.endswith("s") and not resource.endswith("ss"):
            return resource[:-1]
        return resource

    def category(self) -> str:
        return RESOURCE_CATEGORIES.get(self.base, DEFAULT_CATEGORY)

    @property
    def display_name(self) -> str:
        if self.is_universal():
            return "All Resources"
        words = self.base.replace("_", " ").replace("-", " ")
        display = re.sub(r"\b\w", lambda m: m.group().upper(), words)
        return f"{display} (All)" if self.is_wildcard() else display

    def is_valid(self) -> bool:
        if self.is_universal():
            return True
        try:
            _validate(self.value)
        except ValidationError:
            return False
        return True
