"""Permission slugs and names.

Both are derived deterministically from a (resource, action) pair:

  - slug: machine key "resource:action", e.g. "products:read"
  - name: human label "<Action> <Resource>", e.g. "Read Products"

PermissionSlug.to_permission_object() inverts from_resource_action().
PermissionSlug.from_name() is a lossy transform for human-entered text and
does not round-trip.
"""

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import NamedTuple, Optional

from .actions import ActionIdentifier, WILDCARD
from .errors import ValidationError
from .resources import ResourceIdentifier


SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 100
SLUG_PATTERN = re.compile(r"^[a-z0-9_*:-]+$")

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_:]+$")
_NAME_DISALLOWED = re.compile(r"[^a-zA-Z0-9\s\-_:]")
_NAME_VERBS = "Create|Read|Update|Delete|Manage|View|List"

SYSTEM_SLUG_PATTERNS: tuple[str, ...] = (
    "system:*",
    "system:config",
    "system:maintenance",
    "permissions:*",
    "roles:*",
)
ADMIN_RESOURCES = frozenset(["users", "roles", "permissions", "system"])


class ResourceAction(NamedTuple):
    """Plain (resource, action) pair decoded from a slug."""
    resource: str
    action: str


def _capitalize_words(text: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group().upper(), text)


def _validate_slug(value: str) -> None:
    if len(value) < SLUG_MIN_LENGTH:
        raise ValidationError(
            "slug", f"must be at least {SLUG_MIN_LENGTH} characters long"
        )
    if len(value) > SLUG_MAX_LENGTH:
        raise ValidationError("slug", f"cannot exceed {SLUG_MAX_LENGTH} characters")
    if not SLUG_PATTERN.match(value):
        raise ValidationError(
            "slug",
            "can only contain lowercase letters, numbers, underscores, "
            "hyphens, wildcards, and colons",
        )
    if value.startswith("-") or value.endswith("-"):
        raise ValidationError("slug", "cannot start or end with a hyphen")
    if "--" in value:
        raise ValidationError("slug", "cannot contain consecutive hyphens")


@dataclass(frozen=True)
class PermissionSlug:
    """Canonical machine key of a permission."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError("slug", "must be a string")
        _validate_slug(self.value)

    @classmethod
    def create(cls, raw: str) -> "PermissionSlug":
        if not raw or not isinstance(raw, str):
            raise ValidationError("slug", "cannot be empty")
        return cls(raw.strip().lower())

    @classmethod
    def from_resource_action(
        cls, resource: ResourceIdentifier, action: ActionIdentifier
    ) -> "PermissionSlug":
        """Join resource and action as "resource:action".

        Resources and actions may contain hyphens anywhere, but a slug may not
        start or end with one or contain "--". Pairs such as ("ab--cd", "read")
        or ("products", "export-") therefore raise ValidationError here.
        """
        return cls.create(f"{resource.value}:{action.value}")

    @classmethod
    def from_name(cls, name: str) -> "PermissionSlug":
        """Best-effort slug for free text ("Manage Products!" -> "manage-products")."""
        if not name or not isinstance(name, str):
            raise ValidationError("name", "cannot be empty")
        slug = name.strip().lower()
        slug = re.sub(r"[^a-z0-9\s:-]", "", slug)
        slug = re.sub(r"\s+", "-", slug)
        slug = re.sub(r"-+", "-", slug)
        slug = slug.strip("-")
        return cls.create(slug)

    def __str__(self) -> str:
        return self.value

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        parts = self.value.split(":", 1)
        return parts[1] if len(parts) > 1 else ""

    def to_permission_object(self) -> ResourceAction:
        """Split on the first ':'; a missing action means every action."""
        parts = self.value.split(":", 1)
        return ResourceAction(
            resource=parts[0],
            action=parts[1] if len(parts) > 1 else WILDCARD,
        )

    def is_wildcard(self) -> bool:
        return WILDCARD in self.value

    def matches(self, pattern: str) -> bool:
        """Glob-style match, "*" matching any run of characters."""
        return fnmatchcase(self.value, pattern)

    def is_system_permission(self) -> bool:
        return any(self.matches(pattern) for pattern in SYSTEM_SLUG_PATTERNS)

    def is_administrative_permission(self) -> bool:
        return self.resource in ADMIN_RESOURCES

    def to_display_name(self) -> str:
        words = re.split(r"[:_-]+", self.value)
        return " ".join(word.capitalize() for word in words if word)

    def to_snake_case(self) -> str:
        return self.value.replace("-", "_")

    def to_camel_case(self) -> str:
        camel = re.sub(r":([a-z])", lambda m: m.group(1).upper(), self.value)
        return re.sub(r"-([a-z])", lambda m: m.group(1).upper(), camel)

    def is_valid(self) -> bool:
        try:
            _validate_slug(self.value)
        except ValidationError:
            return False
        return True


def _validate_name(value: str) -> None:
    if len(value) < NAME_MIN_LENGTH:
        raise ValidationError(
            "name", f"must be at least {NAME_MIN_LENGTH} characters long"
        )
    if len(value) > NAME_MAX_LENGTH:
        raise ValidationError("name", f"cannot exceed {NAME_MAX_LENGTH} characters")
    if not NAME_PATTERN.match(value):
        raise ValidationError(
            "name",
            "can only contain letters, numbers, spaces, hyphens, "
            "underscores, and colons",
        )


@dataclass(frozen=True)
class PermissionName:
    """Human-readable permission label, word-capitalized."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError("name", "must be a string")
        _validate_name(self.value)

    @classmethod
    def create(cls, raw: str) -> "PermissionName":
        if not raw or not isinstance(raw, str):
            raise ValidationError("name", "cannot be empty")
        trimmed = raw.strip()
        _validate_name(trimmed)
        return cls(_capitalize_words(trimmed.lower()))

    @classmethod
    def from_resource_action(
        cls, resource: ResourceIdentifier, action: ActionIdentifier
    ) -> "PermissionName":
        """Build "<Action> <Resource>", dropping characters a name cannot hold."""
        label = f"{action.display_name} {resource.display_name}"
        label = _NAME_DISALLOWED.sub("", label)
        label = re.sub(r"\s+", " ", label)
        return cls.create(label)

    def __str__(self) -> str:
        return self.value

    @property
    def display_value(self) -> str:
        return self.value

    def to_kebab_case(self) -> str:
        return re.sub(r"[\s_:]+", "-", self.value.lower())

    def to_snake_case(self) -> str:
        return re.sub(r"[\s\-:]+", "_", self.value.lower())

    def to_camel_case(self) -> str:
        camel = re.sub(
            r"[\s\-_:]+(.)", lambda m: m.group(1).upper(), self.value.lower()
        )
        return camel[:1].lower() + camel[1:]

    def extract_resource(self) -> Optional[str]:
        """Resource part of names like "Create Users", if recognizable."""
        match = re.match(rf"^({_NAME_VERBS})\s+(.+)$", self.value, re.IGNORECASE)
        if not match:
            return None
        return re.sub(r"\s+", "_", match.group(2).lower())

    def extract_action(self) -> Optional[str]:
        match = re.match(rf"^({_NAME_VERBS})\b", self.value, re.IGNORECASE)
        return match.group(1).lower() if match else None

    def is_valid(self) -> bool:
        try:
            _validate_name(self.value)
        except ValidationError:
            return False
        return True
