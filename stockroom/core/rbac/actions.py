"""Action identifiers for Stockroom RBAC.

An action is the verb half of a permission ("read", "manage", ...).
Actions are canonical lowercase tokens; the single token "*" stands for
every action.

The classification, priority and implication tables below are authored
flat. In particular the implication table is one level deep: "manage"
implies "read", and "read" implies nothing, and no closure is computed.

Examples:
  - ActionIdentifier.create(" Read ") -> ActionIdentifier("read")
  - ActionIdentifier.create("manage").implies(ActionIdentifier.create("delete")) -> True
  - ActionIdentifier.create("read").implies(ActionIdentifier.create("manage")) -> False
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, List, Mapping

from .errors import ValidationError


WILDCARD = "*"

MIN_LENGTH = 1
MAX_LENGTH = 30
ACTION_PATTERN = re.compile(r"^[a-z0-9_-]+$")

DEFAULT_PRIORITY = 50
DEFAULT_HTTP_METHOD = "GET"


# Standard CRUD actions
CRUD_ACTIONS: tuple[str, ...] = (
    "create", "read", "update", "delete", "list", "view", "manage",
)

# Extended actions for specific operations
EXTENDED_ACTIONS: tuple[str, ...] = (
    "approve", "reject", "publish", "archive", "export", "import",
    "backup", "restore", "assign", "unassign", "activate", "deactivate",
    "upload", "download", "execute", "configure", "monitor",
)

READ_ONLY_ACTIONS: FrozenSet[str] = frozenset([
    "read", "view", "list", "export", "download", "monitor",
])
WRITE_ACTIONS: FrozenSet[str] = frozenset([
    "create", "update", "delete", "upload", "import", "execute",
])
ADMINISTRATIVE_ACTIONS: FrozenSet[str] = frozenset([
    "manage", "configure", "backup", "restore", "activate", "deactivate",
])
DANGEROUS_ACTIONS: FrozenSet[str] = frozenset([
    "delete", "execute", "backup", "restore", "configure",
])

# Higher number = more permissions required
ACTION_PRIORITY: Mapping[str, int] = MappingProxyType({
    WILDCARD: 100,
    "manage": 90,
    "configure": 85,
    "execute": 80,
    "delete": 75,
    "backup": 70,
    "restore": 70,
    "create": 60,
    "update": 50,
    "approve": 45,
    "reject": 45,
    "assign": 40,
    "unassign": 40,
    "activate": 35,
    "deactivate": 35,
    "upload": 30,
    "import": 30,
    "export": 25,
    "download": 20,
    "list": 15,
    "view": 10,
    "read": 10,
    "monitor": 5,
})

# action -> actions it also grants (one level, not transitive)
ACTION_IMPLICATIONS: Mapping[str, FrozenSet[str]] = MappingProxyType({
    "manage": frozenset(["create", "read", "update", "delete", "list", "view"]),
    "update": frozenset(["read", "view"]),
    "delete": frozenset(["read", "view"]),
    "create": frozenset(["read", "view"]),
    "list": frozenset(["view"]),
    "export": frozenset(["read", "view", "list"]),
    "backup": frozenset(["read", "view", "list"]),
    "approve": frozenset(["read", "view"]),
    "reject": frozenset(["read", "view"]),
    "assign": frozenset(["read", "view"]),
    "unassign": frozenset(["read", "view"]),
})

HTTP_METHODS: Mapping[str, str] = MappingProxyType({
    "create": "POST",
    "read": "GET",
    "update": "PUT",
    "delete": "DELETE",
    "list": "GET",
    "view": "GET",
    "manage": "GET",
    "upload": "POST",
    "download": "GET",
    "export": "GET",
    "import": "POST",
})

PAST_TENSE: Mapping[str, str] = MappingProxyType({
    "create": "created",
    "read": "read",
    "update": "updated",
    "delete": "deleted",
    "list": "listed",
    "view": "viewed",
    "manage": "managed",
    "approve": "approved",
    "reject": "rejected",
    "publish": "published",
    "archive": "archived",
    "export": "exported",
    "import": "imported",
    "backup": "backed up",
    "restore": "restored",
    "assign": "assigned",
    "unassign": "unassigned",
    "activate": "activated",
    "deactivate": "deactivated",
    "upload": "uploaded",
    "download": "downloaded",
    "execute": "executed",
    "configure": "configured",
    "monitor": "monitored",
})


def _validate(value: str) -> None:
    """Raise ValidationError unless value is a canonical action token."""
    if len(value) < MIN_LENGTH:
        raise ValidationError(
            "action", f"must be at least {MIN_LENGTH} character long"
        )
    if len(value) > MAX_LENGTH:
        raise ValidationError(
            "action", f"cannot exceed {MAX_LENGTH} characters"
        )
    if value == WILDCARD:
        return
    if WILDCARD in value:
        raise ValidationError(
            "action", "wildcard (*) can only be used as the entire action"
        )
    if not ACTION_PATTERN.match(value):
        raise ValidationError(
            "action",
            "can only contain lowercase letters, numbers, underscores, "
            "hyphens, or a single wildcard (*)",
        )


def _to_display(value: str) -> str:
    words = value.replace("_", " ").replace("-", " ")
    return re.sub(r"\b\w", lambda m: m.group().upper(), words)


@dataclass(frozen=True)
class ActionIdentifier:
    """Validated, canonical action token. Equality is by value."""

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            raise ValidationError("action", "must be a string")
        _validate(self.value)

    @classmethod
    def create(cls, raw: str) -> "ActionIdentifier":
        """Trim, lowercase and validate a raw action string."""
        if not raw or not isinstance(raw, str):
            raise ValidationError("action", "cannot be empty")
        return cls(raw.strip().lower())

    @classmethod
    def create_wildcard(cls) -> "ActionIdentifier":
        """The action that stands for every action."""
        return cls(WILDCARD)

    @classmethod
    def create_crud(cls) -> List["ActionIdentifier"]:
        return [cls(action) for action in CRUD_ACTIONS]

    @staticmethod
    def crud_actions() -> List[str]:
        return list(CRUD_ACTIONS)

    @staticmethod
    def extended_actions() -> List[str]:
        return list(EXTENDED_ACTIONS)

    @staticmethod
    def standard_actions() -> List[str]:
        return list(CRUD_ACTIONS) + list(EXTENDED_ACTIONS)

    def __str__(self) -> str:
        return self.value

    def is_wildcard(self) -> bool:
        return self.value == WILDCARD

    def is_crud(self) -> bool:
        return self.value in CRUD_ACTIONS

    def is_read_only(self) -> bool:
        return self.value in READ_ONLY_ACTIONS

    def is_write(self) -> bool:
        return self.value in WRITE_ACTIONS

    def is_administrative(self) -> bool:
        return self.value in ADMINISTRATIVE_ACTIONS

    def is_dangerous(self) -> bool:
        return self.value in DANGEROUS_ACTIONS

    def priority(self) -> int:
        """Rank of the action; unclassified custom actions rank mid-tier."""
        return ACTION_PRIORITY.get(self.value, DEFAULT_PRIORITY)

    def implies(self, other: "ActionIdentifier") -> bool:
        """Check if holding this action also grants `other`.

        Not symmetric, and deliberately not transitive: only the flat
        implication table is consulted.
        """
        if self.is_wildcard():
            return True
        if self.value == other.value:
            return True
        return other.value in ACTION_IMPLICATIONS.get(self.value, frozenset())

    def implied_actions(self) -> FrozenSet[str]:
        """Actions listed as directly implied by this one."""
        return ACTION_IMPLICATIONS.get(self.value, frozenset())

    def http_method(self) -> str:
        return HTTP_METHODS.get(self.value, DEFAULT_HTTP_METHOD)

    def past_tense(self) -> str:
        return PAST_TENSE.get(self.value, self.value + "ed")

    @property
    def display_name(self) -> str:
        if self.is_wildcard():
            return "All Actions"
        return _to_display(self.value)

    def is_valid(self) -> bool:
        try:
            _validate(self.value)
        except ValidationError:
            return False
        return True
