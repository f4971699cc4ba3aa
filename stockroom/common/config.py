"""Configuration file handling for Stockroom.

Loads YAML configuration files and parses the role catalog: the default
permissions and roles an installation starts with.

Catalog layout::

    permissions:
      - slug: "products:manage"
        description: Permission to manage product inventory
        system: false
    roles:
      viewer:
        name: Viewer
        description: Read-only access to reports and data
        is_system: true
        permissions: ["reports:view"]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


@dataclass
class PermissionSpec:
    """Catalog entry for one permission."""

    slug: str
    description: Optional[str] = None
    system: bool = False


@dataclass
class RoleSpec:
    """Catalog entry for one role."""

    key: str
    name: str
    description: str = ""
    is_system: bool = False
    permissions: List[str] = field(default_factory=list)


@dataclass
class RoleCatalog:
    """Default permissions and roles."""

    permissions: Dict[str, PermissionSpec] = field(default_factory=dict)
    roles: Dict[str, RoleSpec] = field(default_factory=dict)


def parse_permission_spec(permission_dict: Dict[str, Any]) -> PermissionSpec:
    """Parse a permission entry.

    Args:
        permission_dict: Permission entry dictionary

    Returns:
        PermissionSpec instance

    Raises:
        ValueError: If the entry has no slug
    """
    slug = str(permission_dict.get("slug", "")).strip()
    if not slug:
        raise ValueError(f"Permission entry is missing a slug: {permission_dict}")

    return PermissionSpec(
        slug=slug,
        description=permission_dict.get("description"),
        system=bool(permission_dict.get("system", False)),
    )


def parse_role_spec(role_key: str, role_dict: Dict[str, Any]) -> RoleSpec:
    """Parse a role entry.

    Args:
        role_key: Key of the role in the catalog
        role_dict: Role entry dictionary

    Returns:
        RoleSpec instance
    """
    return RoleSpec(
        key=role_key,
        name=role_dict.get("name", role_key),
        description=role_dict.get("description", ""),
        is_system=bool(role_dict.get("is_system", False)),
        permissions=list(role_dict.get("permissions") or []),
    )


def parse_role_catalog(config_dict: Dict[str, Any]) -> RoleCatalog:
    """Parse the full catalog dictionary.

    Every permission a role references must be declared under
    `permissions`.

    Args:
        config_dict: Catalog dictionary

    Returns:
        RoleCatalog instance

    Raises:
        ValueError: If a slug is declared twice or a role references an
            undeclared permission
    """
    permissions: Dict[str, PermissionSpec] = {}
    for permission_dict in config_dict.get("permissions") or []:
        spec = parse_permission_spec(permission_dict)
        if spec.slug in permissions:
            raise ValueError(f"Duplicate permission slug in catalog: {spec.slug}")
        permissions[spec.slug] = spec

    roles: Dict[str, RoleSpec] = {}
    for role_key, role_dict in (config_dict.get("roles") or {}).items():
        role = parse_role_spec(role_key, role_dict or {})
        unknown = [slug for slug in role.permissions if slug not in permissions]
        if unknown:
            raise ValueError(
                f"Role '{role_key}' references undeclared permissions: {unknown}"
            )
        roles[role_key] = role

    return RoleCatalog(permissions=permissions, roles=roles)


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_role_catalog(config_path: str) -> RoleCatalog:
    """Load and parse a role catalog file."""
    return parse_role_catalog(load_config(config_path))
