# roleguard/core/permissions.py
"""
Permission catalogue.

Fine-grained permission names ("<resource>:<action>") that can be granted to
roles or directly to users. The catalogue is seeded at startup; grants may
only reference names that exist in it.
"""
from typing import Iterable

PERMISSION_RESOURCES = ("products", "users", "roles")
PERMISSION_ACTIONS = ("read", "create", "update", "delete", "manage")

_ACTION_DESCRIPTIONS = {
    "read": "View {resource}",
    "create": "Create {resource}",
    "update": "Update {resource}",
    "delete": "Delete {resource}",
    "manage": "Full control over {resource}",
}

PERMISSION_CATALOG: dict[str, str] = {
    f"{resource}:{action}": _ACTION_DESCRIPTIONS[action].format(resource=resource)
    for resource in PERMISSION_RESOURCES
    for action in PERMISSION_ACTIONS
}


def normalize_permission_name(name: str) -> str:
    """Case-insensitive comparison key for a permission name."""
    return name.strip().upper()


def normalize_permission_names(names: Iterable[str]) -> list[str]:
    """Normalize, drop blanks and de-duplicate, keeping first-seen order."""
    seen: dict[str, None] = {}
    for name in names:
        if name and name.strip():
            seen.setdefault(normalize_permission_name(name), None)
    return list(seen)
