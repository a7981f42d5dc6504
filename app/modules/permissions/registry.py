"""Closed catalog of admin permissions and role defaults.

Every permission string is ``<resource>.<action>``. The catalog is the single
source for seeding the ``permissions`` table and for answering whether a string
is a real permission at all; anything outside it is treated as not granted.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.core.enums import RoleEnum

ADS_APPROVE = "ads.approve"
ADS_REJECT = "ads.reject"
ADS_EDIT = "ads.edit"
ADS_DELETE = "ads.delete"
USERS_VIEW = "users.view"
USERS_BLOCK = "users.block"
USERS_SUSPEND = "users.suspend"
CATEGORIES_MANAGE = "categories.manage"
REPORTS_VIEW = "reports.view"
REPORTS_MANAGE = "reports.manage"
ADMINS_MANAGE = "admins.manage"


@dataclass(frozen=True, slots=True)
class PermissionDefinition:
    """Immutable catalog entry."""

    resource: str
    action: str
    description: str

    @property
    def name(self) -> str:
        return f"{self.resource}.{self.action}"


PERMISSION_CATALOG: tuple[PermissionDefinition, ...] = (
    PermissionDefinition("ads", "approve", "Approve ads waiting for moderation"),
    PermissionDefinition("ads", "reject", "Reject ads waiting for moderation"),
    PermissionDefinition("ads", "edit", "Edit any ad, suspend and unsuspend published ads"),
    PermissionDefinition("ads", "delete", "Delete any ad"),
    PermissionDefinition("users", "view", "View user accounts"),
    PermissionDefinition("users", "block", "Block and unblock user accounts"),
    PermissionDefinition("users", "suspend", "Temporarily suspend user accounts"),
    PermissionDefinition("categories", "manage", "Create, edit and delete categories"),
    PermissionDefinition("reports", "view", "View abuse reports"),
    PermissionDefinition("reports", "manage", "Change report status and notes"),
    PermissionDefinition("admins", "manage", "Grant and revoke admin permissions"),
)

PERMISSION_NAMES: frozenset[str] = frozenset(item.name for item in PERMISSION_CATALOG)
_RESOURCES: frozenset[str] = frozenset(item.resource for item in PERMISSION_CATALOG)
_ACTIONS: frozenset[str] = frozenset(item.action for item in PERMISSION_CATALOG)

ROLE_DEFAULTS: dict[RoleEnum, frozenset[str]] = {
    RoleEnum.USER: frozenset(),
    RoleEnum.ADMIN: frozenset(),
    RoleEnum.SUPER_ADMIN: PERMISSION_NAMES,
}


def list_permissions() -> tuple[PermissionDefinition, ...]:
    """Return the full catalog in declaration order."""
    return PERMISSION_CATALOG


def split_permission(name: object) -> tuple[str, str] | None:
    """Split ``resource.action``; malformed strings yield None."""
    if not isinstance(name, str):
        return None
    resource, separator, action = name.partition(".")
    if not separator or not resource or not action or "." in action:
        return None
    return resource, action


def is_known_permission(name: object) -> bool:
    """True only for strings present in the catalog."""
    parts = split_permission(name)
    if parts is None:
        return False
    resource, action = parts
    if resource not in _RESOURCES or action not in _ACTIONS:
        return False
    return name in PERMISSION_NAMES


def has_default(role: RoleEnum | str, permission: object) -> bool:
    """Whether ``role`` holds ``permission`` without any grant row."""
    if not is_known_permission(permission):
        return False
    try:
        role_value = RoleEnum(role)
    except ValueError:
        return False
    return permission in ROLE_DEFAULTS[role_value]


def get_definition(name: str) -> PermissionDefinition | None:
    for item in PERMISSION_CATALOG:
        if item.name == name:
            return item
    return None
