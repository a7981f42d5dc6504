"""Authorization guard evaluated before every gated operation.

The guard is a set of pure decision functions over an explicitly passed
:class:`Principal`; it never consults ambient state, so the grant set a caller
loaded for the current request is the only source of truth.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from uuid import UUID

from app.core.enums import AccessPathEnum, RoleEnum
from app.core.metrics import AUTHORIZATION_DENIED_TOTAL
from app.modules.identity.principal import Principal
from app.modules.permissions.registry import is_known_permission
from app.shared.exceptions import ForbiddenException

security_logger = logging.getLogger("app.security")


class AuthorizationDecision(StrEnum):
    """Outcome of a permission check."""

    ALLOWED = "allowed"
    DENIED = "denied"


def authorize(principal: Principal, permission: str) -> AuthorizationDecision:
    """Decide whether ``principal`` holds ``permission``."""
    if principal.role == RoleEnum.SUPER_ADMIN:
        return AuthorizationDecision.ALLOWED
    if principal.role != RoleEnum.ADMIN:
        return AuthorizationDecision.DENIED
    if not is_known_permission(permission):
        return AuthorizationDecision.DENIED
    if permission in principal.permissions:
        return AuthorizationDecision.ALLOWED
    return AuthorizationDecision.DENIED


def is_allowed(principal: Principal, permission: str) -> bool:
    return authorize(principal, permission) == AuthorizationDecision.ALLOWED


def authorize_any(principal: Principal, permissions: Iterable[str]) -> AuthorizationDecision:
    """Allowed when at least one of ``permissions`` is held."""
    for permission in permissions:
        if is_allowed(principal, permission):
            return AuthorizationDecision.ALLOWED
    return AuthorizationDecision.DENIED


def _deny(principal: Principal, permission: str) -> ForbiddenException:
    security_logger.warning(
        "Authorization denied principal=%s role=%s permission=%s",
        principal.id,
        principal.role,
        permission,
    )
    AUTHORIZATION_DENIED_TOTAL.labels(permission=permission).inc()
    return ForbiddenException(f"Missing permission: {permission}")


def require_permission(principal: Principal, permission: str) -> None:
    """Raise ``ForbiddenException`` unless the permission is held."""
    if not is_allowed(principal, permission):
        raise _deny(principal, permission)


def require_any_permission(principal: Principal, permissions: Iterable[str]) -> None:
    candidates = tuple(permissions)
    if authorize_any(principal, candidates) != AuthorizationDecision.ALLOWED:
        raise _deny(principal, " | ".join(candidates))


def require_super_admin(principal: Principal) -> None:
    if principal.role != RoleEnum.SUPER_ADMIN:
        security_logger.warning(
            "Super admin operation denied principal=%s role=%s",
            principal.id,
            principal.role,
        )
        AUTHORIZATION_DENIED_TOTAL.labels(permission="role.super_admin").inc()
        raise ForbiddenException("Only super admin can perform this operation")


def require_owner_or_permission(
    principal: Principal,
    owner_id: UUID,
    permission: str,
) -> AccessPathEnum:
    """Resolve how the principal may act on an owned resource.

    Owners always act on their own path; everyone else needs the admin
    permission, which is reported separately so overrides can be audited.
    """
    if principal.id == owner_id:
        return AccessPathEnum.OWNER
    if is_allowed(principal, permission):
        return AccessPathEnum.PERMISSION
    raise _deny(principal, permission)
