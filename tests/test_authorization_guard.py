from __future__ import annotations

from uuid import uuid4

import pytest

from app.core.enums import AccessPathEnum, RoleEnum
from app.modules.identity.principal import Principal
from app.modules.permissions.guard import (
    AuthorizationDecision,
    authorize,
    authorize_any,
    require_any_permission,
    require_owner_or_permission,
    require_permission,
    require_super_admin,
)
from app.modules.permissions.registry import ADS_APPROVE, ADS_DELETE, ADS_REJECT, PERMISSION_NAMES
from app.shared.exceptions import ForbiddenException


def _admin(*permissions: str) -> Principal:
    return Principal.build(uuid4(), RoleEnum.ADMIN, permissions)


def test_super_admin_is_allowed_everything() -> None:
    principal = Principal.build(uuid4(), RoleEnum.SUPER_ADMIN)
    for name in PERMISSION_NAMES:
        assert authorize(principal, name) == AuthorizationDecision.ALLOWED
    assert authorize(principal, "ads.publish") == AuthorizationDecision.ALLOWED


def test_user_is_denied_everything() -> None:
    principal = Principal.build(uuid4(), RoleEnum.USER, {ADS_APPROVE})
    assert principal.permissions == frozenset()
    for name in PERMISSION_NAMES:
        assert authorize(principal, name) == AuthorizationDecision.DENIED


def test_admin_is_allowed_only_granted_permissions() -> None:
    principal = _admin(ADS_APPROVE)
    assert authorize(principal, ADS_APPROVE) == AuthorizationDecision.ALLOWED
    assert authorize(principal, ADS_REJECT) == AuthorizationDecision.DENIED


def test_admin_without_grants_is_denied() -> None:
    principal = _admin()
    for name in PERMISSION_NAMES:
        assert authorize(principal, name) == AuthorizationDecision.DENIED


def test_admin_grant_of_unknown_permission_is_ignored() -> None:
    principal = _admin("ads.publish")
    assert authorize(principal, "ads.publish") == AuthorizationDecision.DENIED


def test_authorize_any() -> None:
    principal = _admin(ADS_DELETE)
    assert authorize_any(principal, (ADS_APPROVE, ADS_DELETE)) == AuthorizationDecision.ALLOWED
    assert authorize_any(principal, (ADS_APPROVE, ADS_REJECT)) == AuthorizationDecision.DENIED
    assert authorize_any(principal, ()) == AuthorizationDecision.DENIED


def test_require_permission_raises_forbidden() -> None:
    with pytest.raises(ForbiddenException) as exc:
        require_permission(_admin(), ADS_APPROVE)
    assert ADS_APPROVE in exc.value.message

    require_permission(_admin(ADS_APPROVE), ADS_APPROVE)


def test_require_any_permission() -> None:
    require_any_permission(_admin(ADS_REJECT), (ADS_APPROVE, ADS_REJECT))
    with pytest.raises(ForbiddenException):
        require_any_permission(_admin(), (ADS_APPROVE, ADS_REJECT))


def test_require_super_admin() -> None:
    require_super_admin(Principal.build(uuid4(), RoleEnum.SUPER_ADMIN))
    with pytest.raises(ForbiddenException):
        require_super_admin(_admin(*PERMISSION_NAMES))


def test_owner_path_needs_no_permission() -> None:
    owner = Principal.build(uuid4(), RoleEnum.USER)
    assert require_owner_or_permission(owner, owner.id, ADS_DELETE) == AccessPathEnum.OWNER


def test_non_owner_needs_permission() -> None:
    owner_id = uuid4()
    assert require_owner_or_permission(_admin(ADS_DELETE), owner_id, ADS_DELETE) == AccessPathEnum.PERMISSION
    with pytest.raises(ForbiddenException):
        require_owner_or_permission(_admin(ADS_APPROVE), owner_id, ADS_DELETE)
    with pytest.raises(ForbiddenException):
        require_owner_or_permission(Principal.build(uuid4(), RoleEnum.USER), owner_id, ADS_DELETE)
