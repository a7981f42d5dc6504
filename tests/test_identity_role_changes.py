from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from app.core.enums import RoleEnum
from app.core.security import create_access_token, create_refresh_token, hash_password
from app.modules.identity.principal import Principal
from app.modules.identity.schemas import LoginRequest, UserCreate
from app.modules.identity.service import IdentityService
from app.modules.permissions.registry import ADS_APPROVE, USERS_BLOCK, USERS_SUSPEND, USERS_VIEW
from app.shared.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    UnauthenticatedException,
    ValidationFailedException,
)

PASSWORD = "StrongPass123!"


def _role(name: RoleEnum) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), name=name)


ROLES = {name: _role(name) for name in RoleEnum}


def _user(role: RoleEnum, **overrides) -> SimpleNamespace:
    data = {
        "id": uuid4(),
        "email": f"{uuid4().hex[:8]}@adboard.dev",
        "password_hash": "unused",
        "name": "Someone",
        "phone": None,
        "is_blocked": False,
        "suspended_until": None,
        "role": ROLES[role],
        "role_id": ROLES[role].id,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


class FakeIdentityRepository:
    def __init__(self, *users: SimpleNamespace) -> None:
        self.users: dict[UUID, SimpleNamespace] = {user.id: user for user in users}
        self.refresh_tokens: list[str] = []
        self.saved = 0

    async def get_role_by_name(self, role_name: RoleEnum):
        return ROLES.get(role_name)

    async def get_user_by_email(self, email: str):
        return next((user for user in self.users.values() if user.email == email), None)

    async def get_user_by_id(self, user_id: UUID):
        return self.users.get(user_id)

    async def create_user(self, email, password_hash, name, phone, role_id):
        role = next(role for role in ROLES.values() if role.id == role_id)
        user = _user(role.name, email=email, password_hash=password_hash, name=name, phone=phone)
        self.users[user.id] = user
        return user

    async def set_role(self, user, role):
        user.role = role
        user.role_id = role.id
        return user

    async def save(self, user):
        self.saved += 1
        return user

    async def create_refresh_token(self, user_id, token_id, expires_at):
        self.refresh_tokens.append(token_id)


class FakePermissionsRepository:
    def __init__(self, grants: dict[UUID, set[str]] | None = None) -> None:
        self.grants = grants or {}
        self.lookups = 0

    async def list_permission_names_for_user(self, user_id: UUID) -> set[str]:
        self.lookups += 1
        return set(self.grants.get(user_id, set()))

    async def revoke_all(self, user_id: UUID) -> int:
        return len(self.grants.pop(user_id, set()))


class FakeAuditRepository:
    def __init__(self) -> None:
        self.logs: list[dict] = []

    async def create_audit_log(self, **kwargs) -> None:
        self.logs.append(kwargs)


def _service(*users, grants=None) -> tuple[IdentityService, FakePermissionsRepository, FakeAuditRepository]:
    permissions = FakePermissionsRepository(grants)
    audit = FakeAuditRepository()
    return IdentityService(FakeIdentityRepository(*users), permissions, audit), permissions, audit


def _principal(user: SimpleNamespace, *permissions: str) -> Principal:
    return Principal.build(user.id, user.role.name, permissions)


@pytest.mark.asyncio
async def test_build_principal_loads_grants_for_admin_only() -> None:
    admin = _user(RoleEnum.ADMIN)
    root = _user(RoleEnum.SUPER_ADMIN)
    service, permissions, _ = _service(admin, root, grants={admin.id: {ADS_APPROVE}})

    admin_principal = await service.build_principal(admin)
    root_principal = await service.build_principal(root)

    assert admin_principal.permissions == frozenset({ADS_APPROVE})
    assert root_principal.permissions == frozenset()
    assert permissions.lookups == 1


@pytest.mark.asyncio
async def test_only_super_admin_changes_roles() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    admin = _user(RoleEnum.ADMIN)
    target = _user(RoleEnum.USER)
    service, _, _ = _service(root, admin, target)

    with pytest.raises(ForbiddenException):
        await service.change_role(target.id, RoleEnum.ADMIN, _principal(admin, USERS_BLOCK))

    promoted = await service.change_role(target.id, RoleEnum.ADMIN, _principal(root))
    assert promoted.role.name == RoleEnum.ADMIN


@pytest.mark.asyncio
async def test_demoting_admin_revokes_all_grants() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    admin = _user(RoleEnum.ADMIN)
    service, permissions, audit = _service(root, admin, grants={admin.id: {ADS_APPROVE, USERS_VIEW}})

    await service.change_role(admin.id, RoleEnum.USER, _principal(root))

    assert admin.id not in permissions.grants
    assert audit.logs[-1]["action"] == "users.role.change"
    assert audit.logs[-1]["payload"]["grants_revoked"] == 2

    # Promoting back starts from an empty grant set.
    await service.change_role(admin.id, RoleEnum.ADMIN, _principal(root))
    assert (await service.build_principal(admin)).permissions == frozenset()


@pytest.mark.asyncio
async def test_change_to_same_role_is_a_no_op() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    target = _user(RoleEnum.USER)
    service, _, audit = _service(root, target)

    await service.change_role(target.id, RoleEnum.USER, _principal(root))
    assert audit.logs == []


@pytest.mark.asyncio
async def test_super_admin_cannot_change_own_role() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    service, _, _ = _service(root)

    with pytest.raises(ConflictException):
        await service.change_role(root.id, RoleEnum.USER, _principal(root))


@pytest.mark.asyncio
async def test_change_role_of_missing_user() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    service, _, _ = _service(root)

    with pytest.raises(NotFoundException):
        await service.change_role(uuid4(), RoleEnum.ADMIN, _principal(root))


@pytest.mark.asyncio
async def test_block_requires_permission_and_audits_changes_only() -> None:
    admin = _user(RoleEnum.ADMIN)
    target = _user(RoleEnum.USER)
    service, _, audit = _service(admin, target)

    with pytest.raises(ForbiddenException):
        await service.set_blocked(target.id, True, _principal(admin, USERS_VIEW))

    blocker = _principal(admin, USERS_BLOCK)
    await service.set_blocked(target.id, True, blocker)
    await service.set_blocked(target.id, True, blocker)

    assert target.is_blocked is True
    assert [log["action"] for log in audit.logs] == ["users.block"]


@pytest.mark.asyncio
async def test_super_admin_accounts_cannot_be_blocked_or_suspended() -> None:
    root = _user(RoleEnum.SUPER_ADMIN)
    admin = _user(RoleEnum.ADMIN)
    service, _, _ = _service(root, admin)
    principal = _principal(admin, USERS_BLOCK, USERS_SUSPEND)

    with pytest.raises(ForbiddenException):
        await service.set_blocked(root.id, True, principal)
    with pytest.raises(ForbiddenException):
        await service.suspend(root.id, datetime.now(UTC) + timedelta(days=1), principal)


@pytest.mark.asyncio
async def test_admin_cannot_block_self() -> None:
    admin = _user(RoleEnum.ADMIN)
    service, _, _ = _service(admin)

    with pytest.raises(ConflictException):
        await service.set_blocked(admin.id, True, _principal(admin, USERS_BLOCK))


@pytest.mark.asyncio
async def test_suspension_must_end_in_the_future() -> None:
    admin = _user(RoleEnum.ADMIN)
    target = _user(RoleEnum.USER)
    service, _, audit = _service(admin, target)
    principal = _principal(admin, USERS_SUSPEND)

    with pytest.raises(ValidationFailedException) as exc:
        await service.suspend(target.id, datetime.now(UTC) - timedelta(minutes=1), principal)
    assert exc.value.errors[0].field == "until"

    until = datetime.now(UTC) + timedelta(days=3)
    await service.suspend(target.id, until, principal)
    assert target.suspended_until == until
    assert audit.logs[-1]["action"] == "users.suspend"


@pytest.mark.asyncio
async def test_user_can_view_self_but_not_others() -> None:
    me = _user(RoleEnum.USER)
    other = _user(RoleEnum.USER)
    service, _, _ = _service(me, other)

    assert (await service.get_user(me.id, _principal(me))).id == me.id
    with pytest.raises(ForbiddenException):
        await service.get_user(other.id, _principal(me))


@pytest.mark.asyncio
async def test_register_always_creates_plain_user() -> None:
    service, _, _ = _service()

    user = await service.register(UserCreate(email="new@adboard.dev", password=PASSWORD, name=" Nina "))

    assert user.role.name == RoleEnum.USER
    assert user.name == "Nina"
    with pytest.raises(ConflictException):
        await service.register(UserCreate(email="new@adboard.dev", password=PASSWORD, name="Nina"))


@pytest.mark.asyncio
async def test_login_rejects_wrong_password_and_blocked_accounts() -> None:
    user = _user(RoleEnum.USER, email="anna@adboard.dev", password_hash=hash_password(PASSWORD))
    service, _, _ = _service(user)

    with pytest.raises(UnauthenticatedException):
        await service.login(LoginRequest(email="anna@adboard.dev", password="wrong-password"))

    tokens = await service.login(LoginRequest(email="anna@adboard.dev", password=PASSWORD))
    assert tokens.token_type == "bearer"

    user.is_blocked = True
    with pytest.raises(ForbiddenException):
        await service.login(LoginRequest(email="anna@adboard.dev", password=PASSWORD))


@pytest.mark.asyncio
async def test_suspended_account_cannot_use_access_token() -> None:
    user = _user(RoleEnum.USER, suspended_until=datetime.now(UTC) + timedelta(hours=1))
    service, _, _ = _service(user)

    with pytest.raises(ForbiddenException):
        await service.get_user_from_access_token(create_access_token(subject=str(user.id)))

    user.suspended_until = datetime.now(UTC) - timedelta(hours=1)
    assert (await service.get_user_from_access_token(create_access_token(subject=str(user.id)))).id == user.id


@pytest.mark.asyncio
async def test_refresh_token_is_not_accepted_as_access_token() -> None:
    user = _user(RoleEnum.USER)
    service, _, _ = _service(user)

    with pytest.raises(UnauthenticatedException):
        await service.get_user_from_access_token(create_refresh_token(subject=str(user.id), token_id="abc"))
