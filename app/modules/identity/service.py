"""Identity business logic layer."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.core.security import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    oauth2_scheme,
    optional_oauth2_scheme,
    verify_password,
)
from app.modules.audit.repository import AuditRepository
from app.modules.identity.models import User
from app.modules.identity.principal import Principal
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import LoginRequest, TokenPair, UserCreate
from app.modules.permissions.guard import require_permission, require_super_admin
from app.modules.permissions.registry import USERS_BLOCK, USERS_SUSPEND, USERS_VIEW
from app.modules.permissions.repository import PermissionsRepository
from app.shared.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    UnauthenticatedException,
    ValidationFailedException,
)
from app.shared.utils import ensure_utc, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class IdentityService:
    """Identity domain service."""

    def __init__(
        self,
        repository: IdentityRepository,
        permissions_repository: PermissionsRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.permissions_repository = permissions_repository
        self.audit_repository = audit_repository

    async def ensure_default_roles(self) -> None:
        """Ensure all default roles exist."""
        for role_name in (RoleEnum.USER, RoleEnum.ADMIN, RoleEnum.SUPER_ADMIN):
            role = await self.repository.get_role_by_name(role_name)
            if role is None:
                await self.repository.create_role(role_name)

    async def ensure_super_admin(self, email: str, password: str) -> User:
        """Create or promote the bootstrap super admin account."""
        role = await self.repository.get_role_by_name(RoleEnum.SUPER_ADMIN)
        if role is None:
            raise NotFoundException("Role not found")

        user = await self.repository.get_user_by_email(email)
        if user is None:
            user = await self.repository.create_user(
                email=email,
                password_hash=hash_password(password),
                name="Super Admin",
                phone=None,
                role_id=role.id,
            )
            logger.info("Bootstrap super admin created: %s", email)
            return user

        if user.role.name != RoleEnum.SUPER_ADMIN:
            await self.permissions_repository.revoke_all(user.id)
            user = await self.repository.set_role(user, role)
            logger.info("Bootstrap super admin promoted: %s", email)
        return user

    def _ensure_account_usable(self, user: User) -> None:
        if user.is_blocked:
            raise ForbiddenException("Account is blocked")
        if user.suspended_until is not None and ensure_utc(user.suspended_until) > utc_now():
            raise ForbiddenException("Account is suspended")

    async def register(self, payload: UserCreate) -> User:
        """Register new user account with the USER role."""
        existing_user = await self.repository.get_user_by_email(payload.email)
        if existing_user is not None:
            raise ConflictException("User with this email already exists")

        role = await self.repository.get_role_by_name(RoleEnum.USER)
        if role is None:
            raise NotFoundException("Role not found")

        return await self.repository.create_user(
            email=payload.email,
            password_hash=hash_password(payload.password),
            name=payload.name.strip(),
            phone=payload.phone,
            role_id=role.id,
        )

    async def _issue_tokens(self, user: User) -> TokenPair:
        token_id = str(uuid4())
        access_token = create_access_token(subject=str(user.id), role=user.role.name)
        refresh_token = create_refresh_token(subject=str(user.id), token_id=token_id, role=user.role.name)

        expires_at = utc_now() + timedelta(days=settings.refresh_token_expire_days)
        await self.repository.create_refresh_token(user.id, token_id, expires_at)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def login(self, payload: LoginRequest) -> TokenPair:
        """Authenticate user and issue JWT tokens."""
        user = await self.repository.get_user_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise UnauthenticatedException("Invalid credentials")

        self._ensure_account_usable(user)
        return await self._issue_tokens(user)

    async def refresh_tokens(self, refresh_token_value: str) -> TokenPair:
        """Rotate refresh token and issue new token pair."""
        claims = decode_token(refresh_token_value, REFRESH_TOKEN)
        db_token = await self.repository.get_refresh_token_by_id(claims.token_id)
        if db_token is None or db_token.revoked_at is not None or ensure_utc(db_token.expires_at) <= utc_now():
            raise UnauthenticatedException("Refresh token is not valid")

        await self.repository.revoke_refresh_token(claims.token_id, utc_now())

        user = await self.repository.get_user_by_id(claims.subject)
        if user is None:
            raise UnauthenticatedException("User is not valid")
        self._ensure_account_usable(user)

        return await self._issue_tokens(user)

    async def get_user_from_access_token(self, token: str) -> User:
        """Resolve user from access token."""
        claims = decode_token(token, ACCESS_TOKEN)
        user = await self.repository.get_user_by_id(claims.subject)
        if user is None:
            raise UnauthenticatedException("User not found")
        self._ensure_account_usable(user)
        return user

    async def build_principal(self, user: User) -> Principal:
        """Load the current grant set; never cached beyond the request."""
        permissions: set[str] = set()
        if user.role.name == RoleEnum.ADMIN:
            permissions = await self.permissions_repository.list_permission_names_for_user(user.id)
        return Principal.build(user.id, user.role.name, permissions)

    async def _get_user_or_404(self, user_id: UUID) -> User:
        user = await self.repository.get_user_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found")
        return user

    async def list_users(
        self,
        principal: Principal,
        *,
        role_name: RoleEnum | None,
        is_blocked: bool | None,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """List accounts for user administration."""
        require_permission(principal, USERS_VIEW)
        return await self.repository.list_users(
            role_name=role_name,
            is_blocked=is_blocked,
            limit=limit,
            offset=offset,
        )

    async def get_user(self, user_id: UUID, principal: Principal) -> User:
        if principal.id != user_id:
            require_permission(principal, USERS_VIEW)
        return await self._get_user_or_404(user_id)

    def _ensure_manageable_target(self, target: User, principal: Principal) -> None:
        if target.id == principal.id:
            raise ConflictException("You cannot change your own account state")
        if target.role.name == RoleEnum.SUPER_ADMIN:
            raise ForbiddenException("Super admin accounts cannot be restricted")

    async def set_blocked(self, user_id: UUID, blocked: bool, principal: Principal) -> User:
        """Block or unblock an account."""
        require_permission(principal, USERS_BLOCK)
        user = await self._get_user_or_404(user_id)
        self._ensure_manageable_target(user, principal)

        if user.is_blocked != blocked:
            user.is_blocked = blocked
            await self.repository.save(user)
            await self.audit_repository.create_audit_log(
                actor_id=principal.id,
                action="users.block" if blocked else "users.unblock",
                entity_type="user",
                entity_id=str(user.id),
                payload={},
            )
        return user

    async def suspend(self, user_id: UUID, until, principal: Principal) -> User:
        """Suspend an account until the given moment."""
        require_permission(principal, USERS_SUSPEND)
        until_utc = ensure_utc(until)
        if until_utc <= utc_now():
            raise ValidationFailedException.for_field("until", "Suspension end must be in the future", "out_of_range")

        user = await self._get_user_or_404(user_id)
        self._ensure_manageable_target(user, principal)

        user.suspended_until = until_utc
        await self.repository.save(user)
        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="users.suspend",
            entity_type="user",
            entity_id=str(user.id),
            payload={"until": until_utc.isoformat()},
        )
        return user

    async def change_role(self, user_id: UUID, role_name: RoleEnum, principal: Principal) -> User:
        """Change account role; only SUPER_ADMIN may do this."""
        require_super_admin(principal)
        user = await self._get_user_or_404(user_id)
        if user.id == principal.id:
            raise ConflictException("You cannot change your own role")

        previous_role = user.role.name
        if previous_role == role_name:
            return user

        role = await self.repository.get_role_by_name(role_name)
        if role is None:
            raise NotFoundException("Role not found")

        revoked = 0
        if previous_role == RoleEnum.ADMIN:
            revoked = await self.permissions_repository.revoke_all(user.id)
        user = await self.repository.set_role(user, role)
        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="users.role.change",
            entity_type="user",
            entity_id=str(user.id),
            payload={"from": str(previous_role), "to": str(role_name), "grants_revoked": revoked},
        )
        logger.info("Role changed user=%s from=%s to=%s by=%s", user.id, previous_role, role_name, principal.id)
        return user


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(
        repository=IdentityRepository(session),
        permissions_repository=PermissionsRepository(session),
        audit_repository=AuditRepository(session),
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> User:
    """Resolve currently authenticated user from bearer token."""
    return await service.get_user_from_access_token(token)


async def get_current_principal(
    current_user: User = Depends(get_current_user),
    service: IdentityService = Depends(get_identity_service),
) -> Principal:
    """Resolve the authenticated principal with its fresh grant set."""
    return await service.build_principal(current_user)


async def get_optional_principal(
    token: str | None = Depends(optional_oauth2_scheme),
    service: IdentityService = Depends(get_identity_service),
) -> Principal | None:
    """Principal for endpoints that also serve anonymous visitors."""
    if token is None:
        return None
    user = await service.get_user_from_access_token(token)
    return await service.build_principal(user)
