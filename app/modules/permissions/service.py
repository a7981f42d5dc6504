"""Permission catalog seeding and grant administration."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.modules.audit.repository import AuditRepository
from app.modules.identity.models import User
from app.modules.identity.principal import Principal
from app.modules.identity.repository import IdentityRepository
from app.modules.permissions.guard import require_permission
from app.modules.permissions.models import Permission
from app.modules.permissions.registry import ADMINS_MANAGE, PERMISSION_NAMES, list_permissions
from app.modules.permissions.repository import PermissionsRepository
from app.modules.permissions.schemas import PermissionGrantResult
from app.shared.exceptions import ConflictException, NotFoundException

logger = logging.getLogger(__name__)


class PermissionsService:
    """Grant administration on top of the fixed catalog."""

    def __init__(
        self,
        repository: PermissionsRepository,
        identity_repository: IdentityRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.identity_repository = identity_repository
        self.audit_repository = audit_repository

    async def ensure_catalog(self) -> int:
        """Insert missing catalog rows; returns how many were created."""
        created = 0
        for definition in list_permissions():
            existing = await self.repository.get_permission_by_name(definition.name)
            if existing is None:
                await self.repository.create_permission(
                    name=definition.name,
                    resource=definition.resource,
                    action=definition.action,
                    description=definition.description,
                )
                created += 1
        if created:
            logger.info("Seeded %s permission catalog entries", created)
        return created

    async def list_permissions(self) -> list[Permission]:
        return await self.repository.list_permissions()

    async def list_my_permissions(self, principal: Principal) -> list[str]:
        """Effective permission names of the principal."""
        if principal.role == RoleEnum.SUPER_ADMIN:
            return sorted(PERMISSION_NAMES)
        return sorted(principal.permissions & PERMISSION_NAMES)

    async def _get_admin_target(self, admin_id: UUID) -> User:
        user = await self.identity_repository.get_user_by_id(admin_id)
        if user is None:
            raise NotFoundException("User not found")
        if user.role.name != RoleEnum.ADMIN:
            raise ConflictException("Permissions can only be granted to ADMIN accounts")
        return user

    async def _get_permission(self, permission_id: UUID) -> Permission:
        permission = await self.repository.get_permission_by_id(permission_id)
        if permission is None:
            raise NotFoundException("Permission not found")
        return permission

    async def list_admin_permissions(self, admin_id: UUID, principal: Principal) -> list[Permission]:
        require_permission(principal, ADMINS_MANAGE)
        await self._get_admin_target(admin_id)
        return await self.repository.list_permissions_for_user(admin_id)

    async def assign(self, admin_id: UUID, permission_id: UUID, principal: Principal) -> PermissionGrantResult:
        """Grant permission; assigning an existing grant is a no-op."""
        require_permission(principal, ADMINS_MANAGE)
        target = await self._get_admin_target(admin_id)
        permission = await self._get_permission(permission_id)

        changed = await self.repository.grant(target.id, permission.id, principal.id)
        if changed:
            await self.audit_repository.create_audit_log(
                actor_id=principal.id,
                action="permissions.assign",
                entity_type="user",
                entity_id=str(target.id),
                payload={"permission": permission.name},
            )
            logger.info("Permission %s granted to %s by %s", permission.name, target.id, principal.id)
        return PermissionGrantResult(admin_id=target.id, permission=permission.name, granted=True, changed=changed)

    async def revoke(self, admin_id: UUID, permission_id: UUID, principal: Principal) -> PermissionGrantResult:
        """Revoke permission; revoking an absent grant is a no-op."""
        require_permission(principal, ADMINS_MANAGE)
        target = await self._get_admin_target(admin_id)
        permission = await self._get_permission(permission_id)

        changed = await self.repository.revoke(target.id, permission.id)
        if changed:
            await self.audit_repository.create_audit_log(
                actor_id=principal.id,
                action="permissions.revoke",
                entity_type="user",
                entity_id=str(target.id),
                payload={"permission": permission.name},
            )
            logger.info("Permission %s revoked from %s by %s", permission.name, target.id, principal.id)
        return PermissionGrantResult(admin_id=target.id, permission=permission.name, granted=False, changed=changed)


async def get_permissions_service(session: AsyncSession = Depends(get_db_session)) -> PermissionsService:
    """Dependency provider for permissions service."""
    return PermissionsService(
        repository=PermissionsRepository(session),
        identity_repository=IdentityRepository(session),
        audit_repository=AuditRepository(session),
    )
