"""Audit business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.audit.models import AuditLog
from app.modules.audit.repository import AuditRepository
from app.modules.identity.principal import Principal
from app.modules.permissions.guard import require_permission
from app.modules.permissions.registry import ADMINS_MANAGE


class AuditService:
    """Read side of the admin action journal."""

    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    async def list_logs(
        self,
        principal: Principal,
        *,
        action: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AuditLog], int]:
        """List audit logs (admins.manage)."""
        require_permission(principal, ADMINS_MANAGE)
        return await self.repository.list_audit_logs(action=action, limit=limit, offset=offset)


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))
