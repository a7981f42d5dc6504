"""Admin business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.modules.admin.repository import AdminRepository
from app.modules.admin.schemas import AdminOverviewRead
from app.modules.audit.repository import AuditRepository
from app.modules.identity.principal import Principal
from app.shared.exceptions import ForbiddenException


class AdminService:
    """Admin dashboard service."""

    def __init__(self, repository: AdminRepository, audit_repository: AuditRepository) -> None:
        self.repository = repository
        self.audit_repository = audit_repository

    async def get_overview(self, principal: Principal) -> AdminOverviewRead:
        """Return aggregated moderation snapshot."""
        if not principal.is_admin:
            raise ForbiddenException("Only admins can view the overview")

        snapshot = await self.repository.get_overview()
        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="admin.overview.view",
            entity_type="admin_overview",
            entity_id=None,
            payload={"generated_at": snapshot["generated_at"].isoformat()},
        )
        return AdminOverviewRead(**snapshot)


async def get_admin_service(session: AsyncSession = Depends(get_db_session)) -> AdminService:
    """Dependency provider for admin service."""
    return AdminService(AdminRepository(session), AuditRepository(session))
