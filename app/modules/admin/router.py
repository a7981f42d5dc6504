"""Admin API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.admin.schemas import AdminOverviewRead
from app.modules.admin.service import AdminService, get_admin_service
from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview", response_model=AdminOverviewRead)
async def get_admin_overview(
    service: AdminService = Depends(get_admin_service),
    principal: Principal = Depends(get_current_principal),
) -> AdminOverviewRead:
    """Return moderation dashboard counters."""
    return await service.get_overview(principal)
