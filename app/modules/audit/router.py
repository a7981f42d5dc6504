"""Audit API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.modules.audit.schemas import AuditLogRead
from app.modules.audit.service import AuditService, get_audit_service
from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=Page[AuditLogRead])
async def list_logs(
    action: str | None = Query(default=None, max_length=128),
    pagination=Depends(get_pagination_params),
    service: AuditService = Depends(get_audit_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[AuditLogRead]:
    """List audit logs."""
    items, total = await service.list_logs(
        principal,
        action=action,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [AuditLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)
