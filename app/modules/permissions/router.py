"""Permissions API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal
from app.modules.permissions.schemas import (
    EffectivePermissionsRead,
    PermissionGrantRequest,
    PermissionGrantResult,
    PermissionRead,
)
from app.modules.permissions.service import PermissionsService, get_permissions_service

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=list[PermissionRead])
async def list_permissions(
    service: PermissionsService = Depends(get_permissions_service),
    principal: Principal = Depends(get_current_principal),
) -> list[PermissionRead]:
    """List the permission catalog."""
    items = await service.list_permissions()
    return [PermissionRead.model_validate(item) for item in items]


@router.get("/me", response_model=EffectivePermissionsRead)
async def list_my_permissions(
    service: PermissionsService = Depends(get_permissions_service),
    principal: Principal = Depends(get_current_principal),
) -> EffectivePermissionsRead:
    """Effective permissions of the caller."""
    names = await service.list_my_permissions(principal)
    return EffectivePermissionsRead(role=principal.role, permissions=names)


@router.get("/admin/{admin_id}", response_model=list[PermissionRead])
async def list_admin_permissions(
    admin_id: UUID,
    service: PermissionsService = Depends(get_permissions_service),
    principal: Principal = Depends(get_current_principal),
) -> list[PermissionRead]:
    """List explicit grants of one admin."""
    items = await service.list_admin_permissions(admin_id, principal)
    return [PermissionRead.model_validate(item) for item in items]


@router.post("/assign", response_model=PermissionGrantResult)
async def assign_permission(
    payload: PermissionGrantRequest,
    service: PermissionsService = Depends(get_permissions_service),
    principal: Principal = Depends(get_current_principal),
) -> PermissionGrantResult:
    """Grant a permission to an admin."""
    return await service.assign(payload.admin_id, payload.permission_id, principal)


@router.post("/revoke", response_model=PermissionGrantResult)
async def revoke_permission(
    payload: PermissionGrantRequest,
    service: PermissionsService = Depends(get_permissions_service),
    principal: Principal = Depends(get_current_principal),
) -> PermissionGrantResult:
    """Revoke a permission from an admin."""
    return await service.revoke(payload.admin_id, payload.permission_id, principal)
