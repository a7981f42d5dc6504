"""Permission catalog and grant schemas."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PermissionRead(BaseModel):
    """Catalog entry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    resource: str
    action: str
    description: str | None


class PermissionGrantRequest(BaseModel):
    """Grant or revoke one permission for one admin."""

    admin_id: UUID
    permission_id: UUID


class PermissionGrantResult(BaseModel):
    """Outcome of an idempotent grant change."""

    admin_id: UUID
    permission: str
    granted: bool
    changed: bool


class EffectivePermissionsRead(BaseModel):
    """Permissions the principal currently holds."""

    role: str
    permissions: list[str]
