"""Audit schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import AccessPathEnum, AdStatusEnum, ModerationActionEnum, RoleEnum


class AuditLogRead(BaseModel):
    """Audit log response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    actor_id: UUID | None
    action: str
    entity_type: str
    entity_id: str | None
    payload: dict
    created_at: datetime


class ModerationEventRead(BaseModel):
    """Ad status/audit record response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ad_id: UUID
    action: ModerationActionEnum
    from_status: AdStatusEnum | None
    to_status: AdStatusEnum
    actor_id: UUID | None
    actor_role: RoleEnum
    permission_used: str | None
    access_path: AccessPathEnum
    reason: str | None
    created_at: datetime
