"""Audit repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AccessPathEnum, AdStatusEnum, ModerationActionEnum, RoleEnum
from app.modules.audit.models import AuditLog, ModerationEvent
from app.shared.pagination import fetch_page


class AuditRepository:
    """DB operations for audit journal and moderation history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_audit_log(
        self,
        actor_id: UUID | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict,
    ) -> AuditLog:
        log = AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload=payload,
        )
        self.session.add(log)
        await self.session.flush()
        return log

    async def list_audit_logs(
        self,
        *,
        action: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[AuditLog], int]:
        base_stmt: Select[tuple[AuditLog]] = select(AuditLog)
        if action is not None:
            base_stmt = base_stmt.where(AuditLog.action == action)
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=AuditLog.created_at.desc(),
            limit=limit,
            offset=offset,
        )

    async def create_moderation_event(
        self,
        *,
        ad_id: UUID,
        action: ModerationActionEnum,
        from_status: AdStatusEnum | None,
        to_status: AdStatusEnum,
        actor_id: UUID | None,
        actor_role: RoleEnum,
        permission_used: str | None,
        access_path: AccessPathEnum,
        reason: str | None = None,
    ) -> ModerationEvent:
        event = ModerationEvent(
            ad_id=ad_id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            actor_id=actor_id,
            actor_role=actor_role,
            permission_used=permission_used,
            access_path=access_path,
            reason=reason,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_moderation_events(self, ad_id: UUID) -> list[ModerationEvent]:
        stmt = (
            select(ModerationEvent)
            .where(ModerationEvent.ad_id == ad_id)
            .order_by(ModerationEvent.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())
