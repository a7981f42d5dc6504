"""Notifications repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import NotificationStatusEnum
from app.modules.notifications.models import Notification
from app.shared.pagination import fetch_page


class NotificationsRepository:
    """DB operations for notifications domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_notification(
        self,
        user_id: UUID,
        title: str,
        body: str,
        *,
        ad_id: UUID | None = None,
        channel: str = "in_app",
        status: NotificationStatusEnum = NotificationStatusEnum.PENDING,
        sent_at: datetime | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            ad_id=ad_id,
            channel=channel,
            title=title,
            body=body,
            status=status,
            sent_at=sent_at,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get_notification_by_id(self, notification_id: UUID) -> Notification | None:
        stmt = select(Notification).where(Notification.id == notification_id)
        return await self.session.scalar(stmt)

    async def list_notifications_for_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        base_stmt: Select[tuple[Notification]] = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            base_stmt = base_stmt.where(Notification.read_at.is_(None))
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=Notification.created_at.desc(),
            limit=limit,
            offset=offset,
        )

    async def count_unread(self, user_id: UUID) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def mark_read(self, notification: Notification, read_at: datetime) -> Notification:
        notification.read_at = read_at
        await self.session.flush()
        return notification
