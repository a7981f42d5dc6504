"""Notifications business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import NotificationStatusEnum
from app.core.metrics import NOTIFICATION_FAILURES_TOTAL
from app.modules.identity.principal import Principal
from app.modules.notifications.models import Notification
from app.modules.notifications.repository import NotificationsRepository
from app.shared.exceptions import NotFoundException
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


class AdRejectionNotifier:
    """Tell an ad owner why the ad was rejected.

    Delivery is best-effort: the message is written inside a savepoint so a
    failure is rolled back on its own and reported as ``False`` while the
    surrounding status change is kept.
    """

    def __init__(self, session: AsyncSession, repository: NotificationsRepository | None = None) -> None:
        self.session = session
        self.repository = repository or NotificationsRepository(session)

    async def send(self, owner_id: UUID, ad_id: UUID, reason: str) -> bool:
        try:
            async with self.session.begin_nested():
                await self.repository.create_notification(
                    user_id=owner_id,
                    ad_id=ad_id,
                    title="Your ad was rejected",
                    body=reason,
                    status=NotificationStatusEnum.SENT,
                    sent_at=utc_now(),
                )
        except Exception:
            logger.warning("Rejection notification failed owner=%s ad=%s", owner_id, ad_id, exc_info=True)
            NOTIFICATION_FAILURES_TOTAL.inc()
            return False
        return True


class NotificationsService:
    """Notifications inbox service."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def list_my_notifications(
        self,
        principal: Principal,
        *,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        """List notifications for current user."""
        return await self.repository.list_notifications_for_user(
            principal.id,
            unread_only=unread_only,
            limit=limit,
            offset=offset,
        )

    async def count_unread(self, principal: Principal) -> int:
        return await self.repository.count_unread(principal.id)

    async def mark_read(self, notification_id: UUID, principal: Principal) -> Notification:
        """Mark own notification as read; repeated calls keep the first timestamp."""
        notification = await self.repository.get_notification_by_id(notification_id)
        # Foreign notifications are reported as missing.
        if notification is None or notification.user_id != principal.id:
            raise NotFoundException("Notification not found")
        if notification.read_at is not None:
            return notification
        return await self.repository.mark_read(notification, utc_now())


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(repository=NotificationsRepository(session))
