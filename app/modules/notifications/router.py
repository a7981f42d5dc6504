"""Notifications API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal
from app.modules.notifications.schemas import NotificationRead, UnreadCountRead
from app.modules.notifications.service import NotificationsService, get_notifications_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/my", response_model=Page[NotificationRead])
async def list_my_notifications(
    unread_only: bool = Query(default=False),
    pagination=Depends(get_pagination_params),
    service: NotificationsService = Depends(get_notifications_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[NotificationRead]:
    """List notifications for current user."""
    items, total = await service.list_my_notifications(
        principal,
        unread_only=unread_only,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [NotificationRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/my/unread-count", response_model=UnreadCountRead)
async def get_unread_count(
    service: NotificationsService = Depends(get_notifications_service),
    principal: Principal = Depends(get_current_principal),
) -> UnreadCountRead:
    return UnreadCountRead(unread=await service.count_unread(principal))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    service: NotificationsService = Depends(get_notifications_service),
    principal: Principal = Depends(get_current_principal),
) -> NotificationRead:
    """Mark notification as read."""
    notification = await service.mark_read(notification_id, principal)
    return NotificationRead.model_validate(notification)
