"""Ads API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import AdStatusEnum
from app.modules.ads.models import Ad
from app.modules.ads.schemas import (
    AdCreate,
    AdRead,
    AdRejectRequest,
    AdSuspendRequest,
    AdTransitionRead,
    AdUpdate,
)
from app.modules.ads.service import AdsService, get_ads_service
from app.modules.audit.schemas import ModerationEventRead
from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal, get_optional_principal
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/ads", tags=["ads"])


def _transition_response(ad: Ad, notification_sent: bool | None) -> AdTransitionRead:
    payload = AdRead.model_validate(ad).model_dump()
    return AdTransitionRead(**payload, notification_sent=notification_sent)


@router.get("", response_model=Page[AdRead])
async def list_public_ads(
    category_id: UUID | None = Query(default=None),
    city_id: UUID | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: AdsService = Depends(get_ads_service),
) -> Page[AdRead]:
    """List published ads."""
    items, total = await service.list_public_ads(
        category_id=category_id,
        city_id=city_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [AdRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.post("", response_model=AdRead, status_code=status.HTTP_201_CREATED)
async def create_ad(
    payload: AdCreate,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdRead:
    """Create ad and submit it for moderation."""
    ad = await service.create_ad(payload, principal)
    return AdRead.model_validate(ad)


@router.get("/my", response_model=Page[AdRead])
async def list_my_ads(
    status_filter: AdStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[AdRead]:
    items, total = await service.list_my_ads(
        principal,
        status=status_filter,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [AdRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/moderation", response_model=Page[AdRead])
async def list_moderation_queue(
    status_filter: AdStatusEnum | None = Query(default=AdStatusEnum.PENDING_APPROVAL, alias="status"),
    include_deleted: bool = Query(default=False),
    pagination=Depends(get_pagination_params),
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[AdRead]:
    """Ads waiting for (or past) moderation."""
    items, total = await service.list_moderation_queue(
        principal,
        status=status_filter,
        include_deleted=include_deleted,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [AdRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{ad_id}", response_model=AdRead)
async def get_ad(
    ad_id: UUID,
    service: AdsService = Depends(get_ads_service),
    principal: Principal | None = Depends(get_optional_principal),
) -> AdRead:
    ad = await service.get_ad(ad_id, principal)
    return AdRead.model_validate(ad)


@router.get("/{ad_id}/history", response_model=list[ModerationEventRead])
async def get_ad_history(
    ad_id: UUID,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> list[ModerationEventRead]:
    """Audit trail of an ad."""
    events = await service.get_ad_history(ad_id, principal)
    return [ModerationEventRead.model_validate(item) for item in events]


@router.patch("/{ad_id}", response_model=AdRead)
async def update_ad(
    ad_id: UUID,
    payload: AdUpdate,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdRead:
    ad = await service.update_ad(ad_id, payload, principal)
    return AdRead.model_validate(ad)


@router.delete("/{ad_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ad(
    ad_id: UUID,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> None:
    await service.delete_ad(ad_id, principal)


@router.post("/{ad_id}/approve", response_model=AdTransitionRead)
async def approve_ad(
    ad_id: UUID,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdTransitionRead:
    ad, notification_sent = await service.approve_ad(ad_id, principal)
    return _transition_response(ad, notification_sent)


@router.post("/{ad_id}/reject", response_model=AdTransitionRead)
async def reject_ad(
    ad_id: UUID,
    payload: AdRejectRequest,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdTransitionRead:
    ad, notification_sent = await service.reject_ad(ad_id, payload.reason, principal)
    return _transition_response(ad, notification_sent)


@router.post("/{ad_id}/suspend", response_model=AdTransitionRead)
async def suspend_ad(
    ad_id: UUID,
    payload: AdSuspendRequest,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdTransitionRead:
    ad, notification_sent = await service.suspend_ad(ad_id, payload.confirm, principal)
    return _transition_response(ad, notification_sent)


@router.post("/{ad_id}/unsuspend", response_model=AdTransitionRead)
async def unsuspend_ad(
    ad_id: UUID,
    service: AdsService = Depends(get_ads_service),
    principal: Principal = Depends(get_current_principal),
) -> AdTransitionRead:
    ad, notification_sent = await service.unsuspend_ad(ad_id, principal)
    return _transition_response(ad, notification_sent)
