"""Ads business logic layer.

Every moderation action follows the same order: authorization guard, request
checks, load, lifecycle plan, compare-and-set write, moderation event, and for
rejections a best-effort owner notification.
"""

from __future__ import annotations

import logging
from typing import Protocol
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import (
    AccessPathEnum,
    AdConditionEnum,
    AdStatusEnum,
    CategoryTypeEnum,
    ModerationActionEnum,
)
from app.core.metrics import AD_TRANSITIONS_TOTAL, METADATA_VALIDATION_FAILURES_TOTAL
from app.modules.ads.lifecycle import INITIAL_STATUS, PUBLIC_STATUSES, get_transition, plan_transition
from app.modules.ads.metadata import listing_condition, normalize_metadata, validate_metadata
from app.modules.ads.models import Ad
from app.modules.ads.repository import AdsRepository
from app.modules.ads.schemas import AdCreate, AdUpdate
from app.modules.audit.models import ModerationEvent
from app.modules.audit.repository import AuditRepository
from app.modules.categories.repository import CategoriesRepository
from app.modules.categories.schema import get_schema
from app.modules.categories.service import CategorySchemaResolver
from app.modules.identity.principal import Principal
from app.modules.notifications.service import AdRejectionNotifier
from app.modules.permissions.guard import (
    AuthorizationDecision,
    authorize_any,
    require_any_permission,
    require_owner_or_permission,
    require_permission,
)
from app.modules.permissions.registry import ADS_APPROVE, ADS_DELETE, ADS_EDIT, ADS_REJECT
from app.shared.exceptions import (
    ConflictException,
    FieldError,
    InvalidTransitionException,
    NotFoundException,
    ValidationFailedException,
)
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

MODERATION_PERMISSIONS = (ADS_APPROVE, ADS_REJECT, ADS_EDIT, ADS_DELETE)


class RejectionNotifier(Protocol):
    async def send(self, owner_id: UUID, ad_id: UUID, reason: str) -> bool: ...


class AdsService:
    """Ads domain service."""

    def __init__(
        self,
        repository: AdsRepository,
        categories_repository: CategoriesRepository,
        audit_repository: AuditRepository,
        notifier: RejectionNotifier,
        resolver: CategorySchemaResolver | None = None,
    ) -> None:
        self.repository = repository
        self.categories_repository = categories_repository
        self.audit_repository = audit_repository
        self.notifier = notifier
        self.resolver = resolver or CategorySchemaResolver(categories_repository)

    async def _get_live_ad(self, ad_id: UUID) -> Ad:
        ad = await self.repository.get_ad_by_id(ad_id)
        if ad is None:
            raise NotFoundException("Ad not found")
        return ad

    async def _resolve_category_type(self, category_id: UUID) -> CategoryTypeEnum | None:
        category = await self.categories_repository.get_category_by_id(category_id)
        if category is None:
            raise NotFoundException("Category not found")
        return await self.resolver.resolve_type(category)

    def _check_content(
        self,
        category_type: CategoryTypeEnum | None,
        metadata: dict | None,
        condition: AdConditionEnum | None,
        *,
        condition_given: bool = True,
    ) -> AdConditionEnum | None:
        """Validate content and return the listing condition to store.

        A stored condition that no longer fits the edited category or vehicle
        metadata is dropped or derived again unless the caller sent one.
        """
        errors: list[FieldError] = []
        if condition is not None and category_type != CategoryTypeEnum.VEHICLES:
            if condition_given:
                errors.append(FieldError("condition", "Condition is only allowed for vehicle ads", "not_allowed"))
            condition = None
        errors.extend(validate_metadata(get_schema(category_type), metadata if metadata is not None else {}))
        if not errors and category_type == CategoryTypeEnum.VEHICLES:
            aligned = listing_condition(metadata["condition"], condition)
            if aligned is None and not condition_given:
                aligned = listing_condition(metadata["condition"], None)
            if aligned is None:
                errors.append(
                    FieldError("condition", "Condition does not match the vehicle metadata condition", "mismatch"),
                )
            condition = aligned
        if errors:
            METADATA_VALIDATION_FAILURES_TOTAL.labels(category_type=category_type or "generic").inc()
            raise ValidationFailedException(errors)
        return condition

    async def _record(
        self,
        ad: Ad,
        action: ModerationActionEnum,
        principal: Principal,
        *,
        from_status: AdStatusEnum | None,
        to_status: AdStatusEnum,
        access_path: AccessPathEnum,
        permission_used: str | None,
        reason: str | None = None,
    ) -> ModerationEvent:
        return await self.audit_repository.create_moderation_event(
            ad_id=ad.id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            actor_id=principal.id,
            actor_role=principal.role,
            permission_used=permission_used,
            access_path=access_path,
            reason=reason,
        )

    async def create_ad(self, payload: AdCreate, principal: Principal) -> Ad:
        """Create ad owned by the principal and submit it for moderation."""
        category_type = await self._resolve_category_type(payload.category_id)
        condition = self._check_content(category_type, payload.metadata, payload.condition)

        ad = await self.repository.create_ad(
            title=payload.title.strip(),
            description=payload.description.strip(),
            price=payload.price,
            category_id=payload.category_id,
            city_id=payload.city_id,
            user_id=principal.id,
            status=INITIAL_STATUS,
            ad_metadata=normalize_metadata(category_type, payload.metadata),
            condition=condition,
            show_email=payload.show_email,
            show_phone=payload.show_phone,
        )
        await self._record(
            ad,
            ModerationActionEnum.CREATE,
            principal,
            from_status=None,
            to_status=ad.status,
            access_path=AccessPathEnum.OWNER,
            permission_used=None,
        )
        return ad

    async def update_ad(self, ad_id: UUID, payload: AdUpdate, principal: Principal) -> Ad:
        """Edit content; status is never changed here."""
        ad = await self._get_live_ad(ad_id)
        access_path = require_owner_or_permission(principal, ad.user_id, ADS_EDIT)
        if payload.version is not None and payload.version != ad.version:
            raise ConflictException("Ad was modified since it was loaded, reload and retry")

        provided = payload.model_fields_set
        category_id = payload.category_id if "category_id" in provided and payload.category_id else ad.category_id
        metadata = payload.metadata if "metadata" in provided else ad.ad_metadata
        condition = payload.condition if "condition" in provided else ad.condition

        category_type = await self._resolve_category_type(category_id)
        condition = self._check_content(
            category_type,
            metadata,
            condition,
            condition_given="condition" in provided,
        )

        for field_name in ("title", "description"):
            value = getattr(payload, field_name)
            if field_name in provided and value is not None:
                setattr(ad, field_name, value.strip())
        for field_name in ("price", "show_email", "show_phone"):
            value = getattr(payload, field_name)
            if field_name in provided and value is not None:
                setattr(ad, field_name, value)
        if "city_id" in provided:
            ad.city_id = payload.city_id
        ad.category_id = category_id
        ad.condition = condition
        ad.ad_metadata = normalize_metadata(category_type, metadata)
        await self.repository.save(ad)

        permission_used = ADS_EDIT if access_path == AccessPathEnum.PERMISSION else None
        await self._record(
            ad,
            ModerationActionEnum.UPDATE,
            principal,
            from_status=ad.status,
            to_status=ad.status,
            access_path=access_path,
            permission_used=permission_used,
        )
        if access_path == AccessPathEnum.PERMISSION:
            logger.info("Admin override edit ad=%s owner=%s by=%s", ad.id, ad.user_id, principal.id)
        return ad

    async def delete_ad(self, ad_id: UUID, principal: Principal) -> None:
        """Soft delete by owner or ``ads.delete`` holder."""
        ad = await self._get_live_ad(ad_id)
        access_path = require_owner_or_permission(principal, ad.user_id, ADS_DELETE)

        deleted = await self.repository.soft_delete(ad.id, deleted_by_id=principal.id, deleted_at=utc_now())
        if not deleted:
            raise NotFoundException("Ad not found")

        permission_used = ADS_DELETE if access_path == AccessPathEnum.PERMISSION else None
        await self._record(
            ad,
            ModerationActionEnum.DELETE,
            principal,
            from_status=ad.status,
            to_status=ad.status,
            access_path=access_path,
            permission_used=permission_used,
        )
        if access_path == AccessPathEnum.PERMISSION:
            logger.info("Admin override delete ad=%s owner=%s by=%s", ad.id, ad.user_id, principal.id)

    def _clean_reason(self, reason: str | None) -> str:
        text = (reason or "").strip()
        if not text:
            raise ValidationFailedException.for_field("reason", "Rejection reason is required", "required")
        if len(text) > settings.rejection_reason_max_length:
            raise ValidationFailedException.for_field(
                "reason",
                f"Rejection reason must be at most {settings.rejection_reason_max_length} characters",
                "too_long",
            )
        return text

    async def _transition(
        self,
        ad_id: UUID,
        action: ModerationActionEnum,
        principal: Principal,
        *,
        reason: str | None = None,
        confirm: bool = False,
    ) -> tuple[Ad, bool | None]:
        transition = get_transition(action)
        require_permission(principal, transition.permission)

        if transition.requires_reason:
            reason = self._clean_reason(reason)
        else:
            reason = None
        if transition.requires_confirmation and not confirm:
            raise ValidationFailedException.for_field(
                "confirm",
                f"Explicit confirmation is required to {action} an ad",
                "confirmation_required",
            )

        ad = await self._get_live_ad(ad_id)
        plan_transition(action, ad.status)

        applied = await self.repository.compare_and_set_status(
            ad.id,
            from_status=transition.source,
            to_status=transition.target,
            rejection_reason=reason,
        )
        if not applied:
            raise InvalidTransitionException(f"Cannot {action} ad: its status changed concurrently")
        await self.repository.refresh(ad)

        await self._record(
            ad,
            action,
            principal,
            from_status=transition.source,
            to_status=transition.target,
            access_path=AccessPathEnum.PERMISSION,
            permission_used=transition.permission,
            reason=reason,
        )
        AD_TRANSITIONS_TOTAL.labels(action=action).inc()
        logger.info("Ad %s %s: %s -> %s by %s", ad.id, action, transition.source, transition.target, principal.id)

        notification_sent = None
        if transition.notifies_owner:
            notification_sent = await self.notifier.send(ad.user_id, ad.id, reason)
        return ad, notification_sent

    async def approve_ad(self, ad_id: UUID, principal: Principal) -> tuple[Ad, bool | None]:
        return await self._transition(ad_id, ModerationActionEnum.APPROVE, principal)

    async def reject_ad(self, ad_id: UUID, reason: str | None, principal: Principal) -> tuple[Ad, bool | None]:
        return await self._transition(ad_id, ModerationActionEnum.REJECT, principal, reason=reason)

    async def suspend_ad(self, ad_id: UUID, confirm: bool, principal: Principal) -> tuple[Ad, bool | None]:
        return await self._transition(ad_id, ModerationActionEnum.SUSPEND, principal, confirm=confirm)

    async def unsuspend_ad(self, ad_id: UUID, principal: Principal) -> tuple[Ad, bool | None]:
        return await self._transition(ad_id, ModerationActionEnum.UNSUSPEND, principal)

    async def get_ad(self, ad_id: UUID, principal: Principal | None) -> Ad:
        """Public visitors see published ads only; owners and moderators see any live ad."""
        ad = await self._get_live_ad(ad_id)
        is_owner = principal is not None and principal.id == ad.user_id
        if ad.status in PUBLIC_STATUSES:
            if not is_owner:
                await self.repository.increment_views(ad.id)
                await self.repository.refresh(ad)
            return ad
        if is_owner or (
            principal is not None
            and authorize_any(principal, MODERATION_PERMISSIONS) == AuthorizationDecision.ALLOWED
        ):
            return ad
        raise NotFoundException("Ad not found")

    async def list_public_ads(
        self,
        *,
        category_id: UUID | None,
        city_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        category_ids = None
        if category_id is not None:
            children = await self.categories_repository.list_categories(parent_id=category_id)
            category_ids = [category_id, *(child.id for child in children)]
        return await self.repository.list_public_ads(
            statuses=PUBLIC_STATUSES,
            category_ids=category_ids,
            city_id=city_id,
            limit=limit,
            offset=offset,
        )

    async def list_my_ads(
        self,
        principal: Principal,
        *,
        status: AdStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        return await self.repository.list_user_ads(principal.id, status=status, limit=limit, offset=offset)

    async def list_moderation_queue(
        self,
        principal: Principal,
        *,
        status: AdStatusEnum | None,
        include_deleted: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        """Admin listing; any ``ads.*`` permission opens it."""
        require_any_permission(principal, MODERATION_PERMISSIONS)
        return await self.repository.list_ads(
            status=status,
            include_deleted=include_deleted,
            limit=limit,
            offset=offset,
        )

    async def get_ad_history(self, ad_id: UUID, principal: Principal) -> list[ModerationEvent]:
        """Moderation events of an ad, deleted ads included."""
        ad = await self.repository.get_ad_by_id(ad_id, include_deleted=True)
        if ad is None:
            raise NotFoundException("Ad not found")
        if principal.id != ad.user_id:
            require_any_permission(principal, MODERATION_PERMISSIONS)
        return await self.audit_repository.list_moderation_events(ad.id)


async def get_ads_service(session: AsyncSession = Depends(get_db_session)) -> AdsService:
    """Dependency provider for ads service."""
    categories_repository = CategoriesRepository(session)
    return AdsService(
        repository=AdsRepository(session),
        categories_repository=categories_repository,
        audit_repository=AuditRepository(session),
        notifier=AdRejectionNotifier(session),
        resolver=CategorySchemaResolver(categories_repository),
    )
