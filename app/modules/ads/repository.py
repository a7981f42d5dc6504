"""Ads repository layer."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.enums import AdStatusEnum
from app.modules.ads.models import Ad
from app.shared.exceptions import ConflictException
from app.shared.pagination import fetch_page


class AdsRepository:
    """DB operations for ads."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_ad(self, **fields) -> Ad:
        ad = Ad(**fields)
        self.session.add(ad)
        await self.session.flush()
        return ad

    async def get_ad_by_id(self, ad_id: UUID, *, include_deleted: bool = False) -> Ad | None:
        stmt = select(Ad).where(Ad.id == ad_id)
        if not include_deleted:
            stmt = stmt.where(Ad.deleted_at.is_(None))
        return await self.session.scalar(stmt)

    async def save(self, ad: Ad) -> Ad:
        """Flush content changes guarded by the row version."""
        try:
            await self.session.flush()
        except StaleDataError as exc:
            raise ConflictException("Ad was modified concurrently, reload and retry") from exc
        return ad

    async def refresh(self, ad: Ad) -> Ad:
        await self.session.refresh(ad)
        return ad

    async def compare_and_set_status(
        self,
        ad_id: UUID,
        *,
        from_status: AdStatusEnum,
        to_status: AdStatusEnum,
        rejection_reason: str | None,
    ) -> bool:
        """Atomically move a live ad from ``from_status``; False when it was not there."""
        stmt = (
            update(Ad)
            .where(
                Ad.id == ad_id,
                Ad.status == from_status,
                Ad.deleted_at.is_(None),
            )
            .values(
                status=to_status,
                rejection_reason=rejection_reason,
                version=Ad.version + 1,
                updated_at=func.now(),
            )
            .returning(Ad.id)
            .execution_options(synchronize_session=False)
        )
        updated_id = (await self.session.execute(stmt)).scalar_one_or_none()
        return updated_id is not None

    async def soft_delete(self, ad_id: UUID, *, deleted_by_id: UUID, deleted_at: datetime) -> bool:
        """Mark a live ad deleted; False when it was already gone."""
        stmt = (
            update(Ad)
            .where(Ad.id == ad_id, Ad.deleted_at.is_(None))
            .values(
                deleted_at=deleted_at,
                deleted_by_id=deleted_by_id,
                version=Ad.version + 1,
                updated_at=deleted_at,
            )
            .returning(Ad.id)
            .execution_options(synchronize_session=False)
        )
        deleted_id = (await self.session.execute(stmt)).scalar_one_or_none()
        return deleted_id is not None

    async def increment_views(self, ad_id: UUID) -> None:
        stmt = (
            update(Ad)
            .where(Ad.id == ad_id)
            .values(views=Ad.views + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def list_public_ads(
        self,
        *,
        statuses: Iterable[AdStatusEnum],
        category_ids: list[UUID] | None,
        city_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        base_stmt: Select[tuple[Ad]] = select(Ad).where(
            Ad.status.in_(list(statuses)),
            Ad.deleted_at.is_(None),
        )
        if category_ids:
            base_stmt = base_stmt.where(Ad.category_id.in_(category_ids))
        if city_id is not None:
            base_stmt = base_stmt.where(or_(Ad.city_id == city_id, Ad.city_id.is_(None)))
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=(Ad.is_premium.desc(), Ad.created_at.desc()),
            limit=limit,
            offset=offset,
        )

    async def list_user_ads(
        self,
        user_id: UUID,
        *,
        status: AdStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        base_stmt: Select[tuple[Ad]] = select(Ad).where(Ad.user_id == user_id, Ad.deleted_at.is_(None))
        if status is not None:
            base_stmt = base_stmt.where(Ad.status == status)
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=Ad.created_at.desc(),
            limit=limit,
            offset=offset,
        )

    async def list_ads(
        self,
        *,
        status: AdStatusEnum | None,
        include_deleted: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Ad], int]:
        base_stmt: Select[tuple[Ad]] = select(Ad)
        if status is not None:
            base_stmt = base_stmt.where(Ad.status == status)
        if not include_deleted:
            base_stmt = base_stmt.where(Ad.deleted_at.is_(None))
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=Ad.created_at.asc(),
            limit=limit,
            offset=offset,
        )

    async def count_by_status(self) -> dict[AdStatusEnum, int]:
        stmt = select(Ad.status, func.count(Ad.id)).where(Ad.deleted_at.is_(None)).group_by(Ad.status)
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}
