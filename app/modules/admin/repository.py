"""Admin repository layer."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AdStatusEnum, ReportStatusEnum, RoleEnum
from app.modules.ads.models import Ad
from app.modules.identity.models import Role, User
from app.modules.reports.models import Report
from app.shared.utils import utc_now


class AdminRepository:
    """Aggregate queries for the admin dashboard."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_overview(self) -> dict[str, datetime | int]:
        ad_counts = await self._count_ads_by_status()
        role_counts = await self._count_users_by_role()

        return {
            "generated_at": utc_now(),
            "ads_total": sum(ad_counts.values()),
            "ads_pending_approval": ad_counts.get(AdStatusEnum.PENDING_APPROVAL, 0),
            "ads_approved": ad_counts.get(AdStatusEnum.APPROVED, 0),
            "ads_rejected": ad_counts.get(AdStatusEnum.REJECTED, 0),
            "ads_suspended": ad_counts.get(AdStatusEnum.SUSPENDED, 0),
            "ads_expired": ad_counts.get(AdStatusEnum.EXPIRED, 0),
            "ads_draft": ad_counts.get(AdStatusEnum.DRAFT, 0),
            "reports_pending": await self._count_reports_by_status(ReportStatusEnum.PENDING),
            "users_total": sum(role_counts.values()),
            "users_blocked": await self._count_blocked_users(),
            "admins_total": role_counts.get(RoleEnum.ADMIN, 0) + role_counts.get(RoleEnum.SUPER_ADMIN, 0),
        }

    async def _count_ads_by_status(self) -> dict[AdStatusEnum, int]:
        stmt = select(Ad.status, func.count(Ad.id)).where(Ad.deleted_at.is_(None)).group_by(Ad.status)
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def _count_users_by_role(self) -> dict[RoleEnum, int]:
        stmt = (
            select(Role.name, func.count(User.id))
            .join(User, User.role_id == Role.id)
            .group_by(Role.name)
        )
        rows = (await self.session.execute(stmt)).all()
        return {role_name: int(count) for role_name, count in rows}

    async def _count_reports_by_status(self, status: ReportStatusEnum) -> int:
        stmt = select(func.count(Report.id)).where(Report.status == status)
        return int((await self.session.scalar(stmt)) or 0)

    async def _count_blocked_users(self) -> int:
        stmt = select(func.count(User.id)).where(User.is_blocked.is_(True))
        return int((await self.session.scalar(stmt)) or 0)
