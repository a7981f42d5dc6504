"""Reports repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ReportStatusEnum, ReportTypeEnum
from app.modules.reports.models import Report
from app.shared.pagination import fetch_page

OPEN_STATUSES = (ReportStatusEnum.PENDING, ReportStatusEnum.REVIEWED)


class ReportsRepository:
    """DB operations for abuse reports."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_report(
        self,
        *,
        type: ReportTypeEnum,
        ad_id: UUID | None,
        message_id: UUID | None,
        reporter_id: UUID,
        reason: str,
    ) -> Report:
        report = Report(
            type=type,
            ad_id=ad_id,
            message_id=message_id,
            reporter_id=reporter_id,
            reason=reason,
            status=ReportStatusEnum.PENDING,
        )
        self.session.add(report)
        await self.session.flush()
        return report

    async def get_report_by_id(self, report_id: UUID) -> Report | None:
        stmt = select(Report).where(Report.id == report_id)
        return await self.session.scalar(stmt)

    async def find_open_report(
        self,
        reporter_id: UUID,
        type: ReportTypeEnum,
        *,
        ad_id: UUID | None,
        message_id: UUID | None,
    ) -> Report | None:
        stmt = select(Report).where(
            Report.reporter_id == reporter_id,
            Report.type == type,
            Report.status.in_(OPEN_STATUSES),
        )
        if type == ReportTypeEnum.AD:
            stmt = stmt.where(Report.ad_id == ad_id)
        else:
            stmt = stmt.where(Report.message_id == message_id)
        return await self.session.scalar(stmt.limit(1))

    async def list_reports(
        self,
        *,
        status: ReportStatusEnum | None,
        type: ReportTypeEnum | None,
        reporter_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Report], int]:
        base_stmt: Select[tuple[Report]] = select(Report)
        if status is not None:
            base_stmt = base_stmt.where(Report.status == status)
        if type is not None:
            base_stmt = base_stmt.where(Report.type == type)
        if reporter_id is not None:
            base_stmt = base_stmt.where(Report.reporter_id == reporter_id)
        return await fetch_page(
            self.session,
            base_stmt,
            order_by=Report.created_at.desc(),
            limit=limit,
            offset=offset,
        )

    async def count_by_status(self, status: ReportStatusEnum) -> int:
        stmt = select(func.count(Report.id)).where(Report.status == status)
        return int((await self.session.scalar(stmt)) or 0)

    async def save(self, report: Report) -> Report:
        await self.session.flush()
        return report
