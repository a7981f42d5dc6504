"""Reports business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ReportStatusEnum, ReportTypeEnum
from app.modules.ads.repository import AdsRepository
from app.modules.audit.repository import AuditRepository
from app.modules.identity.principal import Principal
from app.modules.permissions.guard import require_permission
from app.modules.permissions.registry import REPORTS_MANAGE, REPORTS_VIEW
from app.modules.reports.models import Report
from app.modules.reports.repository import ReportsRepository
from app.modules.reports.schemas import ReportCreate, ReportStatusUpdate
from app.shared.exceptions import ConflictException, NotFoundException
from app.shared.utils import normalize_text, utc_now

CLOSED_STATUSES = (ReportStatusEnum.RESOLVED, ReportStatusEnum.DISMISSED)


class ReportsService:
    """Reports domain service."""

    def __init__(
        self,
        repository: ReportsRepository,
        ads_repository: AdsRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.ads_repository = ads_repository
        self.audit_repository = audit_repository

    async def create_report(self, payload: ReportCreate, principal: Principal) -> Report:
        """File a report; one open report per reporter and target."""
        ad_id = payload.ad_id if payload.type == ReportTypeEnum.AD else None
        message_id = payload.message_id if payload.type == ReportTypeEnum.MESSAGE else None
        if ad_id is not None:
            ad = await self.ads_repository.get_ad_by_id(ad_id)
            if ad is None:
                raise NotFoundException("Ad not found")

        existing = await self.repository.find_open_report(
            principal.id,
            payload.type,
            ad_id=ad_id,
            message_id=message_id,
        )
        if existing is not None:
            raise ConflictException("You already have an open report for this item")

        return await self.repository.create_report(
            type=payload.type,
            ad_id=ad_id,
            message_id=message_id,
            reporter_id=principal.id,
            reason=payload.reason.strip(),
        )

    async def list_reports(
        self,
        principal: Principal,
        *,
        status: ReportStatusEnum | None,
        type: ReportTypeEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Report], int]:
        require_permission(principal, REPORTS_VIEW)
        return await self.repository.list_reports(
            status=status,
            type=type,
            reporter_id=None,
            limit=limit,
            offset=offset,
        )

    async def list_reports_by_reporter(
        self,
        reporter_id: UUID,
        principal: Principal,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[Report], int]:
        if reporter_id != principal.id:
            require_permission(principal, REPORTS_VIEW)
        return await self.repository.list_reports(
            status=None,
            type=None,
            reporter_id=reporter_id,
            limit=limit,
            offset=offset,
        )

    async def get_report(self, report_id: UUID, principal: Principal) -> Report:
        require_permission(principal, REPORTS_VIEW)
        report = await self.repository.get_report_by_id(report_id)
        if report is None:
            raise NotFoundException("Report not found")
        return report

    async def update_status(self, report_id: UUID, payload: ReportStatusUpdate, principal: Principal) -> Report:
        """Change status and notes; closing records who closed it."""
        require_permission(principal, REPORTS_MANAGE)
        report = await self.repository.get_report_by_id(report_id)
        if report is None:
            raise NotFoundException("Report not found")

        previous_status = report.status
        report.status = payload.status
        if "admin_notes" in payload.model_fields_set:
            report.admin_notes = normalize_text(payload.admin_notes)
        if payload.status in CLOSED_STATUSES:
            report.resolved_by_id = principal.id
            report.resolved_at = utc_now()
        else:
            report.resolved_by_id = None
            report.resolved_at = None
        await self.repository.save(report)

        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="reports.status.change",
            entity_type="report",
            entity_id=str(report.id),
            payload={"from": str(previous_status), "to": str(payload.status)},
        )
        return report


async def get_reports_service(session: AsyncSession = Depends(get_db_session)) -> ReportsService:
    """Dependency provider for reports service."""
    return ReportsService(
        repository=ReportsRepository(session),
        ads_repository=AdsRepository(session),
        audit_repository=AuditRepository(session),
    )
