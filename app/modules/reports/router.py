"""Reports API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import ReportStatusEnum, ReportTypeEnum
from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal
from app.modules.reports.schemas import ReportCreate, ReportRead, ReportStatusUpdate
from app.modules.reports.service import ReportsService, get_reports_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    service: ReportsService = Depends(get_reports_service),
    principal: Principal = Depends(get_current_principal),
) -> ReportRead:
    """Report an ad or a message."""
    report = await service.create_report(payload, principal)
    return ReportRead.model_validate(report)


@router.get("", response_model=Page[ReportRead])
async def list_reports(
    status_filter: ReportStatusEnum | None = Query(default=None, alias="status"),
    type_filter: ReportTypeEnum | None = Query(default=None, alias="type"),
    pagination=Depends(get_pagination_params),
    service: ReportsService = Depends(get_reports_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[ReportRead]:
    items, total = await service.list_reports(
        principal,
        status=status_filter,
        type=type_filter,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [ReportRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/user/{user_id}", response_model=Page[ReportRead])
async def list_reports_by_reporter(
    user_id: UUID,
    pagination=Depends(get_pagination_params),
    service: ReportsService = Depends(get_reports_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[ReportRead]:
    items, total = await service.list_reports_by_reporter(
        user_id,
        principal,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [ReportRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{report_id}", response_model=ReportRead)
async def get_report(
    report_id: UUID,
    service: ReportsService = Depends(get_reports_service),
    principal: Principal = Depends(get_current_principal),
) -> ReportRead:
    report = await service.get_report(report_id, principal)
    return ReportRead.model_validate(report)


@router.patch("/{report_id}/status", response_model=ReportRead)
async def update_report_status(
    report_id: UUID,
    payload: ReportStatusUpdate,
    service: ReportsService = Depends(get_reports_service),
    principal: Principal = Depends(get_current_principal),
) -> ReportRead:
    """Change report status (reports.manage)."""
    report = await service.update_status(report_id, payload, principal)
    return ReportRead.model_validate(report)
