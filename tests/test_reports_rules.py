from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from app.core.enums import ReportStatusEnum, ReportTypeEnum, RoleEnum
from app.modules.identity.principal import Principal
from app.modules.permissions.registry import REPORTS_MANAGE, REPORTS_VIEW
from app.modules.reports.repository import OPEN_STATUSES
from app.modules.reports.schemas import ReportCreate, ReportStatusUpdate
from app.modules.reports.service import ReportsService
from app.shared.exceptions import ConflictException, ForbiddenException, NotFoundException


@dataclass
class FakeReport:
    id: UUID
    type: ReportTypeEnum
    ad_id: UUID | None
    message_id: UUID | None
    reporter_id: UUID
    reason: str
    status: ReportStatusEnum = ReportStatusEnum.PENDING
    admin_notes: str | None = None
    resolved_by_id: UUID | None = None
    resolved_at: datetime | None = None


class FakeReportsRepository:
    def __init__(self) -> None:
        self.reports: dict[UUID, FakeReport] = {}

    async def create_report(self, *, type, ad_id, message_id, reporter_id, reason) -> FakeReport:
        report = FakeReport(
            id=uuid4(),
            type=type,
            ad_id=ad_id,
            message_id=message_id,
            reporter_id=reporter_id,
            reason=reason,
        )
        self.reports[report.id] = report
        return report

    async def get_report_by_id(self, report_id: UUID):
        return self.reports.get(report_id)

    async def find_open_report(self, reporter_id, type, *, ad_id, message_id):
        for report in self.reports.values():
            if (
                report.reporter_id == reporter_id
                and report.type == type
                and report.status in OPEN_STATUSES
                and report.ad_id == ad_id
                and report.message_id == message_id
            ):
                return report
        return None

    async def list_reports(self, *, status, type, reporter_id, limit, offset):
        items = [
            report
            for report in self.reports.values()
            if (status is None or report.status == status)
            and (type is None or report.type == type)
            and (reporter_id is None or report.reporter_id == reporter_id)
        ]
        return items[offset : offset + limit], len(items)

    async def save(self, report):
        return report


class FakeAdsRepository:
    def __init__(self, *ad_ids: UUID) -> None:
        self.ad_ids = set(ad_ids)

    async def get_ad_by_id(self, ad_id: UUID, *, include_deleted: bool = False):
        return object() if ad_id in self.ad_ids else None


class FakeAuditRepository:
    def __init__(self) -> None:
        self.logs: list[dict] = []

    async def create_audit_log(self, **kwargs) -> None:
        self.logs.append(kwargs)


def _build(*ad_ids: UUID) -> tuple[ReportsService, FakeReportsRepository, FakeAuditRepository]:
    repository = FakeReportsRepository()
    audit = FakeAuditRepository()
    return ReportsService(repository, FakeAdsRepository(*ad_ids), audit), repository, audit


def _user() -> Principal:
    return Principal.build(uuid4(), RoleEnum.USER)


def test_report_target_must_match_type() -> None:
    with pytest.raises(ValidationError):
        ReportCreate(type=ReportTypeEnum.AD, message_id=uuid4(), reason="Spam")
    with pytest.raises(ValidationError):
        ReportCreate(type=ReportTypeEnum.MESSAGE, ad_id=uuid4(), reason="Spam")


@pytest.mark.asyncio
async def test_report_against_missing_ad_is_not_found() -> None:
    service, _, _ = _build()
    with pytest.raises(NotFoundException):
        await service.create_report(ReportCreate(type=ReportTypeEnum.AD, ad_id=uuid4(), reason="Spam"), _user())


@pytest.mark.asyncio
async def test_duplicate_open_report_is_a_conflict() -> None:
    ad_id = uuid4()
    service, _, _ = _build(ad_id)
    reporter = _user()
    payload = ReportCreate(type=ReportTypeEnum.AD, ad_id=ad_id, reason=" Looks like a scam ")

    report = await service.create_report(payload, reporter)
    assert report.reason == "Looks like a scam"
    assert report.status == ReportStatusEnum.PENDING

    with pytest.raises(ConflictException):
        await service.create_report(payload, reporter)

    # Another reporter may still flag the same ad.
    await service.create_report(payload, _user())


@pytest.mark.asyncio
async def test_message_reports_ignore_ad_id() -> None:
    service, _, _ = _build()
    report = await service.create_report(
        ReportCreate(type=ReportTypeEnum.MESSAGE, ad_id=uuid4(), message_id=uuid4(), reason="Abusive"),
        _user(),
    )
    assert report.ad_id is None
    assert report.message_id is not None


@pytest.mark.asyncio
async def test_closing_a_report_records_who_closed_it() -> None:
    ad_id = uuid4()
    service, _, audit = _build(ad_id)
    report = await service.create_report(ReportCreate(type=ReportTypeEnum.AD, ad_id=ad_id, reason="Spam"), _user())
    manager = Principal.build(uuid4(), RoleEnum.ADMIN, {REPORTS_MANAGE})

    await service.update_status(
        report.id,
        ReportStatusUpdate(status=ReportStatusEnum.RESOLVED, admin_notes="  Ad removed  "),
        manager,
    )
    assert report.resolved_by_id == manager.id
    assert report.resolved_at is not None
    assert report.admin_notes == "Ad removed"
    assert audit.logs[-1]["action"] == "reports.status.change"

    await service.update_status(report.id, ReportStatusUpdate(status=ReportStatusEnum.REVIEWED), manager)
    assert report.resolved_by_id is None
    assert report.resolved_at is None
    assert report.admin_notes == "Ad removed"


@pytest.mark.asyncio
async def test_report_administration_needs_permissions() -> None:
    ad_id = uuid4()
    service, _, _ = _build(ad_id)
    reporter = _user()
    report = await service.create_report(ReportCreate(type=ReportTypeEnum.AD, ad_id=ad_id, reason="Spam"), reporter)
    viewer = Principal.build(uuid4(), RoleEnum.ADMIN, {REPORTS_VIEW})

    with pytest.raises(ForbiddenException):
        await service.update_status(report.id, ReportStatusUpdate(status=ReportStatusEnum.DISMISSED), viewer)
    with pytest.raises(ForbiddenException):
        await service.list_reports(reporter, status=None, type=None, limit=20, offset=0)

    items, total = await service.list_reports(viewer, status=ReportStatusEnum.PENDING, type=None, limit=20, offset=0)
    assert total == 1
    assert (await service.get_report(report.id, viewer)).id == report.id


@pytest.mark.asyncio
async def test_reporters_see_their_own_reports() -> None:
    ad_id = uuid4()
    service, _, _ = _build(ad_id)
    reporter = _user()
    await service.create_report(ReportCreate(type=ReportTypeEnum.AD, ad_id=ad_id, reason="Spam"), reporter)

    items, total = await service.list_reports_by_reporter(reporter.id, reporter, limit=20, offset=0)
    assert total == 1
    with pytest.raises(ForbiddenException):
        await service.list_reports_by_reporter(reporter.id, _user(), limit=20, offset=0)
