"""Report ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import ReportStatusEnum, ReportTypeEnum


class Report(BaseModelMixin, Base):
    """Abuse flag raised against an ad or a message."""

    __tablename__ = "reports"

    type: Mapped[ReportTypeEnum] = mapped_column(
        SAEnum(ReportTypeEnum, name="report_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    ad_id: Mapped[UUID | None] = mapped_column(ForeignKey("ads.id", ondelete="SET NULL"), nullable=True, index=True)
    # Message threads live outside this service; only the id is kept.
    message_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    reporter_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ReportStatusEnum] = mapped_column(
        SAEnum(ReportStatusEnum, name="report_status_enum", native_enum=False),
        default=ReportStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
