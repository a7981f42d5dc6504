"""Reports schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import ReportStatusEnum, ReportTypeEnum


class ReportCreate(BaseModel):
    """Create report request."""

    type: ReportTypeEnum
    ad_id: UUID | None = None
    message_id: UUID | None = None
    reason: str = Field(min_length=1, max_length=2000)

    @model_validator(mode="after")
    def validate_target(self) -> "ReportCreate":
        if self.type == ReportTypeEnum.AD and self.ad_id is None:
            raise ValueError("ad_id is required for ad reports")
        if self.type == ReportTypeEnum.MESSAGE and self.message_id is None:
            raise ValueError("message_id is required for message reports")
        return self


class ReportStatusUpdate(BaseModel):
    """Change report status request."""

    status: ReportStatusEnum
    admin_notes: str | None = Field(default=None, max_length=4000)


class ReportRead(BaseModel):
    """Report response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: ReportTypeEnum
    ad_id: UUID | None
    message_id: UUID | None
    reporter_id: UUID
    reason: str
    status: ReportStatusEnum
    admin_notes: str | None
    resolved_by_id: UUID | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime
