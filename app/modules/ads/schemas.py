"""Ads schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.core.enums import AdConditionEnum, AdStatusEnum


class AdCreate(BaseModel):
    """Create ad request."""

    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=1, max_length=10000)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    category_id: UUID
    city_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    condition: AdConditionEnum | None = None
    show_email: bool = False
    show_phone: bool = True


class AdUpdate(BaseModel):
    """Partial ad update; ``version`` enables an optimistic concurrency check."""

    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=10000)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    category_id: UUID | None = None
    city_id: UUID | None = None
    metadata: dict[str, Any] | None = None
    condition: AdConditionEnum | None = None
    show_email: bool | None = None
    show_phone: bool | None = None
    version: int | None = Field(default=None, ge=1)


class AdRejectRequest(BaseModel):
    reason: str | None = None


class AdSuspendRequest(BaseModel):
    confirm: bool = False


class AdRead(BaseModel):
    """Ad response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    price: Decimal
    category_id: UUID
    city_id: UUID | None
    user_id: UUID
    status: AdStatusEnum
    metadata: dict[str, Any] = Field(validation_alias=AliasChoices("ad_metadata", "metadata"))
    condition: AdConditionEnum | None
    views: int
    is_premium: bool
    show_email: bool
    show_phone: bool
    rejection_reason: str | None
    version: int
    created_at: datetime
    updated_at: datetime


class AdTransitionRead(AdRead):
    """Ad after a moderation transition."""

    notification_sent: bool | None = None
