"""Ad ORM models."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin
from app.core.enums import AdConditionEnum, AdStatusEnum


class Ad(BaseModelMixin, SoftDeleteMixin, Base):
    """Classified ad owned by a user and moderated by admins."""

    __tablename__ = "ads"
    __table_args__ = (CheckConstraint("price >= 0", name="price_non_negative"),)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    category_id: Mapped[UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Null means the ad is shown in every city.
    city_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True, index=True)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[AdStatusEnum] = mapped_column(
        SAEnum(AdStatusEnum, name="ad_status_enum", native_enum=False),
        default=AdStatusEnum.PENDING_APPROVAL,
        nullable=False,
        index=True,
    )
    ad_metadata: Mapped[dict] = mapped_column("metadata", JSONB, default=dict, nullable=False)
    condition: Mapped[AdConditionEnum | None] = mapped_column(
        SAEnum(AdConditionEnum, name="ad_condition_enum", native_enum=False),
        nullable=True,
    )
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    show_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    show_phone: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
