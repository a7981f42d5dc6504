"""Audit ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import AccessPathEnum, AdStatusEnum, ModerationActionEnum, RoleEnum


class AuditLog(BaseModelMixin, Base):
    """Immutable admin action journal entry."""

    __tablename__ = "audit_logs"

    actor_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payload: Mapped[dict] = mapped_column(JSONB, default=dict, nullable=False)


class ModerationEvent(BaseModelMixin, Base):
    """Who changed an ad, how, and through which permission path."""

    __tablename__ = "moderation_events"

    ad_id: Mapped[UUID] = mapped_column(ForeignKey("ads.id", ondelete="CASCADE"), nullable=False, index=True)
    action: Mapped[ModerationActionEnum] = mapped_column(
        SAEnum(ModerationActionEnum, name="moderation_action_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    from_status: Mapped[AdStatusEnum | None] = mapped_column(
        SAEnum(AdStatusEnum, name="ad_status_enum", native_enum=False),
        nullable=True,
    )
    to_status: Mapped[AdStatusEnum] = mapped_column(
        SAEnum(AdStatusEnum, name="ad_status_enum", native_enum=False),
        nullable=False,
    )
    actor_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    actor_role: Mapped[RoleEnum] = mapped_column(
        SAEnum(RoleEnum, name="role_enum", native_enum=False),
        nullable=False,
    )
    permission_used: Mapped[str | None] = mapped_column(String(128), nullable=True)
    access_path: Mapped[AccessPathEnum] = mapped_column(
        SAEnum(AccessPathEnum, name="access_path_enum", native_enum=False),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
