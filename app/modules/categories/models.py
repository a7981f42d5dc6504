"""Category ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, SoftDeleteMixin
from app.core.enums import CategoryTypeEnum


class Category(BaseModelMixin, SoftDeleteMixin, Base):
    """Node of the category tree; roots carry the metadata type."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    category_type: Mapped[CategoryTypeEnum | None] = mapped_column(
        SAEnum(CategoryTypeEnum, name="category_type_enum", native_enum=False),
        nullable=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
