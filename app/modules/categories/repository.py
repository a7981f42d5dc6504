"""Categories repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import CategoryTypeEnum
from app.modules.categories.models import Category


class CategoriesRepository:
    """DB operations for the category tree."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_category_by_id(self, category_id: UUID, *, include_deleted: bool = False) -> Category | None:
        stmt = select(Category).where(Category.id == category_id)
        if not include_deleted:
            stmt = stmt.where(Category.deleted_at.is_(None))
        return await self.session.scalar(stmt)

    async def list_categories(self, *, parent_id: UUID | None = None, roots_only: bool = False) -> list[Category]:
        stmt = select(Category).where(Category.deleted_at.is_(None))
        if roots_only:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif parent_id is not None:
            stmt = stmt.where(Category.parent_id == parent_id)
        stmt = stmt.order_by(Category.name.asc())
        return list((await self.session.scalars(stmt)).all())

    async def count_live_children(self, category_id: UUID) -> int:
        stmt = select(func.count(Category.id)).where(
            Category.parent_id == category_id,
            Category.deleted_at.is_(None),
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def create_category(
        self,
        name: str,
        icon: str | None,
        category_type: CategoryTypeEnum | None,
        parent_id: UUID | None,
    ) -> Category:
        category = Category(name=name, icon=icon, category_type=category_type, parent_id=parent_id)
        self.session.add(category)
        await self.session.flush()
        return category

    async def save(self, category: Category) -> Category:
        await self.session.flush()
        return category
