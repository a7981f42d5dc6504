"""Category tree administration and metadata schema resolution."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import CategoryTypeEnum
from app.modules.audit.repository import AuditRepository
from app.modules.categories.models import Category
from app.modules.categories.repository import CategoriesRepository
from app.modules.categories.schema import MetadataSchema, get_schema
from app.modules.categories.schemas import CategoryCreate, CategoryUpdate
from app.modules.identity.principal import Principal
from app.modules.permissions.guard import require_permission
from app.modules.permissions.registry import CATEGORIES_MANAGE
from app.shared.exceptions import ConflictException, NotFoundException, ValidationFailedException
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


class CategorySchemaResolver:
    """Find the metadata schema a category inherits from its ancestors."""

    def __init__(self, repository: CategoriesRepository, max_depth: int | None = None) -> None:
        self.repository = repository
        self.max_depth = max_depth if max_depth is not None else settings.category_max_depth

    async def resolve_type(self, category: Category) -> CategoryTypeEnum | None:
        """Nearest declared type walking up from ``category`` itself."""
        visited: set[UUID] = set()
        current: Category | None = category
        hops = 0
        while current is not None:
            if current.id in visited:
                raise ConflictException("Category hierarchy contains a cycle")
            visited.add(current.id)

            if current.category_type is not None:
                return current.category_type
            if current.parent_id is None:
                return None

            hops += 1
            if hops > self.max_depth:
                raise ConflictException("Category hierarchy is too deep")
            current = await self.repository.get_category_by_id(current.parent_id, include_deleted=True)
        return None

    async def resolve(self, category: Category) -> MetadataSchema | None:
        """Schema for the category, or None for generic categories."""
        return get_schema(await self.resolve_type(category))


class CategoriesService:
    """Category CRUD gated by ``categories.manage``."""

    def __init__(
        self,
        repository: CategoriesRepository,
        audit_repository: AuditRepository,
        resolver: CategorySchemaResolver | None = None,
    ) -> None:
        self.repository = repository
        self.audit_repository = audit_repository
        self.resolver = resolver or CategorySchemaResolver(repository)

    async def list_categories(self, *, parent_id: UUID | None, roots_only: bool) -> list[Category]:
        return await self.repository.list_categories(parent_id=parent_id, roots_only=roots_only)

    async def get_category(self, category_id: UUID) -> Category:
        category = await self.repository.get_category_by_id(category_id)
        if category is None:
            raise NotFoundException("Category not found")
        return category

    async def get_category_schema(
        self,
        category_id: UUID,
    ) -> tuple[Category, CategoryTypeEnum | None, MetadataSchema | None]:
        category = await self.get_category(category_id)
        category_type = await self.resolver.resolve_type(category)
        return category, category_type, get_schema(category_type)

    def _ensure_type_on_root(self, category_type: CategoryTypeEnum | None, parent_id: UUID | None) -> None:
        if category_type is not None and parent_id is not None:
            raise ValidationFailedException.for_field(
                "category_type",
                "Only root categories may declare a category type",
                "not_root",
            )

    async def _ensure_valid_parent(self, category_id: UUID | None, parent_id: UUID) -> None:
        parent = await self.repository.get_category_by_id(parent_id)
        if parent is None:
            raise NotFoundException("Parent category not found")
        if category_id is None:
            return

        visited: set[UUID] = set()
        current: Category | None = parent
        while current is not None:
            if current.id == category_id:
                raise ConflictException("Category cannot be moved under itself or its descendant")
            if current.id in visited or current.parent_id is None:
                return
            visited.add(current.id)
            if len(visited) > self.resolver.max_depth:
                raise ConflictException("Category hierarchy is too deep")
            current = await self.repository.get_category_by_id(current.parent_id, include_deleted=True)

    async def create_category(self, payload: CategoryCreate, principal: Principal) -> Category:
        require_permission(principal, CATEGORIES_MANAGE)
        self._ensure_type_on_root(payload.category_type, payload.parent_id)
        if payload.parent_id is not None:
            await self._ensure_valid_parent(None, payload.parent_id)

        category = await self.repository.create_category(
            name=payload.name.strip(),
            icon=payload.icon,
            category_type=payload.category_type,
            parent_id=payload.parent_id,
        )
        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="categories.create",
            entity_type="category",
            entity_id=str(category.id),
            payload={"name": category.name, "category_type": category.category_type},
        )
        return category

    async def update_category(self, category_id: UUID, payload: CategoryUpdate, principal: Principal) -> Category:
        require_permission(principal, CATEGORIES_MANAGE)
        category = await self.get_category(category_id)
        provided = payload.model_fields_set

        parent_id = payload.parent_id if "parent_id" in provided else category.parent_id
        category_type = payload.category_type if "category_type" in provided else category.category_type
        self._ensure_type_on_root(category_type, parent_id)
        if parent_id is not None and parent_id != category.parent_id:
            await self._ensure_valid_parent(category.id, parent_id)

        if "name" in provided and payload.name is not None:
            category.name = payload.name.strip()
        if "icon" in provided:
            category.icon = payload.icon
        category.parent_id = parent_id
        category.category_type = category_type
        await self.repository.save(category)

        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="categories.update",
            entity_type="category",
            entity_id=str(category.id),
            payload={"fields": sorted(provided)},
        )
        return category

    async def delete_category(self, category_id: UUID, principal: Principal) -> None:
        require_permission(principal, CATEGORIES_MANAGE)
        category = await self.get_category(category_id)
        if await self.repository.count_live_children(category.id) > 0:
            raise ConflictException("Category still has subcategories")

        category.deleted_at = utc_now()
        await self.repository.save(category)
        await self.audit_repository.create_audit_log(
            actor_id=principal.id,
            action="categories.delete",
            entity_type="category",
            entity_id=str(category.id),
            payload={},
        )
        logger.info("Category %s deleted by %s", category.id, principal.id)


async def get_categories_service(session: AsyncSession = Depends(get_db_session)) -> CategoriesService:
    """Dependency provider for categories service."""
    repository = CategoriesRepository(session)
    return CategoriesService(
        repository=repository,
        audit_repository=AuditRepository(session),
        resolver=CategorySchemaResolver(repository),
    )
