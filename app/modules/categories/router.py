"""Categories API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.modules.categories.schemas import CategoryCreate, CategoryRead, CategorySchemaRead, CategoryUpdate
from app.modules.categories.service import CategoriesService, get_categories_service
from app.modules.identity.principal import Principal
from app.modules.identity.service import get_current_principal
from app.shared.utils import utc_now

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryRead])
async def list_categories(
    parent_id: UUID | None = Query(default=None),
    roots_only: bool = Query(default=False),
    service: CategoriesService = Depends(get_categories_service),
) -> list[CategoryRead]:
    """List live categories."""
    items = await service.list_categories(parent_id=parent_id, roots_only=roots_only)
    return [CategoryRead.model_validate(item) for item in items]


@router.get("/{category_id}", response_model=CategoryRead)
async def get_category(
    category_id: UUID,
    service: CategoriesService = Depends(get_categories_service),
) -> CategoryRead:
    category = await service.get_category(category_id)
    return CategoryRead.model_validate(category)


@router.get("/{category_id}/schema", response_model=CategorySchemaRead)
async def get_category_schema(
    category_id: UUID,
    service: CategoriesService = Depends(get_categories_service),
) -> CategorySchemaRead:
    """Metadata field rules inherited by the category."""
    category, category_type, schema = await service.get_category_schema(category_id)
    return CategorySchemaRead.build(category.id, category_type, schema, utc_now().date())


@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    service: CategoriesService = Depends(get_categories_service),
    principal: Principal = Depends(get_current_principal),
) -> CategoryRead:
    category = await service.create_category(payload, principal)
    return CategoryRead.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryRead)
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    service: CategoriesService = Depends(get_categories_service),
    principal: Principal = Depends(get_current_principal),
) -> CategoryRead:
    category = await service.update_category(category_id, payload, principal)
    return CategoryRead.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID,
    service: CategoriesService = Depends(get_categories_service),
    principal: Principal = Depends(get_current_principal),
) -> None:
    await service.delete_category(category_id, principal)
