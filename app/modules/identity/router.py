"""Identity API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import RoleEnum
from app.modules.identity.principal import Principal
from app.modules.identity.schemas import (
    LoginRequest,
    RefreshRequest,
    TokenPair,
    UserCreate,
    UserRead,
    UserRoleUpdate,
    UserSuspendRequest,
)
from app.modules.identity.service import (
    IdentityService,
    get_current_principal,
    get_current_user,
    get_identity_service,
)
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/auth/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserCreate,
    service: IdentityService = Depends(get_identity_service),
) -> UserRead:
    """Register a new account."""
    user = await service.register(payload)
    return UserRead.model_validate(user)


@router.post("/auth/login", response_model=TokenPair)
async def login(
    payload: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Sign in by email/password and return JWT token pair."""
    return await service.login(payload)


@router.post("/auth/refresh", response_model=TokenPair)
async def refresh_tokens(
    payload: RefreshRequest,
    service: IdentityService = Depends(get_identity_service),
) -> TokenPair:
    """Rotate refresh token and issue new token pair."""
    return await service.refresh_tokens(payload.refresh_token)


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of authenticated user."""
    return UserRead.model_validate(current_user)


@router.get("/users", response_model=Page[UserRead])
async def list_users(
    role: RoleEnum | None = Query(default=None),
    is_blocked: bool | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> Page[UserRead]:
    """List accounts (users.view)."""
    items, total = await service.list_users(
        principal,
        role_name=role,
        is_blocked=is_blocked,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    serialized = [UserRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Return account details."""
    user = await service.get_user(user_id, principal)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}/block", response_model=UserRead)
async def block_user(
    user_id: UUID,
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Block account (users.block)."""
    user = await service.set_blocked(user_id, True, principal)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}/unblock", response_model=UserRead)
async def unblock_user(
    user_id: UUID,
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Unblock account (users.block)."""
    user = await service.set_blocked(user_id, False, principal)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}/suspend", response_model=UserRead)
async def suspend_user(
    user_id: UUID,
    payload: UserSuspendRequest,
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Suspend account until a moment (users.suspend)."""
    user = await service.suspend(user_id, payload.until, principal)
    return UserRead.model_validate(user)


@router.patch("/users/{user_id}/role", response_model=UserRead)
async def change_user_role(
    user_id: UUID,
    payload: UserRoleUpdate,
    service: IdentityService = Depends(get_identity_service),
    principal: Principal = Depends(get_current_principal),
) -> UserRead:
    """Change account role (super admin only)."""
    user = await service.change_role(user_id, payload.role, principal)
    return UserRead.model_validate(user)
