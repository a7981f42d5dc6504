"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine
from app.core.enums import CategoryTypeEnum, RoleEnum
from app.core.security import hash_password, verify_password
from app.modules.audit.repository import AuditRepository
from app.modules.categories.models import Category
from app.modules.identity.models import Role, User
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.service import IdentityService
from app.modules.permissions.registry import ADS_APPROVE, ADS_REJECT, REPORTS_VIEW
from app.modules.permissions.repository import PermissionsRepository
from app.modules.permissions.service import PermissionsService

DEMO_PASSWORD = "DemoPass123!"

DEMO_SUPER_ADMIN_EMAIL = "demo-super-admin@adboard.dev"
DEMO_ADMIN_EMAIL = "demo-moderator@adboard.dev"
DEMO_USER_EMAIL = "demo-user@adboard.dev"

DEMO_MODERATOR_PERMISSIONS = (ADS_APPROVE, ADS_REJECT, REPORTS_VIEW)

DEMO_ROOT_CATEGORIES: tuple[tuple[str, str, CategoryTypeEnum], ...] = (
    ("Real estate", "home", CategoryTypeEnum.REAL_ESTATE),
    ("Vehicles", "car", CategoryTypeEnum.VEHICLES),
    ("Services", "wrench", CategoryTypeEnum.SERVICES),
    ("Jobs", "briefcase", CategoryTypeEnum.JOBS),
    ("Home & personal", "sofa", CategoryTypeEnum.PERSONAL_HOME),
    ("Miscellaneous", "box", CategoryTypeEnum.MISC),
)
DEMO_SUBCATEGORIES: dict[str, tuple[str, ...]] = {
    "Real estate": ("Apartments", "Houses"),
    "Vehicles": ("Cars", "Motorcycles"),
}


@dataclass(slots=True)
class SeedStats:
    roles_created: int = 0
    permissions_created: int = 0
    users_created: int = 0
    users_updated: int = 0
    grants_created: int = 0
    categories_created: int = 0


async def _ensure_user(
    session: AsyncSession,
    *,
    email: str,
    name: str,
    role_name: RoleEnum,
) -> tuple[User, bool]:
    role = await session.scalar(select(Role).where(Role.name == role_name))
    if role is None:
        raise RuntimeError(f"Role {role_name} was not found after ensure_default_roles")

    user = await session.scalar(
        select(User).options(selectinload(User.role)).where(User.email == email),
    )
    created = False
    if user is None:
        user = User(
            email=email,
            password_hash=hash_password(DEMO_PASSWORD),
            name=name,
            role_id=role.id,
        )
        session.add(user)
        created = True
    else:
        if not verify_password(DEMO_PASSWORD, user.password_hash):
            user.password_hash = hash_password(DEMO_PASSWORD)
        if user.role_id != role.id:
            user.role_id = role.id
        user.is_blocked = False
        user.suspended_until = None

    await session.flush()
    await session.refresh(user, attribute_names=["role"])
    return user, created


async def _ensure_moderator_grants(
    session: AsyncSession,
    *,
    super_admin: User,
    moderator: User,
) -> int:
    repository = PermissionsRepository(session)
    created = 0
    for name in DEMO_MODERATOR_PERMISSIONS:
        permission = await repository.get_permission_by_name(name)
        if permission is None:
            raise RuntimeError(f"Permission {name} was not found after ensure_catalog")
        if await repository.grant(moderator.id, permission.id, super_admin.id):
            created += 1
    return created


async def _ensure_category(
    session: AsyncSession,
    *,
    name: str,
    icon: str | None,
    category_type: CategoryTypeEnum | None,
    parent: Category | None,
) -> tuple[Category, bool]:
    stmt = select(Category).where(Category.name == name, Category.deleted_at.is_(None))
    stmt = stmt.where(Category.parent_id.is_(None) if parent is None else Category.parent_id == parent.id)
    category = await session.scalar(stmt)
    if category is not None:
        return category, False

    category = Category(
        name=name,
        icon=icon,
        category_type=category_type,
        parent_id=parent.id if parent is not None else None,
    )
    session.add(category)
    await session.flush()
    return category, True


async def _ensure_categories(session: AsyncSession) -> int:
    created = 0
    for name, icon, category_type in DEMO_ROOT_CATEGORIES:
        root, root_created = await _ensure_category(
            session,
            name=name,
            icon=icon,
            category_type=category_type,
            parent=None,
        )
        created += int(root_created)
        for child_name in DEMO_SUBCATEGORIES.get(name, ()):
            _, child_created = await _ensure_category(
                session,
                name=child_name,
                icon=None,
                category_type=None,
                parent=root,
            )
            created += int(child_created)
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            identity_repository = IdentityRepository(session)
            permissions_repository = PermissionsRepository(session)
            audit_repository = AuditRepository(session)

            roles_before = len((await session.scalars(select(Role))).all())
            await IdentityService(identity_repository, permissions_repository, audit_repository).ensure_default_roles()
            stats.roles_created = len((await session.scalars(select(Role))).all()) - roles_before
            stats.permissions_created = await PermissionsService(
                permissions_repository,
                identity_repository,
                audit_repository,
            ).ensure_catalog()

            super_admin, super_admin_created = await _ensure_user(
                session,
                email=DEMO_SUPER_ADMIN_EMAIL,
                name="Demo Super Admin",
                role_name=RoleEnum.SUPER_ADMIN,
            )
            moderator, moderator_created = await _ensure_user(
                session,
                email=DEMO_ADMIN_EMAIL,
                name="Demo Moderator",
                role_name=RoleEnum.ADMIN,
            )
            _, user_created = await _ensure_user(
                session,
                email=DEMO_USER_EMAIL,
                name="Demo User",
                role_name=RoleEnum.USER,
            )

            stats.users_created = sum([super_admin_created, moderator_created, user_created])
            stats.users_updated = 3 - stats.users_created

            stats.grants_created = await _ensure_moderator_grants(
                session,
                super_admin=super_admin,
                moderator=moderator,
            )
            stats.categories_created = await _ensure_categories(session)

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for AdBoard (roles, permission catalog, "
            "demo accounts, moderator grants, root categories)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Roles created: {stats.roles_created}")
    print(f"- Permissions created: {stats.permissions_created}")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Moderator grants created: {stats.grants_created}")
    print(f"- Categories created: {stats.categories_created}")
    print("")
    print("Demo credentials (non-production only):")
    print(f"- super admin: {DEMO_SUPER_ADMIN_EMAIL} / {DEMO_PASSWORD}")
    print(f"- moderator:   {DEMO_ADMIN_EMAIL} / {DEMO_PASSWORD}")
    print(f"- user:        {DEMO_USER_EMAIL} / {DEMO_PASSWORD}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
