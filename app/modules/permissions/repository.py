"""Permissions repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.permissions.models import Permission, PermissionGrant
from app.shared.utils import utc_now


class PermissionsRepository:
    """DB operations for permission catalog and grants."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_permission_by_name(self, name: str) -> Permission | None:
        stmt = select(Permission).where(Permission.name == name)
        return await self.session.scalar(stmt)

    async def get_permission_by_id(self, permission_id: UUID) -> Permission | None:
        stmt = select(Permission).where(Permission.id == permission_id)
        return await self.session.scalar(stmt)

    async def create_permission(
        self,
        name: str,
        resource: str,
        action: str,
        description: str | None,
    ) -> Permission:
        permission = Permission(name=name, resource=resource, action=action, description=description)
        self.session.add(permission)
        await self.session.flush()
        return permission

    async def list_permissions(self) -> list[Permission]:
        stmt = select(Permission).order_by(Permission.resource.asc(), Permission.action.asc())
        return list((await self.session.scalars(stmt)).all())

    async def list_permissions_for_user(self, user_id: UUID) -> list[Permission]:
        stmt = (
            select(Permission)
            .join(PermissionGrant, PermissionGrant.permission_id == Permission.id)
            .where(PermissionGrant.user_id == user_id)
            .order_by(Permission.resource.asc(), Permission.action.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_permission_names_for_user(self, user_id: UUID) -> set[str]:
        stmt = (
            select(Permission.name)
            .join(PermissionGrant, PermissionGrant.permission_id == Permission.id)
            .where(PermissionGrant.user_id == user_id)
        )
        return set((await self.session.scalars(stmt)).all())

    async def grant(self, user_id: UUID, permission_id: UUID, granted_by_id: UUID | None) -> bool:
        """Insert grant; returns False when it already existed."""
        now = utc_now()
        stmt = (
            pg_insert(PermissionGrant)
            .values(
                user_id=user_id,
                permission_id=permission_id,
                granted_by_id=granted_by_id,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=["user_id", "permission_id"])
            .returning(PermissionGrant.id)
        )
        inserted_id = (await self.session.execute(stmt)).scalar_one_or_none()
        return inserted_id is not None

    async def revoke(self, user_id: UUID, permission_id: UUID) -> bool:
        """Delete grant; returns False when there was nothing to delete."""
        stmt = delete(PermissionGrant).where(
            PermissionGrant.user_id == user_id,
            PermissionGrant.permission_id == permission_id,
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def revoke_all(self, user_id: UUID) -> int:
        stmt = delete(PermissionGrant).where(PermissionGrant.user_id == user_id)
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)
