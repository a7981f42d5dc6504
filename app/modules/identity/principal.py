"""Authenticated principal passed explicitly into authorization checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from app.core.enums import RoleEnum


@dataclass(frozen=True, slots=True)
class Principal:
    """Actor on whose behalf an operation runs.

    ``permissions`` holds explicit grants and is only populated for ADMIN;
    SUPER_ADMIN rights are implicit and never materialised here.
    """

    id: UUID
    role: RoleEnum
    permissions: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, user_id: UUID, role: RoleEnum | str, permissions: Iterable[str] = ()) -> "Principal":
        role_value = RoleEnum(role)
        granted = frozenset(permissions) if role_value == RoleEnum.ADMIN else frozenset()
        return cls(id=user_id, role=role_value, permissions=granted)

    @property
    def is_admin(self) -> bool:
        return self.role in (RoleEnum.ADMIN, RoleEnum.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == RoleEnum.SUPER_ADMIN
