from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass

from eduhouse.models.rbac import Admin, User


class PrincipalKind(str, enum.Enum):
    ADMIN = 'admin'
    USER = 'user'


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request: an admin or a learner (user)."""

    kind: PrincipalKind
    admin: Admin | None = None
    user: User | None = None

    @classmethod
    def for_admin(cls, admin: Admin) -> Principal:
        return cls(kind=PrincipalKind.ADMIN, admin=admin)

    @classmethod
    def for_user(cls, user: User) -> Principal:
        return cls(kind=PrincipalKind.USER, user=user)

    @property
    def id(self) -> uuid.UUID:
        if self.kind is PrincipalKind.ADMIN:
            return self.admin.id
        if self.kind is PrincipalKind.USER:
            return self.user.id
        raise ValueError(f'Unhandled principal kind: {self.kind}')

    @property
    def is_admin(self) -> bool:
        return self.kind is PrincipalKind.ADMIN

    @property
    def is_super_admin(self) -> bool:
        return self.kind is PrincipalKind.ADMIN and bool(self.admin.is_super_admin)

    @property
    def user_id(self) -> uuid.UUID | None:
        """Learner id for self-service checks; admins act on behalf of others."""
        if self.kind is PrincipalKind.USER:
            return self.user.id
        return None
