"""
Role hierarchy: the closed set of roles, their levels and who may manage whom.

Levels give a total order (user < moderator < admin < super_admin) but the
manage relation is a separate table, not "higher level wins":

    super_admin -> user, moderator, admin, super_admin
    admin       -> user, moderator
    moderator   -> (nothing)
    user        -> (nothing)

Both tables are keyed by every Role member; _check_tables() fails at import
if a member is added without an entry.
"""
from enum import Enum

from core.errors import InvalidRoleError


class Role(str, Enum):
    """User role. The value is what gets stored and serialized."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    def __str__(self) -> str:
        return self.value

    @property
    def level(self) -> int:
        return _LEVELS[self]

    def can_manage(self, other: "Role") -> bool:
        """Whether a holder of this role may touch (or assign) `other`."""
        return other in _MANAGES[self]

    @classmethod
    def parse(cls, value) -> "Role":
        """Coerce a Role or its string value, raising InvalidRoleError otherwise."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidRoleError(f"invalid role: {value!r}") from None

    @classmethod
    def is_valid(cls, value) -> bool:
        try:
            cls.parse(value)
        except InvalidRoleError:
            return False
        return True


_LEVELS = {
    Role.USER: 1,
    Role.MODERATOR: 2,
    Role.ADMIN: 3,
    Role.SUPER_ADMIN: 4,
}

_MANAGES = {
    Role.SUPER_ADMIN: frozenset(Role),
    Role.ADMIN: frozenset({Role.USER, Role.MODERATOR}),
    Role.MODERATOR: frozenset(),
    Role.USER: frozenset(),
}


def _check_tables():
    for table in (_LEVELS, _MANAGES):
        missing = set(Role) - set(table)
        if missing:
            raise RuntimeError(f"role table missing entries: {sorted(r.value for r in missing)}")


_check_tables()
