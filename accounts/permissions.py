"""
Authorization: role changes and role-scoped listings.

Handles:
- change_role, the single privileged mutation, as an ordered list of guards
- promote/demote wrappers (call-throughs to change_role)
- Listing moderators and admins for sufficiently privileged actors

Guard order (first failure wins, nothing is written before all pass):
1. new role is known                 -> InvalidRoleError
2. target exists (active or not)     -> UserNotFoundError
3. actor is not the target, unless a super_admin steps down
                                     -> CannotModifySelfError
4. no demotion of the last active super_admin
                                     -> LastSuperAdminError
5. actor manages target's current role -> PermissionDeniedError
6. actor manages the new role          -> PermissionDeniedError
7. persist role and updated_at

Guards 2-7 run inside repository.atomic(), so the super_admin count and
the write that follows it see the same state.
"""
import logging

from core import timestamps
from core.errors import (
    APIError,
    CannotModifySelfError,
    InternalError,
    LastSuperAdminError,
    PermissionDeniedError,
    RepositoryError,
    UserNotFoundError,
)

from .repository import UserRepository
from .roles import Role
from .types import User

logger = logging.getLogger(__name__)


def _require_actor(actor: User | None) -> User:
    if actor is None or actor.id is None:
        raise PermissionDeniedError()
    return actor


class RoleService:
    """Evaluates and applies role changes against a UserRepository.

    Stateless apart from the repository; safe to share between threads
    whenever the repository is.
    """

    def __init__(self, repository: UserRepository):
        if repository is None:
            raise ValueError("user repository is required")
        self.repository = repository

    # =========================================================================
    # Role Changes
    # =========================================================================

    def change_role(self, actor: User, target_user_id: int, new_role) -> User:
        """Move the target user to `new_role`.

        Args:
            actor: The user performing the change (role as currently known)
            target_user_id: Id of the user whose role changes
            new_role: Role or its string value

        Returns:
            The updated target User

        Raises:
            InvalidRoleError, UserNotFoundError, CannotModifySelfError,
            LastSuperAdminError, PermissionDeniedError: see module docstring
            RepositoryError: storage failure
        """
        new_role = Role.parse(new_role)
        actor = _require_actor(actor)

        try:
            with self.repository.atomic():
                target = self.repository.get_user_by_id(target_user_id)
                if target is None:
                    raise UserNotFoundError()

                is_self = actor.id == target.id
                if is_self and not (actor.role == Role.SUPER_ADMIN and new_role != Role.SUPER_ADMIN):
                    raise CannotModifySelfError()

                demotes_super_admin = target.role == Role.SUPER_ADMIN and new_role != Role.SUPER_ADMIN
                if is_self or demotes_super_admin:
                    if self.repository.count_users_by_role(Role.SUPER_ADMIN) <= 1:
                        raise LastSuperAdminError()

                if not actor.role.can_manage(target.role):
                    raise PermissionDeniedError()
                if not actor.role.can_manage(new_role):
                    raise PermissionDeniedError()

                old_role = target.role
                target.role = new_role
                target.updated_at = timestamps.now()
                target = self.repository.update_user(target)
        except (APIError, InternalError):
            raise
        except Exception as e:
            raise RepositoryError("failed to update user role") from e

        logger.info(
            "Role changed: user %s (id=%s) %s -> %s by %s (id=%s)",
            target.username, target.id, old_role, new_role, actor.username, actor.id,
        )
        return target

    def promote_to_moderator(self, actor: User, target_user_id: int) -> User:
        return self.change_role(actor, target_user_id, Role.MODERATOR)

    def promote_to_admin(self, actor: User, target_user_id: int) -> User:
        return self.change_role(actor, target_user_id, Role.ADMIN)

    def demote_to_user(self, actor: User, target_user_id: int) -> User:
        return self.change_role(actor, target_user_id, Role.USER)

    # =========================================================================
    # Listings
    # =========================================================================

    def list_moderators(self, actor: User) -> list[User]:
        """Active moderators. Requires admin level or above."""
        actor = _require_actor(actor)
        if actor.role.level < Role.ADMIN.level:
            raise PermissionDeniedError()
        return self._list(Role.MODERATOR)

    def list_admins(self, actor: User) -> list[User]:
        """Active admins and super_admins, ordered by id. super_admin only."""
        actor = _require_actor(actor)
        if actor.role != Role.SUPER_ADMIN:
            raise PermissionDeniedError()
        users = self._list(Role.ADMIN) + self._list(Role.SUPER_ADMIN)
        return sorted(users, key=lambda u: u.id)

    def _list(self, role: Role) -> list[User]:
        try:
            return self.repository.list_users_by_role(role)
        except (APIError, InternalError):
            raise
        except Exception as e:
            raise RepositoryError("failed to list users") from e
