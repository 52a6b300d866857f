from typing import Iterable, Sequence

from rest_framework.permissions import BasePermission


def role_allowed(role: str | None, allowed_roles: Iterable[str]) -> bool:
    """Capability check: the actor's role is one of the allowed roles."""
    return bool(role) and role in tuple(allowed_roles)


class HasRole(BasePermission):
    """
    Allows access to authenticated users whose role is one of required_roles.
    """

    required_roles: Sequence[str] = ()
    message = "You do not have a role that permits this action."

    def __init__(self, roles: Iterable[str] | None = None):
        if roles is not None:
            self.required_roles = tuple(roles)

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False

        if not self.required_roles:
            return False

        return role_allowed(getattr(user, "role", None), self.required_roles)

    @classmethod
    def with_roles(cls, roles: Iterable[str]):
        """
        Helper to build a permission class with baked-in required roles.
        """

        role_tuple = tuple(roles)

        class _HasRole(cls):
            required_roles = role_tuple
            message = (
                "This action requires one of the following roles: " + ", ".join(role_tuple)
            )

        _HasRole.__name__ = f"{cls.__name__}WithRoles"
        return _HasRole
