# users/permissions.py
from rest_framework import permissions

from .models import ROLE_ADMIN, ROLE_INVESTOR, ROLE_SITE_OWNER


class HasRole(permissions.BasePermission):
    """
    Allow access only to authenticated users whose role is in ``roles``.
    Subclasses set ``roles``.
    """
    roles = ()

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'role', None) in self.roles)


class IsAdminRole(HasRole):
    roles = (ROLE_ADMIN,)


class IsInvestor(HasRole):
    roles = (ROLE_INVESTOR,)


class IsSiteOwner(HasRole):
    roles = (ROLE_SITE_OWNER,)


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Allow if the user is acting on their own resource OR is admin.
    The object must expose the owning user id through ``owner_field``
    (defaults to ``user_id``).
    """
    owner_field = 'user_id'

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if getattr(user, 'role', None) == ROLE_ADMIN:
            return True
        field = getattr(view, 'owner_field', self.owner_field)
        return str(getattr(obj, field, None)) == str(user.pk)
