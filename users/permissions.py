from rest_framework import permissions
from users.models import User


class IsSuperAdmin(permissions.BasePermission):
    """Only platform Super Admin users have access"""

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_superadmin)


class IsStoreAdminOrSuperAdmin(permissions.BasePermission):
    """Store Admin or Super Admin users have access"""

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.role in [User.Role.ADMIN, User.Role.SUPERADMIN]
        )


class IsActiveIdentity(permissions.BasePermission):
    """Inactive or banned identities are refused even with a valid token"""

    message = 'User account is disabled.'

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_active_identity
        )


class ReadOnlyOrStoreAdmin(permissions.BasePermission):
    """Anyone in the store may read; only admins may write"""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.role in [User.Role.ADMIN, User.Role.SUPERADMIN]
        )
