from rest_framework.permissions import BasePermission


class IsPlatformAdmin(BasePermission):
    """Only global admins"""
    message = 'Access denied. Insufficient permissions.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'is_platform_admin', False))


class IsBusinessOperator(BasePermission):
    """Business users and admins"""
    message = 'Access denied. Insufficient permissions.'

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return getattr(user, 'is_platform_admin', False) or getattr(user, 'is_business_user', False)
