"""
Role-based permission classes.

Roles live on User.role: admin, agent, repair_tech, viewer.
Superusers are treated as admins.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


def user_role(user):
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return 'admin'
    return getattr(user, 'role', None)


def has_role(user, *roles):
    return user_role(user) in roles


class IsAdminRole(BasePermission):
    """Admins only"""
    message = 'Admin role required.'

    def has_permission(self, request, view):
        return has_role(request.user, 'admin')


class IsStaffRole(BasePermission):
    """Admins and agents"""
    message = 'Admin or agent role required.'

    def has_permission(self, request, view):
        return has_role(request.user, 'admin', 'agent')


class CanManageRepairs(BasePermission):
    """Anyone may read; admins, agents and repair technicians may write"""
    message = 'Repair technician, agent or admin role required.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return request.user and request.user.is_authenticated
        return has_role(request.user, 'admin', 'agent', 'repair_tech')


class ReadOnlyForViewer(BasePermission):
    """Viewers may only use safe methods"""
    message = 'Viewers have read-only access.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return user_role(request.user) != 'viewer'
