from rest_framework.permissions import BasePermission

from registry.models import Account


class HasRole(BasePermission):
    """Allow authenticated accounts whose role is in ``roles``."""

    roles = ()
    message = "Your role is not permitted to perform this action"

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated and getattr(user, "role", None) in self.roles
        )


class IsStaffOrAdmin(HasRole):
    roles = (Account.STAFF, Account.ADMIN)


class IsAdmin(HasRole):
    roles = (Account.ADMIN,)


class IsResidentOrStaff(HasRole):
    roles = (Account.RESIDENT, Account.STAFF)


class IsAuthenticatedAccount(HasRole):
    roles = (Account.RESIDENT, Account.STAFF, Account.ADMIN)
