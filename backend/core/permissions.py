from rest_framework import permissions

ROLE_ADMIN = 'ADMIN'
ROLE_RECEPTION = 'RECEPTION'
ROLE_DOCTOR = 'DOCTOR'
ROLE_LAB = 'LAB'
ROLE_PHARMACY = 'PHARMACY'
ROLE_PATIENT = 'PATIENT'

STAFF_ROLES = [ROLE_ADMIN, ROLE_RECEPTION, ROLE_DOCTOR, ROLE_LAB, ROLE_PHARMACY]


class IsHospitalStaff(permissions.BasePermission):
    """
    Generic permission for any authenticated hospital staff.
    Roles: RECEPTION, DOCTOR, LAB, PHARMACY, ADMIN
    """
    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        return getattr(request.user, 'role', None) in STAFF_ROLES or request.user.is_superuser


class IsAdminRole(permissions.BasePermission):
    """
    Strict permission for ADMIN role only.
    """
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and (request.user.role == ROLE_ADMIN or request.user.is_superuser))


class HasRole(permissions.BasePermission):
    """
    Allow a fixed set of roles. Subclass and set ``allowed_roles``.
    """
    allowed_roles = ()

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        return request.user.is_superuser or getattr(request.user, 'role', None) in self.allowed_roles


class IsReceptionOrAdmin(HasRole):
    allowed_roles = (ROLE_RECEPTION, ROLE_ADMIN)


class IsLabOrAdmin(HasRole):
    # Doctors order tests for their patients
    allowed_roles = (ROLE_LAB, ROLE_ADMIN, ROLE_DOCTOR, ROLE_RECEPTION)


class IsPharmacyOrAdmin(HasRole):
    allowed_roles = (ROLE_PHARMACY, ROLE_ADMIN, ROLE_RECEPTION)


class IsBillingStaff(HasRole):
    allowed_roles = (ROLE_ADMIN, ROLE_RECEPTION, ROLE_PHARMACY)
