"""
Role based permission classes.

Every portal endpoint is scoped to one role.  Unauthenticated requests
are rejected by DRF with 401 before these checks run; a user with the
wrong role gets 403.
"""
from rest_framework.permissions import BasePermission

STAFF_ROLES = {"doctor", "nurse", "scholar"}


def _has_role(request, *roles) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and getattr(user, "role", None) in roles)


class IsPatientRole(BasePermission):
    """Allow access only to users with the patient role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "patient")


class IsDoctorRole(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "doctor")


class IsNurseRole(BasePermission):
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "nurse")


class IsScholarRole(BasePermission):
    """Student assistants working the clinic desk."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, "scholar")


class IsStaffRole(BasePermission):
    """doctor, nurse or scholar."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _has_role(request, *STAFF_ROLES)
