"""
Custom permission classes for role based access control.

These are the coarse role guards.  Tenant scoping is not a permission
class: it is applied inside the patient services, which receive the
principal explicitly.
"""
from rest_framework.permissions import BasePermission

from .principals import ROLE_HOSPITAL_ADMIN, ROLE_PATIENT, ROLE_SUPER_ADMIN

STAFF_ROLES = {ROLE_SUPER_ADMIN, ROLE_HOSPITAL_ADMIN}


def _role(request):
    user = getattr(request, "user", None)
    if not (user and user.is_authenticated):
        return None
    return getattr(user, "role", None)


class RoleRequired(BasePermission):
    """Allow access only to principals whose role is in ``roles``."""
    roles: frozenset = frozenset()
    message = "Access denied for this role."

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return _role(request) in self.roles


def require_role(*roles: str) -> type[RoleRequired]:
    """Build a permission class accepting exactly the given roles."""
    label = "_".join(r.title().replace("_", "") for r in roles)
    return type(f"Require{label}", (RoleRequired,), {
        "roles": frozenset(roles),
        "message": f"Access denied. {' or '.join(roles)} role required.",
    })


IsSuperAdmin = require_role(ROLE_SUPER_ADMIN)
IsHospitalAdmin = require_role(ROLE_HOSPITAL_ADMIN)
IsPatient = require_role(ROLE_PATIENT)


class IsStaff(RoleRequired):
    """Owner or hospital administrator."""
    roles = frozenset(STAFF_ROLES)
    message = "Access denied. Administrator role required."
