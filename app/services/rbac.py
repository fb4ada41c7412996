"""Role-Based Access Control (RBAC) service.

Maps the roles carried in access tokens to the permissions checked by the
API layer. Deleting appointments is an elevated, admin-only permission.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles issued by the identity service."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    PATIENT = "patient"


STAFF_ROLES = (UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE)


class Permission(str, Enum):
    """Available permissions in the system."""

    # Appointments
    APPOINTMENTS_READ = "appointments:read"
    APPOINTMENTS_READ_OWN = "appointments:read_own"  # Patients: their own bookings
    APPOINTMENTS_WRITE = "appointments:write"  # Create and reschedule
    APPOINTMENTS_CANCEL = "appointments:cancel"
    APPOINTMENTS_DELETE = "appointments:delete"  # Admin-only: hard delete

    # Attendance
    ATTENDANCE_WRITE = "attendance:write"

    # Patients
    PATIENTS_READ = "patients:read"

    # Re-access requests
    REACCESS_SUBMIT = "reaccess:submit"
    REACCESS_READ = "reaccess:read"
    REACCESS_REVIEW = "reaccess:review"  # Approve or reject


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.ADMIN: {
        Permission.APPOINTMENTS_READ,
        Permission.APPOINTMENTS_WRITE,
        Permission.APPOINTMENTS_CANCEL,
        Permission.APPOINTMENTS_DELETE,
        Permission.ATTENDANCE_WRITE,
        Permission.PATIENTS_READ,
        Permission.REACCESS_READ,
        Permission.REACCESS_REVIEW,
    },
    UserRole.DOCTOR: {
        Permission.APPOINTMENTS_READ,
        Permission.APPOINTMENTS_WRITE,
        Permission.APPOINTMENTS_CANCEL,
        Permission.ATTENDANCE_WRITE,
        Permission.PATIENTS_READ,
        Permission.REACCESS_READ,
    },
    UserRole.NURSE: {
        # NOTE: Nurses record attendance and cancel but do not book
        Permission.APPOINTMENTS_READ,
        Permission.APPOINTMENTS_CANCEL,
        Permission.ATTENDANCE_WRITE,
        Permission.PATIENTS_READ,
        Permission.REACCESS_READ,
    },
    UserRole.PATIENT: {
        Permission.APPOINTMENTS_READ_OWN,
        Permission.REACCESS_SUBMIT,
    },
}


class RBACService:
    """Service for checking role-based permissions."""

    @staticmethod
    def get_permissions(role: UserRole) -> set[Permission]:
        """Get all permissions for a role.

        Args:
            role: User role

        Returns:
            Set of permissions granted to the role
        """
        return ROLE_PERMISSIONS.get(role, set())

    @staticmethod
    def has_permission(role: UserRole, permission: Permission) -> bool:
        """Check if a role has a specific permission."""
        return permission in ROLE_PERMISSIONS.get(role, set())

    @staticmethod
    def has_all_permissions(role: UserRole, permissions: list[Permission]) -> bool:
        """Check if a role has all specified permissions.

        Args:
            role: User role to check
            permissions: List of permissions (all must match)

        Returns:
            True if role has all permissions
        """
        role_permissions = ROLE_PERMISSIONS.get(role, set())
        return all(p in role_permissions for p in permissions)
