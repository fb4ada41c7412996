"""Tests for RBAC (Role-Based Access Control)."""

from app.services.rbac import STAFF_ROLES, Permission, RBACService, UserRole


class TestRBACService:
    """Tests for RBACService class."""

    def test_admin_reviews_and_deletes(self) -> None:
        """Test that admin holds the elevated permissions."""
        permissions = RBACService.get_permissions(UserRole.ADMIN)

        assert Permission.APPOINTMENTS_DELETE in permissions
        assert Permission.REACCESS_REVIEW in permissions
        assert Permission.APPOINTMENTS_WRITE in permissions

    def test_only_admin_can_delete(self) -> None:
        """Test that hard deletes are admin-only."""
        for role in UserRole:
            allowed = RBACService.has_permission(role, Permission.APPOINTMENTS_DELETE)
            assert allowed is (role == UserRole.ADMIN)

    def test_doctor_books_but_does_not_review(self) -> None:
        """Test that doctors schedule and record attendance only."""
        permissions = RBACService.get_permissions(UserRole.DOCTOR)

        assert Permission.APPOINTMENTS_WRITE in permissions
        assert Permission.ATTENDANCE_WRITE in permissions
        # But not admin permissions
        assert Permission.REACCESS_REVIEW not in permissions
        assert Permission.APPOINTMENTS_DELETE not in permissions

    def test_nurse_cannot_book(self) -> None:
        """Test that nurses record attendance and cancel but do not book."""
        assert RBACService.has_all_permissions(
            UserRole.NURSE,
            [Permission.ATTENDANCE_WRITE, Permission.APPOINTMENTS_CANCEL],
        )
        assert not RBACService.has_permission(UserRole.NURSE, Permission.APPOINTMENTS_WRITE)

    def test_patient_permissions_are_self_service(self) -> None:
        """Test that patients only submit requests and read their own bookings."""
        permissions = RBACService.get_permissions(UserRole.PATIENT)

        assert permissions == {Permission.APPOINTMENTS_READ_OWN, Permission.REACCESS_SUBMIT}

    def test_staff_roles_share_attendance(self) -> None:
        """Test that every staff role can record attendance."""
        for role in STAFF_ROLES:
            assert RBACService.has_permission(role, Permission.ATTENDANCE_WRITE)

    def test_has_all_permissions_requires_every_one(self) -> None:
        """Test has_all_permissions with a partial match."""
        result = RBACService.has_all_permissions(
            UserRole.DOCTOR,
            [Permission.APPOINTMENTS_READ, Permission.REACCESS_REVIEW],
        )
        assert result is False
