"""
Unit Tests for Role Gates
"""
import pytest

from abroad_api.core.exceptions import AuthorizationError
from abroad_api.models import Admin, Student, Superadmin
from abroad_api.modules.auth.dependencies import (
    ADMIN_OR_SUPERADMIN_MESSAGE,
    SUPERADMIN_MESSAGE,
    SessionContext,
    ensure_admin_or_superadmin,
    ensure_superadmin,
)


def _context(model, role=None):
    principal = model(name='someone', email='someone@b.com')
    return SessionContext(principal=principal, role=role or principal.role)


class TestAdminOrSuperadminGate:

    def test_no_session_refused(self):
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_admin_or_superadmin(None)

        assert exc_info.value.message == ADMIN_OR_SUPERADMIN_MESSAGE
        assert exc_info.value.status_code == 403

    def test_student_refused(self):
        with pytest.raises(AuthorizationError):
            ensure_admin_or_superadmin(_context(Student, 'user'))

    def test_student_claiming_staff_role_refused(self):
        with pytest.raises(AuthorizationError):
            ensure_admin_or_superadmin(_context(Student, 'admin'))

    @pytest.mark.parametrize('model,role', [(Admin, 'admin'), (Superadmin, 'super-admin')])
    def test_staff_pass(self, model, role):
        context = _context(model, role)

        assert ensure_admin_or_superadmin(context) is context


class TestSuperadminGate:

    def test_no_session_refused(self):
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_superadmin(None)

        assert exc_info.value.message == SUPERADMIN_MESSAGE

    @pytest.mark.parametrize('model,role', [(Student, 'user'), (Admin, 'admin')])
    def test_others_refused(self, model, role):
        with pytest.raises(AuthorizationError):
            ensure_superadmin(_context(model, role))

    def test_superadmin_passes(self):
        context = _context(Superadmin, 'super-admin')

        assert ensure_superadmin(context) is context
