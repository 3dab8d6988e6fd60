from types import SimpleNamespace

from apps.accounts.enums import StaffRole
from apps.accounts.models import Staff
from apps.accounts.permissions import IsCompanyAdmin, IsTenantMember
from apps.testing import BaseTestCase


class StaffManagerTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()
        self.admin = self.make_admin(self.company)
        self.worker = self.make_worker(self.company)
        self.inactive = self.make_worker(self.company, is_active=False)
        self.outsider = self.make_worker(self.make_company())

    def test_for_company_excludes_other_tenants_and_inactive(self):
        self.assertCountEqual(
            Staff.objects.for_company(self.company.id), [self.admin, self.worker]
        )

    def test_role_filters(self):
        self.assertEqual(list(Staff.objects.workers(self.company.id)), [self.worker])
        self.assertEqual(list(Staff.objects.admins(self.company.id)), [self.admin])

    def test_superuser_defaults_to_admin(self):
        superuser = Staff.objects.create_superuser("root@example.com", "pw")
        self.assertEqual(superuser.role, StaffRole.ADMIN)
        self.assertTrue(superuser.is_admin)

    def test_create_user_requires_email(self):
        with self.assertRaises(ValueError):
            Staff.objects.create_user("", "pw")

    def test_engineer_snapshot(self):
        engineer = self.make_worker(
            self.company,
            first_name="Sam",
            last_name="Fitter",
            phone="07700 900111",
            gas_safe_number="998877",
        )
        snapshot = engineer.engineer_snapshot()
        self.assertEqual(snapshot["name"], "Sam Fitter")
        self.assertEqual(snapshot["gas_safe_number"], "998877")
        self.assertEqual(snapshot["id"], str(engineer.id))


class PermissionTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()

    def _request(self, user):
        return SimpleNamespace(user=user)

    def test_tenant_member(self):
        permission = IsTenantMember()
        self.assertTrue(
            permission.has_permission(self._request(self.make_worker(self.company)), None)
        )
        self.assertFalse(
            permission.has_permission(self._request(self.make_worker(None)), None)
        )

    def test_company_admin(self):
        permission = IsCompanyAdmin()
        self.assertTrue(
            permission.has_permission(self._request(self.make_admin(self.company)), None)
        )
        self.assertFalse(
            permission.has_permission(self._request(self.make_worker(self.company)), None)
        )


class StaffCreationFormTests(BaseTestCase):
    def test_creates_worker_in_company(self):
        from apps.accounts.forms import StaffCreationForm

        company = self.make_company()
        form = StaffCreationForm(
            data={
                "email": "fitter@example.com",
                "first_name": "Sam",
                "last_name": "Fitter",
                "display_name": "",
                "company": str(company.id),
                "role": StaffRole.WORKER,
                "gas_safe_number": "998877",
                "password1": "a-long-Passphrase-42",
                "password2": "a-long-Passphrase-42",
            }
        )

        self.assertTrue(form.is_valid(), form.errors)
        staff = form.save()
        self.assertEqual(staff.company, company)
        self.assertTrue(staff.is_worker)
        self.assertTrue(staff.check_password("a-long-Passphrase-42"))

    def test_password_mismatch(self):
        from apps.accounts.forms import StaffCreationForm

        form = StaffCreationForm(
            data={
                "email": "fitter@example.com",
                "role": StaffRole.WORKER,
                "password1": "a-long-Passphrase-42",
                "password2": "something-else-42",
            }
        )
        self.assertFalse(form.is_valid())
        self.assertIn("password2", form.errors)
