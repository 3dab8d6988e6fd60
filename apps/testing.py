"""
Shared test utilities and base classes for the fieldservice project.

Test classes that need database models should inherit from BaseTestCase
(or one of its siblings) and build their data with the helpers below.
"""

from decimal import Decimal

from django.test import TestCase, TransactionTestCase
from rest_framework.test import APITestCase

from apps.accounts.enums import StaffRole
from apps.accounts.models import Staff
from apps.client.models import Customer
from apps.job.models import Job
from apps.workflow.models import Company


class FactoryMixin:
    """Minimal builders for the tenant, staff, customer and job rows."""

    _counter = 0

    @classmethod
    def _next(cls) -> int:
        FactoryMixin._counter += 1
        return FactoryMixin._counter

    @classmethod
    def make_company(cls, **overrides) -> Company:
        n = cls._next()
        data = {
            "name": f"Test Heating {n}",
            "email": f"office{n}@example.com",
            "phone": "01234 567890",
            "address": "1 High Street, Leeds",
            "reference_prefix": "TF",
            "vat_number": "GB123456789",
            "gas_safe_registration": "123456",
        }
        data.update(overrides)
        return Company.objects.create(**data)

    @classmethod
    def make_staff(cls, company, role=StaffRole.WORKER, **overrides) -> Staff:
        n = cls._next()
        data = {
            "first_name": "Test",
            "last_name": f"Staff{n}",
            "company": company,
            "role": role,
        }
        data.update(overrides)
        email = data.pop("email", f"staff{n}@example.com")
        return Staff.objects.create_user(email=email, password="testpass", **data)

    @classmethod
    def make_admin(cls, company, **overrides) -> Staff:
        return cls.make_staff(company, role=StaffRole.ADMIN, **overrides)

    @classmethod
    def make_worker(cls, company, **overrides) -> Staff:
        return cls.make_staff(company, role=StaffRole.WORKER, **overrides)

    @classmethod
    def make_customer(cls, company, **overrides) -> Customer:
        data = {
            "name": "Jane Landlord",
            "address_line_1": "12 Acacia Avenue",
            "city": "Leeds",
            "postal_code": "LS1 1AA",
            "phone": "07700 900000",
            "email": "jane@example.com",
        }
        data.update(overrides)
        return Customer.objects.create(company=company, **data)

    @classmethod
    def make_job(cls, company, assigned=(), **overrides) -> Job:
        """Insert a job row directly, bypassing the allocator."""
        n = cls._next()
        data = {
            "title": f"Boiler service {n}",
            "sequence_number": n,
            "reference": f"TST-{n:06d}",
            "price": Decimal("120.00"),
        }
        data.update(overrides)
        job = Job.objects.create(company=company, **data)
        if assigned:
            job.assigned_to.set(assigned)
        return job


class BaseTestCase(FactoryMixin, TestCase):
    """Base test case for database tests."""


class BaseTransactionTestCase(FactoryMixin, TransactionTestCase):
    """
    Base transaction test case.

    Use this for tests that need real commits (e.g. on_commit callbacks
    without captureOnCommitCallbacks, or rollback behavior).
    """


class BaseAPITestCase(FactoryMixin, APITestCase):
    """Base API test case for DRF endpoint tests."""
