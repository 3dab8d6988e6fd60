import uuid
from datetime import datetime
from typing import ClassVar, List, Optional

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from apps.accounts.enums import StaffRole

from .managers import StaffManager


class Staff(AbstractBaseUser, PermissionsMixin):
    # CHECKLIST - when adding a new field or property to Staff, check these locations:
    #   1. STAFF_API_FIELDS or STAFF_INTERNAL_FIELDS below (if it's a model field)
    #   2. StaffSummarySerializer in apps/job/serializers/job_serializer.py
    #   3. engineer_snapshot() below (if it is printed on certificates)
    #
    # Fields exposed via API (read-only where applicable).
    STAFF_API_FIELDS = [
        "id",
        "email",
        "first_name",
        "last_name",
        "display_name",
        "role",
        "phone",
        "gas_safe_number",
    ]

    # Internal fields not exposed via API.
    STAFF_INTERNAL_FIELDS = [
        "password",
        "company",
        "is_active",
        "is_staff",
        "date_joined",
    ]

    STAFF_ALL_FIELDS = STAFF_API_FIELDS + STAFF_INTERNAL_FIELDS

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "workflow.Company",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="staff",
        help_text="Tenant this user belongs to. Empty for platform superusers.",
    )
    role: str = models.CharField(
        max_length=10, choices=StaffRole.choices, default=StaffRole.WORKER
    )
    email: str = models.EmailField(unique=True)
    first_name: str = models.CharField(max_length=30)
    last_name: str = models.CharField(max_length=30)
    display_name: Optional[str] = models.CharField(
        max_length=60, blank=True, null=True
    )
    phone = models.CharField(max_length=50, blank=True, default="")
    gas_safe_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Engineer's Gas Safe ID card number, printed on certificates",
    )
    is_active: bool = models.BooleanField(default=True)
    is_staff: bool = models.BooleanField(default=False)
    date_joined: datetime = models.DateTimeField(default=timezone.now)

    objects = StaffManager()

    USERNAME_FIELD: str = "email"
    REQUIRED_FIELDS: ClassVar[List[str]] = [
        "first_name",
        "last_name",
    ]

    class Meta:
        ordering = ["last_name", "first_name"]
        db_table = "accounts_staff"
        verbose_name = "Staff Member"
        verbose_name_plural = "Staff Members"

    def __str__(self) -> str:
        return self.get_display_full_name()

    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN

    @property
    def is_worker(self) -> bool:
        return self.role == StaffRole.WORKER

    def get_display_name(self) -> str:
        display = self.display_name or self.first_name
        return display.split()[0] if display else ""

    def get_display_full_name(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.first_name} {self.last_name}".strip()

    def engineer_snapshot(self) -> dict:
        """Value copy of the engineer details printed on a certificate."""
        return {
            "id": str(self.id),
            "name": self.get_display_full_name(),
            "email": self.email,
            "phone": self.phone,
            "gas_safe_number": self.gas_safe_number,
        }
