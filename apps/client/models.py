import uuid
from typing import Any, Dict

from django.db import models
from simple_history.models import HistoricalRecords


class Customer(models.Model):
    """
    A tenant's customer or landlord.

    Jobs and documents never re-read this row for display. They keep the
    value copy returned by snapshot() at the time they were created or locked.
    """

    # CHECKLIST - when adding a new field to Customer, check these locations:
    #   1. CUSTOMER_SNAPSHOT_FIELDS below (if it is shown on jobs or documents)
    #   2. CustomerAdmin in apps/client/admin.py
    CUSTOMER_SNAPSHOT_FIELDS = [
        "name",
        "company_name",
        "address_line_1",
        "address_line_2",
        "city",
        "region",
        "postal_code",
        "phone",
        "email",
    ]

    ADDRESS_FIELDS = [
        "address_line_1",
        "address_line_2",
        "city",
        "region",
        "postal_code",
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    company = models.ForeignKey(
        "workflow.Company",
        on_delete=models.CASCADE,
        related_name="customers",
    )
    name = models.CharField(max_length=255)
    company_name = models.CharField(max_length=255, blank=True, default="")
    address_line_1 = models.CharField(max_length=255, blank=True, default="")
    address_line_2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100, blank=True, default="")
    region = models.CharField(max_length=100, blank=True, default="")
    postal_code = models.CharField(max_length=20, blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    history: HistoricalRecords = HistoricalRecords()

    class Meta:
        db_table = "client_customer"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["company", "name"], name="customer_company_name_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def address(self) -> str:
        """Single-line postal address, skipping empty parts."""
        parts = [getattr(self, field).strip() for field in self.ADDRESS_FIELDS]
        return ", ".join(part for part in parts if part)

    def snapshot(self) -> Dict[str, Any]:
        data = {
            field: getattr(self, field) for field in self.CUSTOMER_SNAPSHOT_FIELDS
        }
        data["id"] = str(self.id)
        data["address"] = self.address
        return data
