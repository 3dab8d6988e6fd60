from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from apps.accounting.payloads import (
    GasSafetyPayload,
    PricedDocumentPayload,
    load_payload,
)


def gas_safety_payload(**overrides):
    data = {
        "certificate_reference": "CP12-0001",
        "locked_at": "2025-03-01T10:00:00+00:00",
        "company": {"name": "Test Heating", "gas_safe_registration": "123456"},
        "engineer": {"name": "Sam Fitter", "gas_safe_number": "998877"},
        "landlord": {"name": "Jane Landlord"},
        "tenant": {"name": "Tom Tenant"},
        "property_address": "12 Acacia Avenue, Leeds",
        "appliances": [{"type": "Boiler", "location": "Kitchen", "safe": True}],
        "final_checks": {"ecv_accessible": True},
        "inspection_date": date(2025, 3, 1),
        "next_due_date": date(2026, 3, 1),
        "customer_signature": "data:image/png;base64,AAA",
    }
    data.update(overrides)
    return GasSafetyPayload(**data)


class PayloadFreezeTests(SimpleTestCase):
    def test_payload_is_deeply_read_only(self):
        payload = gas_safety_payload()

        with self.assertRaises(FrozenInstanceError):
            payload.property_address = "Somewhere else"
        with self.assertRaises(TypeError):
            payload.company["name"] = "Renamed Ltd"
        with self.assertRaises(TypeError):
            payload.appliances[0]["safe"] = False
        self.assertIsInstance(payload.appliances, tuple)

    def test_inputs_are_copied_not_referenced(self):
        company = {"name": "Test Heating"}
        payload = gas_safety_payload(company=company)

        company["name"] = "Renamed Ltd"

        self.assertEqual(payload.company["name"], "Test Heating")

    def test_dates_and_decimals_stored_as_text(self):
        payload = gas_safety_payload()
        self.assertEqual(payload.inspection_date, "2025-03-01")

        priced = PricedDocumentPayload(
            document_type="invoice",
            reference="INV-0001",
            locked_at="2025-03-01T10:00:00+00:00",
            company={"name": "Test Heating"},
            customer={"name": "Jane"},
            items=[{"quantity": Decimal("1"), "unit_price": Decimal("9.99")}],
            discount_percent="0",
            totals={"grand_total": Decimal("9.99")},
            date=date(2025, 3, 1),
        )
        self.assertEqual(priced.items[0]["unit_price"], "9.99")
        self.assertEqual(priced.date, "2025-03-01")


class LoadPayloadTests(SimpleTestCase):
    def test_round_trip_through_json_dict(self):
        payload = gas_safety_payload()
        data = payload.to_dict()

        self.assertEqual(data["kind"], "gas_safety")
        self.assertIsInstance(data["appliances"], list)
        self.assertEqual(load_payload(data), payload)

    def test_dispatch_on_kind_ignores_unknown_keys(self):
        data = gas_safety_payload().to_dict()
        data["legacy_field"] = "ignored"

        self.assertIsInstance(load_payload(data), GasSafetyPayload)

    def test_unknown_kind_rejected(self):
        with self.assertRaises(ValueError):
            load_payload({"kind": "purchase_order"})
        with self.assertRaises(ValueError):
            load_payload(["not", "a", "mapping"])
