from decimal import Decimal

from django.core.exceptions import PermissionDenied

from apps.accounting.enums import DocumentStatus, DocumentType
from apps.accounting.models import Document
from apps.accounting.payloads import PricedDocumentPayload
from apps.accounting.services.document_service import DocumentService
from apps.testing import BaseTestCase
from apps.workflow.exceptions import IncompleteSnapshot

ITEMS = [
    {"description": "Boiler service", "quantity": 1, "unit_price": "100", "vat_percent": 20}
]


class DocumentServiceTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company(name="Test Heating")
        self.admin = self.make_admin(self.company)
        self.customer = self.make_customer(self.company)

    def _draft(self, document_type=DocumentType.INVOICE, **overrides):
        data = {
            "document_type": document_type,
            "customer_id": self.customer.id,
            "items": ITEMS,
            "discount_percent": 10,
        }
        data.update(overrides)
        return DocumentService.create_draft(data, self.admin)

    def test_drafts_are_numbered_per_type(self):
        quote = self._draft(DocumentType.QUOTE)
        invoice = self._draft(DocumentType.INVOICE)
        second_invoice = self._draft(DocumentType.INVOICE)

        self.assertEqual(quote.reference, "QTE-1001")
        self.assertEqual(invoice.reference, "INV-1001")
        self.assertEqual(second_invoice.reference, "INV-1002")
        self.assertEqual(invoice.status, DocumentStatus.DRAFT)
        self.assertFalse(invoice.is_locked)

    def test_draft_caches_totals(self):
        invoice = self._draft()

        self.assertEqual(invoice.subtotal, Decimal("100.00"))
        self.assertEqual(invoice.total_vat, Decimal("18.00"))
        self.assertEqual(invoice.total, Decimal("108.00"))

    def test_draft_render_follows_live_data(self):
        invoice = self._draft()
        self.company.name = "Renamed Heating"
        self.company.save()

        render = DocumentService.render_data(Document.objects.get(id=invoice.id))

        self.assertFalse(render["locked"])
        self.assertEqual(render["company"]["name"], "Renamed Heating")

    def test_issue_locks_content(self):
        invoice = self._draft()

        issued = DocumentService.issue(invoice.id, self.admin)

        self.assertEqual(issued.status, DocumentStatus.UNPAID)
        self.assertIsNotNone(issued.locked_at)
        payload = issued.get_payload()
        self.assertIsInstance(payload, PricedDocumentPayload)
        self.assertEqual(payload.reference, "INV-1001")
        self.assertEqual(Decimal(payload.totals["grand_total"]), Decimal("108"))

        self.company.name = "Renamed Heating"
        self.company.save()
        self.customer.name = "Someone Else"
        self.customer.save()

        render = DocumentService.render_data(Document.objects.get(id=invoice.id))
        self.assertTrue(render["locked"])
        self.assertEqual(render["company"]["name"], "Test Heating")
        self.assertEqual(render["customer"]["name"], "Jane Landlord")

    def test_quote_issues_as_sent(self):
        quote = self._draft(DocumentType.QUOTE)
        self.assertEqual(
            DocumentService.issue(quote.id, self.admin).status, DocumentStatus.SENT
        )

    def test_cannot_issue_twice(self):
        invoice = self._draft()
        DocumentService.issue(invoice.id, self.admin)

        with self.assertRaises(ValueError):
            DocumentService.issue(invoice.id, self.admin)

    def test_incomplete_draft_is_not_issued(self):
        invoice = self._draft(customer_id=None, customer={"phone": "0123"}, items=[])

        with self.assertRaises(IncompleteSnapshot) as ctx:
            DocumentService.issue(invoice.id, self.admin)

        self.assertEqual(ctx.exception.missing_fields, ["customer.name", "items"])
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, DocumentStatus.DRAFT)
        self.assertIsNone(invoice.locked_payload)

    def test_create_draft_validation(self):
        with self.assertRaises(ValueError):
            self._draft(DocumentType.CP12)
        with self.assertRaises(ValueError):
            self._draft(customer_id=self.make_customer(self.make_company()).id)
        with self.assertRaises(ValueError):
            self._draft(items=[{"quantity": "x", "unit_price": 1}])

        self.assertFalse(Document.objects.exists())

    def test_user_without_company_rejected(self):
        loner = self.make_admin(None)
        with self.assertRaises(PermissionDenied):
            DocumentService.create_draft(
                {"document_type": DocumentType.QUOTE}, loner
            )
