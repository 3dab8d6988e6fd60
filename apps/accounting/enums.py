from django.db import models


class DocumentType(models.TextChoices):
    QUOTE = "quote", "Quote"
    INVOICE = "invoice", "Invoice"
    CP12 = "cp12", "Gas Safety Record (CP12)"


# Tag used when the database rejects the preferred document type.
FALLBACK_DOCUMENT_TYPE = DocumentType.QUOTE


class DocumentStatus(models.TextChoices):
    DRAFT = "Draft", "Draft"
    SENT = "Sent", "Sent"
    ACCEPTED = "Accepted", "Accepted"
    DECLINED = "Declined", "Declined"
    UNPAID = "Unpaid", "Unpaid"
    PAID = "Paid", "Paid"
    OVERDUE = "Overdue", "Overdue"


# Status a draft moves to when it is issued.
ISSUED_STATUS = {
    DocumentType.QUOTE: DocumentStatus.SENT,
    DocumentType.INVOICE: DocumentStatus.UNPAID,
}

# Counter used to number each document type.
DOCUMENT_COUNTERS = {
    DocumentType.QUOTE: "quote",
    DocumentType.INVOICE: "invoice",
    DocumentType.CP12: "certificate",
}
