from django.db import models


class CounterName(models.TextChoices):
    JOB = "job", "Job reference"
    QUOTE = "quote", "Quote number"
    INVOICE = "invoice", "Invoice number"
    CERTIFICATE = "certificate", "Gas safety certificate number"


class SequenceCounter(models.Model):
    """
    Next value to hand out for one tenant's numbering sequence.

    Only SequenceAllocator may change ``next_value``: allocate() increments it
    and advance_to() raises it for repairs, both under a row lock inside a
    transaction. The value never decreases.
    """

    # Quote and invoice numbers historically started at 1001.
    STARTING_VALUES = {
        CounterName.JOB: 1,
        CounterName.QUOTE: 1001,
        CounterName.INVOICE: 1001,
        CounterName.CERTIFICATE: 1,
    }

    company = models.ForeignKey(
        "workflow.Company",
        on_delete=models.CASCADE,
        related_name="sequence_counters",
    )
    name = models.CharField(max_length=20, choices=CounterName.choices)
    next_value = models.PositiveBigIntegerField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "workflow_sequence_counter"
        constraints = [
            models.UniqueConstraint(
                fields=["company", "name"], name="unique_counter_per_company"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.company_id}:{self.name} -> {self.next_value}"

    @classmethod
    def starting_value(cls, name: str) -> int:
        return cls.STARTING_VALUES.get(name, 1)
