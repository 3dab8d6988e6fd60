from io import StringIO
from unittest.mock import patch

from django.core.management import call_command

from apps.accounting.models import Document
from apps.testing import BaseTestCase
from apps.workflow.models import CounterName, SequenceCounter
from apps.workflow.services.sequence_allocator import SequenceAllocator


class CheckSequenceCountersCommandTests(BaseTestCase):
    def setUp(self):
        self.company = self.make_company()

    def _run(self, *args):
        out = StringIO()
        call_command("check_sequence_counters", *args, stdout=out)
        return out.getvalue()

    def test_healthy_counters_report_success(self):
        number = SequenceAllocator.allocate(self.company.id, CounterName.JOB)
        self.make_job(self.company, sequence_number=number)

        output = self._run()

        self.assertIn("All sequence counters are ahead", output)

    def test_lagging_counter_reported_without_fix(self):
        self.make_job(self.company, sequence_number=7)
        SequenceCounter.objects.create(
            company=self.company, name=CounterName.JOB, next_value=3
        )

        output = self._run()

        self.assertIn("[job]", output)
        self.assertIn("--fix", output)
        self.assertEqual(
            SequenceCounter.objects.get(company=self.company, name="job").next_value, 3
        )

    def test_fix_moves_counters_up(self):
        self.make_job(self.company, sequence_number=7)
        SequenceCounter.objects.create(
            company=self.company, name=CounterName.JOB, next_value=3
        )
        # Certificate stored under the fallback tag still counts as a certificate.
        Document.objects.create(
            company=self.company,
            document_type="quote",
            number=4,
            reference="CP12-0004",
        )

        output = self._run("--fix")

        self.assertIn("Repaired 2 counter(s)", output)
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 8)
        self.assertEqual(
            SequenceAllocator.peek(self.company.id, CounterName.CERTIFICATE), 5
        )
        # The quote counter has nothing assigned under its own prefix.
        self.assertFalse(
            SequenceCounter.objects.filter(
                company=self.company, name=CounterName.QUOTE
            ).exists()
        )

    def test_fix_goes_through_allocator(self):
        self.make_job(self.company, sequence_number=12)

        with patch.object(
            SequenceAllocator, "advance_to", wraps=SequenceAllocator.advance_to
        ) as advance_to:
            self._run("--fix")

        advance_to.assert_called_once_with(self.company.id, CounterName.JOB, 13)
        self.assertEqual(SequenceAllocator.peek(self.company.id, CounterName.JOB), 13)
