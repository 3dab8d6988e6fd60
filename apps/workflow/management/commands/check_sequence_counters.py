import logging
from typing import List, NamedTuple, Optional

from django.core.management.base import BaseCommand
from django.db.models import Max

from apps.accounting.models import Document
from apps.job.models import Job
from apps.workflow.models import Company, CounterName, SequenceCounter
from apps.workflow.services.sequence_allocator import (
    DOCUMENT_REFERENCE_PREFIXES,
    SequenceAllocator,
)

logger = logging.getLogger(__name__)

# Certificates stored under the fallback type tag still carry a CP12- reference,
# so document counters are matched on reference prefix rather than type.
COUNTER_REFERENCE_PREFIXES = {
    CounterName.QUOTE: DOCUMENT_REFERENCE_PREFIXES["quote"],
    CounterName.INVOICE: DOCUMENT_REFERENCE_PREFIXES["invoice"],
    CounterName.CERTIFICATE: DOCUMENT_REFERENCE_PREFIXES["cp12"],
}


class CounterProblem(NamedTuple):
    company: Company
    counter_name: str
    next_value: Optional[int]
    highest_assigned: int


def highest_assigned(company_id, counter_name: str) -> int:
    """Largest number already used by ``counter_name`` for a company, 0 if none."""
    if counter_name == CounterName.JOB:
        result = Job.objects.filter(company_id=company_id).aggregate(
            highest=Max("sequence_number")
        )
    else:
        prefix = COUNTER_REFERENCE_PREFIXES[counter_name]
        result = Document.objects.filter(
            company_id=company_id, reference__startswith=f"{prefix}-"
        ).aggregate(highest=Max("number"))
    return result["highest"] or 0


def find_counter_problems(companies) -> List[CounterProblem]:
    problems = []
    for company in companies:
        stored = {
            counter.name: counter.next_value
            for counter in SequenceCounter.objects.filter(company=company)
        }
        for counter_name in CounterName.values:
            highest = highest_assigned(company.id, counter_name)
            if highest == 0:
                continue
            next_value = stored.get(counter_name)
            if next_value is None or next_value <= highest:
                problems.append(
                    CounterProblem(company, counter_name, next_value, highest)
                )
    return problems


class Command(BaseCommand):
    help = (
        "Checks that every sequence counter is ahead of the numbers already "
        "assigned to jobs and documents, and optionally moves lagging counters up."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--company-id",
            dest="company_id",
            type=str,
            help="Restrict the check to a single company UUID.",
        )
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Move lagging counters to one past the highest assigned number.",
        )

    def handle(self, *args, **options):
        companies = Company.objects.order_by("name")
        if options.get("company_id"):
            companies = companies.filter(id=options["company_id"])

        problems = find_counter_problems(companies)
        if not problems:
            self.stdout.write(self.style.SUCCESS("All sequence counters are ahead."))
            return

        for problem in problems:
            self.stdout.write(
                self.style.WARNING(
                    f"{problem.company.name} [{problem.counter_name}]: "
                    f"next_value={problem.next_value}, "
                    f"highest assigned={problem.highest_assigned}"
                )
            )

        if not options["fix"]:
            self.stdout.write(
                self.style.NOTICE(
                    f"{len(problems)} counter(s) lagging. Run again with --fix to repair."
                )
            )
            return

        logger.info(f"Repairing {len(problems)} lagging sequence counter(s)")
        for problem in problems:
            SequenceAllocator.advance_to(
                problem.company.id,
                problem.counter_name,
                problem.highest_assigned + 1,
            )

        self.stdout.write(self.style.SUCCESS(f"Repaired {len(problems)} counter(s)."))
