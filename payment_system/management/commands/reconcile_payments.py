import logging

from django.core.management.base import BaseCommand, CommandError

from infrastructure.container import container


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Completes paid auctions that are missing their payment transaction or delivery."

    def add_arguments(self, parser):
        parser.add_argument(
            "--ledger",
            dest="ledger_id",
            help="Repair a single auction ledger by id",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Maximum number of ledgers to repair in this run",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List incomplete ledgers without changing anything",
        )

    def handle(self, *args, **options):
        service = container.reconciliation_service()

        if options["ledger_id"]:
            result = service.complete_pending_records(options["ledger_id"])
            if not result.ok:
                raise CommandError(f"{result.error}: {result.error_detail}")
            repaired = [name for name, created in result.value["repaired"].items() if created]
            self.stdout.write(
                self.style.SUCCESS(
                    f"Ledger {options['ledger_id']} complete (created: {', '.join(repaired) or 'nothing'})."
                )
            )
            return

        if options["dry_run"]:
            incomplete = service.find_incomplete_ledgers()
            self.stdout.write(f"Found {incomplete.count()} paid ledgers with missing records.")
            for ledger in incomplete:
                self.stdout.write(f"  {ledger.pk} (listing {ledger.listing_id}, invoice {ledger.invoice_number})")
            return

        self.stdout.write("Starting payment record repair...")
        summary = service.complete_all_pending(limit=options["limit"])

        self.stdout.write(f"Checked {summary['checked']} ledgers.")
        for ledger_id in summary["repaired"]:
            self.stdout.write(self.style.SUCCESS(f"  Repaired {ledger_id}"))
        for failure in summary["failed"]:
            self.stdout.write(self.style.ERROR(f"  Failed {failure['ledger_id']}: {failure['error']}"))

        if summary["failed"]:
            raise CommandError(f"{len(summary['failed'])} ledgers could not be completed")
        self.stdout.write(self.style.SUCCESS("Payment record repair complete."))
