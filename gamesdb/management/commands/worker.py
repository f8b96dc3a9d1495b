"""Custom worker command with orphaned import job cleanup."""

import logging

from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.utils import timezone

from gamesdb.models import ImportJob
from gamesdb.queues import ALL_QUEUES

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Start Procrastinate worker with orphaned import job cleanup"

    def add_arguments(self, parser):
        # Accept the procrastinate worker arguments we pass through
        parser.add_argument("--concurrency", type=int, default=1)
        parser.add_argument("--queues", type=str, default=",".join(ALL_QUEUES))
        parser.add_argument("--name", type=str, default="")

    def handle(self, *args, **options):
        cleaned = self.cleanup_orphaned_jobs()
        if cleaned:
            logger.info(
                f"Marked {cleaned} orphaned import job(s) as FAILED from previous worker crash"
            )

        worker_args = ["worker"]
        if options["concurrency"]:
            worker_args.extend(["--concurrency", str(options["concurrency"])])
        if options["queues"]:
            worker_args.extend(["--queues", options["queues"]])
        if options["name"]:
            worker_args.extend(["--name", options["name"]])

        # Delegate to procrastinate worker
        call_command("procrastinate", *worker_args)

    def cleanup_orphaned_jobs(self) -> int:
        """Mark all RUNNING import jobs as FAILED - they're orphaned from a crash."""
        from django.db import OperationalError, ProgrammingError

        try:
            return ImportJob.objects.filter(status=ImportJob.STATUS_RUNNING).update(
                status=ImportJob.STATUS_FAILED,
                error="Worker crashed during execution",
                completed_at=timezone.now(),
            )
        except (OperationalError, ProgrammingError):
            # Tables don't exist yet (migrations not run)
            logger.debug("Skipping orphan cleanup - tables not yet created")
            return 0
