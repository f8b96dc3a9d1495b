"""Management command to download and import the LaunchBox games database."""

from django.core.management.base import BaseCommand, CommandError

from gamesdb.importer import ImportFailure
from gamesdb.updater import (
    get_stored_version_hash,
    import_local_archive,
    new_metadata_available,
    run_update,
)
from launchmeta.archive_fetch import GamesDbClient, TransientFetchFailure


class Command(BaseCommand):
    help = "Download the LaunchBox games database and replace the local copy"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file",
            type=str,
            help="Import a Metadata.zip already on disk instead of downloading",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Import even if the remote archive hasn't changed",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Rows per bulk insert (default: GAMESDB_IMPORT_BATCH_SIZE)",
        )

    def handle(self, *args, **options):
        batch_size = options["batch_size"]
        if batch_size is not None and batch_size < 1:
            raise CommandError("--batch-size must be at least 1")

        try:
            if options["file"]:
                self.stdout.write(f"Importing: {options['file']}")
                counts = import_local_archive(
                    options["file"], self.report_progress, batch_size
                )
            else:
                client = GamesDbClient()
                if not options["force"] and not new_metadata_available(client):
                    version = get_stored_version_hash()
                    self.stdout.write(
                        self.style.SUCCESS(f"Games database is up to date ({version})")
                    )
                    return

                self.stdout.write(f"Downloading: {client.metadata_url}")
                version, counts = run_update(client, self.report_progress, batch_size)
                self.stdout.write(f"Version: {version}")
        except FileNotFoundError as e:
            raise CommandError(str(e)) from e
        except (ImportFailure, TransientFetchFailure) as e:
            raise CommandError(f"Update failed: {e}") from e

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(f"Games: {counts.get('Game', 0)}"))
        self.stdout.write(f"Alternate names: {counts.get('GameAlternateName', 0)}")
        self.stdout.write(f"Images: {counts.get('GameImage', 0)}")
        self.stdout.write("")
        self.stdout.write("Done!")

    def report_progress(self, data: dict) -> None:
        self.stdout.write(f"  [{data['progress']:3d}%] {data['stage']}")
