"""Management command to resolve a game against the local games database."""

from django.core.management.base import BaseCommand, CommandError

from gamesdb.resolver import (
    GamesDbMetadataProvider,
    MetadataQuery,
    ResolutionSession,
    has_data,
)


class Command(BaseCommand):
    help = "Look up a game in the local games database and print its metadata"

    def add_arguments(self, parser):
        parser.add_argument("name", type=str, help="Game name as the library shows it")
        parser.add_argument(
            "--platform",
            type=str,
            default="",
            help="Platform id, e.g. sega_genesis",
        )
        parser.add_argument(
            "--region",
            type=str,
            action="append",
            default=[],
            help="Region descriptor, e.g. USA (repeatable)",
        )
        parser.add_argument(
            "--path",
            type=str,
            action="append",
            default=[],
            help="ROM file path, used for No-Intro region tags (repeatable)",
        )
        parser.add_argument(
            "--icon",
            action="store_true",
            help="Also download and process the icon",
        )

    def handle(self, *args, **options):
        if not has_data():
            raise CommandError("Games database is empty, run update_gamesdb first")

        query = MetadataQuery(
            name=options["name"],
            platform=options["platform"],
            regions=tuple(options["region"]),
            file_paths=tuple(options["path"]),
        )
        session = ResolutionSession(query)
        provider = GamesDbMetadataProvider(session)

        name = provider.get_name()
        if name is None:
            self.stdout.write(self.style.WARNING(f"No match for: {query.name}"))
            return

        self.stdout.write(self.style.SUCCESS(f"Name: {name}"))
        self.stdout.write(f"Genres: {self._join(provider.get_genres())}")
        self.stdout.write(f"Release date: {provider.get_release_date() or '-'}")
        self.stdout.write(f"Developers: {self._join(provider.get_developers())}")
        self.stdout.write(f"Publishers: {self._join(provider.get_publishers())}")

        score = provider.get_community_score()
        self.stdout.write(f"Community score: {score if score is not None else '-'}")

        cover = provider.get_cover_image()
        self.stdout.write(f"Cover: {cover.url if cover else '-'}")
        background = provider.get_background_image()
        self.stdout.write(f"Background: {background.url if background else '-'}")

        if options["icon"]:
            icon = provider.get_icon()
            if icon:
                self.stdout.write(f"Icon: {icon.url} ({len(icon.content)} bytes)")
            else:
                self.stdout.write("Icon: -")

        for link in provider.get_links() or []:
            self.stdout.write(f"{link.name}: {link.url}")

        regions = ", ".join(r or "(untagged)" for r in session.region_priority or {})
        self.stdout.write(f"Region priority: {regions}")

        description = provider.get_description()
        if description:
            self.stdout.write("")
            self.stdout.write(description)

    def _join(self, values: list[str] | None) -> str:
        return ", ".join(values) if values else "-"
