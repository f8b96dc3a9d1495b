"""Game resolution against the local games database.

A host asks for metadata one field at a time. All fields of one request
share a ResolutionSession, so the store is queried once per request and
every getter answers from the same resolved record and region priority.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from django.db.models import Q

from launchmeta.archive_fetch import GamesDbClient

from .images import (
    BACKGROUND_TYPES,
    COVER_TYPES,
    ICON_TYPES,
    image_url,
    make_icon,
    select_best_image,
)
from .models import AlternateName, GameImage, ReferenceGame
from .normalize import normalize
from .platforms import resolve_platform
from .rating import weighted_rating
from .regions import default_priority, priority_from_region, region_from_file_path

logger = logging.getLogger(__name__)

LAUNCHBOX_GAME_URL = "https://gamesdb.launchbox-app.com/games/dbid/{database_id}"

# Fields the provider can answer; everything else defers to the host
SUPPORTED_FIELDS = (
    "name",
    "genres",
    "release_date",
    "developers",
    "publishers",
    "description",
    "community_score",
    "cover_image",
    "background_image",
    "icon",
    "links",
)


class NotResolvable(Exception):
    """Raised when a query has no usable name or nothing in the store matches it."""

    pass


@dataclass(frozen=True)
class MetadataQuery:
    """What the host knows about a game in its library."""

    name: str
    platform: str = ""
    regions: tuple[str, ...] = ()
    file_paths: tuple[str, ...] = ()


@dataclass
class ResolvedGame:
    """The reference record chosen for a session and its display name."""

    game: ReferenceGame
    name: str


@dataclass(frozen=True)
class MetadataFile:
    """An image handed back to the host. Content is only set for icons."""

    name: str
    content: bytes | None
    url: str


@dataclass(frozen=True)
class Link:
    name: str
    url: str


_UNRESOLVED = object()


@dataclass
class ResolutionSession:
    """Per-request state: the memoized resolution and the region priority list.

    A session belongs to exactly one metadata request and is never shared.
    """

    query: MetadataQuery
    region_priority: dict[str, int] | None = None
    _resolved: object = field(default=_UNRESOLVED, init=False, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self._resolved is not _UNRESOLVED


def _first_non_blank(values) -> str:
    for value in values or ():
        if value and value.strip():
            return value
    return ""


def _seed_region_priority(session: ResolutionSession) -> None:
    """Derive the region priority from the query region or the ROM file name."""
    if session.region_priority:
        return

    query = session.query
    region = _first_non_blank(query.regions)
    if region:
        session.region_priority = priority_from_region(region)
        return

    file_path = query.file_paths[0] if query.file_paths else ""
    if file_path and file_path.strip():
        no_intro_region = region_from_file_path(file_path)
        if no_intro_region:
            session.region_priority = priority_from_region(no_intro_region)


def _find_game(name_key: str, platform_key: str) -> ReferenceGame | None:
    """First game (lowest database id) whose name or alternate name matches.

    An empty platform key searches every platform, so a title released on
    several platforms resolves to whichever record has the lowest id.
    """
    games = ReferenceGame.objects.all()
    if platform_key:
        games = games.filter(platform_search=platform_key)
    return (
        games.filter(Q(name_search=name_key) | Q(alternate_names__name_search=name_key))
        .order_by("database_id")
        .first()
    )


def _lookup(session: ResolutionSession) -> ResolvedGame | None:
    query = session.query
    if not query.name or not query.name.strip():
        logger.debug("Skipping lookup for blank game name")
        return None

    name_key = normalize(query.name)
    if not name_key:
        return None

    _seed_region_priority(session)

    platform_key = normalize(resolve_platform(query.platform))
    game = _find_game(name_key, platform_key)
    if game is None:
        logger.info(f"No games database match for '{query.name}' on '{query.platform}'")
        return None

    display_name = game.name
    if game.name_search != name_key:
        # Matched through an alternate name
        alternates = list(
            AlternateName.objects.filter(game_id=game.database_id, name_search=name_key)
        )
        if alternates:
            alternate = alternates[0]
            if alternate.alternate_name.strip():
                display_name = alternate.alternate_name
            if len(alternates) == 1 and alternate.region and not session.region_priority:
                session.region_priority = priority_from_region(alternate.region)
            logger.debug(
                f"'{query.name}' matched alternate name '{alternate}' of {game.database_id}"
            )

    if not session.region_priority:
        session.region_priority = default_priority()

    logger.info(f"Resolved '{query.name}' to {game.database_id} ({display_name})")
    return ResolvedGame(game=game, name=display_name)


def resolve_game(session: ResolutionSession) -> ResolvedGame:
    """Resolve the session's query to a single reference game.

    The outcome, including a miss, is computed once per session.

    Raises:
        NotResolvable: If the name is blank or no record matches
    """
    if not session.is_resolved:
        session._resolved = _lookup(session)

    if session._resolved is None:
        raise NotResolvable(session.query.name)
    return session._resolved


def has_data() -> bool:
    """Return True if the local store holds at least one game."""
    return ReferenceGame.objects.exists()


def split_multi_value(text: str) -> list[str] | None:
    """Split a ';'-delimited field into a sorted list, None if it's empty."""
    values = sorted(v.strip() for v in (text or "").split(";") if v.strip())
    return values or None


class GamesDbMetadataProvider:
    """Answers host metadata fields from the local games database.

    Every getter returns None when the game can't be resolved or the field
    is empty, so the host falls back to its own default.
    """

    def __init__(self, session: ResolutionSession, client: GamesDbClient | None = None):
        self.session = session
        self.client = client or GamesDbClient()

    def _resolved(self) -> ResolvedGame | None:
        try:
            return resolve_game(self.session)
        except NotResolvable:
            return None

    def _game(self) -> ReferenceGame | None:
        resolved = self._resolved()
        return resolved.game if resolved else None

    def _best_image(self, image_types) -> GameImage | None:
        game = self._game()
        if game is None:
            return None
        candidates = GameImage.objects.filter(
            game_id=game.database_id, image_type__in=image_types
        ).order_by("id")
        return select_best_image(candidates, image_types, self.session.region_priority)

    def get_name(self) -> str | None:
        resolved = self._resolved()
        if resolved and resolved.name.strip():
            return resolved.name
        return None

    def get_genres(self) -> list[str] | None:
        game = self._game()
        return split_multi_value(game.genres) if game else None

    def get_release_date(self) -> date | None:
        game = self._game()
        return game.release_date if game else None

    def get_developers(self) -> list[str] | None:
        game = self._game()
        return split_multi_value(game.developer) if game else None

    def get_publishers(self) -> list[str] | None:
        game = self._game()
        return split_multi_value(game.publisher) if game else None

    def get_description(self) -> str | None:
        game = self._game()
        if game and game.overview.strip():
            return game.overview
        return None

    def get_community_score(self) -> int | None:
        game = self._game()
        if game is None or game.community_rating is None:
            return None
        if game.community_rating_count <= 0:
            return None
        return weighted_rating(game.community_rating_count, game.community_rating)

    def get_cover_image(self) -> MetadataFile | None:
        image = self._best_image(COVER_TYPES)
        if image is None:
            return None
        return MetadataFile(image.file_name, None, image_url(image.file_name))

    def get_background_image(self) -> MetadataFile | None:
        image = self._best_image(BACKGROUND_TYPES)
        if image is None:
            return None
        return MetadataFile(image.file_name, None, image_url(image.file_name))

    def get_icon(self) -> MetadataFile | None:
        """Fetch the best icon-type image and return it as a 256x256 PNG.

        Returns None when there is no icon image or the downloaded bytes are
        not a decodable image.

        Raises:
            TransientFetchFailure: If the image can't be downloaded
        """
        image = self._best_image(ICON_TYPES)
        if image is None:
            return None
        url = image_url(image.file_name)
        try:
            content = make_icon(self.client.fetch_bytes(url))
        except ValueError as e:
            logger.warning(f"Skipping icon {url}: {e}")
            return None
        return MetadataFile(image.file_name, content, url)

    def get_links(self) -> list[Link] | None:
        game = self._game()
        if game is None:
            return None

        links = [
            Link("LaunchBox", LAUNCHBOX_GAME_URL.format(database_id=game.database_id))
        ]
        if game.wikipedia_url.strip():
            links.append(Link("Wikipedia", game.wikipedia_url))
        if game.video_url.strip():
            links.append(Link("Video", game.video_url))
        return links
