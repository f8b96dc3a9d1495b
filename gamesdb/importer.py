"""Full-replace import of the LaunchBox Metadata.xml dump.

The dump is a single XML document of several hundred megabytes holding
repeated Game, GameAlternateName and GameImage elements (plus Platform,
Emulator and friends we don't use). Each record type is imported in its own
pass over the document, streaming elements one at a time and writing them
in large bulk batches.
"""

import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import IO, Callable, Iterator

from django.conf import settings
from django.core.management import call_command
from django.core.management.color import no_style
from django.db import connection, models, transaction
from django.utils.dateparse import parse_date, parse_datetime

from .models import AlternateName, GameImage, ReferenceGame
from .normalize import normalize

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10000

# Import stages, in the order a run goes through them
STAGE_IDLE = "idle"
STAGE_DOWNLOADING = "downloading"
STAGE_REPLACING = "replacing"
STAGE_IMPORTING_GAMES = "importing_games"
STAGE_IMPORTING_ALTERNATE_NAMES = "importing_alternate_names"
STAGE_IMPORTING_IMAGES = "importing_images"


class ImportFailure(Exception):
    """Raised when an import run can't complete. The store is left wiped or partial."""

    pass


class MalformedRecord(ImportFailure):
    """Raised when a record in the dump is missing a required field or can't be parsed."""

    def __init__(self, tag: str, ordinal: int, reason: str):
        self.tag = tag
        self.ordinal = ordinal
        self.reason = reason
        super().__init__(f"{tag} #{ordinal}: {reason}")


def iter_elements(stream: IO[bytes], tag: str) -> Iterator[ET.Element]:
    """Yield the top-level elements named tag, one at a time.

    Every top-level element is cleared and dropped from the root once it
    has been handled, so memory stays flat regardless of document size.
    """
    root = None
    depth = 0
    for event, elem in ET.iterparse(stream, events=("start", "end")):
        if event == "start":
            if root is None:
                root = elem
            depth += 1
            continue

        depth -= 1
        if depth == 1:
            if elem.tag == tag:
                yield elem
            elem.clear()
            root.clear()


# -----------------------------------------------------------------------------
# Field parsing
# -----------------------------------------------------------------------------


def _text(elem: ET.Element, name: str) -> str:
    value = elem.findtext(name)
    return value.strip() if value else ""


def _required(elem: ET.Element, name: str) -> str:
    value = _text(elem, name)
    if not value:
        raise ValueError(f"missing {name}")
    return value


def _int(elem: ET.Element, name: str, required: bool = False) -> int | None:
    value = _required(elem, name) if required else _text(elem, name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"invalid {name} {value!r}") from None


def _date(elem: ET.Element, name: str):
    """Parse an ISO date or datetime ("2004-10-01T00:00:00-07:00") to a date."""
    value = _text(elem, name)
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed.date()
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValueError(f"invalid {name} {value!r}")
    return parsed


def rescale_rating(raw: str) -> int | None:
    """Convert a 0-5 community rating to an integer on a 0-100 scale.

    Halves round to the nearest even integer, so "3.125" (62.5) becomes 62.
    """
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"invalid CommunityRating {raw!r}") from None
    return int((value / 5 * 100).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


# -----------------------------------------------------------------------------
# Record types
# -----------------------------------------------------------------------------


def transform_game(elem: ET.Element) -> ReferenceGame:
    name = _required(elem, "Name")
    platform = _text(elem, "Platform")
    return ReferenceGame(
        database_id=_int(elem, "DatabaseID", required=True),
        name=name,
        platform=platform,
        name_search=normalize(name),
        platform_search=normalize(platform),
        release_date=_date(elem, "ReleaseDate"),
        genres=_text(elem, "Genres"),
        developer=_text(elem, "Developer"),
        publisher=_text(elem, "Publisher"),
        overview=_text(elem, "Overview"),
        community_rating=rescale_rating(_text(elem, "CommunityRating")),
        community_rating_count=_int(elem, "CommunityRatingCount") or 0,
        wikipedia_url=_text(elem, "WikipediaURL"),
        video_url=_text(elem, "VideoURL"),
    )


def transform_alternate_name(elem: ET.Element) -> AlternateName:
    alternate_name = _required(elem, "AlternateName")
    return AlternateName(
        game_id=_int(elem, "DatabaseID", required=True),
        alternate_name=alternate_name,
        name_search=normalize(alternate_name),
        region=_text(elem, "Region"),
    )


def transform_game_image(elem: ET.Element) -> GameImage:
    return GameImage(
        game_id=_int(elem, "DatabaseID", required=True),
        file_name=_required(elem, "FileName"),
        image_type=_required(elem, "Type"),
        region=_text(elem, "Region"),
    )


@dataclass(frozen=True)
class RecordType:
    """One importable element kind of the dump."""

    tag: str
    model: type[models.Model]
    transform: Callable[[ET.Element], models.Model]
    stage: str


GAME = RecordType("Game", ReferenceGame, transform_game, STAGE_IMPORTING_GAMES)
ALTERNATE_NAME = RecordType(
    "GameAlternateName",
    AlternateName,
    transform_alternate_name,
    STAGE_IMPORTING_ALTERNATE_NAMES,
)
GAME_IMAGE = RecordType("GameImage", GameImage, transform_game_image, STAGE_IMPORTING_IMAGES)

# Import order: games, then alternate names, then images
RECORD_TYPES = {rt.tag: rt for rt in (GAME, ALTERNATE_NAME, GAME_IMAGE)}


# -----------------------------------------------------------------------------
# Bulk writing
# -----------------------------------------------------------------------------


class BulkWriter:
    """Buffers model instances and writes them with bulk_create.

    Rows are written in batches of batch_size; close() writes the remainder.
    bulk_create skips save() and model signals for every row.
    """

    def __init__(self, model: type[models.Model], batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.model = model
        self.batch_size = batch_size
        self.buffer: list[models.Model] = []
        self.flush_sizes: list[int] = []

    @property
    def written(self) -> int:
        return sum(self.flush_sizes)

    def add(self, obj: models.Model) -> None:
        self.buffer.append(obj)
        if len(self.buffer) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self.buffer:
            return
        self.model.objects.bulk_create(self.buffer, batch_size=self.batch_size)
        self.flush_sizes.append(len(self.buffer))
        logger.debug(f"Flushed {len(self.buffer)} {self.model.__name__} rows")
        self.buffer = []

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> "BulkWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()


def get_batch_size() -> int:
    return getattr(settings, "GAMESDB_IMPORT_BATCH_SIZE", DEFAULT_BATCH_SIZE)


def import_typed(
    stream: IO[bytes], record_type: RecordType, batch_size: int | None = None
) -> int:
    """Import every element of one record type from a Metadata.xml stream.

    The whole pass runs in one transaction.

    Returns:
        Number of rows written

    Raises:
        MalformedRecord: If an element can't be turned into a row
    """
    batch_size = batch_size or get_batch_size()
    logger.info(f"Importing {record_type.tag} records")

    with transaction.atomic():
        with BulkWriter(record_type.model, batch_size) as writer:
            for ordinal, elem in enumerate(iter_elements(stream, record_type.tag), 1):
                try:
                    obj = record_type.transform(elem)
                except ValueError as e:
                    raise MalformedRecord(record_type.tag, ordinal, str(e)) from e
                writer.add(obj)

    logger.info(
        f"Imported {writer.written} {record_type.tag} records "
        f"in {len(writer.flush_sizes)} batches"
    )
    return writer.written


def replace_store() -> None:
    """Migrate the games database forward and delete every imported row."""
    call_command("migrate", "gamesdb", verbosity=0, interactive=False)

    tables = [rt.model._meta.db_table for rt in RECORD_TYPES.values()]
    sql_list = connection.ops.sql_flush(no_style(), tables, reset_sequences=True)
    connection.ops.execute_sql_flush(sql_list)
    logger.info(f"Cleared games database tables: {', '.join(tables)}")


def _find_metadata_entry(archive: zipfile.ZipFile) -> zipfile.ZipInfo:
    filename = getattr(settings, "GAMESDB_METADATA_FILENAME", "Metadata.xml").lower()
    for info in archive.infolist():
        if info.filename.rsplit("/", 1)[-1].lower() == filename:
            return info
    raise ImportFailure(f"Archive has no {filename} entry")


def import_archive(
    archive_file,
    progress_callback: Callable[[dict], None] | None = None,
    batch_size: int | None = None,
) -> dict:
    """Replace the local store with the contents of a metadata archive.

    Args:
        archive_file: Path or binary file object of the Metadata.zip archive
        progress_callback: Called with {"stage", "progress"} after each stage
        batch_size: Rows per bulk insert (defaults to GAMESDB_IMPORT_BATCH_SIZE)

    Returns:
        Row counts keyed by record tag

    Raises:
        ImportFailure: If anything goes wrong; the store may be wiped or partial
    """
    stages = [STAGE_REPLACING] + [rt.stage for rt in RECORD_TYPES.values()]

    def report(stage: str) -> None:
        if progress_callback:
            progress = int((stages.index(stage) + 1) / len(stages) * 100)
            progress_callback({"stage": stage, "progress": progress})

    counts = {}
    try:
        with zipfile.ZipFile(archive_file) as archive:
            entry = _find_metadata_entry(archive)

            replace_store()
            report(STAGE_REPLACING)

            for record_type in RECORD_TYPES.values():
                with archive.open(entry) as stream:
                    counts[record_type.tag] = import_typed(
                        stream, record_type, batch_size
                    )
                report(record_type.stage)
    except ImportFailure as e:
        logger.error(f"Games database import failed: {e}")
        raise
    except Exception as e:
        logger.error(f"Games database import failed: {e}")
        raise ImportFailure(f"Import failed: {e}") from e

    if progress_callback:
        progress_callback({"stage": STAGE_IDLE, "progress": 100})
    return counts
