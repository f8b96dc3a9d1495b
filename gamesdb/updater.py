"""Keeping the local games database in step with the remote archive."""

import logging
from pathlib import Path
from typing import Callable

from asgiref.sync import sync_to_async

from launchmeta.archive_fetch import GamesDbClient

from .importer import STAGE_DOWNLOADING, import_archive
from .models import Setting

logger = logging.getLogger(__name__)

VERSION_HASH_KEY = "gamesdb_version_hash"


def get_stored_version_hash() -> str:
    """Return the version hash of the last successful import ("" if none)."""
    return Setting.get(VERSION_HASH_KEY, "") or ""


def set_stored_version_hash(version_hash: str) -> None:
    Setting.set(VERSION_HASH_KEY, version_hash)


def new_metadata_available(client: GamesDbClient | None = None) -> bool:
    """Check whether the remote archive differs from the imported one.

    Raises:
        TransientFetchFailure: If the remote version can't be fetched
    """
    client = client or GamesDbClient()
    remote_hash = client.get_remote_version_hash()
    stored_hash = get_stored_version_hash()
    return remote_hash.lower() != stored_hash.lower()


def run_update(
    client: GamesDbClient | None = None,
    progress_callback: Callable[[dict], None] | None = None,
    batch_size: int | None = None,
) -> tuple[str, dict]:
    """Download the remote archive and replace the local store with it.

    The new version hash is stored only after the import succeeded.

    Returns:
        Tuple of (version_hash, row counts keyed by record tag)

    Raises:
        TransientFetchFailure: If the version check or download fails
        ImportFailure: If the import fails
    """
    client = client or GamesDbClient()
    version_hash = client.get_remote_version_hash()

    if progress_callback:
        progress_callback({"stage": STAGE_DOWNLOADING, "progress": 0})
    logger.info(f"Downloading games database version {version_hash}")

    with client.download_archive() as archive:
        counts = import_archive(archive, progress_callback, batch_size)

    set_stored_version_hash(version_hash)
    logger.info(f"Games database updated to version {version_hash}: {counts}")
    return version_hash, counts


def import_local_archive(
    path: str | Path,
    progress_callback: Callable[[dict], None] | None = None,
    batch_size: int | None = None,
) -> dict:
    """Import a Metadata.zip already on disk. The stored version hash is left alone."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Archive not found: {path}")

    logger.info(f"Importing games database from {path}")
    return import_archive(path, progress_callback, batch_size)


async def anew_metadata_available(client: GamesDbClient | None = None) -> bool:
    return await sync_to_async(new_metadata_available)(client)


async def aupdate_metadata(
    client: GamesDbClient | None = None,
    progress_callback: Callable[[dict], None] | None = None,
) -> tuple[str, dict]:
    """Run the download and import on a worker thread."""
    return await sync_to_async(run_update, thread_sensitive=False)(
        client, progress_callback
    )
