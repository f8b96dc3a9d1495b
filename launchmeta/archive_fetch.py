"""HTTP client for the remote LaunchBox games database archive."""

import logging
import tempfile
from typing import IO

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)


class TransientFetchFailure(Exception):
    """Raised when the remote archive, its version hash, or an image can't be fetched."""

    pass


# Configuration
CONNECT_TIMEOUT = 10  # seconds
READ_TIMEOUT = 120  # seconds, the archive is large
MAX_REDIRECTS = 5
CHUNK_SIZE = 64 * 1024


class GamesDbClient:
    """Fetches the metadata archive, its version hash and remote image bytes.

    No retry is attempted: every failure surfaces as TransientFetchFailure
    and the caller decides whether to try again.
    """

    def __init__(self, metadata_url: str | None = None, transport=None):
        self.metadata_url = metadata_url or getattr(
            settings,
            "GAMESDB_METADATA_URL",
            "https://gamesdb.launchbox-app.com/Metadata.zip",
        )
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(READ_TIMEOUT, connect=CONNECT_TIMEOUT),
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            transport=self._transport,
        )

    def get_remote_version_hash(self) -> str:
        """Return the version hash advertised for the remote archive.

        Uses the ETag of the archive (quotes and weak prefix stripped),
        falling back to Last-Modified.

        Raises:
            TransientFetchFailure: If the request fails or no version header is sent
        """
        try:
            with self._client() as client:
                response = client.head(self.metadata_url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Version check failed for {self.metadata_url}: {e}")
            raise TransientFetchFailure(
                f"HTTP error {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Version check failed for {self.metadata_url}: {e}")
            raise TransientFetchFailure(f"Request failed: {e}") from e

        etag = response.headers.get("etag", "")
        if etag:
            return etag.removeprefix("W/").strip('"')

        last_modified = response.headers.get("last-modified", "")
        if last_modified:
            return last_modified

        raise TransientFetchFailure("Remote archive has no ETag or Last-Modified header")

    def download_archive(self) -> IO[bytes]:
        """Download the metadata archive into a temporary file.

        Returns:
            Open binary file positioned at the start. Closing it deletes it.

        Raises:
            TransientFetchFailure: If the download fails
        """
        archive = tempfile.TemporaryFile(suffix=".zip")
        try:
            with self._client() as client:
                with client.stream("GET", self.metadata_url) as response:
                    response.raise_for_status()
                    total = 0
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        archive.write(chunk)
                        total += len(chunk)
        except httpx.HTTPStatusError as e:
            archive.close()
            logger.error(f"Archive download failed: {e}")
            raise TransientFetchFailure(
                f"HTTP error {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            archive.close()
            logger.error(f"Archive download failed: {e}")
            raise TransientFetchFailure(f"Request failed: {e}") from e

        logger.info(f"Downloaded {total} bytes from {self.metadata_url}")
        archive.seek(0)
        return archive

    def fetch_bytes(self, url: str) -> bytes:
        """Fetch a remote asset (e.g. an icon image) into memory.

        Raises:
            TransientFetchFailure: If the request fails
        """
        try:
            with self._client() as client:
                response = client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise TransientFetchFailure(
                f"HTTP error {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise TransientFetchFailure(f"Request failed: {e}") from e
