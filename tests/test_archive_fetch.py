"""Tests for the games database archive client."""

import httpx
import pytest

from launchmeta.archive_fetch import GamesDbClient, TransientFetchFailure

ARCHIVE_URL = "https://gamesdb.example.com/Metadata.zip"


def client_for(handler) -> GamesDbClient:
    return GamesDbClient(ARCHIVE_URL, transport=httpx.MockTransport(handler))


class TestGetRemoteVersionHash:
    """Tests for the remote version check."""

    def test_uses_etag(self):
        def handler(request):
            assert request.method == "HEAD"
            assert str(request.url) == ARCHIVE_URL
            return httpx.Response(200, headers={"ETag": '"5f3c-abc123"'})

        assert client_for(handler).get_remote_version_hash() == "5f3c-abc123"

    def test_strips_weak_etag_prefix(self):
        def handler(request):
            return httpx.Response(200, headers={"ETag": 'W/"abc123"'})

        assert client_for(handler).get_remote_version_hash() == "abc123"

    def test_falls_back_to_last_modified(self):
        def handler(request):
            return httpx.Response(
                200, headers={"Last-Modified": "Tue, 14 Oct 2025 03:00:00 GMT"}
            )

        assert (
            client_for(handler).get_remote_version_hash()
            == "Tue, 14 Oct 2025 03:00:00 GMT"
        )

    def test_no_version_headers(self):
        def handler(request):
            return httpx.Response(200)

        with pytest.raises(TransientFetchFailure, match="no ETag"):
            client_for(handler).get_remote_version_hash()

    def test_http_error(self):
        def handler(request):
            return httpx.Response(503)

        with pytest.raises(TransientFetchFailure, match="HTTP error 503"):
            client_for(handler).get_remote_version_hash()

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientFetchFailure, match="Request failed"):
            client_for(handler).get_remote_version_hash()


class TestDownloadArchive:
    """Tests for archive download."""

    def test_downloads_to_rewound_file(self):
        payload = b"PK\x03\x04" + b"x" * 200_000

        def handler(request):
            assert request.method == "GET"
            return httpx.Response(200, content=payload)

        with client_for(handler).download_archive() as archive:
            assert archive.tell() == 0
            assert archive.read() == payload

    def test_follows_redirect(self):
        def handler(request):
            if request.url.path == "/Metadata.zip":
                return httpx.Response(
                    302, headers={"Location": "https://cdn.example.com/Metadata.zip"}
                )
            return httpx.Response(200, content=b"zipdata")

        with client_for(handler).download_archive() as archive:
            assert archive.read() == b"zipdata"

    def test_http_error(self):
        def handler(request):
            return httpx.Response(404)

        with pytest.raises(TransientFetchFailure, match="HTTP error 404"):
            client_for(handler).download_archive()

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransientFetchFailure, match="Request failed"):
            client_for(handler).download_archive()


class TestFetchBytes:
    def test_returns_content(self):
        def handler(request):
            return httpx.Response(200, content=b"\x89PNG...")

        assert client_for(handler).fetch_bytes("https://images.example.com/a.png") == b"\x89PNG..."

    def test_http_error(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(TransientFetchFailure):
            client_for(handler).fetch_bytes("https://images.example.com/a.png")


class TestDefaults:
    def test_metadata_url_from_settings(self, settings):
        settings.GAMESDB_METADATA_URL = "https://mirror.example.com/Metadata.zip"
        assert GamesDbClient().metadata_url == "https://mirror.example.com/Metadata.zip"
