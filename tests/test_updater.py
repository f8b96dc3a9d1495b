"""Tests for update orchestration."""

import asyncio
import io
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from django.test import TestCase

from gamesdb.importer import ImportFailure
from gamesdb.models import ReferenceGame, Setting
from gamesdb.updater import (
    VERSION_HASH_KEY,
    anew_metadata_available,
    aupdate_metadata,
    get_stored_version_hash,
    import_local_archive,
    new_metadata_available,
    run_update,
    set_stored_version_hash,
)
from launchmeta.archive_fetch import TransientFetchFailure
from tests.conftest import SONIC_GAME, build_metadata_xml, make_metadata_zip


def make_client(version_hash="abc123", archive: bytes | None = None):
    client = MagicMock()
    client.get_remote_version_hash.return_value = version_hash
    if archive is None:
        archive = make_metadata_zip(build_metadata_xml(games=[SONIC_GAME]))
    client.download_archive.return_value = io.BytesIO(archive)
    return client


class TestVersionHash(TestCase):
    def test_no_stored_hash(self):
        self.assertEqual(get_stored_version_hash(), "")

    def test_round_trip(self):
        set_stored_version_hash("abc123")
        self.assertEqual(get_stored_version_hash(), "abc123")
        self.assertEqual(Setting.get(VERSION_HASH_KEY), "abc123")

    def test_new_metadata_available(self):
        set_stored_version_hash("abc123")
        self.assertTrue(new_metadata_available(make_client("def456")))

    def test_same_hash_ignores_case(self):
        set_stored_version_hash("abc123")
        self.assertFalse(new_metadata_available(make_client("ABC123")))

    def test_first_run_has_new_metadata(self):
        self.assertTrue(new_metadata_available(make_client("abc123")))

    def test_version_check_failure_propagates(self):
        client = make_client()
        client.get_remote_version_hash.side_effect = TransientFetchFailure("HTTP error 503")

        with self.assertRaises(TransientFetchFailure):
            new_metadata_available(client)


@patch("gamesdb.importer.call_command")
class TestRunUpdate(TestCase):
    """Tests for run_update."""

    def test_imports_and_stores_hash(self, mock_call_command):
        progress_callback = MagicMock()

        version_hash, counts = run_update(make_client("abc123"), progress_callback)

        self.assertEqual(version_hash, "abc123")
        self.assertEqual(counts["Game"], 1)
        self.assertEqual(get_stored_version_hash(), "abc123")
        self.assertTrue(ReferenceGame.objects.filter(pk=1001).exists())

        first_stage = progress_callback.call_args_list[0].args[0]["stage"]
        self.assertEqual(first_stage, "downloading")

    def test_download_failure_keeps_old_hash(self, mock_call_command):
        set_stored_version_hash("old")
        client = make_client("new")
        client.download_archive.side_effect = TransientFetchFailure("Request failed")

        with self.assertRaises(TransientFetchFailure):
            run_update(client)

        self.assertEqual(get_stored_version_hash(), "old")
        mock_call_command.assert_not_called()

    def test_import_failure_keeps_old_hash(self, mock_call_command):
        set_stored_version_hash("old")
        client = make_client("new", archive=b"not a zip")

        with self.assertRaises(ImportFailure):
            run_update(client)

        self.assertEqual(get_stored_version_hash(), "old")


@patch("gamesdb.importer.call_command")
class TestImportLocalArchive(TestCase):
    def test_imports_without_touching_hash(self, mock_call_command):
        set_stored_version_hash("abc123")

        with patch("gamesdb.updater.Path.is_file", return_value=True):
            with patch("gamesdb.updater.import_archive") as mock_import:
                mock_import.return_value = {"Game": 1}
                counts = import_local_archive("/data/Metadata.zip")

        self.assertEqual(counts, {"Game": 1})
        self.assertEqual(get_stored_version_hash(), "abc123")
        self.assertEqual(str(mock_import.call_args.args[0]), "/data/Metadata.zip")

    def test_imports_file_from_disk(self, mock_call_command):
        archive = make_metadata_zip(build_metadata_xml(games=[SONIC_GAME]))
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "Metadata.zip"
            path.write_bytes(archive)

            counts = import_local_archive(path)

        self.assertEqual(counts["Game"], 1)
        self.assertEqual(ReferenceGame.objects.count(), 1)

    def test_missing_file(self, mock_call_command):
        with self.assertRaises(FileNotFoundError):
            import_local_archive("/nonexistent/Metadata.zip")


class TestAsyncFacades:
    """The async entry points delegate to the blocking functions."""

    def test_anew_metadata_available(self):
        client = MagicMock()
        with patch("gamesdb.updater.new_metadata_available", return_value=True) as mock_check:
            assert asyncio.run(anew_metadata_available(client)) is True
        mock_check.assert_called_once_with(client)

    def test_aupdate_metadata(self):
        client = MagicMock()
        with patch("gamesdb.updater.run_update", return_value=("abc123", {"Game": 1})) as mock_run:
            result = asyncio.run(aupdate_metadata(client))

        assert result == ("abc123", {"Game": 1})
        mock_run.assert_called_once_with(client, None)

    def test_aupdate_metadata_propagates_failure(self):
        with patch("gamesdb.updater.run_update", side_effect=ImportFailure("boom")):
            with pytest.raises(ImportFailure):
                asyncio.run(aupdate_metadata(MagicMock()))
