from __future__ import annotations

import io
import tarfile
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

import requests

from dumpload.config import DumpSourceSettings
from dumpload.connectors.dump_archive import ArchiveFetchError, DumpArchiveConnector, extract_archive


def _response(status_code: int, chunks: list[bytes] | None = None) -> mock.MagicMock:
    response = mock.MagicMock()
    response.status_code = status_code
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks or []
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"HTTP {status_code}", response=response
        )
    return response


def _build_archive(path: Path, members: dict[str, bytes]) -> Path:
    with tarfile.open(path, mode="w:gz") as archive:
        for name, payload in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            archive.addfile(info, io.BytesIO(payload))
    return path


class TestDumpArchiveConnector(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp_path = Path(self._tmp.name)
        self.session = mock.MagicMock(spec=requests.Session)
        self.connector = DumpArchiveConnector(
            settings=DumpSourceSettings(max_retries=2, backoff_initial_seconds=0.1),
            session=self.session,
        )
        sleep_patcher = mock.patch("dumpload.connectors.dump_archive.time.sleep")
        self.sleep = sleep_patcher.start()
        self.addCleanup(sleep_patcher.stop)

    def test_streams_body_to_destination(self) -> None:
        self.session.get.return_value = _response(200, [b"abc", b"", b"def"])

        path = self.connector.download("https://example.com/dump.tar.gz", self.tmp_path / "out" / "dump.tar.gz")

        self.assertEqual(path.read_bytes(), b"abcdef")
        self.assertFalse(path.with_name("dump.tar.gz.part").exists())
        _, kwargs = self.session.get.call_args
        self.assertTrue(kwargs["stream"])

    def test_retries_retryable_status_then_succeeds(self) -> None:
        self.session.get.side_effect = [_response(503), _response(200, [b"ok"])]

        path = self.connector.download("https://example.com/dump.tar.gz", self.tmp_path / "dump.tar.gz")

        self.assertEqual(path.read_bytes(), b"ok")
        self.assertEqual(self.session.get.call_count, 2)
        self.sleep.assert_called_once_with(0.1)

    def test_retries_connection_errors_until_exhausted(self) -> None:
        self.session.get.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(ArchiveFetchError):
            self.connector.download("https://example.com/dump.tar.gz", self.tmp_path / "dump.tar.gz")

        self.assertEqual(self.session.get.call_count, 3)
        self.assertEqual([call.args[0] for call in self.sleep.call_args_list], [0.1, 0.2])

    def test_non_retryable_status_fails_immediately(self) -> None:
        self.session.get.return_value = _response(404)

        with self.assertRaises(ArchiveFetchError) as ctx:
            self.connector.download("https://example.com/missing.tar.gz", self.tmp_path / "dump.tar.gz")

        self.assertIn("404", str(ctx.exception))
        self.assertEqual(self.session.get.call_count, 1)
        self.sleep.assert_not_called()


class TestExtractArchive(unittest.TestCase):
    def test_extracts_members_under_destination(self) -> None:
        with TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            archive = _build_archive(
                tmp_path / "dump.tar.gz",
                {"dump/customers.csv": b"Index\n1\n", "dump/organizations.csv": b"Index\n2\n"},
            )

            extracted = extract_archive(archive, tmp_path / "extracted")

            self.assertEqual((extracted / "dump" / "customers.csv").read_bytes(), b"Index\n1\n")
            self.assertTrue((extracted / "dump" / "organizations.csv").exists())

    def test_rejects_members_escaping_destination(self) -> None:
        with TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            archive = _build_archive(tmp_path / "evil.tar.gz", {"../escape.csv": b"x"})

            with self.assertRaises(ArchiveFetchError):
                extract_archive(archive, tmp_path / "extracted")

            self.assertFalse((tmp_path / "escape.csv").exists())

    def test_corrupt_archive_raises(self) -> None:
        with TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            archive = tmp_path / "broken.tar.gz"
            archive.write_bytes(b"not a tarball")

            with self.assertRaises(ArchiveFetchError):
                extract_archive(archive, tmp_path / "extracted")


if __name__ == "__main__":
    unittest.main()
