"""Tests for archive detection, extraction and creation."""

import gzip
import io
import tarfile
import tempfile
import unittest
import zipfile
from pathlib import Path

from kaggle_client.application.domain import ArchiveFormat
from kaggle_client.application.exceptions import ArchiveError, UnsafePathError
from kaggle_client.infrastructure.archive import (
    ArchiveExtractor,
    ArchiveMode,
    detect_format,
    make_archive,
)

from support import make_gzip, make_tar_gz, make_zip

ENTRIES = {"a.txt": "hello", "dir/b.txt": "world"}


def tree(root: Path):
    """Maps relative file paths under root to their text."""
    return {
        p.relative_to(root).as_posix(): p.read_text()
        for p in root.rglob("*")
        if p.is_file()
    }


def v7_tar_gz(name: str, text: str) -> bytes:
    """A gzip-compressed single-entry tar whose header has no ustar magic."""
    data = text.encode("utf-8")
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.USTAR_FORMAT) as archive:
        info = tarfile.TarInfo(name)
        info.size = len(data)
        archive.addfile(info, io.BytesIO(data))

    raw = bytearray(buffer.getvalue())
    raw[257:265] = bytes(8)
    raw[148:156] = b" " * 8
    raw[148:156] = b"%06o\x00 " % sum(raw[:512])
    return gzip.compress(bytes(raw))


class TestArchiveExtractor(unittest.TestCase):

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.destination = self.tmp / "out"
        self.extractor = ArchiveExtractor()

    def _archive_file(self, name: str, data: bytes) -> Path:
        path = self.tmp / name
        path.write_bytes(data)
        return path

    def test_zip_round_trip(self):
        source = self._archive_file("data.zip", make_zip(ENTRIES))
        written = self.extractor.extract(source, self.destination)

        self.assertEqual(tree(self.destination), ENTRIES)
        self.assertEqual(
            sorted(p.relative_to(self.destination.resolve()).as_posix() for p in written),
            sorted(ENTRIES),
        )

    def test_zip_from_bytes(self):
        self.extractor.extract(make_zip(ENTRIES), self.destination)
        self.assertEqual(tree(self.destination), ENTRIES)

    def test_zip_traversal_rejected(self):
        source = self._archive_file(
            "evil.zip", make_zip({"ok.txt": "fine", "../../evil.txt": "boom"})
        )
        with self.assertRaises(UnsafePathError) as ctx:
            self.extractor.extract(source, self.destination)

        self.assertIsInstance(ctx.exception, ArchiveError)
        self.assertEqual(ctx.exception.entry, "../../evil.txt")
        self.assertFalse((self.tmp / "evil.txt").exists())
        self.assertFalse((self.tmp.parent / "evil.txt").exists())
        self.assertEqual(tree(self.destination), {})

    def test_absolute_entry_rejected(self):
        with self.assertRaises(UnsafePathError):
            self.extractor.extract(make_zip({"/etc/evil": "x"}), self.destination)

    def test_extract_twice_overwrites(self):
        source = self._archive_file("data.zip", make_zip(ENTRIES))
        first = self.extractor.extract(source, self.destination)
        second = self.extractor.extract(source, self.destination)

        self.assertEqual(first, second)
        self.assertEqual(tree(self.destination), ENTRIES)

    def test_overwrite_replaces_changed_file(self):
        (self.destination).mkdir()
        (self.destination / "a.txt").write_text("stale")
        self.extractor.extract(make_zip(ENTRIES), self.destination)
        self.assertEqual((self.destination / "a.txt").read_text(), "hello")

    def test_skip_existing_when_not_overwriting(self):
        self.destination.mkdir()
        (self.destination / "a.txt").write_text("keep me")
        written = ArchiveExtractor(overwrite=False).extract(
            make_zip(ENTRIES), self.destination
        )

        self.assertEqual((self.destination / "a.txt").read_text(), "keep me")
        self.assertEqual([p.name for p in written], ["b.txt"])

    def test_tar_gz_round_trip(self):
        source = self._archive_file("data.tar.gz", make_tar_gz(ENTRIES))
        self.extractor.extract(source, self.destination)
        self.assertEqual(tree(self.destination), ENTRIES)

    def test_tar_gz_traversal_rejected(self):
        source = self._archive_file(
            "evil.tar.gz", make_tar_gz({"../evil.txt": "boom"})
        )
        with self.assertRaises(UnsafePathError):
            self.extractor.extract(source, self.destination)
        self.assertFalse((self.tmp / "evil.txt").exists())

    def test_tar_symlink_skipped(self):
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
            link = tarfile.TarInfo("link")
            link.type = tarfile.SYMTYPE
            link.linkname = "/etc/passwd"
            archive.addfile(link)
        written = self.extractor.extract(buffer.getvalue(), self.destination)

        self.assertEqual(written, [])
        self.assertFalse((self.destination / "link").exists())

    def test_plain_gzip(self):
        source = self._archive_file("train.csv.gz", make_gzip("a,b\n1,2\n"))
        written = self.extractor.extract(source, self.destination)

        self.assertEqual([p.name for p in written], ["train.csv"])
        self.assertEqual(tree(self.destination), {"train.csv": "a,b\n1,2\n"})

    def test_detect_format_ignores_extension(self):
        cases = {
            "misnamed.csv": (make_zip(ENTRIES), ArchiveFormat.ZIP),
            "misnamed.zip": (make_tar_gz(ENTRIES), ArchiveFormat.TAR_GZ),
            "plain.tar.gz": (make_gzip("text"), ArchiveFormat.GZIP),
            "data.zip": (b"just,some,csv\n", ArchiveFormat.NONE),
        }
        for name, (data, expected) in cases.items():
            with self.subTest(name=name):
                self.assertEqual(detect_format(self._archive_file(name, data)), expected)

    def test_pre_posix_tar_gz(self):
        source = self._archive_file("old.tar.gz", v7_tar_gz("a.txt", "hello"))

        self.assertEqual(detect_format(source), ArchiveFormat.TAR_GZ)
        self.extractor.extract(source, self.destination)
        self.assertEqual(tree(self.destination), {"a.txt": "hello"})

    def test_long_plain_gzip_is_not_tar(self):
        source = self._archive_file("log.gz", make_gzip("line of text\n" * 100))
        self.assertEqual(detect_format(source), ArchiveFormat.GZIP)

    def test_unknown_format_fails(self):
        source = self._archive_file("data.zip", b"not an archive")
        with self.assertRaises(ArchiveError):
            self.extractor.extract(source, self.destination)

    def test_corrupt_zip_fails(self):
        data = make_zip(ENTRIES)
        source = self._archive_file("broken.zip", data[: len(data) // 2])
        with self.assertRaises(ArchiveError):
            self.extractor.extract(source, self.destination)

    def test_zip_permissions_applied(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            info = zipfile.ZipInfo("run.sh")
            info.external_attr = 0o755 << 16
            archive.writestr(info, "#!/bin/sh\n")
        written = self.extractor.extract(buffer.getvalue(), self.destination)
        self.assertEqual(written[0].stat().st_mode & 0o777, 0o755)


class TestMakeArchive(unittest.TestCase):

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.src = self.tmp / "src"
        for name, text in ENTRIES.items():
            path = self.src / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)

    def test_zip_and_tar_round_trip(self):
        for mode, suffix in [(ArchiveMode.ZIP, ".zip"), (ArchiveMode.TAR, ".tar.gz")]:
            with self.subTest(mode=mode):
                archive = make_archive(self.src, self.tmp / "packed", mode)
                self.assertTrue(archive.name.endswith(suffix))

                out = self.tmp / f"out-{mode.value}"
                ArchiveExtractor().extract(archive, out)
                self.assertEqual(tree(out), ENTRIES)

    def test_skip(self):
        self.assertIsNone(make_archive(self.src, self.tmp / "packed", ArchiveMode.SKIP))


if __name__ == "__main__":
    unittest.main()
