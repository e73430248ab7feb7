"""
Archive adapters: format detection, safe extraction and archive creation.

Formats are detected from the container signature rather than the file name.
Every entry is checked against the destination root before anything is
written, so a malicious entry name such as '../../evil.txt' aborts the
extraction without touching the filesystem outside the destination.
"""

import contextlib
import enum
import gzip
import io
import logging
import shutil
import stat
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, Generator, List, Optional, Tuple, Union

from ..application.domain import ArchiveFormat, Extractor
from ..application.exceptions import ArchiveError, UnsafePathError

Source = Union[Path, str, bytes]

_ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
_GZIP_SIGNATURE = b"\x1f\x8b"
_TAR_MAGIC_OFFSET = 257
_TAR_MAGIC = b"ustar"
_HEADER_SIZE = 512

_CORRUPT_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    gzip.BadGzipFile,
    zlib.error,
    EOFError,
    OSError,
)


@contextlib.contextmanager
def _open_source(source: Source) -> Generator[BinaryIO, None, None]:
    """Yields a binary file object for a path or an in-memory archive."""
    if isinstance(source, (bytes, bytearray)):
        yield io.BytesIO(source)
    else:
        with open(source, "rb") as fh:
            yield fh


def _looks_like_tar(header: bytes) -> bool:
    if header[_TAR_MAGIC_OFFSET:_TAR_MAGIC_OFFSET + len(_TAR_MAGIC)] == _TAR_MAGIC:
        return True
    # pre-POSIX (v7) headers carry no magic; accept a block with a valid checksum
    try:
        tarfile.TarInfo.frombuf(header, tarfile.ENCODING, "surrogateescape")
    except tarfile.HeaderError:
        return False
    return True


def detect_format(source: Source) -> ArchiveFormat:
    """
    Inspects the leading bytes of a file or buffer.

    A gzip stream is reported as TAR_GZ when its decompressed content starts
    with a tar header, and as plain GZIP otherwise.
    """

    try:
        with _open_source(source) as fh:
            header = fh.read(_HEADER_SIZE)
            if header.startswith(_ZIP_SIGNATURES):
                return ArchiveFormat.ZIP
            if header.startswith(_GZIP_SIGNATURE):
                fh.seek(0)
                with gzip.GzipFile(fileobj=fh) as gz:
                    inner = gz.read(_HEADER_SIZE)
                return (
                    ArchiveFormat.TAR_GZ if _looks_like_tar(inner)
                    else ArchiveFormat.GZIP
                )
            if _looks_like_tar(header):
                return ArchiveFormat.TAR
    except _CORRUPT_ERRORS as e:
        raise ArchiveError(f"Could not inspect archive: {e}") from e

    return ArchiveFormat.NONE


def safe_target(root: Path, name: str) -> Path:
    """
    Resolves an entry name under `root`.

    Raises:
        UnsafePathError: If the resolved path is not strictly inside `root`.
    """
    cleaned = name.replace("\\", "/")
    if not cleaned or "\x00" in cleaned:
        raise UnsafePathError(name, root)

    target = (root / cleaned).resolve()
    if target == root or root not in target.parents:
        raise UnsafePathError(name, root)
    return target


class ArchiveExtractor(Extractor):
    """Expands zip, tar, gzip-tar and plain gzip archives into a directory."""

    def __init__(self, overwrite: bool = True, chunk_size: int = 1024 * 1024):
        """
        Initializes the extractor.

        Args:
            overwrite: Replace existing files. When False, existing files are
                left untouched and not reported as extracted.
            chunk_size: Copy buffer size in bytes.
        """
        self.logger = logging.getLogger(self.__class__.__name__)
        self.overwrite = overwrite
        self.chunk_size = chunk_size

    def _should_write(self, target: Path) -> bool:
        if target.exists() and not self.overwrite:
            self.logger.info(f"{target} already exists. Skipping.")
            return False
        return True

    def _write(self, stream: BinaryIO, target: Path):
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as out_fh:
            shutil.copyfileobj(stream, out_fh, self.chunk_size)

    def _extract_zip(self, fh: BinaryIO, root: Path) -> List[Path]:
        written = []
        with zipfile.ZipFile(fh) as archive:
            members = [
                (member, safe_target(root, member.filename))
                for member in archive.infolist()
            ]
            for member, target in members:
                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                if not self._should_write(target):
                    continue
                with archive.open(member) as entry:
                    self._write(entry, target)

                mode = (member.external_attr >> 16) & 0o777
                if mode:
                    # owner keeps read/write so a later overwrite succeeds
                    target.chmod(mode | stat.S_IRUSR | stat.S_IWUSR)
                written.append(target)
        return written

    def _extract_tar(self, fh: BinaryIO, root: Path) -> List[Path]:
        written = []
        with tarfile.open(fileobj=fh, mode="r:*") as archive:
            members: List[Tuple[tarfile.TarInfo, Path]] = [
                (member, safe_target(root, member.name))
                for member in archive.getmembers()
                if member.name not in (".", "./")
            ]
            for member, target in members:
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                if not member.isfile():
                    self.logger.warning(
                        f"Skipping non-regular tar member {member.name!r}"
                    )
                    continue
                if not self._should_write(target):
                    continue
                entry = archive.extractfile(member)
                if entry is None:
                    continue
                with entry:
                    self._write(entry, target)
                written.append(target)
        return written

    def _extract_gzip(
        self, fh: BinaryIO, root: Path, name: Optional[str]
    ) -> List[Path]:
        name = name or "data"
        if name.endswith(".gz"):
            name = name[:-3]
        target = safe_target(root, name)
        if not self._should_write(target):
            return []
        with gzip.GzipFile(fileobj=fh) as gz:
            self._write(gz, target)
        return [target]

    def extract(
        self,
        source: Source,
        destination: Union[Path, str],
        name: Optional[str] = None,
    ) -> List[Path]:
        """
        Expands an archive into `destination`, creating it if needed.

        Args:
            source: Path of the archive, or the archive bytes.
            destination: Root directory for the extracted tree.
            name: File name used for plain gzip data. Defaults to the source
                file name.

        Returns:
            The paths of the files written, in archive order.

        Raises:
            UnsafePathError: If an entry would land outside `destination`.
            ArchiveError: If the format is unknown or the archive is corrupt.
        """

        if not isinstance(source, (bytes, bytearray)):
            source = Path(source)
            name = name or source.name

        archive_format = detect_format(source)
        if not archive_format.is_archive:
            raise ArchiveError(f"Unrecognized archive format: {name or 'buffer'}")

        root = Path(destination)
        root.mkdir(parents=True, exist_ok=True)
        root = root.resolve()

        self.logger.info(f"Extracting {name or 'archive'} into {root}...")
        try:
            with _open_source(source) as fh:
                if archive_format is ArchiveFormat.ZIP:
                    written = self._extract_zip(fh, root)
                elif archive_format is ArchiveFormat.GZIP:
                    written = self._extract_gzip(fh, root, name)
                else:
                    written = self._extract_tar(fh, root)
        except UnsafePathError:
            raise
        except _CORRUPT_ERRORS as e:
            raise ArchiveError(f"Failed to extract {name or 'archive'}: {e}") from e

        self.logger.info(f"Extracted {len(written)} files into {root}")
        return written


# --- Archive creation ---

class ArchiveMode(str, enum.Enum):
    """How a directory is packed before upload."""

    ZIP = "zip"
    TAR = "tar"
    SKIP = "skip"


def _files_under(src: Path) -> List[Path]:
    return sorted(p for p in src.rglob("*") if p.is_file())


def make_archive(
    src: Union[Path, str], to: Union[Path, str], mode: ArchiveMode = ArchiveMode.ZIP
) -> Optional[Path]:
    """
    Packs the contents of `src` into `<to>.zip` or `<to>.tar.gz`.

    Returns:
        The archive path, or None for ArchiveMode.SKIP.
    """

    src = Path(src)
    mode = ArchiveMode(mode)
    if mode is ArchiveMode.SKIP:
        return None
    if not src.is_dir():
        raise ArchiveError(f"{src} is not a directory")

    if mode is ArchiveMode.ZIP:
        target = Path(f"{to}.zip")
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for path in _files_under(src):
                archive.write(path, path.relative_to(src).as_posix())
        return target

    target = Path(f"{to}.tar.gz")
    with tarfile.open(target, "w:gz") as archive:
        for path in _files_under(src):
            archive.add(path, arcname=path.relative_to(src).as_posix())
    return target
