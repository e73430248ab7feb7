"""HTTP implementation of atomic, streamed file downloads."""

import asyncio
import contextlib
import re
from pathlib import Path
from typing import AsyncGenerator, Generator, Optional, Union
from urllib.parse import unquote

import httpx
from tqdm import tqdm

from ..application.domain import DownloadedArchive
from ..application.exceptions import DownloadError, TransportError

from .archive import detect_format
from .base_client import BaseClient, error_for_response
from .decorators import retry_on_network_error
from .request_builder import RequestBuilder

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*(?:[\w-]+)?'[^']*'([^;]+)", re.I)
_FILENAME = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.I)


def filename_from_response(response: httpx.Response) -> Optional[str]:
    """The file name announced by Content-Disposition, if any."""
    disposition = response.headers.get("Content-Disposition", "")
    match = _FILENAME_STAR.search(disposition) or _FILENAME.search(disposition)
    if not match:
        return None
    name = Path(unquote(match.group(1).strip())).name
    return name or None


def _filename_from_url(url: httpx.URL) -> Optional[str]:
    name = Path(unquote(url.path)).name
    return name or None


class HttpDownloader(BaseClient):
    """A downloader that streams responses to disk atomically."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        builder: RequestBuilder,
        timeout: float,
        chunk_size: int,
        show_progress: bool = True,
        retry_attempts: int = 1,
    ):
        """Initializes the downloader adapter."""
        super().__init__(client, builder, timeout, retry_attempts)
        self.chunk_size = chunk_size
        self.show_progress = show_progress

    @contextlib.contextmanager
    def _atomic_target(self, destination: Path) -> Generator[Path, None, None]:
        """Provides a temporary '.part' path and ensures cleanup."""
        part_path = destination.with_name(destination.name + ".part")
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            yield part_path
        finally:
            part_path.unlink(missing_ok=True)

    async def _stream_chunks(
        self, response: httpx.Response, target_file: Path,
    ):
        """Produce byte chunks from a response and write them to a file."""
        with open(target_file, "wb") as f:
            async for chunk in response.aiter_bytes(self.chunk_size):
                await asyncio.to_thread(f.write, chunk)
                yield len(chunk)

    async def _consume_stream_with_progress(
        self,
        stream: AsyncGenerator[int, None],
        total_size: Optional[int],
        desc: str,
    ) -> int:
        """Consume the byte stream to update a TQDM progress bar."""

        with tqdm(
            total=total_size,
            unit="B",
            unit_scale=True,
            desc=desc,
            disable=not self.show_progress,
        ) as progress_bar:
            received = 0
            async for progress in stream:
                received += progress
                progress_bar.update(progress)

        if total_size and received != total_size:
            raise DownloadError(
                f"Size mismatch for {desc}: {received} != {total_size}"
            )
        return received

    @staticmethod
    def _expected_size(response: httpx.Response) -> Optional[int]:
        # decoded size differs from Content-Length for encoded bodies
        if response.headers.get("Content-Encoding"):
            return None
        length = response.headers.get("Content-Length")
        return int(length) if length and length.isdigit() else None

    def _is_up_to_date(self, destination: Path, expected: Optional[int]) -> bool:
        # without a known size the local copy cannot be trusted
        if expected is None or not destination.exists():
            return False
        return destination.stat().st_size == expected

    async def _execute_atomic_download(
        self,
        request: httpx.Request,
        directory: Path,
        default_name: Optional[str],
        force: bool,
    ) -> DownloadedArchive:
        """Orchestrate the entire atomic download operation."""
        self.logger.debug(f"{request.method} {request.url}")
        request.extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()

        try:
            response = await self.client.send(
                request, stream=True, follow_redirects=True
            )
        except httpx.TransportError as e:
            raise TransportError(f"GET {request.url} failed: {e!r}") from e

        try:
            if not response.is_success:
                await response.aread()
                raise error_for_response(response)

            name = (
                filename_from_response(response)
                or default_name
                or _filename_from_url(response.url)
            )
            if not name:
                raise DownloadError(f"Cannot name the download from {request.url}")

            destination = directory / name
            expected = self._expected_size(response)

            if not force and self._is_up_to_date(destination, expected):
                self.logger.info(
                    f"{destination.name} already exists. Skipping download."
                )
            else:
                self.logger.info(f"Downloading {destination.name}...")
                with self._atomic_target(destination) as part_path:
                    stream = self._stream_chunks(response, part_path)
                    await self._consume_stream_with_progress(
                        stream, expected, destination.name
                    )
                    part_path.replace(destination)
                self.logger.info(f"Finished downloading {destination.name}")
        except httpx.TransportError as e:
            raise TransportError(f"Streaming {request.url} failed: {e!r}") from e
        finally:
            await response.aclose()

        return DownloadedArchive(
            path=destination,
            format=detect_format(destination),
            size_bytes=destination.stat().st_size,
        )

    async def download(
        self,
        request: httpx.Request,
        directory: Union[Path, str],
        default_name: Optional[str] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """
        Guarantee that the file exists locally, downloading only if necessary.

        The body is streamed to '<name>.part' and renamed once complete, so a
        file under its final name is never partial.

        Args:
            request: A prepared request for the file.
            directory: Target directory, created if absent.
            default_name: Name used when the response does not announce one.
            force: Download even when an identical-size file already exists.

        Returns:
            A DownloadedArchive with the path and detected archive format.

        Raises:
            ApiError: On a non-2xx response (or one of its subclasses).
            TransportError: If the connection fails.
            DownloadError: If streaming the body to file fails.
        """

        run = retry_on_network_error(self.retry_attempts)(
            self._execute_atomic_download
        )
        return await run(request, Path(directory), default_name, force)
