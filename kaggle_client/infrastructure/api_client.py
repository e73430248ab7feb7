"""HTTP implementation of the Kaggle API surface."""

import asyncio
import tempfile
from pathlib import Path
from typing import List, Optional, Union

import httpx

from ..application.domain import DownloadedArchive
from ..application.exceptions import DecodeError, ValidationError
from ..application.query import (
    CompetitionsListQuery,
    DatasetsListQuery,
    KernelsListQuery,
)

from .api_models import (
    ApiResult,
    Competition,
    Dataset,
    DatasetMetadataResponse,
    DatasetNewRequest,
    DatasetNewResponse,
    DatasetNewVersionRequest,
    DatasetUpdateSettingsRequest,
    File,
    FileUploadInfo,
    Kernel,
    KernelOutput,
    KernelPullResponse,
    KernelPushRequest,
    KernelPushResponse,
    KernelStatus,
    LeaderBoard,
    ListFilesResult,
    SubmissionSummary,
)
from .archive import ArchiveMode, make_archive
from .base_client import BaseClient
from .downloader import HttpDownloader
from .request_builder import RequestBuilder, check_slug, split_ref

PathLike = Union[str, Path]


def _file_stats(path: Path):
    """Returns (content_length, last_modified_utc_seconds) of a local file."""
    if not path.is_file():
        raise ValidationError(f"{path} is not a file", field="file")
    stats = path.stat()
    return stats.st_size, int(stats.st_mtime)


class KaggleApiClient(BaseClient):
    """
    Client for the Kaggle REST API.

    One instance is meant to be reused for many calls; it holds no mutable
    per-request state. Every call is a single attempt unless a retry count
    is configured.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        builder: RequestBuilder,
        downloader: HttpDownloader,
        timeout: float = 30,
        retry_attempts: int = 1,
        download_dir: PathLike = ".",
    ):
        """Initializes the API client."""
        super().__init__(client, builder, timeout, retry_attempts)
        self.downloader = downloader
        self.download_dir = Path(download_dir)

    def _target_dir(self, path: Optional[PathLike], *default_parts: str) -> Path:
        if path is not None:
            return Path(path)
        return self.download_dir.joinpath(*default_parts)

    @staticmethod
    def _version_params(version: Optional[int]) -> dict:
        return {"datasetVersionNumber": str(version) if version is not None else ""}

    # --- Competitions ---

    async def competitions_list(
        self, query: Optional[CompetitionsListQuery] = None
    ) -> List[Competition]:
        """Returns a page of competitions matching the query."""
        query = query or CompetitionsListQuery()
        request = self.builder.build("competitions_list", params=query.to_params())
        return await self._fetch(List[Competition], request)

    async def competition_list_files(self, competition: str) -> List[File]:
        """Lists the data files of a competition."""
        request = self.builder.build(
            "competition_list_files",
            path_params={"id": check_slug(competition, "competition")},
        )
        return await self._fetch(List[File], request)

    async def competition_download_file(
        self,
        competition: str,
        file_name: str,
        path: Optional[PathLike] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """Downloads one data file of a competition."""
        competition = check_slug(competition, "competition")
        request = self.builder.build(
            "competition_download_file",
            path_params={"id": competition, "fileName": file_name},
        )
        return await self.downloader.download(
            request,
            self._target_dir(path, "competitions", competition),
            default_name=Path(file_name).name,
            force=force,
        )

    async def competition_download_files(
        self,
        competition: str,
        path: Optional[PathLike] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """Downloads all data files of a competition as one archive."""
        competition = check_slug(competition, "competition")
        request = self.builder.build(
            "competition_download_files", path_params={"id": competition}
        )
        return await self.downloader.download(
            request,
            self._target_dir(path, "competitions", competition),
            default_name=f"{competition}.zip",
            force=force,
        )

    async def competition_view_leaderboard(self, competition: str) -> LeaderBoard:
        """Returns the top of the public leaderboard."""
        request = self.builder.build(
            "competition_view_leaderboard",
            path_params={"id": check_slug(competition, "competition")},
        )
        return await self._fetch(LeaderBoard, request)

    async def competition_download_leaderboard(
        self,
        competition: str,
        path: Optional[PathLike] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """Downloads the full public leaderboard (a zipped CSV)."""
        competition = check_slug(competition, "competition")
        request = self.builder.build(
            "competition_download_leaderboard", path_params={"id": competition}
        )
        return await self.downloader.download(
            request,
            self._target_dir(path, "competitions", competition),
            default_name=f"{competition}-leaderboard.zip",
            force=force,
        )

    async def competition_submissions_list(
        self, competition: str, page: int = 1
    ) -> List[SubmissionSummary]:
        """Returns the caller's submissions to a competition."""
        request = self.builder.build(
            "competition_submissions_list",
            path_params={"id": check_slug(competition, "competition")},
            params={"page": str(page)},
        )
        return await self._fetch(List[SubmissionSummary], request)

    async def competition_submission_url(
        self,
        competition: str,
        file_name: str,
        content_length: int,
        last_modified_date_utc: int,
    ) -> FileUploadInfo:
        """Requests an upload slot for a submission file."""
        request = self.builder.build(
            "competition_submission_url",
            path_params={
                "id": check_slug(competition, "competition"),
                "contentLength": content_length,
                "lastModifiedDateUtc": last_modified_date_utc,
            },
            data={"fileName": file_name},
        )
        return await self._fetch(FileUploadInfo, request)

    async def competition_submission_upload(
        self,
        file_path: PathLike,
        guid: str,
        content_length: int,
        last_modified_date_utc: int,
    ) -> ApiResult:
        """Uploads a submission file as multipart form data."""
        file_path = Path(file_path)
        content = await asyncio.to_thread(file_path.read_bytes)
        request = self.builder.build(
            "competition_submission_upload",
            path_params={
                "guid": guid,
                "contentLength": content_length,
                "lastModifiedDateUtc": last_modified_date_utc,
            },
            files={
                "file": (file_path.name, content, "application/octet-stream")
            },
        )
        return await self._fetch(ApiResult, request)

    async def competition_submit(
        self, competition: str, blob_file_tokens: str, message: str
    ) -> ApiResult:
        """Submits a previously uploaded file to a competition."""
        request = self.builder.build(
            "competition_submit",
            path_params={"id": check_slug(competition, "competition")},
            data={
                "blobFileTokens": blob_file_tokens,
                "submissionDescription": message,
            },
        )
        return await self._fetch(ApiResult, request)

    async def competition_submit_file(
        self, competition: str, file_path: PathLike, message: str
    ) -> ApiResult:
        """
        Uploads a local file and submits it to a competition.

        Args:
            competition: Competition slug, e.g. 'titanic'.
            file_path: The submission file.
            message: Submission description.

        Returns:
            The submit result as reported by the service.

        Raises:
            ValidationError: If the file does not exist or the slug is empty.
            ApiError: If any of the three calls fails.
        """

        competition = check_slug(competition, "competition")
        file_path = Path(file_path)
        content_length, last_modified = _file_stats(file_path)

        self.logger.info(f"Uploading {file_path.name} to {competition}...")
        slot = await self.competition_submission_url(
            competition, file_path.name, content_length, last_modified
        )

        # createUrl ends with <guid>/<contentLength>/<lastModifiedDateUtc>
        parts = slot.create_url.rstrip("/").split("/")
        if len(parts) < 3:
            raise DecodeError(
                f"Unexpected upload url {slot.create_url!r}", body=slot.create_url
            )
        guid, length, modified = parts[-3:]
        upload = await self.competition_submission_upload(
            file_path, guid, int(length), int(modified)
        )
        token = upload.token or slot.token

        result = await self.competition_submit(competition, token, message)
        self.logger.info(f"Submitted {file_path.name} to {competition}")
        return result

    # --- Datasets ---

    async def datasets_list(
        self, query: Optional[DatasetsListQuery] = None
    ) -> List[Dataset]:
        """Searches or lists datasets."""
        query = query or DatasetsListQuery()
        request = self.builder.build("datasets_list", params=query.to_params())
        return await self._fetch(List[Dataset], request)

    async def dataset_view(self, dataset: str) -> Dataset:
        """Returns the metadata of one dataset."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_view",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
        )
        return await self._fetch(Dataset, request)

    async def dataset_list_files(
        self, dataset: str, version: Optional[int] = None
    ) -> ListFilesResult:
        """Lists the files of a dataset version (the latest by default)."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_list_files",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
            params=self._version_params(version),
        )
        return await self._fetch(ListFilesResult, request)

    async def dataset_status(self, dataset: str) -> str:
        """Returns the processing status of a dataset, e.g. 'ready'."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_status",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
        )
        return await self._fetch(str, request)

    async def dataset_download_files(
        self,
        dataset: str,
        path: Optional[PathLike] = None,
        version: Optional[int] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """Downloads all files of a dataset as one archive."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_download",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
            params=self._version_params(version),
        )
        return await self.downloader.download(
            request,
            self._target_dir(path, "datasets", owner, slug),
            default_name=f"{slug}.zip",
            force=force,
        )

    async def dataset_download_file(
        self,
        dataset: str,
        file_name: str,
        path: Optional[PathLike] = None,
        version: Optional[int] = None,
        force: bool = False,
    ) -> DownloadedArchive:
        """Downloads a single file of a dataset."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_download_file",
            path_params={
                "ownerSlug": owner,
                "datasetSlug": slug,
                "fileName": file_name,
            },
            params=self._version_params(version),
        )
        return await self.downloader.download(
            request,
            self._target_dir(path, "datasets", owner, slug),
            default_name=Path(file_name).name,
            force=force,
        )

    async def dataset_metadata(self, dataset: str) -> DatasetMetadataResponse:
        """Returns the editable metadata of a dataset."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_metadata_get",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
        )
        return await self._fetch(DatasetMetadataResponse, request)

    async def dataset_metadata_update(
        self, dataset: str, settings: DatasetUpdateSettingsRequest
    ) -> ApiResult:
        """Updates the editable metadata of a dataset."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_metadata_update",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
            json=settings.to_wire(),
        )
        return await self._fetch(ApiResult, request)

    async def dataset_upload_file(
        self, file_name: str, content_length: int, last_modified_date_utc: int
    ) -> FileUploadInfo:
        """Requests an upload slot for a dataset file."""
        request = self.builder.build(
            "dataset_upload_file",
            path_params={
                "contentLength": content_length,
                "lastModifiedDateUtc": last_modified_date_utc,
            },
            data={"fileName": file_name},
        )
        return await self._fetch(FileUploadInfo, request)

    async def upload_dataset_file(
        self, path: PathLike, mode: ArchiveMode = ArchiveMode.ZIP
    ) -> str:
        """
        Uploads a local file (or a packed directory) for use in a new dataset
        or dataset version, and returns its upload token.
        """
        path = Path(path)
        if path.is_dir():
            mode = ArchiveMode(mode)
            if mode is ArchiveMode.SKIP:
                raise ValidationError(
                    f"{path} is a directory and archive mode is 'skip'",
                    field="path",
                )
            with tempfile.TemporaryDirectory() as tmp:
                archive = await asyncio.to_thread(
                    make_archive, path, Path(tmp) / path.name, mode
                )
                return await self._upload_blob(archive)
        return await self._upload_blob(path)

    async def _upload_blob(self, path: Path) -> str:
        content_length, last_modified = _file_stats(path)
        slot = await self.dataset_upload_file(path.name, content_length, last_modified)

        self.logger.info(f"Uploading {path.name}...")
        content = await asyncio.to_thread(path.read_bytes)
        await self._send(self.builder.build_external("PUT", slot.create_url, content))
        self.logger.info(f"Uploaded {path.name}")
        return slot.token

    async def dataset_create_new(self, body: DatasetNewRequest) -> DatasetNewResponse:
        """Creates a new dataset from previously uploaded files."""
        request = self.builder.build("dataset_create_new", json=body.to_wire())
        return await self._fetch(DatasetNewResponse, request)

    async def dataset_create_version(
        self, dataset: str, body: DatasetNewVersionRequest
    ) -> DatasetNewResponse:
        """Creates a new version of an existing dataset."""
        owner, slug = split_ref(dataset)
        request = self.builder.build(
            "dataset_create_version",
            path_params={"ownerSlug": owner, "datasetSlug": slug},
            json=body.to_wire(),
        )
        return await self._fetch(DatasetNewResponse, request)

    async def dataset_create_version_by_id(
        self, dataset_id: int, body: DatasetNewVersionRequest
    ) -> DatasetNewResponse:
        request = self.builder.build(
            "dataset_create_version_by_id",
            path_params={"id": dataset_id},
            json=body.to_wire(),
        )
        return await self._fetch(DatasetNewResponse, request)

    # --- Kernels ---

    @staticmethod
    def _kernel_params(kernel: str) -> dict:
        user_name, kernel_slug = split_ref(kernel, field="kernel")
        return {"userName": user_name, "kernelSlug": kernel_slug}

    async def kernels_list(
        self, query: Optional[KernelsListQuery] = None
    ) -> List[Kernel]:
        """Searches or lists kernels."""
        query = query or KernelsListQuery()
        request = self.builder.build("kernels_list", params=query.to_params())
        return await self._fetch(List[Kernel], request)

    async def kernel_pull(self, kernel: str) -> KernelPullResponse:
        """Pulls the source and metadata of a kernel ('user/slug')."""
        request = self.builder.build(
            "kernel_pull", params=self._kernel_params(kernel)
        )
        return await self._fetch(KernelPullResponse, request)

    async def kernel_push(self, body: KernelPushRequest) -> KernelPushResponse:
        request = self.builder.build("kernel_push", json=body.to_wire())
        return await self._fetch(KernelPushResponse, request)

    async def kernel_status(self, kernel: str) -> KernelStatus:
        request = self.builder.build(
            "kernel_status", params=self._kernel_params(kernel)
        )
        return await self._fetch(KernelStatus, request)

    async def kernel_output(self, kernel: str) -> KernelOutput:
        """Returns the output files and log of the latest kernel run."""
        request = self.builder.build(
            "kernel_output", params=self._kernel_params(kernel)
        )
        return await self._fetch(KernelOutput, request)
