"""
The application service and download pipeline.

This module defines the pipeline (DownloadPipeline) that turns a finished
download into a usable file tree, and the facade (KaggleService) that the
command line drives.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, List, Optional, Union

from .domain import *
from .query import CompetitionsListQuery, DatasetsListQuery, KernelsListQuery

logger = logging.getLogger(__name__)


class DownloadPipeline:
    """Encapsulates the post-processing of a single download."""

    def __init__(self, extractor: Extractor, delete_after_extract: bool = False):
        """Initializes the pipeline with the extractor port."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.extractor = extractor
        self.delete_after_extract = delete_after_extract

    async def run(
        self,
        download: Awaitable[DownloadedArchive],
        unzip: bool = False,
        destination: Optional[Path] = None,
    ) -> List[Path]:
        """Executes the sequential steps for one download.

        Args:
            download: The pending download call.
            unzip: Extract the file when it is an archive.
            destination: Extraction root; defaults to the archive's directory.

        Returns:
            The extracted files, or just the downloaded file when nothing was
            extracted.
        """

        # Step 1: Download (request -> DownloadedArchive)
        archive = await download

        if not unzip or not archive.format.is_archive:
            return [archive.path]

        # Step 2: Extract (DownloadedArchive -> file tree)
        destination = destination or archive.path.parent
        extracted = await asyncio.to_thread(
            self.extractor.extract, archive.path, destination
        )

        # Step 3: Optionally drop the archive
        if self.delete_after_extract:
            archive.path.unlink(missing_ok=True)
            self.logger.info(f"Removed {archive.path.name}")

        return extracted


class KaggleService:
    """Orchestrates API calls and archive handling for common tasks."""

    def __init__(
        self,
        api_client,
        extractor: Extractor,
        delete_after_extract: bool = False,
    ):
        """Initializes the service and the reusable download pipeline."""
        self.api = api_client
        self.pipeline = DownloadPipeline(extractor, delete_after_extract)

    async def list_datasets(self, query: Optional[DatasetsListQuery] = None):
        return await self.api.datasets_list(query)

    async def list_dataset_files(self, dataset: str, version: Optional[int] = None):
        result = await self.api.dataset_list_files(dataset, version)
        if result.error_message:
            logger.warning(result.error_message)
        return result.dataset_files

    async def download_dataset(
        self,
        dataset: str,
        path: Optional[Union[str, Path]] = None,
        file_name: Optional[str] = None,
        version: Optional[int] = None,
        unzip: bool = False,
        force: bool = False,
    ) -> List[Path]:
        """Downloads one file or all files of a dataset, optionally unzipped."""

        logger.info(f"Fetching dataset {dataset}...")
        if file_name:
            download = self.api.dataset_download_file(
                dataset, file_name, path=path, version=version, force=force
            )
        else:
            download = self.api.dataset_download_files(
                dataset, path=path, version=version, force=force
            )
        return await self.pipeline.run(download, unzip=unzip)

    async def list_competitions(self, query: Optional[CompetitionsListQuery] = None):
        return await self.api.competitions_list(query)

    async def list_competition_files(self, competition: str):
        return await self.api.competition_list_files(competition)

    async def download_competition(
        self,
        competition: str,
        path: Optional[Union[str, Path]] = None,
        file_name: Optional[str] = None,
        unzip: bool = False,
        force: bool = False,
    ) -> List[Path]:
        """Downloads one file or all files of a competition, optionally unzipped."""

        logger.info(f"Fetching competition data for {competition}...")
        if file_name:
            download = self.api.competition_download_file(
                competition, file_name, path=path, force=force
            )
        else:
            download = self.api.competition_download_files(
                competition, path=path, force=force
            )
        return await self.pipeline.run(download, unzip=unzip)

    async def submit(self, competition: str, file_path: Union[str, Path], message: str):
        return await self.api.competition_submit_file(competition, file_path, message)

    async def list_kernels(self, query: Optional[KernelsListQuery] = None):
        return await self.api.kernels_list(query)
