"""
Dependency Injection container for the Kaggle client.

This container uses the `dependency-injector` library to wire together the
credential provider, the shared HTTP client, the API adapters and the
service, based on the Dynaconf settings and command line overrides.
"""

from dependency_injector import containers, providers
import httpx

from ..application.domain import *
from ..application.service import KaggleService
from ..settings import settings as app_settings

from .credentials import resolve as resolve_credentials
from .api_client import KaggleApiClient
from .archive import ArchiveExtractor
from .downloader import HttpDownloader
from .request_builder import RequestBuilder


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(app_settings)

    credentials: providers.Singleton[Credentials] = providers.Singleton(
        resolve_credentials,
        source=config.provided.credentials.source,
        username=cli_args.username,
        key=cli_args.key,
        config_file=config.provided.credentials.config_file,
    )

    http_client = providers.Singleton(
        httpx.AsyncClient,
        timeout=config.provided.client.timeout,
        follow_redirects=True,
    )

    request_builder = providers.Factory(
        RequestBuilder,
        credentials=credentials,
        base_url=config.provided.client.base_url,
        user_agent=config.provided.client.user_agent,
    )

    downloader = providers.Factory(
        HttpDownloader,
        client=http_client,
        builder=request_builder,
        timeout=config.provided.client.timeout,
        chunk_size=config.provided.downloader.chunk_size,
        show_progress=config.provided.downloader.show_progress,
        retry_attempts=config.provided.retry.attempts,
    )

    api_client = providers.Factory(
        KaggleApiClient,
        client=http_client,
        builder=request_builder,
        downloader=downloader,
        timeout=config.provided.client.timeout,
        retry_attempts=config.provided.retry.attempts,
        download_dir=config.provided.paths.download_dir,
    )

    extractor: providers.Factory[Extractor] = providers.Factory(
        ArchiveExtractor,
        overwrite=config.provided.archive.overwrite,
        chunk_size=config.provided.downloader.chunk_size,
    )

    kaggle_service = providers.Factory(
        KaggleService,
        api_client=api_client,
        extractor=extractor,
        delete_after_extract=config.provided.archive.delete_after_extract,
    )
