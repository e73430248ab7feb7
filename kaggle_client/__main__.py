"""
Entry point for the Kaggle client command line.
"""

import argparse
import asyncio
import logging
import sys

from tqdm.contrib.logging import logging_redirect_tqdm

from .application.exceptions import KaggleClientError
from .application.query import (
    CompetitionsListQuery,
    DatasetSortBy,
    DatasetsListQuery,
    KernelsListQuery,
)
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


def _print_rows(rows, *fields):
    for row in rows:
        print("\t".join(str(getattr(row, field, "")) for field in fields))


async def dispatch(service, args: argparse.Namespace):
    """Runs the requested sub-command against the service."""

    if args.group == "datasets":
        if args.command == "list":
            query = DatasetsListQuery(
                search=args.search,
                user=args.user,
                page=args.page,
                sort_by=DatasetSortBy(args.sort_by) if args.sort_by else None,
            )
            _print_rows(await service.list_datasets(query), "ref", "title", "total_bytes")
        elif args.command == "files":
            files = await service.list_dataset_files(args.dataset, args.version)
            _print_rows(files, "name", "total_bytes")
        elif args.command == "download":
            paths = await service.download_dataset(
                args.dataset,
                path=args.path,
                file_name=args.file,
                version=args.version,
                unzip=args.unzip,
                force=args.force,
            )
            for path in paths:
                print(path)

    elif args.group == "competitions":
        if args.command == "list":
            query = CompetitionsListQuery(search=args.search, page=args.page)
            _print_rows(await service.list_competitions(query), "ref", "title", "deadline")
        elif args.command == "files":
            files = await service.list_competition_files(args.competition)
            _print_rows(files, "name", "total_bytes")
        elif args.command == "download":
            paths = await service.download_competition(
                args.competition,
                path=args.path,
                file_name=args.file,
                unzip=args.unzip,
                force=args.force,
            )
            for path in paths:
                print(path)
        elif args.command == "submit":
            result = await service.submit(args.competition, args.file, args.message)
            print(result.message or "Submitted.")

    elif args.group == "kernels":
        query = KernelsListQuery(search=args.search, page=args.page, user=args.user)
        _print_rows(await service.list_kernels(query), "ref", "title", "author")


async def run_application(args: argparse.Namespace):
    """Wires and runs the application using the DI container."""

    container = Container()
    container.cli_args.from_dict(vars(args))
    setup_logging(level=container.config().logging.level)

    try:
        kaggle_service = container.kaggle_service()
        with logging_redirect_tqdm():
            await dispatch(kaggle_service, args)
    except KaggleClientError as e:
        logger.error(f"An application error occurred: {e}")
        sys.exit(1)
    finally:
        await container.http_client().aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Kaggle API client")
    parser.add_argument("--username", help="Kaggle username (overrides config)")
    parser.add_argument("--key", help="Kaggle API key (overrides config)")

    groups = parser.add_subparsers(dest="group", required=True)

    # datasets
    datasets = groups.add_parser("datasets", help="Search and download datasets")
    dataset_cmds = datasets.add_subparsers(dest="command", required=True)

    ds_list = dataset_cmds.add_parser("list", help="Search datasets")
    ds_list.add_argument("-s", "--search")
    ds_list.add_argument("--user")
    ds_list.add_argument("-p", "--page", type=int, default=1)
    ds_list.add_argument(
        "--sort-by", choices=[s.value for s in DatasetSortBy]
    )

    ds_files = dataset_cmds.add_parser("files", help="List dataset files")
    ds_files.add_argument("dataset", help="owner/dataset-name")
    ds_files.add_argument("-v", "--version", type=int)

    ds_download = dataset_cmds.add_parser("download", help="Download a dataset")
    ds_download.add_argument("dataset", help="owner/dataset-name")
    ds_download.add_argument("-f", "--file", help="A single file to download")
    ds_download.add_argument("-p", "--path", help="Destination directory")
    ds_download.add_argument("-v", "--version", type=int)
    ds_download.add_argument("--unzip", action="store_true")
    ds_download.add_argument("--force", action="store_true")

    # competitions
    competitions = groups.add_parser("competitions", help="Competition commands")
    competition_cmds = competitions.add_subparsers(dest="command", required=True)

    c_list = competition_cmds.add_parser("list", help="List competitions")
    c_list.add_argument("-s", "--search")
    c_list.add_argument("-p", "--page", type=int, default=1)

    c_files = competition_cmds.add_parser("files", help="List competition files")
    c_files.add_argument("competition")

    c_download = competition_cmds.add_parser("download", help="Download data")
    c_download.add_argument("competition")
    c_download.add_argument("-f", "--file", help="A single file to download")
    c_download.add_argument("-p", "--path", help="Destination directory")
    c_download.add_argument("--unzip", action="store_true")
    c_download.add_argument("--force", action="store_true")

    c_submit = competition_cmds.add_parser("submit", help="Submit a file")
    c_submit.add_argument("competition")
    c_submit.add_argument("-f", "--file", required=True)
    c_submit.add_argument("-m", "--message", required=True)

    # kernels
    kernels = groups.add_parser("kernels", help="Kernel commands")
    kernel_cmds = kernels.add_subparsers(dest="command", required=True)
    k_list = kernel_cmds.add_parser("list", help="List kernels")
    k_list.add_argument("-s", "--search")
    k_list.add_argument("--user")
    k_list.add_argument("-p", "--page", type=int, default=1)

    return parser


def main():
    cli_args = build_parser().parse_args()

    asyncio.run(run_application(cli_args))


if __name__ == "__main__":
    main()
