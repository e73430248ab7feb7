"""Shared fixtures for the test modules."""

import gzip
import io
import json
import tarfile
import zipfile

import httpx

from kaggle_client.application.domain import Credentials
from kaggle_client.infrastructure.api_client import KaggleApiClient
from kaggle_client.infrastructure.downloader import HttpDownloader
from kaggle_client.infrastructure.request_builder import RequestBuilder

BASE_URL = "https://kaggle.test/api/v1"
CREDENTIALS = Credentials(username="datadinosaur", key="s3cr3t-key")


def make_zip(entries):
    """Builds zip bytes from a {name: text} mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, text in entries.items():
            archive.writestr(name, text)
    return buffer.getvalue()


def make_tar_gz(entries):
    """Builds gzip-compressed tar bytes from a {name: text} mapping."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, text in entries.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_gzip(text):
    return gzip.compress(text.encode("utf-8"))


def json_response(payload, status_code=200, headers=None):
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **(headers or {})},
    )


def make_builder(credentials=CREDENTIALS):
    return RequestBuilder(credentials, BASE_URL, user_agent="kaggle-client/test")


def make_api(http_client, download_dir=".", retry_attempts=1):
    """A KaggleApiClient wired to the given httpx client."""
    builder = make_builder()
    downloader = HttpDownloader(
        http_client,
        builder,
        timeout=5,
        chunk_size=4,
        show_progress=False,
        retry_attempts=retry_attempts,
    )
    return KaggleApiClient(
        http_client,
        builder,
        downloader,
        timeout=5,
        retry_attempts=retry_attempts,
        download_dir=download_dir,
    )


DATASET_FILE = {
    "ref": "zillow/zecon/State.csv",
    "name": "State.csv",
    "totalBytes": 12,
    "url": "https://www.kaggle.com/zillow/zecon/State.csv",
    "creationDate": "2019-11-24T21:17:23.97Z",
    "datasetRef": "zillow/zecon",
    "description": None,
    "fileType": ".csv",
    "ownerRef": "zillow",
    "columns": [],
}

DATASET = {
    "id": 42,
    "ref": "zillow/zecon",
    "title": "Zillow Economics Data",
    "url": "https://www.kaggle.com/zillow/zecon",
    "subtitle": "Turning on the lights in housing research",
    "creatorName": "Zillow",
    "creatorUrl": "zillow",
    "totalBytes": 1234,
    "lastUpdated": "2019-11-24T21:17:23.97Z",
    "downloadCount": 10,
    "isPrivate": False,
    "isReviewed": True,
    "isFeatured": False,
    "licenseName": "Other",
    "description": None,
    "ownerName": "Zillow",
    "ownerRef": "zillow",
    "kernelCount": 2,
    "topicCount": 0,
    "viewCount": 100,
    "voteCount": 7,
    "currentVersionNumber": 3,
    "usabilityRating": 0.7,
    "tags": [],
    "files": [],
    "versions": [],
    "someFutureField": {"nested": True},
}

COMPETITION = {
    "id": 3136,
    "ref": "titanic",
    "title": "Titanic",
    "url": "https://www.kaggle.com/c/titanic",
    "description": "Start here!",
    "deadline": "2030-01-01T00:00:00Z",
    "category": "Getting Started",
    "reward": "Knowledge",
    "organizationName": None,
    "kernelCount": 0,
    "teamCount": 15000,
    "userHasEntered": True,
    "enabledDate": "2012-09-28T21:13:33Z",
    "maxDailySubmissions": 10,
    "evaluationMetric": "Categorization Accuracy",
    "awardsPoints": False,
    "isKernelsSubmissionsOnly": False,
    "submissionsDisabled": False,
    "tags": [{
        "ref": "tabular",
        "name": "tabular",
        "fullPath": "data type > tabular",
        "competitionCount": 1,
        "datasetCount": 2,
        "scriptCount": 3,
        "totalCount": 6,
        "isAutomatic": False,
    }],
}

KERNEL = {
    "id": 1,
    "ref": "alice/eda",
    "title": "EDA",
    "author": "alice",
    "slug": "eda",
    "language": "python",
    "kernelType": "notebook",
    "categoryIds": [],
    "datasetDataSources": ["zillow/zecon"],
    "kernelDataSources": [],
    "competitionDataSources": [],
    "totalVotes": 4,
}
