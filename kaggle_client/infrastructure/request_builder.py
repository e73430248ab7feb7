"""
Builds authenticated httpx requests for the Kaggle REST endpoints.

Every endpoint is a static descriptor (method + slug-templated path). The
builder validates and URL-encodes the path segments, attaches the Basic
authorization header and lets httpx pick the content type from the body kind
(JSON, form or multipart).
"""

import base64
import dataclasses
import string
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx

from ..application.domain import Credentials
from ..application.exceptions import ConfigurationError, ValidationError


@dataclasses.dataclass(frozen=True)
class Endpoint:
    """Describes one REST operation."""

    name: str
    method: str
    path: str

    @property
    def path_fields(self) -> Tuple[str, ...]:
        return tuple(
            field
            for _, field, _, _ in string.Formatter().parse(self.path)
            if field
        )


_ENDPOINTS = [
    # competitions
    Endpoint("competitions_list", "GET", "competitions/list"),
    Endpoint("competition_list_files", "GET", "competitions/data/list/{id}"),
    Endpoint(
        "competition_download_file", "GET",
        "competitions/data/download/{id}/{fileName}",
    ),
    Endpoint(
        "competition_download_files", "GET",
        "competitions/data/download-all/{id}",
    ),
    Endpoint(
        "competition_view_leaderboard", "GET",
        "competitions/{id}/leaderboard/view",
    ),
    Endpoint(
        "competition_download_leaderboard", "GET",
        "competitions/{id}/leaderboard/download",
    ),
    Endpoint(
        "competition_submissions_list", "GET",
        "competitions/submissions/list/{id}",
    ),
    Endpoint(
        "competition_submission_url", "POST",
        "competitions/{id}/submissions/url/{contentLength}/{lastModifiedDateUtc}",
    ),
    Endpoint(
        "competition_submission_upload", "POST",
        "competitions/submissions/upload/{guid}/{contentLength}/{lastModifiedDateUtc}",
    ),
    Endpoint(
        "competition_submit", "POST", "competitions/submissions/submit/{id}",
    ),
    # datasets
    Endpoint("datasets_list", "GET", "datasets/list"),
    Endpoint("dataset_view", "GET", "datasets/view/{ownerSlug}/{datasetSlug}"),
    Endpoint(
        "dataset_list_files", "GET", "datasets/list/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_status", "GET", "datasets/status/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_download", "GET", "datasets/download/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_download_file", "GET",
        "datasets/download/{ownerSlug}/{datasetSlug}/{fileName}",
    ),
    Endpoint(
        "dataset_metadata_get", "GET",
        "datasets/metadata/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_metadata_update", "POST",
        "datasets/metadata/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_upload_file", "POST",
        "datasets/upload/file/{contentLength}/{lastModifiedDateUtc}",
    ),
    Endpoint("dataset_create_new", "POST", "datasets/create/new"),
    Endpoint(
        "dataset_create_version", "POST",
        "datasets/create/version/{ownerSlug}/{datasetSlug}",
    ),
    Endpoint(
        "dataset_create_version_by_id", "POST", "datasets/create/version/{id}",
    ),
    # kernels
    Endpoint("kernels_list", "GET", "kernels/list"),
    Endpoint("kernel_pull", "GET", "kernels/pull"),
    Endpoint("kernel_push", "POST", "kernels/push"),
    Endpoint("kernel_status", "GET", "kernels/status"),
    Endpoint("kernel_output", "GET", "kernels/output"),
]

ENDPOINTS: Dict[str, Endpoint] = {e.name: e for e in _ENDPOINTS}


# --- Slug helpers ---

def check_slug(value: Any, field: str) -> str:
    """Validates a single path segment such as a competition slug."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} must not be empty", field=field)
    value = str(value)
    if "/" in value:
        raise ValidationError(
            f"{field} must be a single path segment, got {value!r}",
            field=field,
        )
    return value


def split_ref(ref: str, field: str = "dataset") -> Tuple[str, str]:
    """
    Splits an 'owner/name' reference into its two segments.

    Raises:
        ValidationError: If the reference does not have exactly that shape.
    """
    if not ref or not str(ref).strip():
        raise ValidationError(f"{field} must not be empty", field=field)

    parts = str(ref).split("/")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise ValidationError(
            f"{field} must be of the form 'owner/name', got {ref!r}",
            field=field,
        )
    return parts[0], parts[1]


def basic_auth_header(credentials: Credentials) -> str:
    """Value of the Authorization header for HTTP Basic auth."""
    token = f"{credentials.username}:{credentials.key}".encode("utf-8")
    return "Basic " + base64.b64encode(token).decode("ascii")


class RequestBuilder:
    """Turns an operation name and typed parameters into an httpx.Request."""

    def __init__(
        self,
        credentials: Credentials,
        base_url: str,
        user_agent: str = "kaggle-client/python",
    ):
        if credentials is None or not credentials.username or not credentials.key:
            raise ConfigurationError(
                "Kaggle credentials are required to build requests."
            )
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent

    @property
    def default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": basic_auth_header(self.credentials),
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    def url_for(self, endpoint: Endpoint, path_params: Mapping[str, Any]) -> str:
        """Fills the path template with URL-encoded segments."""
        values = {}
        for field in endpoint.path_fields:
            value = path_params.get(field)
            if value is None or not str(value).strip():
                raise ValidationError(
                    f"{endpoint.name}: path parameter {field!r} is required",
                    field=field,
                )
            values[field] = quote(str(value), safe="")
        return f"{self.base_url}/{endpoint.path.format(**values)}"

    def build(
        self,
        operation: str,
        path_params: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Request:
        """
        Builds the request for a named operation.

        Args:
            operation: Key into ENDPOINTS, e.g. 'dataset_view'.
            path_params: Values for the path template placeholders.
            params: Query string parameters.
            json: JSON body.
            data: Form fields (sent with files as multipart).
            files: Multipart file fields.

        Returns:
            The ready-to-send httpx.Request.

        Raises:
            ValidationError: For unknown operations or missing path segments.
        """

        endpoint = ENDPOINTS.get(operation)
        if endpoint is None:
            raise ValidationError(
                f"Unknown operation {operation!r}", field="operation"
            )

        url = self.url_for(endpoint, path_params or {})
        return httpx.Request(
            endpoint.method,
            url,
            params=dict(params) if params else None,
            headers=self.default_headers,
            json=json,
            data=dict(data) if data else None,
            files=files,
        )

    def build_external(
        self, method: str, url: str, content: Any = None
    ) -> httpx.Request:
        """
        Builds a request to a pre-signed upload URL returned by the API.
        Absolute URLs carry no Authorization header.
        """
        if url.startswith(("http://", "https://")):
            headers = {"User-Agent": self.user_agent}
        else:
            headers = self.default_headers
            url = f"{self.base_url}/{url.lstrip('/')}"
        return httpx.Request(method, url, headers=headers, content=content)
