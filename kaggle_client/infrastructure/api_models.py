"""
Pydantic models for the request and response bodies of the Kaggle API.

Field names are snake_case in Python and camelCase on the wire. Fields the
service may omit or null are Optional; a missing required field fails
validation. Unknown fields are ignored so new service fields do not break
decoding.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..application.query import (
    KernelType,
    Language,
    PushKernelType,
    PushLanguageType,
)


class ApiModel(BaseModel):
    """Base for all wire models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serializes to a JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Shared ---

class Tag(ApiModel):
    ref: str
    name: str
    full_path: str
    description: Optional[str] = None
    competition_count: int
    dataset_count: int
    script_count: int
    total_count: int
    is_automatic: bool


class License(ApiModel):
    name: str


class Collaborator(ApiModel):
    username: str
    role: str


class DatasetColumn(ApiModel):
    order: Optional[float] = None
    name: Optional[str] = None
    type: Optional[str] = None
    original_type: Optional[str] = None
    description: Optional[str] = None


class ApiResult(ApiModel):
    """
    Loosely typed result of mutation endpoints. The service returns ad-hoc
    keys here (token, message, error, ...), so extras are kept.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    token: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


# --- Competitions ---

class Competition(ApiModel):
    id: int
    ref: str
    title: str
    url: str
    description: str
    tags: List[Tag]
    deadline: datetime
    category: str
    reward: str
    organization_name: Optional[str] = None
    organization_ref: Optional[str] = None
    kernel_count: int
    team_count: int
    user_has_entered: bool
    user_rank: Optional[int] = None
    merger_deadline: Optional[datetime] = None
    new_entrant_deadline: Optional[datetime] = None
    enabled_date: datetime
    max_daily_submissions: int
    max_team_size: Optional[int] = None
    evaluation_metric: str
    awards_points: bool
    is_kernels_submissions_only: bool
    submissions_disabled: bool


class Submission(ApiModel):
    """A leaderboard entry."""

    team_id: int
    team_name: str
    submission_date: datetime
    score: str


class LeaderBoard(ApiModel):
    submissions: List[Submission]


class SubmissionSummary(ApiModel):
    """One of the caller's own submissions to a competition."""

    ref: int
    file_name: Optional[str] = None
    date: Optional[datetime] = None
    description: Optional[str] = None
    status: Optional[str] = None
    public_score: Optional[str] = None
    private_score: Optional[str] = None
    error_description: Optional[str] = None
    submitted_by: Optional[str] = None
    team_name: Optional[str] = None
    total_bytes: Optional[int] = None
    url: Optional[str] = None


class FileUploadInfo(ApiModel):
    token: str
    create_url: str


# --- Datasets ---

class File(ApiModel):
    """A file of a dataset or competition."""

    ref: str
    name: str
    total_bytes: int
    url: str
    creation_date: Optional[datetime] = None
    dataset_ref: Optional[str] = None
    description: Optional[str] = None
    file_type: Optional[str] = None
    owner_ref: Optional[str] = None
    columns: List[DatasetColumn] = Field(default_factory=list)


class DatasetFile(ApiModel):
    """A file as listed for one version of a dataset."""

    ref: str
    name: str
    total_bytes: int
    url: str
    creation_date: datetime
    dataset_ref: str
    description: Optional[str] = None
    file_type: str
    owner_ref: str
    columns: List[DatasetColumn]


class DatasetVersion(ApiModel):
    version_number: int
    creation_date: str
    creator_name: str
    creator_ref: str
    version_notes: str
    status: str


class Dataset(ApiModel):
    id: int
    ref: str
    title: str
    url: str
    subtitle: str
    tags: List[Tag]
    creator_name: str
    creator_url: Optional[str] = None
    total_bytes: int
    last_updated: datetime
    download_count: int
    is_private: bool
    is_reviewed: bool
    is_featured: bool
    license_name: Optional[str] = None
    description: Optional[str] = None
    owner_name: str
    owner_ref: str
    kernel_count: int
    topic_count: int
    view_count: int
    vote_count: int
    current_version_number: int
    files: List[File]
    versions: List[DatasetVersion]
    usability_rating: float


class ListFilesResult(ApiModel):
    error_message: Optional[str] = None
    dataset_files: List[DatasetFile]


class MetadataData(ApiModel):
    name: str
    description: Optional[str] = None
    total_bytes: int
    columns: List[DatasetColumn]


class DatasetMetadata(ApiModel):
    dataset_id: int
    dataset_slug: str
    # shape of the owner record is not fixed; may be null
    owner_user: Any
    usability_rating: float
    total_views: int
    total_votes: int
    total_downloads: int
    title: str
    subtitle: str
    description: str
    is_private: bool
    licenses: List[License]
    keywords: List[str]
    collaborators: List[Collaborator]
    data: List[MetadataData]


class DatasetMetadataResponse(ApiModel):
    info: Optional[DatasetMetadata] = None
    error_message: Optional[str] = None


class DatasetNewResponse(ApiModel):
    """Result of dataset creation. 'ref' is None when an error occurred."""

    ref: Optional[str] = None
    url: str
    status: str
    error: Optional[str] = None
    invalid_tags: List[Any]

    @property
    def is_success(self) -> bool:
        return self.status == "ok"

    @property
    def is_error(self) -> bool:
        return self.status == "error"


class DatasetUploadFile(ApiModel):
    token: str
    description: Optional[str] = None
    columns: List[DatasetColumn] = Field(default_factory=list)


class DatasetNewRequest(ApiModel):
    title: str
    slug: Optional[str] = None
    owner_slug: Optional[str] = None
    license_name: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    files: List[DatasetUploadFile] = Field(default_factory=list)
    is_private: Optional[bool] = None
    convert_to_csv: Optional[bool] = None
    category_ids: List[str] = Field(default_factory=list)


class DatasetNewVersionRequest(ApiModel):
    version_notes: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    files: List[DatasetUploadFile] = Field(default_factory=list)
    convert_to_csv: Optional[bool] = None
    category_ids: List[str] = Field(default_factory=list)
    delete_old_versions: Optional[bool] = None


class DatasetUpdateSettingsRequest(ApiModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = None
    licenses: List[License] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    collaborators: List[Collaborator] = Field(default_factory=list)
    data: List[Any] = Field(default_factory=list)


# --- Kernels ---

class Kernel(ApiModel):
    id: int
    ref: str
    title: str
    author: str
    slug: Optional[str] = None
    last_run_time: Optional[datetime] = None
    language: Optional[Language] = None
    kernel_type: Optional[KernelType] = None
    is_private: Optional[bool] = None
    enable_gpu: Optional[bool] = None
    enable_internet: Optional[bool] = None
    category_ids: List[str]
    dataset_data_sources: List[str]
    kernel_data_sources: List[str]
    competition_data_sources: List[str]
    total_votes: int


class KernelMetadata(Kernel):
    slug: str
    kernel_type: Optional[PushKernelType] = None


_CODE_EXTENSIONS = {
    (PushKernelType.SCRIPT, Language.PYTHON): ".py",
    (PushKernelType.SCRIPT, Language.R): ".R",
    (PushKernelType.NOTEBOOK, Language.PYTHON): ".ipynb",
    (PushKernelType.NOTEBOOK, Language.R): ".irnb",
}


class KernelBlob(ApiModel):
    kernel_type: PushKernelType
    language: Language
    slug: str
    source: str

    @property
    def file_extension(self) -> Optional[str]:
        return _CODE_EXTENSIONS.get((self.kernel_type, self.language))


class KernelPullResponse(ApiModel):
    metadata: KernelMetadata
    blob: KernelBlob

    @property
    def code_file_name(self) -> Optional[str]:
        extension = self.blob.file_extension
        if extension is None:
            return None
        return f"{self.blob.slug}{extension}"


class KernelPushRequest(ApiModel):
    text: str
    language: PushLanguageType
    kernel_type: PushKernelType
    id: Optional[int] = None
    slug: Optional[str] = None
    new_title: Optional[str] = None
    is_private: Optional[bool] = None
    enable_gpu: Optional[bool] = None
    enable_internet: Optional[bool] = None
    dataset_data_sources: List[str] = Field(default_factory=list)
    competition_data_sources: List[str] = Field(default_factory=list)
    kernel_data_sources: List[str] = Field(default_factory=list)
    category_ids: List[str] = Field(default_factory=list)


class KernelPushResponse(ApiResult):
    ref: Optional[str] = None
    url: Optional[str] = None
    version_number: Optional[int] = None
    invalid_tags: List[Any] = Field(default_factory=list)


class KernelStatus(ApiModel):
    status: str
    failure_message: Optional[str] = None


class DownloadResponse(ApiModel):
    content: str


class KernelOutputFile(ApiModel):
    file_name: str
    url: DownloadResponse


class KernelOutput(ApiModel):
    files: List[KernelOutputFile] = Field(default_factory=list)
    log: Optional[str] = None
