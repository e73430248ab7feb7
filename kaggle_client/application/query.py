"""
Enumerated query values and typed list-query parameters.

The string values are the exact tokens the Kaggle API accepts. Unset filters
are sent as empty strings, which the service treats as "no filter".
"""

import dataclasses
import enum
from typing import Dict, Optional


class QueryEnum(str, enum.Enum):
    """A string enum whose value is sent on the wire as-is."""

    def __str__(self) -> str:
        return self.value


# --- Competitions ---

class CompetitionGroup(QueryEnum):
    GENERAL = "general"
    ENTERED = "entered"
    IN_CLASS = "inClass"


class CompetitionCategory(QueryEnum):
    ALL = "all"
    FEATURED = "featured"
    RESEARCH = "research"
    RECRUITMENT = "recruitment"
    GETTING_STARTED = "gettingStarted"
    MASTERS = "masters"
    PLAYGROUND = "playground"


class CompetitionSortBy(QueryEnum):
    GROUPED = "grouped"
    PRIZE = "prize"
    EARLIEST_DEADLINE = "earliestDeadline"
    LATEST_DEADLINE = "latestDeadline"
    NUMBER_OF_TEAMS = "numberOfTeams"
    RECENTLY_CREATED = "recentlyCreated"


# --- Datasets ---

class DatasetGroup(QueryEnum):
    PUBLIC = "public"
    MY = "my"
    USER = "user"


class DatasetFileType(QueryEnum):
    ALL = "all"
    CSV = "csv"
    SQLITE = "sqlite"
    JSON = "json"
    BIG_QUERY = "bigQuery"


class DatasetLicenseName(QueryEnum):
    ALL = "all"
    CC = "cc"
    GPL = "gpl"
    ODB = "odb"
    OTHER = "other"


class DatasetSortBy(QueryEnum):
    HOTTEST = "hottest"
    VOTES = "votes"
    UPDATED = "updated"
    ACTIVE = "active"
    PUBLISHED = "published"


class DatasetSize(QueryEnum):
    ALL = "all"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


# --- Kernels ---

class KernelGroup(QueryEnum):
    EVERYONE = "everyone"
    PROFILE = "profile"
    UPVOTED = "upvoted"


class Language(QueryEnum):
    ALL = "all"
    PYTHON = "python"
    R = "r"
    SQLITE = "sqlite"
    JULIA = "julia"


class KernelType(QueryEnum):
    ALL = "all"
    SCRIPT = "script"
    NOTEBOOK = "notebook"


class OutputType(QueryEnum):
    ALL = "all"
    VISUALIZATION = "visualization"
    DATA = "data"


class KernelSortBy(QueryEnum):
    HOTNESS = "hotness"
    COMMENT_COUNT = "commentCount"
    DATE_CREATED = "dateCreated"
    DATE_RUN = "dateRun"
    RELEVANCE = "relevance"
    SCORE_ASCENDING = "scoreAscending"
    SCORE_DESCENDING = "scoreDescending"
    VIEW_COUNT = "viewCount"
    VOTE_COUNT = "voteCount"


class PushKernelType(QueryEnum):
    SCRIPT = "script"
    NOTEBOOK = "notebook"


class PushLanguageType(QueryEnum):
    PYTHON = "python"
    R = "r"
    RMARKDOWN = "rmarkdown"


def _as_param(value) -> str:
    """Render a query value, sending None as the empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


# --- List queries ---

@dataclasses.dataclass
class CompetitionsListQuery:
    """Parameters of the competitions/list endpoint."""

    group: Optional[CompetitionGroup] = None
    category: Optional[CompetitionCategory] = None
    sort_by: Optional[CompetitionSortBy] = None
    page: int = 1
    search: Optional[str] = None

    def to_params(self) -> Dict[str, str]:
        return {
            "group": _as_param(self.group),
            "category": _as_param(self.category),
            "sortBy": _as_param(self.sort_by),
            "page": _as_param(self.page),
            "search": _as_param(self.search),
        }


@dataclasses.dataclass
class DatasetsListQuery:
    """Parameters of the datasets/list endpoint."""

    group: Optional[DatasetGroup] = None
    sort_by: Optional[DatasetSortBy] = None
    size: Optional[DatasetSize] = None
    file_type: Optional[DatasetFileType] = None
    license: Optional[DatasetLicenseName] = None
    tag_ids: Optional[str] = None
    search: Optional[str] = None
    user: Optional[str] = None
    page: int = 1
    max_size: Optional[int] = None
    min_size: Optional[int] = None

    def to_params(self) -> Dict[str, str]:
        return {
            "group": _as_param(self.group),
            "sortBy": _as_param(self.sort_by),
            "size": _as_param(self.size),
            "filetype": _as_param(self.file_type),
            "license": _as_param(self.license),
            "tagids": _as_param(self.tag_ids),
            "search": _as_param(self.search),
            "user": _as_param(self.user),
            "page": _as_param(self.page),
            "maxSize": _as_param(self.max_size),
            "minSize": _as_param(self.min_size),
        }


@dataclasses.dataclass
class KernelsListQuery:
    """Parameters of the kernels/list endpoint."""

    page: int = 1
    page_size: int = 20
    search: Optional[str] = None
    group: Optional[KernelGroup] = None
    user: Optional[str] = None
    language: Optional[Language] = None
    kernel_type: Optional[KernelType] = None
    output_type: Optional[OutputType] = None
    sort_by: Optional[KernelSortBy] = None
    dataset: Optional[str] = None
    competition: Optional[str] = None
    parent_kernel: Optional[str] = None

    def to_params(self) -> Dict[str, str]:
        return {
            "page": _as_param(self.page),
            "pageSize": _as_param(self.page_size),
            "search": _as_param(self.search),
            "group": _as_param(self.group),
            "user": _as_param(self.user),
            "language": _as_param(self.language),
            "kernelType": _as_param(self.kernel_type),
            "outputType": _as_param(self.output_type),
            "sortBy": _as_param(self.sort_by),
            "dataset": _as_param(self.dataset),
            "competition": _as_param(self.competition),
            "parentKernel": _as_param(self.parent_kernel),
        }
