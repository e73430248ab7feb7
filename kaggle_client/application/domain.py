"""
This module defines the core domain models for the client.

These classes represent the technology-agnostic entities the rest of the
library passes around, and the ports that infrastructure adapters implement.
"""

import dataclasses
import enum
from pathlib import Path

from abc import ABC, abstractmethod
from typing import List, Union


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class Credentials:
    """A username + API key pair. The key is kept out of the repr."""

    username: str
    key: str = dataclasses.field(repr=False)


class ArchiveFormat(str, enum.Enum):
    """Container format of a downloaded file, detected from its signature."""

    ZIP = "zip"
    TAR = "tar"
    TAR_GZ = "tar.gz"
    GZIP = "gzip"
    NONE = "none"

    @property
    def is_archive(self) -> bool:
        return self is not ArchiveFormat.NONE


@dataclasses.dataclass(frozen=True)
class DownloadedArchive:
    """
    A domain model representing a downloaded file on disk, defined by its
    location and detected container format.
    """

    path: Path
    format: ArchiveFormat
    size_bytes: int = 0


# --- Ports (Interfaces) ---

class CredentialProvider(ABC):
    """A port for any source of API credentials."""

    @abstractmethod
    def resolve(self) -> Credentials:
        """
        Returns the credentials.
        Raises ConfigurationError if none can be found.
        """
        pass


class Extractor(ABC):
    """A port for expanding archives into a directory tree."""

    @abstractmethod
    def extract(
        self, source: Union[Path, bytes], destination: Path
    ) -> List[Path]:
        """Expands an archive and returns the paths written."""
        pass
