"""
Credential providers for the Kaggle API.

Credentials can come from the ``KAGGLE_USERNAME`` / ``KAGGLE_KEY`` environment
variables, from a ``kaggle.json`` file (``$KAGGLE_CONFIG_DIR/kaggle.json`` or
``~/.kaggle/kaggle.json``), or be passed in directly.
"""

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from ..application.domain import CredentialProvider, Credentials
from ..application.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_USERNAME = "KAGGLE_USERNAME"
ENV_KEY = "KAGGLE_KEY"
ENV_CONFIG_DIR = "KAGGLE_CONFIG_DIR"
CONFIG_FILE_NAME = "kaggle.json"


def _checked(username: Optional[str], key: Optional[str], source: str) -> Credentials:
    """
    Builds Credentials, failing if either half is missing.

    A key still holding the YOUR_... text of a sample kaggle.json counts as
    missing.
    """
    if not username:
        raise ConfigurationError(f"Kaggle username from {source} is missing.")
    if not key or "YOUR_" in str(key).upper():
        raise ConfigurationError(
            f"Kaggle key from {source} is missing or is a placeholder."
        )
    return Credentials(username=str(username), key=str(key))


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Location of kaggle.json, honouring KAGGLE_CONFIG_DIR."""
    environ = os.environ if environ is None else environ
    config_dir = environ.get(ENV_CONFIG_DIR)
    if config_dir:
        return Path(config_dir) / CONFIG_FILE_NAME
    return Path.home() / ".kaggle" / CONFIG_FILE_NAME


class StaticCredentials(CredentialProvider):
    """Uses dedicated credentials passed in by the caller."""

    def __init__(self, username: str, key: str):
        self.username = username
        self.key = key

    def resolve(self) -> Credentials:
        return _checked(self.username, self.key, "explicit arguments")


class EnvCredentials(CredentialProvider):
    """Reads credentials from the KAGGLE_USERNAME and KAGGLE_KEY variables."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def resolve(self) -> Credentials:
        username = self.environ.get(ENV_USERNAME)
        key = self.environ.get(ENV_KEY)
        if not username or not key:
            raise ConfigurationError(
                f"{ENV_USERNAME} and {ENV_KEY} environment variables not present."
            )
        return _checked(username, key, "the environment")


class ConfigFileCredentials(CredentialProvider):
    """Reads credentials from a kaggle.json file."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.path = Path(path) if path else default_config_path(environ)

    def resolve(self) -> Credentials:
        if not self.path.exists():
            raise ConfigurationError(
                f"Kaggle config file {self.path} does not exist."
            )
        try:
            content = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Could not read Kaggle config file {self.path}: {e}"
            ) from e

        if not isinstance(content, dict):
            raise ConfigurationError(
                f"Kaggle config file {self.path} must hold a JSON object."
            )
        return _checked(content.get("username"), content.get("key"), str(self.path))


class ChainedCredentials(CredentialProvider):
    """Tries each provider in turn and returns the first that resolves."""

    def __init__(self, providers: Sequence[CredentialProvider]):
        self.providers = list(providers)

    def resolve(self) -> Credentials:
        reasons = []
        for provider in self.providers:
            try:
                credentials = provider.resolve()
            except ConfigurationError as e:
                reasons.append(str(e))
                continue
            logger.debug(
                f"Using Kaggle credentials from {provider.__class__.__name__}"
            )
            return credentials

        raise ConfigurationError(
            "No Kaggle credentials found. " + " ".join(reasons)
        )


def credential_provider(
    source: str = "auto",
    username: Optional[str] = None,
    key: Optional[str] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> CredentialProvider:
    """
    Selects a provider by name.

    Args:
        source: 'auto' (environment, then config file), 'env', 'file' or
            'explicit'. Passing both username and key implies 'explicit'.
        username: Username for explicit credentials.
        key: API key for explicit credentials.
        config_file: Alternative location of kaggle.json.

    Raises:
        ConfigurationError: If the source name is unknown.
    """

    if username and key:
        return StaticCredentials(username, key)

    if source == "auto":
        return ChainedCredentials(
            [EnvCredentials(), ConfigFileCredentials(config_file)]
        )
    if source == "env":
        return EnvCredentials()
    if source == "file":
        return ConfigFileCredentials(config_file)
    if source == "explicit":
        return StaticCredentials(username or "", key or "")

    raise ConfigurationError(f"Unknown credential source {source!r}.")


def resolve(
    source: str = "auto",
    username: Optional[str] = None,
    key: Optional[str] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> Credentials:
    """Resolves credentials from the selected source."""
    return credential_provider(source, username, key, config_file).resolve()
