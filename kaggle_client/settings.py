"""
Initializes the Dynaconf settings object for the Kaggle client.
This module is the single source of truth for all configuration.
"""

from pathlib import Path
from dynaconf import Dynaconf, Validator

PROJECT_ROOT = Path(__file__).parent.parent

VERSION = "0.1.0"

settings = Dynaconf(
    root_path=PROJECT_ROOT,
    settings_files=["config/settings.toml"],
    secrets="config/.secrets.toml",
    envvar_prefix="KAGGLE_CLIENT",
    validators=[
        Validator("client.base_url", default="https://www.kaggle.com/api/v1"),
        Validator("client.user_agent", default=f"kaggle-client/{VERSION}/python"),
        Validator("client.timeout", default=30, gte=0),
        Validator("credentials.source", default="auto",
                  is_in=["auto", "env", "file", "explicit"]),
        Validator("credentials.config_file", default=""),
        Validator("downloader.chunk_size", default=1024 * 1024, gt=0),
        Validator("downloader.show_progress", default=True),
        Validator("retry.attempts", default=1, gte=1),
        Validator("archive.overwrite", default=True),
        Validator("archive.delete_after_extract", default=False),
        Validator("paths.download_dir", default="."),
        Validator("logging.level", default="INFO"),
    ],
)
