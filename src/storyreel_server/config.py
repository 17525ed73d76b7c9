"""Server defaults, overridable through environment variables."""

import os
from pathlib import Path

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_PROJECTS_DIR = "./projects"
DEFAULT_PROJECT_NAME = "storyreel"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def project_dir() -> Path:
    """Directory of the project served over HTTP."""
    configured = os.getenv("STORYREEL_PROJECT_DIR")
    if configured:
        return Path(configured)
    return Path(DEFAULT_PROJECTS_DIR) / DEFAULT_PROJECT_NAME


def host() -> str:
    return os.getenv("STORYREEL_HOST", DEFAULT_HOST)


def port() -> int:
    return int(os.getenv("STORYREEL_PORT", DEFAULT_PORT))
