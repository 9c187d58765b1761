"""Unified settings for robyn-upload-api."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

MiB = 1024 * 1024
DEFAULT_BASE_URL = "http://localhost:7778"


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("robyn-upload-api")
        except Exception:
            return "0.0.0"


@dataclass(frozen=True, slots=True)
class UploadConfig:
    """Immutable upload limits and storage locations, built once per process."""

    root: Path
    base_url: str = DEFAULT_BASE_URL
    max_file_size: int = 10 * MiB
    max_files: int = 20
    chunk_size: int = 64 * 1024


class Settings(BaseSettings):
    """Unified settings for robyn-upload-api service."""

    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-upload-api")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Image upload API")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Public addresses and storage
    FRONTEND_URL: str = DEFAULT_BASE_URL
    PUBLIC_ROOT: Path = BASE_DIR / "public"

    # Upload ceilings
    UPLOAD_MAX_FILE_SIZE: int = 10 * MiB
    UPLOAD_MAX_FILES: int = 20
    UPLOAD_CHUNK_SIZE: int = 64 * 1024

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    def upload_config(self) -> UploadConfig:
        return UploadConfig(
            root=self.PUBLIC_ROOT,
            base_url=self.FRONTEND_URL or DEFAULT_BASE_URL,
            max_file_size=self.UPLOAD_MAX_FILE_SIZE,
            max_files=self.UPLOAD_MAX_FILES,
            chunk_size=self.UPLOAD_CHUNK_SIZE,
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
