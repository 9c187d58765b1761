"""Stored file housekeeping: removal and public addresses."""

from pathlib import Path

from app.core.logger import LogIcon, logger
from app.core.settings import DEFAULT_BASE_URL


def delete_file(path: Path | str) -> bool:
    """Delete a stored file. Returns False when nothing was deleted; never raises."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    except OSError as ex:
        logger.error("Failed to delete file", icon=LogIcon.ERROR, path=str(path), error=str(ex))
        return False
    logger.info("File deleted", icon=LogIcon.CLEANUP, path=str(path))
    return True


def build_public_url(filename: str, resource_type: str = "scratchcards", base_url: str | None = None) -> str:
    """Compose the public address of a stored file; existence is not checked."""
    base = (base_url or DEFAULT_BASE_URL).rstrip("/")
    return f"{base}/uploads/{resource_type}/{filename}"
