"""Type and ceiling checks applied to each incoming file part."""

from pathlib import PurePath

from app.core.settings import MiB, UploadConfig
from app.models.errors import UploadError, UploadErrorKind

ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif", ".svg", ".webp"})
ALLOWED_MIME_TYPES = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/svg+xml", "image/webp"}
)
ALLOWED_FORMATS_LABEL = "JPEG, JPG, PNG, GIF, SVG, WEBP"


def is_allowed_image(original_name: str, mime_type: str) -> bool:
    """Both the extension and the declared MIME type must be allow-listed."""
    extension = PurePath(original_name).suffix.lower()
    media_type = mime_type.split(";", 1)[0].strip().lower()
    return extension in ALLOWED_EXTENSIONS and media_type in ALLOWED_MIME_TYPES


def check_file_type(original_name: str, mime_type: str, field_name: str) -> None:
    if not is_allowed_image(original_name, mime_type):
        raise UploadError(
            UploadErrorKind.TYPE_REJECTED,
            f"Only image files are allowed ({ALLOWED_FORMATS_LABEL})",
            field=field_name,
        )


def check_file_count(count: int, config: UploadConfig, field_name: str) -> None:
    """``count`` includes the file about to be accepted."""
    if count > config.max_files:
        raise UploadError(
            UploadErrorKind.COUNT_LIMIT,
            f"Too many files. Maximum allowed: {config.max_files} files",
            field=field_name,
        )


def check_file_size(size: int, config: UploadConfig, field_name: str) -> None:
    if size > config.max_file_size:
        raise UploadError(
            UploadErrorKind.SIZE_LIMIT,
            f"File too large. Maximum size: {format_size(config.max_file_size)}",
            field=field_name,
        )


def format_size(size: int) -> str:
    if size % MiB == 0:
        return f"{size // MiB}MB"
    return f"{size} bytes"
