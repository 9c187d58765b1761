"""Upload failure taxonomy and its client-facing payload."""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel

from app.models.core import StoredFile


class UploadErrorKind(StrEnum):
    """Kinds of recoverable upload failures."""

    SIZE_LIMIT = "size-limit"
    COUNT_LIMIT = "count-limit"
    FIELD_MISMATCH = "field-mismatch"
    TYPE_REJECTED = "type-rejected"
    UNKNOWN = "unknown-upload-error"


class UploadError(Exception):
    """A multipart upload was rejected.

    ``field`` names the offending field, if any. ``stored`` lists the files
    that stayed on disk because the dispatch mode does not roll back.
    """

    def __init__(
        self,
        kind: UploadErrorKind,
        message: str,
        *,
        field: str | None = None,
        stored: list[StoredFile] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field
        self.stored = stored or []

    def __repr__(self) -> str:
        return f"UploadError(kind={self.kind.value!r}, message={self.message!r}, field={self.field!r})"


class UploadErrorResponse(BaseModel):
    """JSON body returned for a rejected upload."""

    success: Literal[False] = False
    error: UploadErrorKind
    message: str
    expected_fields: list[str] | None = None
    received_field: str | None = None
    tip: str | None = None
