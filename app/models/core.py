"""Core models for request/response handling."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class UploadMode(StrEnum):
    """Shape of the multipart dispatch chosen by an endpoint."""

    SINGLE = "single"
    ARRAY = "array"
    FIELDS = "fields"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A declared file field and how many files it may carry."""

    name: str
    max_count: int = 1


@dataclass(frozen=True, slots=True)
class UploadSpec:
    """Upload schema of an endpoint: dispatch mode plus declared fields."""

    mode: UploadMode
    fields: tuple[FieldSpec, ...] = ()

    @classmethod
    def single(cls, name: str = "image") -> "UploadSpec":
        return cls(UploadMode.SINGLE, (FieldSpec(name, 1),))

    @classmethod
    def array(cls, name: str = "images", max_count: int = 9) -> "UploadSpec":
        return cls(UploadMode.ARRAY, (FieldSpec(name, max_count),))

    @classmethod
    def many(cls, *fields: FieldSpec) -> "UploadSpec":
        return cls(UploadMode.FIELDS, tuple(fields))

    @classmethod
    def any(cls) -> "UploadSpec":
        return cls(UploadMode.ANY)

    @property
    def expected_fields(self) -> list[str]:
        return [spec.name for spec in self.fields]

    @property
    def rolls_back(self) -> bool:
        """Whether a failed request discards files it already stored."""
        return self.mode is not UploadMode.ANY

    def accepts(self, field_name: str, already_received: int) -> bool:
        """Check whether one more file may arrive under ``field_name``."""
        if self.mode is UploadMode.ANY:
            return True
        for spec in self.fields:
            if spec.name == field_name:
                return already_received < spec.max_count
        return False


class StoredFile(BaseModel):
    """A file part accepted and written to disk."""

    model_config = ConfigDict(frozen=True)

    filename: str
    path: Path
    field_name: str
    original_name: str
    size: int
    mime_type: str


class FileFieldGroup:
    """Stored files grouped by the field name they arrived under."""

    __slots__ = ("fields",)

    def __init__(self, fields: dict[str, list[StoredFile]] | None = None) -> None:
        self.fields = fields or {}

    @classmethod
    def from_files(cls, files: Iterable[StoredFile]) -> "FileFieldGroup":
        """Fold an ordered sequence of files into per-field lists, keeping arrival order."""
        grouped: dict[str, list[StoredFile]] = {}
        for stored in files:
            grouped.setdefault(stored.field_name, []).append(stored)
        return cls(grouped)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def __getitem__(self, name: str) -> list[StoredFile]:
        return self.fields[name]

    def __iter__(self) -> Iterator[tuple[str, list[StoredFile]]]:
        return iter(self.fields.items())

    def get(self, name: str) -> list[StoredFile]:
        """Get stored files by field name, empty when the field was not sent."""
        return self.fields.get(name, [])

    def keys(self) -> list[str]:
        """Get all received field names in arrival order."""
        return list(self.fields.keys())

    def all_files(self) -> list[StoredFile]:
        return [stored for files in self.fields.values() for stored in files]


UploadResult = StoredFile | list[StoredFile] | FileFieldGroup | None
