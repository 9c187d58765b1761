"""Multipart upload dispatcher.

Parses a multipart/form-data body incrementally with ``python-multipart`` and
streams every accepted file part straight to its destination directory. Parts
are written under a hidden ``.part`` name and only renamed once they end within
the configured ceilings, so a rejected or aborted file never appears as stored.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

from python_multipart.exceptions import FormParserError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.logger import LogIcon, logger
from app.core.settings import UploadConfig
from app.models.core import FileFieldGroup, StoredFile, UploadMode, UploadResult, UploadSpec
from app.models.errors import UploadError, UploadErrorKind
from app.uploads.destinations import resolve_destination
from app.uploads.naming import generate_filename
from app.uploads.storage import delete_file
from app.uploads.validation import check_file_count, check_file_size, check_file_type

_NAME_ATTEMPTS = 5

# A broken ceiling aborts the whole request, whatever the mode
CEILING_KINDS = frozenset({UploadErrorKind.SIZE_LIMIT, UploadErrorKind.COUNT_LIMIT})


def parse_boundary(content_type: str | bytes | None) -> bytes:
    """Extract the multipart boundary from a Content-Type header value."""
    media_type, params = parse_options_header(content_type or b"")
    boundary = params.get(b"boundary")
    if media_type.lower() != b"multipart/form-data" or not boundary:
        raise UploadError(UploadErrorKind.UNKNOWN, "Expected a multipart/form-data body with a boundary")
    return boundary


def iter_chunks(body: bytes | bytearray | Iterable[bytes], chunk_size: int) -> Iterator[bytes]:
    if isinstance(body, (bytes, bytearray)):
        view = memoryview(body)
        for offset in range(0, len(view), chunk_size):
            yield bytes(view[offset : offset + chunk_size])
    else:
        yield from body


class _PendingFile:
    """A file part currently being written."""

    __slots__ = ("field_name", "original_name", "mime_type", "directory", "filename", "temp_path", "handle", "size")

    def __init__(self, field_name: str, original_name: str, mime_type: str, directory: Path, filename: str) -> None:
        self.field_name = field_name
        self.original_name = original_name
        self.mime_type = mime_type
        self.directory = directory
        self.filename = filename
        self.temp_path = directory / f".{filename}.part"
        self.handle: BinaryIO = self.temp_path.open("xb")
        self.size = 0


class _MultipartSession:
    """Parser callbacks and state for a single request."""

    def __init__(self, config: UploadConfig, route: str, spec: UploadSpec) -> None:
        self._config = config
        self._route = route
        self._spec = spec
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[bytes, bytes] = {}
        self._current: _PendingFile | None = None
        self._per_field: dict[str, int] = {}
        self._file_count = 0
        self.stored: list[StoredFile] = []
        self.finished = False

    @property
    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._current = None

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[bytes(self._header_field).lower()] = bytes(self._header_value)
        self._header_field.clear()
        self._header_value.clear()

    def on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        filename = options.get(b"filename")
        if not filename:
            # plain form field, or a file input left empty
            return
        field_name = options.get(b"name", b"").decode("utf-8", "replace")
        mime_type = self._headers.get(b"content-type", b"application/octet-stream").decode("latin-1")
        self._open(field_name, filename.decode("utf-8", "replace"), mime_type)

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._current is None:
            return
        self._current.size += end - start
        check_file_size(self._current.size, self._config, self._current.field_name)
        self._current.handle.write(data[start:end])

    def on_part_end(self) -> None:
        if self._current is not None:
            self._store(self._current)
            self._current = None

    def on_end(self) -> None:
        self.finished = True

    def _open(self, field_name: str, original_name: str, mime_type: str) -> None:
        self._file_count += 1
        check_file_count(self._file_count, self._config, field_name)

        received = self._per_field.get(field_name, 0)
        if not self._spec.accepts(field_name, received):
            raise UploadError(
                UploadErrorKind.FIELD_MISMATCH,
                f'Unexpected file field: "{field_name}". Check that the field name is correct.',
                field=field_name,
            )
        self._per_field[field_name] = received + 1

        logger.debug("Checking file", icon=LogIcon.DETECTION, field=field_name, original=original_name, mime=mime_type)
        check_file_type(original_name, mime_type, field_name)

        directory = resolve_destination(self._route, self._config.root)
        self._current = _PendingFile(
            field_name, original_name, mime_type, directory, self._unique_name(directory, original_name, field_name)
        )

    @staticmethod
    def _unique_name(directory: Path, original_name: str, field_name: str) -> str:
        for _ in range(_NAME_ATTEMPTS):
            filename = generate_filename(original_name, field_name)
            if not (directory / filename).exists():
                return filename
        raise FileExistsError(f"Could not find a free filename in {directory}")

    def _store(self, pending: _PendingFile) -> None:
        pending.handle.close()
        path = pending.temp_path.rename(pending.directory / pending.filename)
        stored = StoredFile(
            filename=pending.filename,
            path=path,
            field_name=pending.field_name,
            original_name=pending.original_name,
            size=pending.size,
            mime_type=pending.mime_type,
        )
        self.stored.append(stored)
        logger.info("File accepted", icon=LogIcon.UPLOAD, field=stored.field_name, stored_as=stored.filename, size=stored.size)

    def abort(self, full_rollback: bool = False) -> None:
        """Drop the part in flight and, where the mode or the failure requires it, everything stored so far."""
        if self._current is not None:
            self._current.handle.close()
            delete_file(self._current.temp_path)
            self._current = None
        if (full_rollback or self._spec.rolls_back) and self.stored:
            logger.warning("Rolling back stored files", icon=LogIcon.CLEANUP, count=len(self.stored))
            for stored in self.stored:
                delete_file(stored.path)
            self.stored = []


class UploadDispatcher:
    """Dispatches multipart submissions to disk according to an endpoint's UploadSpec."""

    def __init__(self, config: UploadConfig) -> None:
        self.config = config

    def dispatch(
        self,
        route: str,
        content_type: str | bytes | None,
        body: bytes | bytearray | Iterable[bytes],
        spec: UploadSpec,
    ) -> UploadResult:
        """Parse ``body`` and store its file parts.

        Returns a StoredFile (or None) in single mode, a list in array mode and
        a FileFieldGroup in fields and any modes. Raises UploadError for
        rejected submissions and OSError for filesystem failures.
        """
        boundary = parse_boundary(content_type)
        session = _MultipartSession(self.config, route, spec)
        parser = MultipartParser(boundary, session.callbacks)

        try:
            try:
                for chunk in iter_chunks(body, self.config.chunk_size):
                    parser.write(chunk)
                parser.finalize()
            except FormParserError as ex:
                raise UploadError(UploadErrorKind.UNKNOWN, f"Malformed multipart body: {ex}") from ex
            if not session.finished:
                raise UploadError(UploadErrorKind.UNKNOWN, "Upload aborted before the multipart body was complete")
        except BaseException as ex:
            session.abort(full_rollback=isinstance(ex, UploadError) and ex.kind in CEILING_KINDS)
            if isinstance(ex, UploadError):
                ex.stored = list(session.stored)
            raise

        return self._shape(spec, session.stored)

    @staticmethod
    def _shape(spec: UploadSpec, stored: list[StoredFile]) -> UploadResult:
        match spec.mode:
            case UploadMode.SINGLE:
                return stored[0] if stored else None
            case UploadMode.ARRAY:
                return list(stored)
            case _:
                return FileFieldGroup.from_files(stored)
