"""Test fixtures for robyn-upload-api unit tests."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from app.core.settings import UploadConfig
from app.uploads.dispatcher import UploadDispatcher

BOUNDARY = "----robyn-upload-test-boundary"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


# -----------------------------------------------------------------------------
# Multipart bodies
# -----------------------------------------------------------------------------


@dataclass
class Part:
    """One part of a multipart/form-data body."""

    name: str
    content: bytes = PNG_BYTES
    filename: str | None = "photo.png"
    content_type: str | None = "image/png"


def build_multipart(parts: list[Part], boundary: str = BOUNDARY, closed: bool = True) -> bytes:
    """Encode parts as a multipart/form-data body."""
    chunks: list[bytes] = []
    for part in parts:
        disposition = f'form-data; name="{part.name}"'
        if part.filename is not None:
            disposition += f'; filename="{part.filename}"'
        headers = f"Content-Disposition: {disposition}\r\n"
        if part.filename is not None and part.content_type:
            headers += f"Content-Type: {part.content_type}\r\n"
        chunks.append(f"--{boundary}\r\n{headers}\r\n".encode() + part.content + b"\r\n")
    if closed:
        chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


def image_parts(name: str, count: int) -> list[Part]:
    return [Part(name, content=PNG_BYTES + bytes([i]), filename=f"photo-{i}.png") for i in range(count)]


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    body: bytes | str = b""
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "POST"
    path: str = "/"


# -----------------------------------------------------------------------------
# Upload fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    return tmp_path / "public"


@pytest.fixture
def upload_config(upload_root: Path) -> UploadConfig:
    """Default ceilings with a small chunk size so parts span several writes."""
    return UploadConfig(root=upload_root, base_url="https://cdn.example.com", chunk_size=1024)


@pytest.fixture
def dispatcher(upload_config: UploadConfig) -> UploadDispatcher:
    return UploadDispatcher(upload_config)


@pytest.fixture
def make_upload_request():
    """Factory fixture to create multipart mock requests."""

    def _make(parts: list[Part], content_type: str = CONTENT_TYPE) -> MockRequest:
        headers = MockHeaders()
        headers.set("Content-Type", content_type)
        return MockRequest(body=build_multipart(parts), headers=headers)

    return _make


def stored_files(root: Path) -> list[Path]:
    """Every regular file under ``root``, temporary parts included."""
    return sorted(path for path in root.rglob("*") if path.is_file())
