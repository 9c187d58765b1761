"""Tests for file deletion and public URLs."""

from pathlib import Path

from app.core.settings import DEFAULT_BASE_URL
from app.uploads.storage import build_public_url, delete_file


def test_delete_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "a.png"
    target.write_bytes(b"x")

    assert delete_file(target) is True
    assert not target.exists()


def test_delete_missing_file_is_noop(tmp_path: Path) -> None:
    assert delete_file(tmp_path / "missing.png") is False


def test_delete_failure_reports_false(tmp_path: Path) -> None:
    """Verify unexpected I/O errors are reported, not raised."""
    directory = tmp_path / "dir.png"
    directory.mkdir()

    assert delete_file(directory) is False
    assert directory.exists()


def test_public_url() -> None:
    assert build_public_url("abc.png", "prizes", "https://cdn.example.com") == "https://cdn.example.com/uploads/prizes/abc.png"


def test_public_url_defaults() -> None:
    assert build_public_url("abc.png") == f"{DEFAULT_BASE_URL}/uploads/scratchcards/abc.png"


def test_public_url_trailing_slash() -> None:
    assert build_public_url("abc.png", "prizes", "https://cdn.example.com/") == "https://cdn.example.com/uploads/prizes/abc.png"
