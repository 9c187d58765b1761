"""Tests for upload schema and result models."""

from pathlib import Path

from app.models.core import FieldSpec, FileFieldGroup, StoredFile, UploadMode, UploadSpec


def _stored(field_name: str, original_name: str) -> StoredFile:
    return StoredFile(
        filename=f"{field_name}-1-1.png",
        path=Path("/tmp") / original_name,
        field_name=field_name,
        original_name=original_name,
        size=1,
        mime_type="image/png",
    )


class TestUploadSpec:
    """Tests for UploadSpec constructors and field acceptance."""

    def test_defaults(self) -> None:
        assert UploadSpec.single().fields == (FieldSpec("image", 1),)
        assert UploadSpec.array().fields == (FieldSpec("images", 9),)
        assert UploadSpec.any().mode is UploadMode.ANY

    def test_accepts_within_count(self) -> None:
        spec = UploadSpec.array("images", 2)

        assert spec.accepts("images", 0)
        assert spec.accepts("images", 1)
        assert not spec.accepts("images", 2)
        assert not spec.accepts("image", 0)

    def test_any_accepts_everything(self) -> None:
        assert UploadSpec.any().accepts("whatever", 100)

    def test_rollback_policy(self) -> None:
        assert UploadSpec.single().rolls_back
        assert UploadSpec.many(FieldSpec("a")).rolls_back
        assert not UploadSpec.any().rolls_back


class TestFileFieldGroup:
    """Tests for FileFieldGroup."""

    def test_from_files_keeps_order_per_field(self) -> None:
        files = [_stored("p", "1.png"), _stored("s", "a.png"), _stored("p", "2.png"), _stored("p", "3.png")]

        group = FileFieldGroup.from_files(files)

        assert group.keys() == ["p", "s"]
        assert [f.original_name for f in group["p"]] == ["1.png", "2.png", "3.png"]
        assert group.all_files() == [files[0], files[2], files[3], files[1]]

    def test_empty_group(self) -> None:
        group = FileFieldGroup.from_files([])

        assert not group
        assert group.get("missing") == []
        assert "missing" not in group
