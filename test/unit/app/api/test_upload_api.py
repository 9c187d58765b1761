"""Tests for the upload endpoints' wiring and response models."""

from conftest import CONTENT_TYPE, Part, build_multipart

from app.api.uploads import UploadedFile, create_prizes_router, create_scratchcards_router, missing_file_response
from app.core.router import UPLOAD_ENDPOINTS
from app.models.core import UploadMode, UploadSpec


def test_routers_register_upload_schemas(dispatcher) -> None:
    create_scratchcards_router(dispatcher)
    create_prizes_router(dispatcher)

    assert UPLOAD_ENDPOINTS["/scratchcards/upload-image"] == UploadSpec.single("image")
    assert UPLOAD_ENDPOINTS["/scratchcards/admin/create"].mode is UploadMode.ANY
    assert UPLOAD_ENDPOINTS["/prizes/upload-prize-image"] == UploadSpec.single("image")
    assert UPLOAD_ENDPOINTS["/prizes/upload-images"] == UploadSpec.array("images", 9)


def test_uploaded_file_from_stored(dispatcher) -> None:
    body = build_multipart([Part("image", filename="gift.webp", content_type="image/webp")])
    stored = dispatcher.dispatch("/prizes/upload-prize-image", CONTENT_TYPE, body, UploadSpec.single())

    view = UploadedFile.from_stored(stored, "prizes", dispatcher.config.base_url)

    assert view.url == f"https://cdn.example.com/uploads/prizes/{stored.filename}"
    assert view.original_name == "gift.webp"
    assert view.mime_type == "image/webp"


def test_missing_file_response() -> None:
    response = missing_file_response("image")

    assert response.status_code == 400
    assert '"success":false' in response.description
