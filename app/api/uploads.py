"""Image upload endpoints for scratchcards and prizes."""

import orjson
from pydantic import BaseModel
from robyn import Response, status_codes

from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.models.core import FileFieldGroup, StoredFile, UploadSpec
from app.uploads.dispatcher import UploadDispatcher
from app.uploads.storage import build_public_url


class UploadedFile(BaseModel):
    """Public view of a stored file."""

    field_name: str
    filename: str
    original_name: str
    size: int
    mime_type: str
    url: str

    @classmethod
    def from_stored(cls, stored: StoredFile, resource_type: str, base_url: str) -> "UploadedFile":
        return cls(
            field_name=stored.field_name,
            filename=stored.filename,
            original_name=stored.original_name,
            size=stored.size,
            mime_type=stored.mime_type,
            url=build_public_url(stored.filename, resource_type, base_url),
        )


class SingleUploadResponse(BaseModel):
    success: bool = True
    file: UploadedFile


class ArrayUploadResponse(BaseModel):
    success: bool = True
    files: list[UploadedFile]


class GroupedUploadResponse(BaseModel):
    success: bool = True
    files: dict[str, list[UploadedFile]]


def missing_file_response(field_name: str) -> Response:
    return Response(
        status_code=status_codes.HTTP_400_BAD_REQUEST,
        headers={"content-type": "application/json"},
        description=orjson.dumps({"success": False, "message": f'No file sent under field "{field_name}"'}).decode(),
    )


def create_scratchcards_router(dispatcher: UploadDispatcher) -> Router:
    router = Router(__file__, prefix="/scratchcards", dispatcher=dispatcher)
    base_url = dispatcher.config.base_url

    @router.post("/upload-image", upload=UploadSpec.single("image"))
    async def upload_scratchcard_image(image: StoredFile | None):
        if image is None:
            return missing_file_response("image")
        return SingleUploadResponse(file=UploadedFile.from_stored(image, "scratchcards", base_url))

    # Clients repeat "prize_images" once per file, so the field set is open
    @router.post("/admin/create", upload=UploadSpec.any())
    async def create_scratchcard_images(files: FileFieldGroup):
        logger.info("Scratchcard images received", icon=LogIcon.IMAGE, fields=files.keys())
        return GroupedUploadResponse(
            files={
                field: [UploadedFile.from_stored(stored, "scratchcards", base_url) for stored in stored_files]
                for field, stored_files in files
            }
        )

    return router


def create_prizes_router(dispatcher: UploadDispatcher) -> Router:
    router = Router(__file__, prefix="/prizes", dispatcher=dispatcher)
    base_url = dispatcher.config.base_url

    @router.post("/upload-prize-image", upload=UploadSpec.single("image"))
    async def upload_prize_image(image: StoredFile | None):
        if image is None:
            return missing_file_response("image")
        return SingleUploadResponse(file=UploadedFile.from_stored(image, "prizes", base_url))

    @router.post("/upload-images", upload=UploadSpec.array("images", max_count=9))
    async def upload_prize_images(images: list[StoredFile]):
        return ArrayUploadResponse(files=[UploadedFile.from_stored(stored, "prizes", base_url) for stored in images])

    return router
