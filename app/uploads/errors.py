"""Translation of upload failures into client responses."""

from python_multipart.exceptions import FormParserError
from robyn import Response, status_codes

from app.core.logger import LogIcon, logger
from app.models.errors import UploadError, UploadErrorKind, UploadErrorResponse
from app.uploads.destinations import expected_fields_for

DEFAULT_PLURAL_FIELD = "prize_images"


def multi_file_tip(expected_fields: list[str]) -> str:
    plural = next((name for name in expected_fields if name.endswith("s")), DEFAULT_PLURAL_FIELD)
    return f'For multiple files, use the plural field "{plural}" and send every file under that same field name'


def build_error_payload(
    error: UploadError,
    route: str | None = None,
    declared_fields: list[str] | None = None,
) -> UploadErrorResponse:
    match error.kind:
        case UploadErrorKind.FIELD_MISMATCH:
            expected = expected_fields_for(route, declared_fields)
            return UploadErrorResponse(
                error=error.kind,
                message=error.message,
                expected_fields=expected,
                received_field=error.field,
                tip=multi_file_tip(expected),
            )
        case UploadErrorKind.UNKNOWN:
            return UploadErrorResponse(error=error.kind, message=f"Upload error: {error.message}")
        case _:
            return UploadErrorResponse(error=error.kind, message=error.message)


def handle_upload_error(
    exc: Exception,
    route: str | None = None,
    declared_fields: list[str] | None = None,
) -> Response:
    """Turn an upload failure into a 400 JSON response.

    Anything that is not an upload failure is re-raised unchanged for the next
    error handler.
    """
    match exc:
        case UploadError():
            error = exc
        case FormParserError():
            error = UploadError(UploadErrorKind.UNKNOWN, str(exc))
        case _:
            raise exc

    logger.warning(
        "Upload rejected", icon=LogIcon.FORBIDDEN, kind=error.kind.value, route=route, field=error.field
    )
    payload = build_error_payload(error, route, declared_fields)
    return Response(
        status_code=status_codes.HTTP_400_BAD_REQUEST,
        headers={"content-type": "application/json"},
        description=payload.model_dump_json(exclude_none=True),
    )
