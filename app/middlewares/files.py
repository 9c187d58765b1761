"""OpenAPI patching so upload endpoints document their multipart/form-data body."""

from collections.abc import Mapping

import orjson
from robyn import Response

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import UploadMode, UploadSpec
from app.uploads.validation import ALLOWED_FORMATS_LABEL

_BINARY = {"type": "string", "format": "binary", "description": f"Image file ({ALLOWED_FORMATS_LABEL})"}


def multipart_schema(spec: UploadSpec) -> dict:
    """JSON schema of the multipart body accepted under ``spec``."""
    if spec.mode is UploadMode.ANY:
        return {"type": "object", "additionalProperties": _BINARY}

    properties: dict[str, dict] = {}
    for field in spec.fields:
        if spec.mode is UploadMode.SINGLE:
            properties[field.name] = _BINARY
        else:
            properties[field.name] = {"type": "array", "items": _BINARY, "maxItems": field.max_count}

    schema: dict = {"type": "object", "properties": properties}
    if spec.mode is UploadMode.SINGLE:
        schema["required"] = spec.expected_fields
    return schema


class UploadOpenAPIMiddleware(BaseMiddleware):
    """Patches the OpenAPI document with multipart/form-data bodies for upload endpoints."""

    endpoints = frozenset(["/openapi.json"])

    def __init__(self, upload_endpoints: Mapping[str, UploadSpec]) -> None:
        super().__init__()
        self._upload_endpoints = upload_endpoints

    def after(self, response: Response) -> Response:
        if not self._upload_endpoints:
            return response

        try:
            spec = orjson.loads(response.description)
        except orjson.JSONDecodeError as ex:
            logger.warning("OpenAPI document is not valid JSON", icon=LogIcon.WARNING, error=str(ex))
            return response

        paths = spec.get("paths", {})
        for endpoint, upload in self._upload_endpoints.items():
            for operation in paths.get(endpoint, {}).values():
                if not isinstance(operation, dict):
                    continue
                operation["requestBody"] = {
                    "content": {"multipart/form-data": {"schema": multipart_schema(upload)}},
                    "required": upload.mode is UploadMode.SINGLE,
                }

        response.description = orjson.dumps(spec).decode()
        return response
