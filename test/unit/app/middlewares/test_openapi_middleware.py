"""Tests for middleware base and OpenAPI upload patching."""

import orjson
import pytest
from robyn import Request, Response

from app.middlewares.base import BaseMiddleware
from app.middlewares.files import UploadOpenAPIMiddleware, multipart_schema
from app.models.core import FieldSpec, UploadSpec


def _openapi_response(paths: dict) -> Response:
    return Response(
        status_code=200,
        headers={"content-type": "application/json"},
        description=orjson.dumps({"openapi": "3.1.0", "paths": paths}).decode(),
    )


class TestBaseMiddleware:
    """Tests for BaseMiddleware hook detection."""

    def test_requires_a_hook(self) -> None:
        with pytest.raises(TypeError, match="at least one of before/after"):

            class Empty(BaseMiddleware):
                pass

    def test_detects_overridden_hooks(self) -> None:
        class BeforeOnly(BaseMiddleware):
            def before(self, request: Request) -> Request:
                return request

        assert BeforeOnly.has_before()
        assert not BeforeOnly.has_after()
        assert UploadOpenAPIMiddleware.has_after()

    def test_explicit_endpoints(self) -> None:
        class AfterOnly(BaseMiddleware):
            def after(self, response: Response) -> Response:
                return response

        assert AfterOnly(["/a", "/b"]).endpoints == frozenset({"/a", "/b"})
        assert AfterOnly().endpoints == frozenset()


class TestMultipartSchema:
    """Tests for multipart_schema."""

    def test_single(self) -> None:
        schema = multipart_schema(UploadSpec.single())

        assert schema["properties"]["image"]["format"] == "binary"
        assert schema["required"] == ["image"]

    def test_array(self) -> None:
        schema = multipart_schema(UploadSpec.array("images", 9))

        assert schema["properties"]["images"]["type"] == "array"
        assert schema["properties"]["images"]["maxItems"] == 9

    def test_fields(self) -> None:
        schema = multipart_schema(UploadSpec.many(FieldSpec("a", 1), FieldSpec("b", 4)))

        assert set(schema["properties"]) == {"a", "b"}
        assert "required" not in schema

    def test_any(self) -> None:
        assert multipart_schema(UploadSpec.any())["additionalProperties"]["format"] == "binary"


class TestUploadOpenAPIMiddleware:
    """Tests for UploadOpenAPIMiddleware.after."""

    def test_patches_upload_endpoints_only(self) -> None:
        middleware = UploadOpenAPIMiddleware({"/prizes/upload-images": UploadSpec.array()})
        response = _openapi_response(
            {
                "/prizes/upload-images": {"post": {"summary": "upload"}},
                "/health": {"get": {"summary": "health"}},
            }
        )

        paths = orjson.loads(middleware.after(response).description)["paths"]

        body = paths["/prizes/upload-images"]["post"]["requestBody"]
        assert "multipart/form-data" in body["content"]
        assert "requestBody" not in paths["/health"]["get"]

    def test_invalid_json_left_untouched(self) -> None:
        middleware = UploadOpenAPIMiddleware({"/x": UploadSpec.single()})
        response = Response(status_code=200, headers={}, description="not json")

        assert middleware.after(response).description == "not json"

    def test_no_upload_endpoints(self) -> None:
        response = _openapi_response({})
        assert UploadOpenAPIMiddleware({}).after(response) is response
