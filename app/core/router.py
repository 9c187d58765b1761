"""Router with automatic upload dispatch and response handling."""

import asyncio
import inspect
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from asgi_correlation_id import correlation_id
from pydantic import BaseModel
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod

from app.core.logger import LogIcon, logger
from app.models.core import FileFieldGroup, StoredFile, UploadResult, UploadSpec
from app.models.errors import UploadError
from app.uploads.dispatcher import UploadDispatcher
from app.uploads.errors import handle_upload_error
from app.uploads.storage import delete_file

# Full route path -> upload schema, read by the OpenAPI patching middleware
UPLOAD_ENDPOINTS: dict[str, UploadSpec] = {}

UPLOAD_ANNOTATIONS = (StoredFile, StoredFile | None, list[StoredFile], FileFieldGroup)


def find_upload_param(sig: inspect.Signature) -> str | None:
    """Name of the parameter receiving the upload result, detected by annotation."""
    for name, param in sig.parameters.items():
        if param.annotation in UPLOAD_ANNOTATIONS:
            return name
    return None


def request_body_bytes(request: Request) -> bytes:
    body = request.body
    match body:
        case bytes():
            return body
        case bytearray() | list():
            return bytes(body)
        case str():
            return body.encode("utf-8")
        case _:
            return b""


def discard_unowned(error: UploadError) -> None:
    """Delete files a failed request kept; no handler runs to own them."""
    if error.stored:
        logger.warning("Discarding files of rejected request", icon=LogIcon.CLEANUP, count=len(error.stored))
    for stored in error.stored:
        delete_file(stored.path)
    error.stored = []


async def dispatch_request_uploads(
    dispatcher: UploadDispatcher,
    spec: UploadSpec,
    route: str,
    request: Request,
) -> UploadResult | Response:
    """Store the request's files off the event loop, or return the rejection response."""
    try:
        return await asyncio.to_thread(
            dispatcher.dispatch,
            route,
            request.headers.get("content-type"),
            request_body_bytes(request),
            spec,
        )
    except Exception as ex:
        if isinstance(ex, UploadError):
            discard_unowned(ex)
        return handle_upload_error(ex, route, spec.expected_fields)


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result, default=str).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _create_method_wrapper(
    original_method: Callable, router_prefix: str = "", dispatcher: UploadDispatcher | None = None
) -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, upload: UploadSpec | None = None, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)
        full_path = f"{router_prefix}{endpoint}".replace("//", "/")

        if upload is not None and dispatcher is None:
            raise ValueError(f"Route {full_path} declares an upload but the router has no dispatcher")

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            upload_param = find_upload_param(sig)
            has_request_param = "request" in sig.parameters

            if upload is not None:
                UPLOAD_ENDPOINTS[full_path] = upload

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                if upload is not None:
                    correlation_id.set(request.headers.get("x-request-id") or uuid.uuid4().hex)
                    uploads = await dispatch_request_uploads(dispatcher, upload, full_path, request)  # type: ignore[arg-type]
                    if isinstance(uploads, Response):
                        return uploads
                    if upload_param:
                        h_kwargs[upload_param] = uploads

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            new_params.extend(
                param for name, param in sig.parameters.items() if name not in ("request", upload_param)
            )

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """Enhanced SubRouter with automatic upload dispatch and response handling."""

    def __init__(self, *args, dispatcher: UploadDispatcher | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._dispatcher = dispatcher
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with upload dispatch."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix, self._dispatcher)
                setattr(self, method_name, wrapped_method)
