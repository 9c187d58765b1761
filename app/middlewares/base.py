"""Base middleware architecture for Robyn applications."""

from abc import ABC
from collections.abc import Callable

from robyn import Request, Response, Robyn

from app.core.logger import LogIcon, logger


class BaseMiddleware(ABC):
    """Base class for middlewares with optional before/after hooks.

    Subclasses override ``before``, ``after`` or both. A ``before`` hook returns
    the Request to continue or a Response to short-circuit.
    """

    endpoints: frozenset[str] = frozenset()

    def __init__(self, endpoints: frozenset[str] | list[str] | None = None) -> None:
        if endpoints:
            self.endpoints = frozenset(endpoints)

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not (cls.has_before() or cls.has_after()):
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")

    @classmethod
    def has_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def has_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after

    def before(self, request: Request) -> Request | Response:
        return request

    def after(self, response: Response) -> Response:
        return response


class MiddlewareHandler:
    """Manages middleware registration for a Robyn application."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._middlewares: list[BaseMiddleware] = []

    @property
    def middlewares(self) -> list[BaseMiddleware]:
        return list(self._middlewares)

    def register(self, middleware: BaseMiddleware) -> "MiddlewareHandler":
        """Register a middleware instance. Returns self for chaining."""
        self._middlewares.append(middleware)
        self._apply_middleware(middleware)
        logger.info(f"Registered middleware: {middleware.__class__.__name__}", icon=LogIcon.ADAPTER)
        return self

    def _apply_middleware(self, middleware: BaseMiddleware) -> None:
        endpoints = middleware.endpoints or self._get_all_routes()
        for endpoint in endpoints:
            if middleware.has_before():
                self._register_before(endpoint, middleware.before)
            if middleware.has_after():
                self._register_after(endpoint, middleware.after)

    def _get_all_routes(self) -> frozenset[str]:
        routes = self._app.get_all_routes()
        return frozenset(route[1] for route in routes)

    def _register_before(self, endpoint: str, handler: Callable) -> None:
        @self._app.before_request(endpoint)
        async def before_wrapper(request: Request) -> Request | Response:
            return handler(request)

    def _register_after(self, endpoint: str, handler: Callable) -> None:
        @self._app.after_request(endpoint)
        def after_wrapper(response: Response) -> Response:
            return handler(response)
