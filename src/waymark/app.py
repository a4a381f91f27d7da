"""
Main Waymark application class.
The ASGI boundary around the router: reads requests, authenticates,
dispatches and turns outcomes and failures into JSON responses.
"""

import logging
import time
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from waymark.auth import AuthBackend, JWTAuthBackend
from waymark.config import AppConfig
from waymark.discovery import Operation, discover_directory, discover_package, discover_resources
from waymark.exceptions import HTTPException, MalformedPatternError
from waymark.request import Request, RequestContext
from waymark.response import Response, message_response, to_response
from waymark.routing import Route, RouteRegistry, Router
from waymark.types import Message, Receive, Scope, Send

access_logger = logging.getLogger("waymark.access")
error_logger = logging.getLogger("waymark.errors")
logger = logging.getLogger("waymark.app")


class Waymark:
    """
    The Waymark application.

    Operations come from resource classes, an importable package, a source
    directory, or any mix of them. The router is built once, on lifespan
    startup or on the first request, and shared by every request after that.

    Usage:
        app = Waymark(resources=[Blog, Contacts])

        # Run with: uvicorn main:app
    """

    def __init__(
        self,
        resources: Iterable[type] = (),
        package: str | None = None,
        directory: str | Path | None = None,
        config: AppConfig | None = None,
        auth_backend: AuthBackend | None = None,
        **options: Any,
    ) -> None:
        config = config or AppConfig()
        self.config = config.with_overrides(**options) if options else config

        self._resources = tuple(resources)
        self._package = package
        self._directory = directory

        if auth_backend is None and self.config.secret_key is not None:
            auth_backend = JWTAuthBackend(self.config.secret_key, self.config.jwt_algorithm)
        self.auth_backend = auth_backend

        self._router: Router | None = None
        self.rejected: list[MalformedPatternError] = []

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def discover(self) -> list[Operation]:
        """Collect operations from every configured source, in that order."""
        operations: list[Operation] = []
        if self._resources:
            operations.extend(discover_resources(*self._resources))
        if self._package is not None:
            operations.extend(discover_package(self._package))
        if self._directory is not None:
            operations.extend(discover_directory(self._directory))
        return operations

    def build_router(self) -> Router:
        """(Re)build the router from the configured sources."""
        registry = RouteRegistry()
        self.rejected = registry.populate(self.discover())
        self._router = Router(registry)
        logger.info(
            "%s %s: %d route(s), %d rejected",
            self.config.title,
            self.config.version,
            len(registry),
            len(self.rejected),
        )
        return self._router

    @property
    def router(self) -> Router:
        if self._router is None:
            self.build_router()
        # pyrefly: ignore [bad-return]
        return self._router

    @property
    def routes(self) -> list[Route]:
        """Get all registered routes."""
        return self.router.routes

    # -------------------------------------------------------------------------
    # ASGI Interface
    # -------------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI application entry point."""
        scope["app"] = self

        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
        elif scope["type"] == "http":
            await self._handle_http(scope, receive, send)
        elif scope["type"] == "websocket":
            # No websocket routes
            await send({"type": "websocket.close", "code": 1008})

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    self.build_router()
                except Exception as exc:
                    logger.exception("Startup failed: %s", exc)
                    await send({
                        "type": "lifespan.startup.failed",
                        "message": str(exc),
                    })
                    return
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Handle one HTTP request from scope to response."""
        request = Request(scope, receive, max_body_size=self.config.max_body_size)
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        status_code = 0

        # Inject X-Request-ID header into every response
        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            try:
                response = await self._respond(request, request_id)
            except HTTPException as exc:
                # Log client errors at warning, server errors at error
                if exc.status_code >= 500:
                    error_logger.error(
                        "request_id=%s status=%d detail=%s",
                        request_id, exc.status_code, exc.detail,
                    )
                else:
                    error_logger.warning(
                        "request_id=%s status=%d detail=%s",
                        request_id, exc.status_code, exc.detail,
                    )
                response = message_response(exc.detail, exc.status_code, exc.headers)
            except Exception as exc:
                # Always log full traceback server-side
                error_logger.exception(
                    "Unhandled exception request_id=%s: %s",
                    request_id, exc,
                )
                # Never expose internal details to the client
                response = message_response("Internal Server Error", 500)

            await response(send_with_request_id)
        finally:
            duration = (time.perf_counter() - start_time) * 1000
            access_logger.info(
                "%s %s %d %.2fms request_id=%s client=%s",
                request.method,
                request.path,
                status_code,
                duration,
                request_id,
                request.client[0] if request.client else "-",
            )

    async def _respond(self, request: Request, request_id: str) -> Response:
        context = await RequestContext.from_request(
            request,
            mount_prefix=self.config.mount_prefix,
            request_id=request_id,
        )

        if self.auth_backend is not None:
            context.user = await self.auth_backend.authenticate(context)

        result = self.router.handle(context)
        if context.response is not None:
            return context.response
        return to_response(result)

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        log_level: str | None = None,
    ) -> None:
        """
        Run the application using uvicorn.

        Arguments left as ``None`` fall back to the config. uvicorn only
        reloads apps given as an import string, so for auto-reload run
        ``uvicorn module:app --reload`` instead.
        """
        import uvicorn

        uvicorn.run(
            self,
            host=host or self.config.host,
            port=port or self.config.port,
            log_level=log_level or self.config.log_level,
        )
