"""
Request handling for Waymark.

``Request`` wraps the raw ASGI scope; ``RequestContext`` is the normalized,
per-request state the router and the operations work with.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from waymark.exceptions import BadRequest, PayloadTooLarge
from waymark.response import Response
from waymark.types import Receive, Scope

# Default maximum request body size: 1 MB
DEFAULT_MAX_BODY_SIZE: int = 1_048_576


def normalize_path(raw_path: str, *prefixes: str) -> str:
    """
    Reduce a raw request path to the form patterns are written in.

    Each non-empty prefix is removed in turn when the path starts with it,
    then one leading and one trailing ``/`` are stripped::

        normalize_path("/api/post/42/edit/", "/api")  ->  "post/42/edit"
    """
    path = raw_path
    for prefix in prefixes:
        prefix = prefix.rstrip("/")
        if prefix and (path == prefix or path.startswith(prefix + "/")):
            path = path[len(prefix):]
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path


class Request:
    """
    HTTP Request wrapper over an ASGI scope.

    The body is read lazily and at most once.
    """

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    ) -> None:
        self._scope = scope
        self._receive = receive
        self._body: bytes | None = None
        self._max_body_size = max_body_size

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        return self._scope.get("method", "GET").upper()

    @property
    def path(self) -> str:
        """Raw request path."""
        return self._scope.get("path", "/")

    @property
    def root_path(self) -> str:
        """Mount point the ASGI server reports for this application."""
        return self._scope.get("root_path", "")

    @cached_property
    def headers(self) -> Mapping[str, str]:
        """Request headers as a dictionary."""
        headers: dict[str, str] = {}
        for name, value in self._scope.get("headers", []):
            headers[name.decode("latin-1").lower()] = value.decode("latin-1")
        return headers

    @property
    def content_length(self) -> int | None:
        """Content-Length header value."""
        length = self.headers.get("content-length")
        return int(length) if length and length.isdigit() else None

    @property
    def client(self) -> tuple[str, int] | None:
        """Client address as (host, port) tuple."""
        client = self._scope.get("client")
        if client:
            return (client[0], client[1])
        return None

    def get_header(self, name: str, default: str | None = None) -> str | None:
        """Get a specific header value."""
        return self.headers.get(name.lower(), default)

    def normalized_path(self, mount_prefix: str = "") -> str:
        return normalize_path(self.path, self.root_path, mount_prefix)

    async def body(self) -> bytes:
        """
        Read and return the request body.

        Raises:
            PayloadTooLarge: If body exceeds max_body_size.
        """
        if self._body is not None:
            return self._body

        # Early rejection via Content-Length header
        if (
            self._max_body_size > 0
            and self.content_length is not None
            and self.content_length > self._max_body_size
        ):
            raise PayloadTooLarge(
                f"Request body too large. "
                f"Maximum allowed: {self._max_body_size} bytes"
            )

        chunks: list[bytes] = []
        total_size = 0

        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                total_size += len(body)
                if self._max_body_size > 0 and total_size > self._max_body_size:
                    raise PayloadTooLarge(
                        f"Request body too large. "
                        f"Maximum allowed: {self._max_body_size} bytes"
                    )
                chunks.append(body)

            if not message.get("more_body", False):
                break

        self._body = b"".join(chunks)
        return self._body


@dataclass
class RequestContext:
    """
    State of one request while it is routed and dispatched.

    Operations read the request from here and write their response back
    into ``response``.
    """

    path: str
    verb: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    client: tuple[str, int] | None = None
    request_id: str = "-"
    user: Any = None
    response: Response | None = None

    @classmethod
    async def from_request(
        cls,
        request: Request,
        mount_prefix: str = "",
        request_id: str = "-",
    ) -> "RequestContext":
        """Build a context from an ASGI request, reading its body."""
        return cls(
            path=request.normalized_path(mount_prefix),
            verb=request.method,
            headers=request.headers,
            body=await request.body(),
            client=request.client,
            request_id=request_id,
        )

    def get_header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def text(self) -> str:
        """Body decoded as UTF-8."""
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BadRequest("Request body is not valid UTF-8") from exc

    def json(self) -> Any:
        """Body parsed as JSON, ``None`` when empty."""
        text = self.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise BadRequest(f"Malformed JSON body: {exc.msg}") from exc
