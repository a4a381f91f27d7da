"""
Response handling for Waymark.
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from waymark.types import Send


class Response(ABC):
    """
    Abstract base response class.

    Subclasses decide how ``content`` is rendered to bytes.
    """

    media_type: str = "text/plain"
    charset: str = "utf-8"

    def __init__(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self._headers: dict[str, str] = dict(headers or {})
        self._content = content

    @property
    def content(self) -> Any:
        return self._content

    @property
    def headers(self) -> dict[str, str]:
        return self._headers

    @property
    def content_type(self) -> str:
        """Full content type with charset."""
        if self.media_type.startswith("text/") or "json" in self.media_type:
            return f"{self.media_type}; charset={self.charset}"
        return self.media_type

    @abstractmethod
    def render(self) -> bytes:
        """Render the response body. Must be implemented by subclasses."""
        ...

    def _build_headers(self, body: bytes) -> list[tuple[bytes, bytes]]:
        """Build header list for ASGI response."""
        headers: list[tuple[bytes, bytes]] = [
            (b"content-type", self.content_type.encode("latin-1")),
            (b"content-length", str(len(body)).encode("latin-1")),
        ]

        for name, value in self._headers.items():
            headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        return headers

    async def __call__(self, send: Send) -> None:
        """Send the response via ASGI."""
        body = self.render()

        await send({
            "type": "http.response.start",
            "status": self.status_code,
            "headers": self._build_headers(body),
        })

        await send({
            "type": "http.response.body",
            "body": body,
        })


class TextResponse(Response):
    """Plain text response."""

    media_type = "text/plain"

    def render(self) -> bytes:
        if self._content is None:
            return b""
        if isinstance(self._content, bytes):
            return self._content
        return str(self._content).encode(self.charset)


class JSONResponse(Response):
    """JSON response with automatic serialization."""

    media_type = "application/json"

    def render(self) -> bytes:
        if self._content is None:
            return b"null"
        return json.dumps(
            self._content,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode(self.charset)


def message_response(
    message: str,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """The ``{"message": ...}`` body every terminal outcome is reported with."""
    return JSONResponse({"message": message}, status_code=status_code, headers=headers)


def to_response(result: Any) -> Response:
    """Convert an operation's return value into a response."""
    if isinstance(result, Response):
        return result
    if result is None:
        return TextResponse("", status_code=204)
    if isinstance(result, (str, bytes)):
        return TextResponse(result)
    return JSONResponse(result)
