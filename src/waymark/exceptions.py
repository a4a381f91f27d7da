"""
Waymark framework exceptions.
Each failure carries the HTTP status the ASGI boundary answers with.
"""


class WaymarkException(Exception):
    """Base exception for all Waymark errors."""

    def __init__(self, message: str = "An error occurred") -> None:
        self.message = message
        super().__init__(self.message)


class HTTPException(WaymarkException):
    """HTTP-related exceptions with status codes."""

    def __init__(
        self,
        status_code: int = 500,
        detail: str = "Internal Server Error",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.headers = headers or {}
        super().__init__(detail)


class BadRequest(HTTPException):
    """400 Bad Request."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(400, detail)


class Unauthorized(HTTPException):
    """401 Unauthorized."""

    def __init__(
        self,
        detail: str = "Unauthorized",
        headers: dict[str, str] | None = None,
    ) -> None:
        default_headers = {"WWW-Authenticate": "Bearer"}
        if headers:
            default_headers.update(headers)
        super().__init__(401, detail, default_headers)


class NotFound(HTTPException):
    """404 Not Found."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(404, detail)


class PayloadTooLarge(HTTPException):
    """413 Payload Too Large."""

    def __init__(self, detail: str = "Payload Too Large") -> None:
        super().__init__(413, detail)


class NotImplementedHTTP(HTTPException):
    """501 Not Implemented."""

    def __init__(self, detail: str = "Not Implemented") -> None:
        super().__init__(501, detail)


class MalformedPatternError(BadRequest):
    """A route pattern breaks the pattern grammar."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(
            f"Route pattern {pattern!r} not following routing rules: "
            "patterns cannot be empty, end with / "
            "or have any whitespaces or \\"
        )


class RouteNotFoundError(NotFound):
    """No registered pattern has the shape of the request path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("Resource not found.")


class VerbNotSupportedError(NotImplementedHTTP):
    """A pattern matched but none of its routes accepts the verb."""

    def __init__(self, verb: str, pattern: str) -> None:
        self.verb = verb
        self.pattern = pattern
        super().__init__(f"The method {verb} is not implemented for this request.")


class AuthenticationError(Unauthorized):
    """Raised by authentication backends before routing begins."""
    pass


class DiscoveryError(WaymarkException):
    """Operation discovery could not load its source."""
    pass
