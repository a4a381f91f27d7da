"""
Base class for classes whose methods are exposed as operations.
"""

from typing import TYPE_CHECKING, Any

from waymark.response import JSONResponse

if TYPE_CHECKING:
    from waymark.request import RequestContext


class Resource:
    """
    Owner of routed operations.

    The dispatcher builds a new instance per request and binds the request
    context to it before calling the operation::

        class Blog(Resource):
            @api("post/$id/edit")
            def edit_post(self, id):
                self.response({"editing": id})

    Operations are called synchronously, so they are plain ``def`` methods;
    discovery rejects an ``async def`` operation with ``DiscoveryError``.
    """

    _context: "RequestContext | None" = None

    def bind(self, context: "RequestContext") -> None:
        self._context = context

    @property
    def context(self) -> "RequestContext":
        if self._context is None:
            raise RuntimeError(
                f"{type(self).__name__} is not bound to a request; "
                "operations only see a context when dispatched"
            )
        return self._context

    @property
    def user(self) -> Any:
        """The authenticated user, if an auth backend is configured."""
        return self.context.user

    def response(
        self,
        content: Any = None,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Write ``content`` as the JSON response of the current request."""
        response = JSONResponse(content, status_code=status_code, headers=headers)
        self.context.response = response
        return response
